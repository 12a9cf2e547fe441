"""Flat parameter mapping -> typed model inputs.

Form fields arrive as a flat mapping of strings or numbers. Each field is
independently defaultable: blank, missing or non-numeric entries fall back
to the default below. Range checks (zero, negative, efficiency above 100 %)
are left to the core, which floors every value itself.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from economics import EconomicParameters, ResourceEconomics
from services.dispatch_core import TechnicalParameters
from utils.numeric import to_float

MW_PER_GW = 1000.0


class ModelInputsPayload(BaseModel):
    """Pydantic mirror of the model's input form.

    Units follow the form: capacities in GW / GWh, capex per kW (per kWh for
    the battery), fixed O&M per MW-year, variable O&M and fuel per MWh, and
    efficiency / discount rates in percent.
    """

    model_config = ConfigDict(extra="ignore")

    solar_cap_gw: float = 0.0
    battery_cap_gwh: float = 0.0
    gas_cap_gw: float = 1.0
    demand_gw: Optional[float] = None

    gas_capex: float = 800.0
    solar_capex: float = 450.0
    battery_capex: float = 200.0

    gas_fixed_om: float = 18_000.0
    solar_fixed_om: float = 8_000.0
    battery_fixed_om: float = 6_000.0

    gas_var_om: float = 4.0
    gas_fuel: float = 27.0
    gas_efficiency: float = 45.0

    inverter_ratio: float = 1.2
    wacc_fossil: float = 7.5
    wacc_renew: float = 5.0
    lifetime_fossil: float = 25.0
    lifetime_solar: float = 35.0
    lifetime_battery: float = 25.0
    battery_duration_hours: float = 4.0

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        number = to_float(value)
        if number is None:
            return cls.model_fields[info.field_name].default
        return number

    def build(self) -> Tuple[TechnicalParameters, EconomicParameters]:
        """Return core parameters with GW converted to MW and percentages to fractions."""

        technical = TechnicalParameters(
            solar_capacity_mw=self.solar_cap_gw * MW_PER_GW,
            battery_capacity_mwh=self.battery_cap_gwh * MW_PER_GW,
            inverter_ratio=self.inverter_ratio,
            gas_capacity_mw=self.gas_cap_gw * MW_PER_GW,
            demand_mw=None if self.demand_gw is None else self.demand_gw * MW_PER_GW,
        )
        renew_rate = self.wacc_renew / 100.0
        economics = EconomicParameters(
            gas=ResourceEconomics(
                capex_per_kw=self.gas_capex,
                fixed_om_per_mw_year=self.gas_fixed_om,
                discount_rate=self.wacc_fossil / 100.0,
                lifetime_years=self.lifetime_fossil,
                variable_om_per_mwh=self.gas_var_om,
                fuel_price_per_mwh=self.gas_fuel,
                efficiency=self.gas_efficiency / 100.0,
            ),
            solar=ResourceEconomics(
                capex_per_kw=self.solar_capex,
                fixed_om_per_mw_year=self.solar_fixed_om,
                discount_rate=renew_rate,
                lifetime_years=self.lifetime_solar,
            ),
            battery=ResourceEconomics(
                capex_per_kw=self.battery_capex,
                fixed_om_per_mw_year=self.battery_fixed_om,
                discount_rate=renew_rate,
                lifetime_years=self.lifetime_battery,
            ),
            battery_duration_hours=self.battery_duration_hours,
        )
        return technical, economics


def parse_model_inputs(mapping: Mapping[str, Any]) -> Tuple[ModelInputsPayload, List[str]]:
    """Validate a flat mapping and report fields that fell back to defaults.

    Blank and missing fields are silent; a field holding text that is not a
    number produces a warning naming the default used instead.
    """

    warnings: List[str] = []
    for name, info in ModelInputsPayload.model_fields.items():
        if name not in mapping:
            continue
        raw = mapping[name]
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            continue
        if to_float(raw) is None:
            message = f"{name}={raw!r} is not a number; using default {info.default}."
            warnings.append(message)
            logging.getLogger(__name__).warning(message)
    return ModelInputsPayload.model_validate(dict(mapping)), warnings
