"""Levelized cost metrics for solar + battery + gas baseload runs.

This module stays free of UI dependencies so it can be reused from notebooks
or other entrypoints. Provide the annual dispatch summary, the installed
capacities and per-resource cost assumptions to get annualized costs and
LCOE values.

Costs are annualized with a capital recovery factor rather than a
discounted multi-year cash flow: one simulated year is taken as
representative of every year of the asset life.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Tuple

from services.dispatch_core import AnnualSummary, TechnicalParameters, resolve_technical_parameters
from utils.numeric import non_negative, positive, safe_ratio

# Unit capex is quoted per kW (per kWh for the battery); capacities are in MW / MWh.
KW_PER_MW = 1000.0


def capital_recovery_factor(rate: float, years: float) -> float:
    """Return the annual payment per unit of capital over ``years`` at ``rate``.

    ``rate == 0`` is handled separately since the general expression is a
    0/0 there; its limit is straight-line repayment ``1 / years``.
    """

    rate = non_negative(rate, "discount_rate")
    years = positive(years, "lifetime_years")
    if rate == 0:
        return 1.0 / years
    try:
        growth = (1.0 + rate) ** years
    except OverflowError:
        # Very long lives converge to interest-only payments.
        return rate
    if growth <= 1.0:
        # Rate too small to register in floating point.
        return 1.0 / years
    return rate * growth / (growth - 1.0)


@dataclass
class ResourceEconomics:
    """Cost assumptions for one resource.

    ``capex_per_kw`` is per kWh of energy capacity for the battery. Fuel
    price is per MWh of fuel energy, converted with ``efficiency``.
    """

    capex_per_kw: float
    fixed_om_per_mw_year: float
    discount_rate: float
    lifetime_years: float
    variable_om_per_mwh: float = 0.0
    fuel_price_per_mwh: float = 0.0
    efficiency: float = 1.0


def _default_gas() -> ResourceEconomics:
    return ResourceEconomics(
        capex_per_kw=800.0,
        fixed_om_per_mw_year=18_000.0,
        discount_rate=0.075,
        lifetime_years=25.0,
        variable_om_per_mwh=4.0,
        fuel_price_per_mwh=27.0,
        efficiency=0.45,
    )


def _default_solar() -> ResourceEconomics:
    return ResourceEconomics(
        capex_per_kw=450.0,
        fixed_om_per_mw_year=8_000.0,
        discount_rate=0.05,
        lifetime_years=35.0,
    )


def _default_battery() -> ResourceEconomics:
    return ResourceEconomics(
        capex_per_kw=200.0,
        fixed_om_per_mw_year=6_000.0,
        discount_rate=0.05,
        lifetime_years=25.0,
    )


@dataclass
class EconomicParameters:
    gas: ResourceEconomics = field(default_factory=_default_gas)
    solar: ResourceEconomics = field(default_factory=_default_solar)
    battery: ResourceEconomics = field(default_factory=_default_battery)
    # Divisor turning battery MWh into the MW basis used for fixed O&M.
    battery_duration_hours: float = 4.0


@dataclass(frozen=True)
class ResourceCost:
    """Annualized cost components and LCOE for one resource."""

    resource: str
    capacity: float
    annualized_capex: float
    annual_fixed_om: float
    annual_variable_om: float
    annual_fuel: float
    attributed_mwh: float

    @property
    def annual_opex(self) -> float:
        return self.annual_fixed_om + self.annual_variable_om + self.annual_fuel

    @property
    def annual_cost(self) -> float:
        return self.annualized_capex + self.annual_opex

    @property
    def levelized_cost(self) -> float:
        """Annual cost per attributed MWh; 0.0 when nothing is attributed."""
        return safe_ratio(self.annual_cost, self.attributed_mwh)


@dataclass(frozen=True)
class LCOEResult:
    gas: ResourceCost
    solar: ResourceCost
    battery: ResourceCost
    demand_mwh: float

    @property
    def resources(self) -> Tuple[ResourceCost, ...]:
        return (self.gas, self.solar, self.battery)

    @property
    def total_annualized_capex(self) -> float:
        return sum(r.annualized_capex for r in self.resources)

    @property
    def total_annual_opex(self) -> float:
        return sum(r.annual_opex for r in self.resources)

    @property
    def total_annual_cost(self) -> float:
        return sum(r.annual_cost for r in self.resources)

    @property
    def system_lcoe(self) -> float:
        return safe_ratio(self.total_annual_cost, self.demand_mwh)

    @property
    def system_capex_per_mwh(self) -> float:
        return safe_ratio(self.total_annualized_capex, self.demand_mwh)

    @property
    def system_opex_per_mwh(self) -> float:
        return safe_ratio(self.total_annual_opex, self.demand_mwh)


def _resolve_resource(name: str, inputs: ResourceEconomics) -> ResourceEconomics:
    return ResourceEconomics(
        capex_per_kw=non_negative(inputs.capex_per_kw, f"{name}.capex_per_kw"),
        fixed_om_per_mw_year=non_negative(inputs.fixed_om_per_mw_year, f"{name}.fixed_om_per_mw_year"),
        discount_rate=non_negative(inputs.discount_rate, f"{name}.discount_rate"),
        lifetime_years=positive(inputs.lifetime_years, f"{name}.lifetime_years"),
        variable_om_per_mwh=non_negative(inputs.variable_om_per_mwh, f"{name}.variable_om_per_mwh"),
        fuel_price_per_mwh=non_negative(inputs.fuel_price_per_mwh, f"{name}.fuel_price_per_mwh"),
        efficiency=positive(inputs.efficiency, f"{name}.efficiency", ceiling=1.0),
    )


def resolve_economic_parameters(params: EconomicParameters) -> EconomicParameters:
    """Return a copy of ``params`` with every value floored before any division."""

    return replace(
        params,
        gas=_resolve_resource("gas", params.gas),
        solar=_resolve_resource("solar", params.solar),
        battery=_resolve_resource("battery", params.battery),
        battery_duration_hours=positive(params.battery_duration_hours, "battery_duration_hours"),
    )


def annualize_resource(
    resource: str,
    capex_capacity: float,
    om_capacity_mw: float,
    energy_mwh: float,
    inputs: ResourceEconomics,
) -> ResourceCost:
    """Annualize capex and O&M for one resource already resolved by the caller.

    ``capex_capacity`` is MW (MWh for the battery) and multiplies the per-kW
    capex; ``om_capacity_mw`` multiplies the fixed O&M rate. Variable O&M and
    fuel scale with ``energy_mwh``, which is also the LCOE denominator.
    """

    capex_total = capex_capacity * KW_PER_MW * inputs.capex_per_kw
    fuel_mwh = energy_mwh / inputs.efficiency
    return ResourceCost(
        resource=resource,
        capacity=capex_capacity,
        annualized_capex=capex_total * capital_recovery_factor(inputs.discount_rate, inputs.lifetime_years),
        annual_fixed_om=om_capacity_mw * inputs.fixed_om_per_mw_year,
        annual_variable_om=energy_mwh * inputs.variable_om_per_mwh,
        annual_fuel=fuel_mwh * inputs.fuel_price_per_mwh,
        attributed_mwh=energy_mwh,
    )


def compute_lcoe(
    summary: AnnualSummary,
    technical: TechnicalParameters,
    economics: EconomicParameters,
) -> LCOEResult:
    """Compute per-resource and system LCOE from one year of dispatch.

    Energy attribution follows direct delivery to load: gas is credited with
    ``gas_output_mwh``, solar with ``solar_used_mwh`` (solar that reached the
    load without passing through the battery) and the battery with
    ``battery_discharge_mwh``. These three sum to the annual demand, so no
    MWh counts towards two resources. The system LCOE divides the total
    annual cost by the annual demand and does not depend on attribution.
    """

    technical = resolve_technical_parameters(technical)
    economics = resolve_economic_parameters(economics)

    battery_power_mw = technical.battery_capacity_mwh / economics.battery_duration_hours
    gas = annualize_resource(
        "gas",
        capex_capacity=technical.gas_capacity_mw,
        om_capacity_mw=technical.gas_capacity_mw,
        energy_mwh=non_negative(summary.gas_output_mwh, "gas_output_mwh"),
        inputs=economics.gas,
    )
    solar = annualize_resource(
        "solar",
        capex_capacity=technical.solar_capacity_mw,
        om_capacity_mw=technical.solar_capacity_mw,
        energy_mwh=non_negative(summary.solar_used_mwh, "solar_used_mwh"),
        inputs=economics.solar,
    )
    battery = annualize_resource(
        "battery",
        capex_capacity=technical.battery_capacity_mwh,
        om_capacity_mw=battery_power_mw,
        energy_mwh=non_negative(summary.battery_discharge_mwh, "battery_discharge_mwh"),
        inputs=economics.battery,
    )
    return LCOEResult(
        gas=gas,
        solar=solar,
        battery=battery,
        demand_mwh=non_negative(summary.demand_mwh, "demand_mwh"),
    )
