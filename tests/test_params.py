from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from services.dispatch_core import resolve_technical_parameters  # noqa: E402
from utils.params import ModelInputsPayload, parse_model_inputs  # noqa: E402


def test_empty_mapping_uses_form_defaults() -> None:
    payload, warnings = parse_model_inputs({})
    technical, economics = payload.build()

    assert warnings == []
    assert technical.solar_capacity_mw == 0.0
    assert technical.battery_capacity_mwh == 0.0
    assert technical.gas_capacity_mw == pytest.approx(1000.0)
    assert technical.baseload_mw == pytest.approx(1000.0)
    assert technical.inverter_ratio == pytest.approx(1.2)
    assert economics.gas.capex_per_kw == pytest.approx(800.0)
    assert economics.gas.efficiency == pytest.approx(0.45)
    assert economics.gas.discount_rate == pytest.approx(0.075)
    assert economics.solar.discount_rate == pytest.approx(0.05)
    assert economics.solar.lifetime_years == pytest.approx(35.0)
    assert economics.battery.lifetime_years == pytest.approx(25.0)
    assert economics.battery_duration_hours == pytest.approx(4.0)


def test_blank_fields_fall_back_independently() -> None:
    payload, warnings = parse_model_inputs(
        {"solar_cap_gw": "2.5", "battery_cap_gwh": " ", "gas_capex": "", "solar_capex": None, "gas_fuel": "30"}
    )

    assert warnings == []
    assert payload.solar_cap_gw == pytest.approx(2.5)
    assert payload.battery_cap_gwh == 0.0
    assert payload.gas_capex == pytest.approx(800.0)
    assert payload.solar_capex == pytest.approx(450.0)
    assert payload.gas_fuel == pytest.approx(30.0)


def test_non_numeric_fields_warn_and_use_default() -> None:
    payload, warnings = parse_model_inputs({"wacc_renew": "five", "lifetime_solar": "abc"})

    assert payload.wacc_renew == pytest.approx(5.0)
    assert payload.lifetime_solar == pytest.approx(35.0)
    assert len(warnings) == 2
    assert any("wacc_renew" in msg for msg in warnings)


def test_units_are_converted_on_build() -> None:
    payload = ModelInputsPayload(
        solar_cap_gw=3.0,
        battery_cap_gwh=6.0,
        demand_gw=0.8,
        gas_efficiency=50.0,
        wacc_fossil=10.0,
        wacc_renew=4.0,
    )
    technical, economics = payload.build()

    assert technical.solar_capacity_mw == pytest.approx(3000.0)
    assert technical.battery_capacity_mwh == pytest.approx(6000.0)
    assert technical.baseload_mw == pytest.approx(800.0)
    assert economics.gas.efficiency == pytest.approx(0.5)
    assert economics.gas.discount_rate == pytest.approx(0.10)
    assert economics.battery.discount_rate == pytest.approx(0.04)


def test_negative_values_pass_through_for_core_flooring() -> None:
    payload, _ = parse_model_inputs({"solar_cap_gw": -1, "inverter_ratio": 0, "unknown_field": 3})
    technical, _ = payload.build()

    assert technical.solar_capacity_mw == pytest.approx(-1000.0)
    resolved = resolve_technical_parameters(technical)
    assert resolved.solar_capacity_mw == 0.0
    assert resolved.inverter_ratio > 0.0
