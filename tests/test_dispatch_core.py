from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from services.dispatch_core import (  # noqa: E402
    HOURS_PER_YEAR,
    JANUARY_WEEK,
    JULY_WEEK,
    TechnicalParameters,
    prepare_solar_profile,
    simulate_dispatch,
    synthetic_solar_profile,
)


def _block_profile(start: int, hours: int, value: float = 1.0) -> np.ndarray:
    """Return a zero profile with ``value`` for ``hours`` hours from ``start``."""

    profile = np.zeros(HOURS_PER_YEAR)
    profile[start:start + hours] = value
    return profile


def test_no_solar_no_battery_runs_entirely_on_gas() -> None:
    params = TechnicalParameters(solar_capacity_mw=0.0, battery_capacity_mwh=0.0, gas_capacity_mw=1000.0)

    output = simulate_dispatch(np.zeros(HOURS_PER_YEAR), params)

    flows = output.flows
    np.testing.assert_array_equal(flows.gas_output, np.full(HOURS_PER_YEAR, 1000.0))
    assert flows.solar_used.sum() == 0.0
    assert flows.battery_charge.sum() == 0.0
    assert flows.battery_discharge.sum() == 0.0
    assert output.summary.gas_output_mwh == pytest.approx(8_760_000.0)
    assert output.summary.demand_mwh == pytest.approx(8_760_000.0)
    assert output.flags["gas_hours"] == HOURS_PER_YEAR


def test_surplus_block_charges_then_curtails_then_discharges() -> None:
    """Four sunny hours fill a 10 GWh battery, which then covers the evening."""

    params = TechnicalParameters(
        solar_capacity_mw=5000.0,
        battery_capacity_mwh=10_000.0,
        inverter_ratio=1.0,
        gas_capacity_mw=1000.0,
    )

    output = simulate_dispatch(_block_profile(10, 4), params)
    flows = output.flows

    np.testing.assert_allclose(flows.solar_used[10:14], [1000.0] * 4)
    np.testing.assert_allclose(flows.battery_charge[10:14], [4000.0, 4000.0, 2000.0, 0.0])
    np.testing.assert_allclose(flows.solar_curtailed[10:14], [0.0, 0.0, 2000.0, 4000.0])
    np.testing.assert_allclose(
        flows.solar_curtailed[10:14],
        flows.solar_available[10:14] - 1000.0 - flows.battery_charge[10:14],
    )
    assert flows.state_of_charge[13] == pytest.approx(10_000.0)

    np.testing.assert_allclose(flows.battery_discharge[14:25], [1000.0] * 10 + [0.0])
    assert flows.gas_output[14:24].sum() == pytest.approx(0.0)
    assert flows.gas_output[24] == pytest.approx(1000.0)
    assert flows.state_of_charge[23] == pytest.approx(0.0)

    summary = output.summary
    assert summary.solar_used_mwh == pytest.approx(4000.0)
    assert summary.battery_charge_mwh == pytest.approx(10_000.0)
    assert summary.battery_discharge_mwh == pytest.approx(10_000.0)
    assert summary.solar_curtailed_mwh == pytest.approx(6000.0)
    assert summary.battery_equivalent_cycles == pytest.approx(1.0)

    assert output.flags == {
        "curtailment_hours": 2,
        "gas_hours": HOURS_PER_YEAR - 14,
        "soc_ceiling_hits": 1,
        "soc_floor_hits": 1,
    }


def test_inverter_ratio_clips_available_solar() -> None:
    params = TechnicalParameters(solar_capacity_mw=1000.0, inverter_ratio=2.0)

    output = simulate_dispatch(_block_profile(12, 1, value=0.8), params)

    assert output.flows.solar_available[12] == pytest.approx(500.0)
    assert output.flows.solar_used[12] == pytest.approx(500.0)
    assert output.flows.gas_output[12] == pytest.approx(500.0)


def test_zero_battery_curtails_all_surplus() -> None:
    params = TechnicalParameters(solar_capacity_mw=3000.0, battery_capacity_mwh=0.0, inverter_ratio=1.0)

    output = simulate_dispatch(synthetic_solar_profile(), params)
    flows = output.flows

    assert flows.battery_charge.max() == 0.0
    assert flows.battery_discharge.max() == 0.0
    np.testing.assert_allclose(flows.solar_curtailed, np.maximum(flows.solar_available - 1000.0, 0.0))


def test_zero_solar_capacity_never_uses_or_stores_solar() -> None:
    params = TechnicalParameters(solar_capacity_mw=0.0, battery_capacity_mwh=5000.0)

    output = simulate_dispatch(np.ones(HOURS_PER_YEAR), params)

    assert output.flows.solar_used.max() == 0.0
    assert output.flows.battery_charge.max() == 0.0
    assert output.summary.gas_output_mwh == pytest.approx(output.summary.demand_mwh)


@pytest.mark.parametrize(
    "solar_mw, battery_mwh, inverter_ratio",
    [(0.0, 0.0, 1.2), (2500.0, 0.0, 1.2), (3000.0, 6000.0, 1.3), (8000.0, 20_000.0, 1.0)],
)
def test_hourly_energy_balance_and_soc_bounds(solar_mw, battery_mwh, inverter_ratio) -> None:
    params = TechnicalParameters(
        solar_capacity_mw=solar_mw,
        battery_capacity_mwh=battery_mwh,
        inverter_ratio=inverter_ratio,
    )

    output = simulate_dispatch(synthetic_solar_profile(seasonal_amplitude=0.6), params)
    flows = output.flows

    np.testing.assert_allclose(
        flows.solar_used + flows.battery_discharge + flows.gas_output,
        np.full(HOURS_PER_YEAR, 1000.0),
        atol=1e-9,
    )
    np.testing.assert_allclose(
        flows.solar_used + flows.battery_charge + flows.solar_curtailed,
        flows.solar_available,
        atol=1e-9,
    )
    assert flows.state_of_charge.min() >= 0.0
    assert flows.state_of_charge.max() <= battery_mwh + 1e-9
    for channel in (flows.solar_used, flows.battery_charge, flows.battery_discharge, flows.gas_output):
        assert channel.min() >= 0.0

    summary = output.summary
    assert summary.served_mwh == pytest.approx(1000.0 * HOURS_PER_YEAR)
    assert summary.solar_share_pct + summary.battery_share_pct + summary.gas_share_pct == pytest.approx(100.0)


def test_charge_and_discharge_never_share_an_hour() -> None:
    params = TechnicalParameters(solar_capacity_mw=4000.0, battery_capacity_mwh=8000.0)

    flows = simulate_dispatch(synthetic_solar_profile(), params).flows

    assert not np.any((flows.battery_charge > 0) & (flows.battery_discharge > 0))


def test_repeated_runs_are_identical() -> None:
    params = TechnicalParameters(solar_capacity_mw=3000.0, battery_capacity_mwh=6000.0)
    profile = synthetic_solar_profile(seasonal_amplitude=0.4)

    first = simulate_dispatch(profile, params)
    second = simulate_dispatch(profile, params)

    for name in (
        "solar_available",
        "solar_used",
        "battery_charge",
        "battery_discharge",
        "gas_output",
        "solar_curtailed",
        "state_of_charge",
    ):
        np.testing.assert_array_equal(getattr(first.flows, name), getattr(second.flows, name))
    assert first.summary == second.summary
    assert first.flags == second.flags


def test_gas_capacity_below_demand_still_reports_full_residual() -> None:
    params = TechnicalParameters(gas_capacity_mw=200.0, demand_mw=1000.0)

    output = simulate_dispatch(np.zeros(HOURS_PER_YEAR), params)

    assert output.flows.gas_output.max() == pytest.approx(1000.0)
    assert output.summary.demand_mwh == pytest.approx(1000.0 * HOURS_PER_YEAR)


def test_invalid_parameters_are_floored_instead_of_raising() -> None:
    params = TechnicalParameters(
        solar_capacity_mw=-100.0,
        battery_capacity_mwh=float("nan"),
        inverter_ratio=0.0,
        gas_capacity_mw=1000.0,
    )

    output = simulate_dispatch(np.ones(HOURS_PER_YEAR), params)

    assert output.params.solar_capacity_mw == 0.0
    assert output.params.battery_capacity_mwh == 0.0
    assert output.params.inverter_ratio > 0.0
    assert np.all(np.isfinite(output.flows.gas_output))
    assert output.summary.gas_output_mwh == pytest.approx(1000.0 * HOURS_PER_YEAR)


def test_prepare_solar_profile_zeroes_bad_hours_without_shifting() -> None:
    raw = [0.5, None, "bad", float("nan"), -0.2, float("inf"), 1.4, "0.25"]

    profile = prepare_solar_profile(raw)

    assert profile.shape == (HOURS_PER_YEAR,)
    np.testing.assert_allclose(profile[:8], [0.5, 0.0, 0.0, 0.0, 0.0, 0.0, 1.4, 0.25])
    assert profile[8:].sum() == 0.0


def test_prepare_solar_profile_truncates_long_input() -> None:
    profile = prepare_solar_profile(np.ones(HOURS_PER_YEAR + 24))

    assert profile.shape == (HOURS_PER_YEAR,)


def test_missing_profile_hours_act_as_zero_solar() -> None:
    params = TechnicalParameters(solar_capacity_mw=2000.0, inverter_ratio=1.0)
    profile = [1.0, None, "n/a", 1.0]

    output = simulate_dispatch(profile, params)

    np.testing.assert_allclose(output.flows.solar_used[:4], [1000.0, 0.0, 0.0, 1000.0])
    np.testing.assert_allclose(output.flows.gas_output[:4], [0.0, 1000.0, 1000.0, 0.0])


def test_synthetic_profile_shape() -> None:
    profile = synthetic_solar_profile(seasonal_amplitude=0.5)

    assert profile.shape == (HOURS_PER_YEAR,)
    assert profile.min() >= 0.0
    assert profile.max() <= 1.0
    assert profile[0] == 0.0
    summer_noon = 171 * 24 + 12
    winter_noon = 354 * 24 + 12
    assert profile[summer_noon] > 0.9
    assert profile[winter_noon] < profile[summer_noon]


def test_weekly_windows_and_frame() -> None:
    params = TechnicalParameters(solar_capacity_mw=3000.0, battery_capacity_mwh=4000.0)
    flows = simulate_dispatch(synthetic_solar_profile(), params).flows

    frame = flows.to_frame()
    assert len(frame) == HOURS_PER_YEAR
    assert frame.index[0] == pd.Timestamp("2023-01-01 00:00")
    assert frame.index[-1] == pd.Timestamp("2023-12-31 23:00")
    np.testing.assert_allclose(
        frame["battery_net_mwh"].to_numpy(),
        flows.battery_discharge - flows.battery_charge,
    )

    july = flows.window(JULY_WEEK.start, JULY_WEEK.hours)
    assert len(july.gas_output) == 168
    np.testing.assert_array_equal(july.solar_used, flows.solar_used[JULY_WEEK.start:JULY_WEEK.end])
    july_frame = july.to_frame(start_hour=JULY_WEEK.start)
    assert july_frame.index[0] == pd.Timestamp("2023-07-01 00:00")
    assert JANUARY_WEEK.end == 168
