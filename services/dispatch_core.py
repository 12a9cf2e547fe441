from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd

from utils.numeric import non_negative, positive, safe_ratio

HOURS_PER_YEAR = 8760
HOURS_PER_WEEK = 24 * 7
# Hour 0 of the simulated year; any non-leap year gives the same calendar.
PROFILE_YEAR_START = "2023-01-01"

# Tolerance used when counting SOC floor/ceiling hits.
SOC_TOLERANCE_MWH = 1e-6


@dataclass(frozen=True)
class ProfileWindow:
    """A contiguous block of hours used for weekly profile views."""

    label: str
    start: int
    hours: int = HOURS_PER_WEEK

    @property
    def end(self) -> int:
        return self.start + self.hours


JANUARY_WEEK = ProfileWindow("January", 0)
# First hour of July in a non-leap year.
JULY_WEEK = ProfileWindow("July", 24 * (31 + 28 + 31 + 30 + 31 + 30))


@dataclass
class TechnicalParameters:
    solar_capacity_mw: float = 0.0
    battery_capacity_mwh: float = 0.0
    inverter_ratio: float = 1.2  # DC nameplate / inverter AC limit
    gas_capacity_mw: float = 1000.0
    demand_mw: Optional[float] = None  # None -> baseload equals gas capacity

    @property
    def baseload_mw(self) -> float:
        return self.gas_capacity_mw if self.demand_mw is None else self.demand_mw

    @property
    def max_solar_ac_mw(self) -> float:
        return self.solar_capacity_mw / self.inverter_ratio


@dataclass
class HourlyFlows:
    """Per-hour energy flows (MWh in each one-hour step)."""

    solar_available: np.ndarray
    solar_used: np.ndarray
    battery_charge: np.ndarray
    battery_discharge: np.ndarray
    gas_output: np.ndarray
    solar_curtailed: np.ndarray
    state_of_charge: np.ndarray  # end-of-hour

    @property
    def battery_net(self) -> np.ndarray:
        """Battery flow signed for stacked charts: discharge positive, charge negative."""
        return self.battery_discharge - self.battery_charge

    def window(self, start: int, hours: int) -> "HourlyFlows":
        """Return the flows for ``hours`` consecutive hours starting at ``start``."""

        start = max(0, int(start))
        stop = min(len(self.solar_used), start + max(0, int(hours)))
        return HourlyFlows(
            solar_available=self.solar_available[start:stop].copy(),
            solar_used=self.solar_used[start:stop].copy(),
            battery_charge=self.battery_charge[start:stop].copy(),
            battery_discharge=self.battery_discharge[start:stop].copy(),
            gas_output=self.gas_output[start:stop].copy(),
            solar_curtailed=self.solar_curtailed[start:stop].copy(),
            state_of_charge=self.state_of_charge[start:stop].copy(),
        )

    def to_frame(self, start_hour: int = 0) -> pd.DataFrame:
        """Return the flows as a DataFrame indexed by hourly timestamps."""

        timestamp = pd.date_range(PROFILE_YEAR_START, periods=HOURS_PER_YEAR, freq="h")
        n_hours = len(self.solar_used)
        index = timestamp[start_hour:start_hour + n_hours]
        return pd.DataFrame(
            {
                "hour_index": np.arange(start_hour, start_hour + n_hours),
                "solar_available_mwh": self.solar_available,
                "solar_used_mwh": self.solar_used,
                "battery_charge_mwh": self.battery_charge,
                "battery_discharge_mwh": self.battery_discharge,
                "battery_net_mwh": self.battery_net,
                "gas_output_mwh": self.gas_output,
                "solar_curtailed_mwh": self.solar_curtailed,
                "state_of_charge_mwh": self.state_of_charge,
            },
            index=pd.DatetimeIndex(index, name="timestamp"),
        )


@dataclass
class AnnualSummary:
    solar_available_mwh: float
    solar_used_mwh: float
    battery_charge_mwh: float
    battery_discharge_mwh: float
    gas_output_mwh: float
    solar_curtailed_mwh: float
    demand_mwh: float
    battery_equivalent_cycles: float = 0.0

    @property
    def served_mwh(self) -> float:
        return self.solar_used_mwh + self.battery_discharge_mwh + self.gas_output_mwh

    @property
    def solar_share_pct(self) -> float:
        return safe_ratio(self.solar_used_mwh, self.demand_mwh) * 100.0

    @property
    def battery_share_pct(self) -> float:
        return safe_ratio(self.battery_discharge_mwh, self.demand_mwh) * 100.0

    @property
    def gas_share_pct(self) -> float:
        return safe_ratio(self.gas_output_mwh, self.demand_mwh) * 100.0

    @property
    def renewable_share_pct(self) -> float:
        return self.solar_share_pct + self.battery_share_pct

    @property
    def curtailment_pct(self) -> float:
        return safe_ratio(self.solar_curtailed_mwh, self.solar_available_mwh) * 100.0


@dataclass
class DispatchOutput:
    params: TechnicalParameters
    flows: HourlyFlows
    summary: AnnualSummary
    flags: Dict[str, int] = field(default_factory=dict)


def resolve_technical_parameters(params: TechnicalParameters) -> TechnicalParameters:
    """Return a copy of ``params`` with every field floored to a usable value."""

    demand = params.demand_mw
    if demand is not None:
        demand = non_negative(demand, "demand_mw")
    return replace(
        params,
        solar_capacity_mw=non_negative(params.solar_capacity_mw, "solar_capacity_mw"),
        battery_capacity_mwh=non_negative(params.battery_capacity_mwh, "battery_capacity_mwh"),
        inverter_ratio=positive(params.inverter_ratio, "inverter_ratio"),
        gas_capacity_mw=non_negative(params.gas_capacity_mw, "gas_capacity_mw"),
        demand_mw=demand,
    )


def prepare_solar_profile(values: Optional[Sequence[Any]]) -> np.ndarray:
    """Return an 8,760-hour capacity-factor array safe for the dispatch loop.

    Unparseable, missing, infinite and negative entries become 0.0. Short
    profiles are padded with zeros at the end and long ones truncated so the
    hour positions of the supplied values never shift. Values above 1 are
    kept as-is.
    """

    if values is None:
        raw = pd.Series([], dtype=float)
    else:
        raw = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce")
    profile = raw.to_numpy(dtype=float)

    invalid = ~np.isfinite(profile)
    if invalid.any():
        logging.getLogger(__name__).warning(
            "Solar profile has %d missing or non-numeric hours; treating them as zero.",
            int(invalid.sum()),
        )
    profile = np.where(invalid, 0.0, profile)

    negative = profile < 0
    if negative.any():
        logging.getLogger(__name__).warning(
            "Solar profile has %d negative hours; treating them as zero.", int(negative.sum())
        )
        profile = np.where(negative, 0.0, profile)

    if profile.size < HOURS_PER_YEAR:
        logging.getLogger(__name__).warning(
            "Solar profile has %d hours (expected %d); padding the remainder with zero.",
            profile.size,
            HOURS_PER_YEAR,
        )
        profile = np.concatenate([profile, np.zeros(HOURS_PER_YEAR - profile.size)])
    elif profile.size > HOURS_PER_YEAR:
        logging.getLogger(__name__).warning(
            "Solar profile has %d hours (expected %d); ignoring the extra hours.",
            profile.size,
            HOURS_PER_YEAR,
        )
        profile = profile[:HOURS_PER_YEAR]

    return profile


def synthetic_solar_profile(
    sunrise_hour: float = 6.0,
    sunset_hour: float = 18.0,
    peak_capacity_factor: float = 1.0,
    seasonal_amplitude: float = 0.0,
) -> np.ndarray:
    """Return a day/night capacity-factor shape for runs without measured data.

    Each day is a half-sine between sunrise and sunset peaking at
    ``peak_capacity_factor``. ``seasonal_amplitude`` (0-1) scales days down
    towards midwinter and up to the peak at the June solstice.
    """

    hours = np.arange(HOURS_PER_YEAR)
    hod = hours % 24 + 0.5
    day_of_year = hours // 24 + 1
    daylight = max(sunset_hour - sunrise_hour, 1e-9)
    phase = (hod - sunrise_hour) / daylight
    diurnal = np.where((phase > 0.0) & (phase < 1.0), np.sin(np.pi * phase), 0.0)
    amplitude = float(np.clip(seasonal_amplitude, 0.0, 1.0))
    season = 1.0 - amplitude * 0.5 * (1.0 - np.cos(2 * np.pi * (day_of_year - 172) / 365.0))
    return np.maximum(0.0, peak_capacity_factor * diurnal * season)


def simulate_dispatch(
    profile: Optional[Sequence[Any]],
    params: TechnicalParameters,
) -> DispatchOutput:
    """Allocate the baseload demand to solar, battery and gas for every hour.

    Merit order per hour: solar straight to load, surplus solar into the
    battery up to its headroom, remaining surplus curtailed, battery covers
    the remaining demand up to its state of charge, and gas serves the rest.
    Gas capacity is treated as a sizing assumption only; any residual demand
    is reported as gas output even when it exceeds ``gas_capacity_mw``.
    """

    params = resolve_technical_parameters(params)
    capacity_factor = prepare_solar_profile(profile)

    demand = params.baseload_mw
    battery_capacity = params.battery_capacity_mwh
    available_mw = np.minimum(capacity_factor * params.solar_capacity_mw, params.max_solar_ac_mw)

    solar_used_log = np.zeros(HOURS_PER_YEAR)
    charge_log = np.zeros(HOURS_PER_YEAR)
    discharge_log = np.zeros(HOURS_PER_YEAR)
    gas_log = np.zeros(HOURS_PER_YEAR)
    curtailed_log = np.zeros(HOURS_PER_YEAR)
    soc_log = np.zeros(HOURS_PER_YEAR)

    soc_mwh = 0.0
    for h in range(HOURS_PER_YEAR):
        pv_mw = float(available_mw[h])

        solar_used = min(pv_mw, demand)
        residual = demand - solar_used

        surplus = pv_mw - solar_used
        charge = 0.0
        if surplus > 0:
            headroom = max(0.0, battery_capacity - soc_mwh)
            charge = min(surplus, headroom)
            soc_mwh += charge
        curtailed = surplus - charge

        discharge = 0.0
        if residual > 0 and soc_mwh > 0:
            discharge = min(residual, soc_mwh)
            soc_mwh -= discharge
            residual -= discharge

        solar_used_log[h] = solar_used
        charge_log[h] = charge
        discharge_log[h] = discharge
        gas_log[h] = residual if residual > 0 else 0.0
        curtailed_log[h] = curtailed
        soc_log[h] = soc_mwh

    flows = HourlyFlows(
        solar_available=available_mw,
        solar_used=solar_used_log,
        battery_charge=charge_log,
        battery_discharge=discharge_log,
        gas_output=gas_log,
        solar_curtailed=curtailed_log,
        state_of_charge=soc_log,
    )
    return DispatchOutput(
        params=params,
        flows=flows,
        summary=summarize_dispatch(flows, params),
        flags=build_dispatch_flags(flows, params),
    )


def summarize_dispatch(flows: HourlyFlows, params: TechnicalParameters) -> AnnualSummary:
    discharge_mwh = float(flows.battery_discharge.sum())
    return AnnualSummary(
        solar_available_mwh=float(flows.solar_available.sum()),
        solar_used_mwh=float(flows.solar_used.sum()),
        battery_charge_mwh=float(flows.battery_charge.sum()),
        battery_discharge_mwh=discharge_mwh,
        gas_output_mwh=float(flows.gas_output.sum()),
        solar_curtailed_mwh=float(flows.solar_curtailed.sum()),
        demand_mwh=params.baseload_mw * HOURS_PER_YEAR,
        battery_equivalent_cycles=safe_ratio(discharge_mwh, params.battery_capacity_mwh),
    )


def build_dispatch_flags(flows: HourlyFlows, params: TechnicalParameters) -> Dict[str, int]:
    """Count hours with curtailment, gas dispatch and SOC limit hits."""

    charged = flows.battery_charge > 0
    discharged = flows.battery_discharge > 0
    at_ceiling = np.abs(flows.state_of_charge - params.battery_capacity_mwh) < SOC_TOLERANCE_MWH
    at_floor = flows.state_of_charge < SOC_TOLERANCE_MWH
    return {
        "curtailment_hours": int(np.count_nonzero(flows.solar_curtailed > 0)),
        "gas_hours": int(np.count_nonzero(flows.gas_output > 0)),
        "soc_ceiling_hits": int(np.count_nonzero(charged & at_ceiling)),
        "soc_floor_hits": int(np.count_nonzero(discharged & at_floor)),
    }
