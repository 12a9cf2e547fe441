from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from economics import EconomicParameters, LCOEResult, compute_lcoe
from services.dispatch_core import (
    DispatchOutput,
    TechnicalParameters,
    simulate_dispatch,
    synthetic_solar_profile,
)
from utils.flags import build_flag_insights
from utils.params import parse_model_inputs


@dataclass
class ModelRun:
    """Everything one run hands to the presentation layer."""

    dispatch: DispatchOutput
    lcoe: LCOEResult
    economics: EconomicParameters
    warnings: List[str] = field(default_factory=list)

    @property
    def technical(self) -> TechnicalParameters:
        return self.dispatch.params

    @property
    def insights(self) -> List[str]:
        return build_flag_insights(self.dispatch.flags)

    def cost_breakdown(self) -> Dict[str, float]:
        """System cost per MWh of demand split into capex and opex."""
        return {
            "capex": self.lcoe.system_capex_per_mwh,
            "opex": self.lcoe.system_opex_per_mwh,
            "total": self.lcoe.system_lcoe,
        }

    def generation_mix_mwh(self) -> Dict[str, float]:
        summary = self.dispatch.summary
        return {
            "gas": summary.gas_output_mwh,
            "solar_used": summary.solar_used_mwh,
            "battery": summary.battery_discharge_mwh,
            "curtailed": summary.solar_curtailed_mwh,
        }


def run_model(
    profile: Optional[Sequence[Any]],
    technical: TechnicalParameters,
    economics: Optional[EconomicParameters] = None,
) -> ModelRun:
    """Run dispatch then the cost engine for one set of inputs.

    Without a measured ``profile`` the synthetic day/night shape is used.
    """

    warnings: List[str] = []
    if profile is None:
        logging.getLogger(__name__).info("No solar profile supplied; using the synthetic day/night shape.")
        warnings.append("No solar profile supplied; results use a synthetic day/night shape.")
        profile = synthetic_solar_profile()
    economics = economics if economics is not None else EconomicParameters()

    dispatch = simulate_dispatch(profile, technical)
    lcoe = compute_lcoe(dispatch.summary, dispatch.params, economics)
    return ModelRun(dispatch=dispatch, lcoe=lcoe, economics=economics, warnings=warnings)


def run_model_from_mapping(
    profile: Optional[Sequence[Any]],
    mapping: Mapping[str, Any],
) -> ModelRun:
    """Run the model from a flat mapping of form fields."""

    payload, warnings = parse_model_inputs(mapping)
    technical, economics = payload.build()
    run = run_model(profile, technical, economics)
    run.warnings = warnings + run.warnings
    return run
