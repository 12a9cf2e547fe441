"""Flag metadata and insights helpers."""

from __future__ import annotations

from typing import Dict, List

FLAG_DEFINITIONS: Dict[str, Dict[str, str]] = {
    "curtailment_hours": {
        "label": "Curtailment hours",
        "meaning": "Hours when solar exceeded demand and the battery had no headroom left.",
        "knobs": "Increase battery energy, raise the inverter ratio, or reduce solar capacity.",
        "insight": (
            "Frequent curtailment means solar is oversized for the storage available; extra"
            " battery energy or a tighter inverter limit would turn wasted MWh into firm supply."
        ),
    },
    "gas_hours": {
        "label": "Gas hours",
        "meaning": "Hours when solar and battery together could not cover the baseload.",
        "knobs": "Add solar for daytime hours, add battery energy for night-time hours.",
        "insight": (
            "Gas runs whenever the battery is empty after sunset; the count shows how far the"
            " solar and storage sizes are from carrying the load around the clock."
        ),
    },
    "soc_floor_hits": {
        "label": "SOC floor hits",
        "meaning": "Battery was emptied while covering demand.",
        "knobs": "Increase battery energy or solar capacity available for charging.",
        "insight": (
            "Repeated floor hits indicate the battery drains before the next charging window;"
            " more energy capacity or more surplus solar would extend its coverage."
        ),
    },
    "soc_ceiling_hits": {
        "label": "SOC ceiling hits",
        "meaning": "Battery reached full charge (further surplus was curtailed).",
        "knobs": "Increase battery energy if curtailment is material.",
        "insight": (
            "Ceiling hits show the battery fills up during the day; if curtailment is high at"
            " the same time, storage rather than solar is the binding constraint."
        ),
    },
}


def build_flag_insights(flag_totals: Dict[str, int]) -> List[str]:
    """Translate flag counts into short, actionable insights."""

    insights: List[str] = []
    ordered_keys = sorted(flag_totals, key=flag_totals.get, reverse=True)

    for key in ordered_keys:
        count = flag_totals.get(key, 0)
        if count <= 0:
            continue

        meta = FLAG_DEFINITIONS.get(key)
        if not meta:
            continue

        insights.append(f"{meta['label']} occurred {count:,} times. {meta['insight']}")

    if (
        flag_totals.get("soc_ceiling_hits", 0) > 0
        and flag_totals.get("curtailment_hours", 0) > 0
        and flag_totals.get("gas_hours", 0) > 0
    ):
        insights.append(
            "Solar was curtailed with a full battery while gas still ran in other hours; more"
            " storage energy would shift curtailed daytime solar into the hours now served by gas."
        )

    if not insights:
        insights.append("No flags were triggered across the simulated year.")

    return insights
