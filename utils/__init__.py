"""Utility helpers shared by the dispatch and cost modules."""

from utils.flags import FLAG_DEFINITIONS, build_flag_insights
from utils.io import read_solar_profile
from utils.numeric import MIN_POSITIVE, coerce_floor, parse_numeric_series

__all__ = [
    "FLAG_DEFINITIONS",
    "build_flag_insights",
    "read_solar_profile",
    "MIN_POSITIVE",
    "coerce_floor",
    "parse_numeric_series",
]
