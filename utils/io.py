"""Input parsing utilities for hourly solar capacity-factor profiles."""

from __future__ import annotations

import logging
from typing import Any, List

import numpy as np
import pandas as pd

HOURS_PER_YEAR = 8760


def read_solar_profile(
    path_candidates: List[Any],
    column: str = "electricity",
    expected_hours: int = HOURS_PER_YEAR,
) -> np.ndarray:
    """Read an hourly capacity-factor CSV into an ``expected_hours`` array.

    Rows are taken in file order unless an ``hour_index`` column is present.
    Missing or non-numeric values become 0.0 instead of being dropped, so
    the hours after them keep their position.
    """

    def _clean(df: pd.DataFrame) -> np.ndarray:
        if column not in df.columns:
            raise ValueError(f"CSV must contain a '{column}' column")

        values = pd.to_numeric(df[column], errors="coerce")
        invalid_rows = ~np.isfinite(values.to_numpy(dtype=float))
        if invalid_rows.any():
            logging.getLogger(__name__).warning(
                "Solar CSV contains %d non-numeric or missing '%s' entries; using 0 for those hours.",
                int(invalid_rows.sum()),
                column,
            )
        values = values.where(~invalid_rows, 0.0).astype(float)

        if "hour_index" in df.columns:
            return _align_on_hour_index(df["hour_index"], values)

        if len(values) != expected_hours:
            logging.getLogger(__name__).warning(
                "Solar CSV has %d rows (expected %d); padding or truncating at the end.",
                len(values),
                expected_hours,
            )
        profile = np.zeros(expected_hours)
        n_rows = min(len(values), expected_hours)
        profile[:n_rows] = values.to_numpy(dtype=float)[:n_rows]
        return profile

    def _align_on_hour_index(hour_index: pd.Series, values: pd.Series) -> np.ndarray:
        df = pd.DataFrame(
            {"hour_index": pd.to_numeric(hour_index, errors="coerce"), "value": values}
        )
        unindexed = ~np.isfinite(df["hour_index"]) | (df["hour_index"] % 1 != 0)
        if unindexed.any():
            logging.getLogger(__name__).warning(
                "Dropping %d rows with a missing or non-integer hour_index.", int(unindexed.sum())
            )
            df = df.loc[~unindexed].copy()
        if df.empty:
            raise ValueError("No rows with a valid hour_index.")

        df["hour_index"] = df["hour_index"].astype(int)
        if df["hour_index"].min() == 1 and 0 not in df["hour_index"].values:
            df["hour_index"] = df["hour_index"] - 1

        out_of_range = (df["hour_index"] < 0) | (df["hour_index"] >= expected_hours)
        if out_of_range.any():
            logging.getLogger(__name__).warning(
                "hour_index values outside 0-%d were dropped: %s",
                expected_hours - 1,
                sorted(df.loc[out_of_range, "hour_index"].unique().tolist()),
            )
            df = df.loc[~out_of_range].copy()

        if df["hour_index"].duplicated().any():
            logging.getLogger(__name__).warning(
                "Duplicate hour_index values found; averaging the capacity factor for each hour."
            )
        series = df.groupby("hour_index")["value"].mean()

        full_index = pd.Index(range(expected_hours), name="hour_index")
        missing_hours = full_index.difference(series.index)
        if len(missing_hours) > 0:
            logging.getLogger(__name__).warning(
                "Solar CSV is missing %d hours; filling gaps with 0.", len(missing_hours)
            )
        return series.reindex(full_index, fill_value=0.0).to_numpy(dtype=float)

    last_err = None
    for candidate in path_candidates:
        try:
            df = pd.read_csv(candidate)
            return _clean(df)
        except Exception as e:  # pragma: no cover - errors handled via last_err
            last_err = e
    raise RuntimeError(
        "Failed to read solar profile. "
        f"Looked for: {path_candidates}. Last error: {last_err}"
    )
