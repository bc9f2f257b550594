"""
Composite broadband quality score (0-100) for a hex cell.

Key design decisions
--------------------
* Each metric is normalised through a piecewise-linear breakpoint scale
  calibrated on the observed distribution (see ``config``).  Below the
  first breakpoint the first score applies, above the last the last score
  applies; in between, scores are interpolated linearly.  ``np.interp``
  has exactly these semantics, so the same code scores one hex or a whole
  column of hexes.
* Component scores are blended with fixed weights (0.45 download, 0.20
  upload, 0.25 providers, 0.10 technology variety) and rounded half up:
  ``x.5`` always goes to the next integer.  Since scores are never
  negative this is also round-half-away-from-zero.  The blend is snapped
  to 6 decimals first so float noise cannot move a value across the .5
  boundary.
* Everything here is pure: no I/O, no state, safe to call concurrently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, NamedTuple, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from broadband.config import (
    DOWNLOAD_BREAKPOINTS,
    PROVIDER_BREAKPOINTS,
    SCORE_COLORS,
    TECH_BREAKPOINTS,
    UPLOAD_BREAKPOINTS,
    W_DOWNLOAD,
    W_PROVIDERS,
    W_TECHNOLOGY,
    W_UPLOAD,
)

Number = Union[int, float]
ArrayLike = Union[Number, np.ndarray, pd.Series]

SCORE_MIN: int = 0
SCORE_MAX: int = 100

# Decimal places the weighted blend is snapped to before rounding.
_BLEND_DECIMALS: int = 6


# ---------------------------------------------------------------------------
# Breakpoint scales
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Scale:
    """An ordered (value, score) breakpoint table."""

    name: str
    breakpoints: Tuple[Tuple[float, float], ...]

    def __post_init__(self) -> None:
        if len(self.breakpoints) < 2:
            raise ValueError(f"Scale {self.name!r} needs at least two breakpoints")
        values = [v for v, _ in self.breakpoints]
        if any(b <= a for a, b in zip(values, values[1:])):
            raise ValueError(
                f"Scale {self.name!r} breakpoint values must be strictly increasing"
            )

    @property
    def values(self) -> Tuple[float, ...]:
        return tuple(v for v, _ in self.breakpoints)

    @property
    def scores(self) -> Tuple[float, ...]:
        return tuple(s for _, s in self.breakpoints)

    def __call__(self, value: ArrayLike) -> ArrayLike:
        return percentile_score(value, self.breakpoints)


DOWNLOAD_SCALE = Scale("download", tuple(DOWNLOAD_BREAKPOINTS))
UPLOAD_SCALE = Scale("upload", tuple(UPLOAD_BREAKPOINTS))
PROVIDER_SCALE = Scale("providers", tuple(PROVIDER_BREAKPOINTS))
TECH_SCALE = Scale("technology", tuple(TECH_BREAKPOINTS))


def percentile_score(
    value: ArrayLike,
    breakpoints: Sequence[Tuple[float, float]],
) -> ArrayLike:
    """
    Map *value* through a piecewise-linear breakpoint table.

    Between breakpoints ``prev`` and ``curr``::

        ratio = (value - prev.value) / (curr.value - prev.value)
        score = prev.score + ratio * (curr.score - prev.score)

    Values outside the table are clamped to the first / last score.

    Parameters
    ----------
    value:
        A scalar, numpy array or pandas Series of metric values.
    breakpoints:
        ``(value, score)`` pairs with strictly increasing values.

    Returns
    -------
    float for scalar input, otherwise an array of the same shape.
    """
    xs = [v for v, _ in breakpoints]
    ys = [s for _, s in breakpoints]
    result = np.interp(value, xs, ys)
    if np.ndim(result) == 0:
        return float(result)
    return result


# ---------------------------------------------------------------------------
# Composite score
# ---------------------------------------------------------------------------

class HexMetrics(NamedTuple):
    """The four raw metrics the composite score is computed from."""

    max_download: Number
    max_upload: Number
    providers: Number
    tech_count: Number

    @classmethod
    def from_listing(cls, hex_row: Mapping[str, Any]) -> "HexMetrics":
        """Build from a ``list_hexes`` entry (``maxDownload`` … ``techCount``)."""
        return cls(
            max_download=hex_row["maxDownload"],
            max_upload=hex_row["maxUpload"],
            providers=hex_row["providers"],
            tech_count=hex_row["techCount"],
        )

    @classmethod
    def from_summary(cls, summary: Mapping[str, Any]) -> "HexMetrics":
        """Build from a ``hex_summary`` row."""
        return cls(
            max_download=summary["max_download"],
            max_upload=summary["max_upload"],
            providers=summary["provider_count"],
            tech_count=summary["tech_count"],
        )


def round_half_up(x: ArrayLike) -> ArrayLike:
    """Round to the nearest integer, with ``.5`` going up."""
    return np.floor(np.round(x, _BLEND_DECIMALS) + 0.5)


def _components(
    max_download: ArrayLike,
    max_upload: ArrayLike,
    providers: ArrayLike,
    tech_count: ArrayLike,
) -> Tuple[ArrayLike, ArrayLike, ArrayLike, ArrayLike]:
    return (
        DOWNLOAD_SCALE(max_download),
        UPLOAD_SCALE(max_upload),
        PROVIDER_SCALE(providers),
        TECH_SCALE(tech_count),
    )


def _blend(down: ArrayLike, up: ArrayLike, prov: ArrayLike, tech: ArrayLike) -> ArrayLike:
    weighted = (
        down * W_DOWNLOAD
        + up * W_UPLOAD
        + prov * W_PROVIDERS
        + tech * W_TECHNOLOGY
    )
    return np.clip(round_half_up(weighted), SCORE_MIN, SCORE_MAX)


def score_components(metrics: HexMetrics) -> Dict[str, float]:
    """Per-metric sub-scores (0-100, unrounded)."""
    down, up, prov, tech = _components(*metrics)
    return {
        "download": down,
        "upload": up,
        "providers": prov,
        "technology": tech,
    }


def score_hex(metrics: HexMetrics) -> int:
    """
    Composite 0-100 score for one hex.

    >>> score_hex(HexMetrics(2000, 880, 7, 4))
    56
    """
    return int(_blend(*_components(*metrics)))


def score_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Score every row of a ``hex_summary`` DataFrame.

    Adds ``download_score``, ``upload_score``, ``provider_score``,
    ``tech_score`` (unrounded components), ``score`` (int) and ``color``.
    """
    result = df.copy()
    down, up, prov, tech = _components(
        result["max_download"].to_numpy(dtype=float),
        result["max_upload"].to_numpy(dtype=float),
        result["provider_count"].to_numpy(dtype=float),
        result["tech_count"].to_numpy(dtype=float),
    )
    result["download_score"] = down
    result["upload_score"] = up
    result["provider_score"] = prov
    result["tech_score"] = tech
    result["score"] = _blend(down, up, prov, tech).astype("int64")
    result["color"] = result["score"].map(score_color)
    return result


# ---------------------------------------------------------------------------
# Map palette
# ---------------------------------------------------------------------------

def score_band(score: Number) -> int:
    """Decile band 0-9 (100 falls in band 9)."""
    return min(int(score // 10), len(SCORE_COLORS) - 1)


def score_color(score: Number) -> str:
    """Fill color for *score* on the 10-step red → green map palette."""
    return SCORE_COLORS[score_band(score)]
