"""
Z-Score Calculation Utilities for Growth Metrics

Standardized scores for anthropometric measurements against WHO reference
parameters: the mean/SD score used by default, the LMS (Box-Cox) score for
skewed references, and the percentile and SD-band mappings built on top.
"""

import math
from typing import Optional

import numpy as np
from numba import jit
from scipy import stats

from .config import (
    L_ZERO_THRESHOLD,
    PERCENTILE_CEILING,
    PERCENTILE_STEPS,
    SD_BAND_BREAKPOINTS,
)
from .enums import SdBand
from .errors import MalformedReferenceData
from .reference import SexParameters

PERCENTILE_METHODS = ("step", "normal")
ZSCORE_METHODS = ("sd", "lms")

_SD_BANDS = [
    SdBand.SD_MINUS_3,
    SdBand.SD_MINUS_2,
    SdBand.SD_MINUS_1,
    SdBand.MEDIAN,
    SdBand.SD_PLUS_1,
    SdBand.SD_PLUS_2,
    SdBand.SD_PLUS_3,
]


@jit(nopython=True, cache=True)
def lms_zscore(
    X: np.ndarray, L: np.ndarray, M: np.ndarray, S: np.ndarray
) -> np.ndarray:
    """
    Calculate LMS z-scores element-wise.

    For L ≠ 0: z = ((X/M)^L - 1) / (L * S)
    For L ≈ 0: z = ln(X/M) / S

    Entries with non-positive or non-finite X/M, or S <= 0, are NaN.

    References:
    - Cole, T.J. (1990). "The LMS method for constructing normalized growth standards."
      European Journal of Clinical Nutrition, 44(1), 45-60.

    Args:
        X: Observed values (kg/cm), 1-D
        L: Lambda (Box-Cox power)
        M: Mu (median)
        S: Sigma (coefficient of variation)

    Returns:
        Z-scores with the same length as X
    """
    n = X.shape[0]
    z = np.empty(n, dtype=np.float64)
    for i in range(n):
        x = X[i]
        m = M[i]
        s = S[i]
        if not (np.isfinite(x) and np.isfinite(m) and x > 0 and m > 0 and s > 0):
            z[i] = np.nan
        elif abs(L[i]) < L_ZERO_THRESHOLD:
            z[i] = np.log(x / m) / s
        else:
            z[i] = ((x / m) ** L[i] - 1.0) / (L[i] * s)
    return z


def lms_value(z_score: float, L: float, M: float, S: float) -> float:
    """
    Measurement value at a given z-score (inverse LMS).
    Formula: M * (1 + L*S*z)^(1/L), or M * exp(S*z) when L ≈ 0.
    Returns NaN where 1 + L*S*z is not positive, as the power is undefined.
    """
    if abs(L) < L_ZERO_THRESHOLD:
        return float(M * np.exp(S * z_score))
    base = 1 + L * S * z_score
    if base <= 0:
        return np.nan
    return float(M * base ** (1 / L))


def sd_zscore(value: float, parameters: SexParameters) -> float:
    """
    Standard score (value - mean) / sd.

    Raises:
        MalformedReferenceData: If sd is zero, negative or non-finite, so that
            no infinite or NaN score ever reaches classification.
    """
    sd = parameters.sd
    if not math.isfinite(sd) or sd <= 0 or not math.isfinite(parameters.mean):
        raise MalformedReferenceData(
            f"Reference standard deviation must be positive and finite (got sd={sd}, "
            f"mean={parameters.mean})"
        )
    return (value - parameters.mean) / sd


def lms_parameters_zscore(value: float, parameters: SexParameters) -> float:
    """
    LMS score for a single value.

    Raises:
        MalformedReferenceData: If the row lacks LMS parameters or they are
            unusable.
    """
    if not parameters.has_lms:
        raise MalformedReferenceData("Reference row has no LMS parameters")
    z = lms_zscore(
        np.array([value], dtype=np.float64),
        np.array([parameters.L], dtype=np.float64),
        np.array([parameters.M], dtype=np.float64),
        np.array([parameters.S], dtype=np.float64),
    )[0]
    if not np.isfinite(z):
        raise MalformedReferenceData(
            f"LMS parameters L={parameters.L}, M={parameters.M}, S={parameters.S} "
            "do not yield a finite z-score"
        )
    return float(z)


def percentile_from_z(z_score: float) -> float:
    """
    Coarse percentile for clinical display.

    Discrete step mapping: z≤-3→0.1, z≤-2→2.3, z≤-1→15.9, z≤0→50.0,
    z≤1→84.1, z≤2→97.7, otherwise 99.9.
    """
    for upper, percentile in PERCENTILE_STEPS:
        if z_score <= upper:
            return percentile
    return PERCENTILE_CEILING


def normal_percentile(z_score: float) -> float:
    """Continuous percentile from the standard normal CDF."""
    return float(stats.norm.cdf(z_score) * 100.0)


def percentile(z_score: float, method: str = "step") -> float:
    if method == "step":
        return percentile_from_z(z_score)
    if method == "normal":
        return normal_percentile(z_score)
    raise ValueError(
        f"Unsupported percentile method '{method}'. Supported: {list(PERCENTILE_METHODS)}"
    )


def sd_band(z_score: float) -> SdBand:
    """Band label for breakpoints -3, -2, -1, 1, 2, 3 (upper bounds exclusive)."""
    for upper, band in zip(SD_BAND_BREAKPOINTS, _SD_BANDS):
        if z_score < upper:
            return band
    return SdBand.SD_PLUS_3


def compute_zscore(
    value: float, parameters: SexParameters, method: str = "sd"
) -> float:
    if method == "sd":
        return sd_zscore(value, parameters)
    if method == "lms":
        return lms_parameters_zscore(value, parameters)
    raise ValueError(
        f"Unsupported z-score method '{method}'. Supported: {list(ZSCORE_METHODS)}"
    )


def round_optional(value: float, digits: Optional[int]) -> float:
    return value if digits is None else round(value, digits)
