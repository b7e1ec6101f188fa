"""
WHO reference datasets and age/sex lookup.

Datasets are static JSON files shipped in ``pedgrowth.data``; each row holds
the per-sex mean and standard deviation for one sampled age in months, with
the LMS triplet alongside where the source table provides it. Loaded datasets
are frozen and cached per process so they can be shared freely between
concurrent assessments.
"""

import functools
import json
import logging
import math
from importlib import resources
from typing import Dict, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import REFERENCE_DATA_FILES, REFERENCE_DATA_PACKAGE
from .enums import MeasurementType, Sex
from .errors import MalformedReferenceData

logger = logging.getLogger(__name__)

LOOKUP_METHODS = ("nearest", "linear")


class SexParameters(BaseModel):
    """
    Reference distribution for one sex at one age.

    Attributes:
        mean: Population mean (the WHO median for the bundled tables).
        sd: Standard deviation; the divisor of the Z-score.
        L: Box-Cox power, if available.
        M: Median, if available.
        S: Coefficient of variation, if available.
    """

    model_config = ConfigDict(frozen=True)

    mean: float
    sd: float
    L: Optional[float] = None
    M: Optional[float] = None
    S: Optional[float] = None

    @property
    def has_lms(self) -> bool:
        return self.L is not None and self.M is not None and self.S is not None


class ReferenceDataPoint(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    age_months: int = Field(alias="ageMonths", ge=0)
    male: SexParameters
    female: SexParameters

    def for_sex(self, sex: Sex) -> SexParameters:
        return self.male if Sex(sex) is Sex.MALE else self.female


class ReferenceDataset(BaseModel):
    """
    Versioned reference table for one measurement type.

    Rows must have unique, strictly increasing ages. Standard deviations are
    not constrained here so that malformed tables can still be represented;
    ``validate_dataset_integrity`` and the Z-score guard catch them.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    measurement_type: MeasurementType = Field(alias="measurementType")
    version: str = "unversioned"
    unit: Optional[str] = None
    source: Optional[str] = None
    rows: Tuple[ReferenceDataPoint, ...] = ()

    @field_validator("rows", mode="after")
    @classmethod
    def ages_strictly_increasing(
        cls, v: Tuple[ReferenceDataPoint, ...]
    ) -> Tuple[ReferenceDataPoint, ...]:
        for prev, curr in zip(v, v[1:]):
            if curr.age_months <= prev.age_months:
                raise ValueError(
                    "Reference rows must have unique, increasing ageMonths "
                    f"(found {prev.age_months} then {curr.age_months})"
                )
        return v

    @property
    def max_age_months(self) -> int:
        if not self.rows:
            raise MalformedReferenceData(
                f"Reference dataset '{self.measurement_type.value}' is empty"
            )
        return self.rows[-1].age_months

    def ages(self) -> np.ndarray:
        return np.array([row.age_months for row in self.rows], dtype=np.float64)


class ReferenceLookup(BaseModel):
    """
    Outcome of a reference lookup.

    ``point`` is the dataset row used, or None when parameters were
    interpolated between two rows.
    """

    model_config = ConfigDict(frozen=True)

    requested_age_months: float
    reference_age_months: Union[int, float]
    max_age_months: int
    clamped: bool
    parameters: SexParameters
    point: Optional[ReferenceDataPoint] = None


def validate_dataset_integrity(dataset: ReferenceDataset) -> bool:
    """
    Check a dataset for values that would break Z-score computation.

    Logs a warning for each problem found rather than raising.

    Returns:
        True if every row has positive, finite SDs (and S, where present).
    """
    if not dataset.rows:
        logging.warning(f"Reference dataset '{dataset.measurement_type.value}' is empty")
        return False

    valid = True
    for row in dataset.rows:
        for sex in Sex:
            params = row.for_sex(sex)
            if not np.isfinite(params.mean):
                logging.warning(
                    f"Non-finite mean at {row.age_months} months ({sex.value}) "
                    f"in '{dataset.measurement_type.value}'"
                )
                valid = False
            if not np.isfinite(params.sd) or params.sd <= 0:
                logging.warning(
                    f"Non-positive SD {params.sd} at {row.age_months} months "
                    f"({sex.value}) in '{dataset.measurement_type.value}'"
                )
                valid = False
            if params.S is not None and params.S <= 0:
                logging.warning(
                    f"Non-positive S {params.S} at {row.age_months} months "
                    f"({sex.value}) in '{dataset.measurement_type.value}'"
                )
                valid = False
    return valid


@functools.lru_cache(maxsize=None)
def load_reference_dataset(measurement_type: MeasurementType) -> ReferenceDataset:
    """
    Load a packaged WHO reference dataset.

    Uses importlib.resources so the JSON files resolve inside an installed
    package. Results are cached for the life of the process.

    Raises:
        MalformedReferenceData: If the file is missing, unparsable, or fails
            the integrity check.
    """
    measurement_type = MeasurementType(measurement_type)
    filename = REFERENCE_DATA_FILES.get(measurement_type.value)
    if filename is None:
        raise MalformedReferenceData(
            f"No packaged reference data for '{measurement_type.value}'"
        )

    try:
        with (
            resources.files(REFERENCE_DATA_PACKAGE)
            .joinpath(filename)
            .open("rb") as f
        ):
            dataset = ReferenceDataset.model_validate(json.load(f))
    except FileNotFoundError:
        logger.error("Reference data file %s not found", filename)
        raise MalformedReferenceData(
            f"Reference data file '{filename}' not found. Ensure pedgrowth is "
            "properly installed or run 'scripts/download_data.py' to regenerate it."
        ) from None
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error("Reference data file %s is invalid: %s", filename, e)
        raise MalformedReferenceData(
            f"Failed to load reference data '{filename}': {e}"
        ) from e

    if dataset.measurement_type is not measurement_type:
        raise MalformedReferenceData(
            f"Reference data file '{filename}' holds "
            f"'{dataset.measurement_type.value}', expected '{measurement_type.value}'"
        )
    if not validate_dataset_integrity(dataset):
        logger.error("Reference data file %s failed integrity checks", filename)
        raise MalformedReferenceData(
            f"Reference data file '{filename}' failed integrity checks"
        )
    return dataset


def load_reference_datasets() -> Dict[MeasurementType, ReferenceDataset]:
    """Load every packaged dataset, keyed by measurement type."""
    return {
        measurement_type: load_reference_dataset(measurement_type)
        for measurement_type in MeasurementType
    }


def _interpolate(
    age: float, dataset: ReferenceDataset, sex: Sex
) -> SexParameters:
    ages = dataset.ages()
    params = [row.for_sex(sex) for row in dataset.rows]
    values = {
        "mean": np.interp(age, ages, [p.mean for p in params]),
        "sd": np.interp(age, ages, [p.sd for p in params]),
    }
    if all(p.has_lms for p in params):
        for name in ("L", "M", "S"):
            values[name] = np.interp(age, ages, [getattr(p, name) for p in params])
    return SexParameters(**{k: float(v) for k, v in values.items()})


def lookup(
    age_months: float,
    sex: Sex,
    dataset: ReferenceDataset,
    method: str = "nearest",
) -> ReferenceLookup:
    """
    Find the reference parameters for an age and sex.

    The age is clamped to [0, dataset max age]. With the default "nearest"
    method an exact row at the age rounded half up is used if present,
    otherwise the row closest to the clamped age, ties going to the lower
    age. The "linear" method interpolates mean, SD and LMS between the
    bracketing rows; it changes Z-scores at off-grid ages and must be
    opted into.

    Args:
        age_months: Age to look up, usually completed months.
        sex: Selects the male or female parameters.
        dataset: Reference table to search.
        method: "nearest" or "linear".

    Returns:
        ReferenceLookup with the parameters and clamping details.

    Raises:
        MalformedReferenceData: If the dataset has no rows.
        ValueError: If sex or method is not recognised.
    """
    if method not in LOOKUP_METHODS:
        raise ValueError(
            f"Unsupported lookup method '{method}'. Supported: {list(LOOKUP_METHODS)}"
        )
    sex = Sex(sex)
    if not dataset.rows:
        logger.error(
            "Reference dataset '%s' has no rows", dataset.measurement_type.value
        )
        raise MalformedReferenceData(
            f"Reference dataset '{dataset.measurement_type.value}' has no rows for {sex.value}"
        )

    max_age = dataset.max_age_months
    clamped_age = max(0, min(max_age, age_months))
    clamped = clamped_age != age_months
    if clamped:
        logger.warning(
            "Age %s months outside reference range (0-%s months) for '%s'; using %s",
            age_months,
            max_age,
            dataset.measurement_type.value,
            clamped_age,
        )

    target = math.floor(clamped_age + 0.5)
    exact = next((row for row in dataset.rows if row.age_months == target), None)

    if method == "linear":
        on_grid = exact is not None and exact.age_months == clamped_age
        if not on_grid:
            return ReferenceLookup(
                requested_age_months=age_months,
                reference_age_months=float(clamped_age),
                max_age_months=max_age,
                clamped=clamped,
                parameters=_interpolate(float(clamped_age), dataset, sex),
            )

    if exact is None:
        # argmin returns the first minimum, i.e. the lower age on ties
        idx = int(np.argmin(np.abs(dataset.ages() - clamped_age)))
        exact = dataset.rows[idx]

    return ReferenceLookup(
        requested_age_months=age_months,
        reference_age_months=exact.age_months,
        max_age_months=max_age,
        clamped=clamped,
        parameters=exact.for_sex(sex),
        point=exact,
    )
