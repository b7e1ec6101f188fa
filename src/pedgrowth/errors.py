"""
Error taxonomy for the growth-assessment engine.
"""


class GrowthAssessmentError(ValueError):
    """Base class for assessment failures."""


class InvalidMeasurement(GrowthAssessmentError):
    """Measurement value is missing, non-finite or non-positive."""


class MalformedReferenceData(GrowthAssessmentError):
    """Reference dataset cannot support the requested computation."""


class DateOrderViolation(GrowthAssessmentError):
    """Observation date precedes the date of birth."""
