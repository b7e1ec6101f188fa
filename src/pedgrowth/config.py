"""
Configuration constants for the growth-assessment engine.
"""

# Packaged reference data
REFERENCE_DATA_PACKAGE = "pedgrowth.data"
REFERENCE_DATA_FILES = {
    "weight-for-age": "weight_for_age.json",
    "length-height-for-age": "length_height_for_age.json",
    "head-circumference-for-age": "head_circumference_for_age.json",
}

# WHO Child Growth Standards cover 0-60 completed months
MIN_REFERENCE_AGE_MONTHS = 0
MAX_REFERENCE_AGE_MONTHS = 60

# Age constants
DAYS_PER_MONTH = 30.4375
TERM_GESTATION_WEEKS = 40
PRETERM_GESTATION_WEEKS = 37
CORRECTED_AGE_LIMIT_MONTHS = 24

# Step percentiles: (upper z bound inclusive, percentile)
PERCENTILE_STEPS = [
    (-3.0, 0.1),
    (-2.0, 2.3),
    (-1.0, 15.9),
    (0.0, 50.0),
    (1.0, 84.1),
    (2.0, 97.7),
]
PERCENTILE_CEILING = 99.9

# SD band breakpoints (upper bound exclusive) and labels
SD_BAND_BREAKPOINTS = [-3.0, -2.0, -1.0, 1.0, 2.0, 3.0]

# Major percentile lines used for crossing detection (z of 2.3rd..97.7th)
MAJOR_PERCENTILE_LINES_Z = [-2.0, -1.0, 0.0, 1.0, 2.0]

# LMS Box-Cox power treated as zero below this magnitude
L_ZERO_THRESHOLD = 1e-6

# Alert defaults
CRITICAL_Z_THRESHOLD = 3.0
WARNING_Z_THRESHOLD = 2.0
DECREASE_TOLERANCE = {
    "weight-for-age": 1.0,  # kg
    "length-height-for-age": 1.0,  # cm
    "head-circumference-for-age": 0.5,  # cm
}
STAGNATION_MONTHS = 3
STAGNATION_EPSILON = 0.01
PERCENTILE_LINES_CROSSED = 2

# Expected early-infant weight gain (g/day, first 3 months)
EARLY_INFANT_MONTHS = 3
EXPECTED_INFANT_GAIN_G_PER_DAY = 27.5
SLOW_GAIN_RATIO = 0.6
RAPID_GAIN_RATIO = 1.5
