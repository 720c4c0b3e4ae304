"""
Core math modules для PT oracle

Целочисленные fixed-point примитивы и линейная модель дисконта.
"""

# Fixed-point arithmetic
from src.core.math.fixed_point import (
    SCALE,
    SECONDS_PER_DAY,
    SECONDS_PER_YEAR,
    abs_diff,
    is_uint,
    mul_div_down,
    validate_uint,
)

# Discount model
from src.core.math.discount import (
    MAX_TARGET_YIELD,
    apply_discount,
    discount_fraction,
    is_discount_safe,
    max_discount_over_horizon,
    slope_from_target_yield,
    years_to_maturity,
)

__all__ = [
    # Fixed-point: Constants
    "SCALE",
    "SECONDS_PER_DAY",
    "SECONDS_PER_YEAR",
    # Fixed-point: Functions
    "abs_diff",
    "is_uint",
    "mul_div_down",
    "validate_uint",
    # Discount: Constants
    "MAX_TARGET_YIELD",
    # Discount: Functions
    "apply_discount",
    "discount_fraction",
    "is_discount_safe",
    "max_discount_over_horizon",
    "slope_from_target_yield",
    "years_to_maturity",
]
