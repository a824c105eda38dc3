"""
Core math modules

Точные числовые типы и примитивы с гарантией нормализации:
- Fixed: неограниченная целая часть + double-дробь в [0, 1)
- Decimal: произвольная точность с явным количеством дробных цифр
"""

# Numerical Safeguards
from src.core.math.numerical_safeguards import (
    # Precision constants
    PRECISE_DIGITS,
    PRECISE_LIMIT,
    # NaN/Inf sanitization
    is_degenerate_denominator,
    is_valid_float,
    sanitize_float,
    # Integer primitives
    digit_count,
    int_to_float,
    pow10,
    ratio_to_float,
    # Scaling
    precise_scalar_multiply,
    scale_fraction,
)

# Fixed
from src.core.math.fixed import (
    FIXED_MAX_PRECISION,
    FIXED_ONE,
    FIXED_ZERO,
    Fixed,
    FixedLike,
    normalize_fixed_parts,
    to_fixed,
)

# Decimal
from src.core.math.decimal import (
    DECIMAL_FROM_FLOAT_PRECISION,
    DECIMAL_ZERO,
    Decimal,
    DecimalLike,
    RoundingMode,
    divide,
    expand,
    multiply,
    reduce,
    unify,
)

__all__ = [
    # Numerical Safeguards — Precision constants
    "PRECISE_DIGITS",
    "PRECISE_LIMIT",
    # Numerical Safeguards — NaN/Inf sanitization
    "is_degenerate_denominator",
    "is_valid_float",
    "sanitize_float",
    # Numerical Safeguards — Integer primitives
    "digit_count",
    "int_to_float",
    "pow10",
    "ratio_to_float",
    # Numerical Safeguards — Scaling
    "precise_scalar_multiply",
    "scale_fraction",
    # Fixed — Constants
    "FIXED_MAX_PRECISION",
    "FIXED_ONE",
    "FIXED_ZERO",
    # Fixed — Types
    "Fixed",
    "FixedLike",
    # Fixed — Functions
    "normalize_fixed_parts",
    "to_fixed",
    # Decimal — Constants
    "DECIMAL_FROM_FLOAT_PRECISION",
    "DECIMAL_ZERO",
    # Decimal — Types
    "Decimal",
    "DecimalLike",
    "RoundingMode",
    # Decimal — Functions
    "divide",
    "expand",
    "multiply",
    "reduce",
    "unify",
]
