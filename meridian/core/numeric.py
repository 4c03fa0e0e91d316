"""
Meridian: Numeric Guards

Small helpers that keep every number crossing the library boundary
finite. Computations that can degenerate (0/0, empty reductions, zero
variance) route through these helpers and fall back to a documented
neutral value instead of propagating NaN or infinity.

Key responsibilities:
- Replace non-finite floats with a fallback
- Provide safe division and clamping

External dependencies:
- math: Standard library finiteness checks

Thread safety: Thread-safe (stateless functions)

Author: Meridian Team
Created: 2026-10-18
Last Modified: 2026-10-18
Status: Development
Version: v0.1.0
"""

# ============================================================================
# Imports
# ============================================================================

from __future__ import annotations

import math

from meridian.core.logging import get_logger

# ============================================================================
# Module Setup
# ============================================================================

logger = get_logger(__name__)

# ============================================================================
# Public API
# ============================================================================


def finite(value: float, fallback: float = 0.0, *, label: str | None = None) -> float:
    """Return ``value`` as a float, or ``fallback`` when it is NaN/Inf.

    Args:
        value: Candidate value.
        fallback: Value returned when ``value`` is not finite.
        label: Optional name used in the warning log for replaced values.
    """

    as_float = float(value)
    if math.isfinite(as_float):
        return as_float
    if label is not None:
        logger.warning("non-finite %s=%r replaced with %r", label, as_float, fallback)
    return float(fallback)


def safe_div(numerator: float, denominator: float, fallback: float = 0.0) -> float:
    """Divide, returning ``fallback`` for a zero denominator or non-finite result."""

    if denominator == 0.0:
        return float(fallback)
    return finite(numerator / denominator, fallback)


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp ``value`` into ``[lower, upper]``."""

    return float(max(lower, min(upper, value)))
