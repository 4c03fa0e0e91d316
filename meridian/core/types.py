"""
Meridian: Core Type Definitions

This module defines common type aliases and small shared enums used
across the Meridian codebase. It exists to centralise frequently used
type definitions and avoid circular imports between engine packages.

Key responsibilities:
- Provide canonical aliases for common dict/metadata types
- Define the shared qualitative risk-level scale

External dependencies:
- typing / enum: Standard library primitives only

Thread safety: Thread-safe (no mutable global state)

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

from enum import Enum
from typing import Any, Dict, Mapping, TypeAlias

# ============================================================================
# Type Aliases
# ============================================================================

# Plain float quantity (values, weights, returns). Fractions unless a
# field is explicitly documented as a 0-100 score.
Number: TypeAlias = float

# Generic metadata mapping for attaching arbitrary structured data to records
MetadataDict: TypeAlias = Dict[str, Any]

# Read-only JSON-like mapping used for caller-supplied records
ReadonlyRecord: TypeAlias = Mapping[str, Any]


# ============================================================================
# Risk levels
# ============================================================================


class RiskLevel(str, Enum):
    """Qualitative risk scale shared by all engines, mildest first."""

    LOW = "low"
    MODERATE = "moderate"
    ELEVATED = "elevated"
    HIGH = "high"
    EXTREME = "extreme"

    @property
    def severity(self) -> int:
        """Return an integer rank (0 = low, 4 = extreme)."""

        return _SEVERITY[self]


_SEVERITY: Dict[RiskLevel, int] = {
    RiskLevel.LOW: 0,
    RiskLevel.MODERATE: 1,
    RiskLevel.ELEVATED: 2,
    RiskLevel.HIGH: 3,
    RiskLevel.EXTREME: 4,
}
