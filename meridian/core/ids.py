"""
Meridian: ID Generation Utilities

This module contains helper functions for generating unique identifiers
used for risk reports, simulation results and custom scenarios.
Centralising ID generation keeps the formats consistent across engines.

Key responsibilities:
- Generate UUID-based identifiers
- Provide prefixed identifiers for reports and simulation runs

External dependencies:
- uuid: Standard library UUID generation

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

import uuid
from typing import Optional

# ============================================================================
# Public API
# ============================================================================


def generate_uuid() -> str:
    """Generate a random UUIDv4 string.

    Returns:
        A UUID string in standard 8-4-4-4-12 hexadecimal format.
    """

    return str(uuid.uuid4())


def generate_run_id(prefix: Optional[str] = None) -> str:
    """Generate a unique run ID for reports, simulations or scenarios.

    Args:
        prefix: Optional prefix to prepend to the UUID (e.g. "mc",
            "stress", "report"). If provided, the returned ID will be of
            the form ``prefix_uuid``.

    Returns:
        A unique run identifier string.
    """

    base_id = generate_uuid()
    if prefix:
        return f"{prefix}_{base_id}"
    return base_id
