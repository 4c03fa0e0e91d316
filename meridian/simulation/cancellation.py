"""Meridian – Cooperative cancellation for long simulations."""

from __future__ import annotations

from threading import Event


class SimulationCancelledError(Exception):
    """Raised when a simulation is cancelled before completion."""


class CancellationToken:
    """Flag shared between a caller and a running simulation.

    The simulator checks the token between path batches; once set, the
    run stops and raises :class:`SimulationCancelledError`. Partial
    results are discarded.
    """

    def __init__(self) -> None:
        self._event = Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SimulationCancelledError("simulation cancelled")
