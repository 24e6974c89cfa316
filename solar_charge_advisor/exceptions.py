"""Exceptions raised by the Solar Charge Advisor."""

from __future__ import annotations


class SolarAdvisorError(Exception):
    """Base class for all advisor errors."""


class ConfigurationError(SolarAdvisorError, ValueError):
    """Invalid panel, battery, EV, household or tariff parameters."""


class InvariantViolation(SolarAdvisorError, AssertionError):
    """An energy ledger invariant was broken.

    Only raised when the simulator runs in strict mode. Outside strict mode
    the offending value is clamped and a diagnostic is recorded instead.
    """

    def __init__(self, hour: int, message: str) -> None:
        """Initialize the violation.

        Args:
            hour: Ledger hour where the violation happened
            message: Description of the broken invariant
        """
        super().__init__(f"hour {hour}: {message}")
        self.hour = hour
