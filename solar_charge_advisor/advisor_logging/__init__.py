"""Structured logging for the Solar Charge Advisor."""

from .structured_logger import AdvisorLogger, get_logger

__all__ = ["AdvisorLogger", "get_logger"]
