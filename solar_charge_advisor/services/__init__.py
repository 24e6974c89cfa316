"""Services that orchestrate the domain layer."""

from .planning_service import PlanningOutcome, PlanningService

__all__ = ["PlanningOutcome", "PlanningService"]
