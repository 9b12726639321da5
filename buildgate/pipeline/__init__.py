"""Integration cycle orchestration."""

from .models import CycleResult, PublisherOutcome
from .project import Project, build_project
from .runner import IntegrationCycle

__all__ = [
    "IntegrationCycle",
    "CycleResult",
    "PublisherOutcome",
    "Project",
    "build_project",
]
