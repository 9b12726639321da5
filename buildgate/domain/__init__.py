"""Domain models for Build Gate."""

from .models import (
    BuildResultType,
    DynamicValue,
    IntegrationResult,
    IntegrationStatus,
    Modification,
    ModificationType,
    NotificationType,
    ParameterDefinition,
)

__all__ = [
    "Modification",
    "ModificationType",
    "IntegrationResult",
    "IntegrationStatus",
    "ParameterDefinition",
    "DynamicValue",
    "NotificationType",
    "BuildResultType",
]
