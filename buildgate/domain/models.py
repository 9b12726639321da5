"""Core domain models: change records, build results and parameters.

This module defines the data structures shared by source control filtering
and build result publishing:
- Modification: one detected source change (immutable)
- IntegrationResult: outcome of one build cycle as reported by the build engine
- ParameterDefinition / DynamicValue: build parameters applied to providers
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from buildgate.utils.timestamps import ensure_utc


class ModificationType(str, Enum):
    """Kind of change reported by a version-control backend."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    UNKNOWN = "unknown"


class IntegrationStatus(str, Enum):
    """Outcome of a build cycle."""

    SUCCESS = "Success"
    FAILURE = "Failure"
    EXCEPTION = "Exception"
    CANCELLED = "Cancelled"
    UNKNOWN = "Unknown"


class Modification(BaseModel):
    """One change detected by a version-control backend.

    Records are frozen: filtering decides whether a record survives, it never
    edits one.
    """

    type: ModificationType = Field(ModificationType.MODIFIED, description="Kind of change")
    file_name: str = Field("", description="Name of the changed file")
    folder_name: str = Field("", description="Folder containing the file")
    user_name: str = Field("", description="Repository identity of the author")
    comment: Optional[str] = Field(None, description="Commit message")
    modified_time: Optional[datetime] = Field(None, description="When the change was made (UTC)")
    change_number: Optional[str] = Field(None, description="Revision or changeset identifier")
    version: Optional[str] = Field(None, description="File version, if the backend tracks one")
    email_address: Optional[str] = Field(None, description="Author email reported by the backend")
    url: Optional[str] = Field(None, description="Link to the change in a repository browser")

    model_config = {"frozen": True}

    @field_validator("modified_time")
    @classmethod
    def normalize_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive timestamps as UTC and convert aware ones to UTC."""
        return ensure_utc(v)

    @property
    def path(self) -> str:
        """Folder and file joined with '/' (either part may be empty)."""
        folder = self.folder_name.replace("\\", "/").rstrip("/")
        if not folder:
            return self.file_name
        if not self.file_name:
            return folder
        return f"{folder}/{self.file_name}"

    def __str__(self) -> str:
        revision = f"@{self.change_number}" if self.change_number else ""
        return f"{self.type.value} {self.path}{revision} by {self.user_name or 'unknown'}"


class IntegrationResult(BaseModel):
    """Result of one build cycle as handed over by the build engine."""

    project_name: str = Field(..., min_length=1, description="Project the build belongs to")
    label: str = Field("", description="Build label")
    status: IntegrationStatus = Field(IntegrationStatus.UNKNOWN, description="Build outcome")
    last_integration_status: IntegrationStatus = Field(
        IntegrationStatus.UNKNOWN, description="Outcome of the previous build"
    )
    working_directory: Optional[str] = Field(None, description="Working directory of the build")
    project_url: Optional[str] = Field(None, description="Link to the project's build report")
    build_condition: str = Field("IfModificationExists", description="Why the build was triggered")
    modifications: List[Modification] = Field(
        default_factory=list, description="Changes included in this build"
    )
    failure_users: List[str] = Field(
        default_factory=list,
        description="Users who contributed to the build while it has been failing",
    )
    start_time: Optional[datetime] = Field(None, description="Build start (UTC)")
    end_time: Optional[datetime] = Field(None, description="Build end (UTC)")

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive timestamps as UTC and convert aware ones to UTC."""
        return ensure_utc(v)

    @property
    def succeeded(self) -> bool:
        return self.status == IntegrationStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status == IntegrationStatus.FAILURE

    @property
    def fixed(self) -> bool:
        """True when this build succeeded after one that did not."""
        return (
            self.succeeded
            and self.last_integration_status != IntegrationStatus.SUCCESS
            and self.last_integration_status != IntegrationStatus.UNKNOWN
        )

    @property
    def status_changed(self) -> bool:
        return self.status != self.last_integration_status

    @property
    def contributors(self) -> Tuple[str, ...]:
        """Distinct modification authors, in order of first appearance."""
        seen = []
        for modification in self.modifications:
            name = modification.user_name
            if name and name not in seen:
                seen.append(name)
        return tuple(seen)

    def with_modifications(self, modifications: List[Modification]) -> "IntegrationResult":
        """Return a copy carrying the given modifications."""
        return self.model_copy(update={"modifications": list(modifications)})


class ParameterDefinition(BaseModel):
    """A build parameter as declared by the project."""

    name: str = Field(..., min_length=1)
    default: Optional[str] = None
    description: Optional[str] = None

    model_config = {"frozen": True}


class DynamicValue(BaseModel):
    """Binds a build parameter to an attribute of a parameterised item."""

    parameter: str = Field(..., min_length=1, description="Parameter name")
    attribute: str = Field(..., min_length=1, description="Attribute to assign")
    default: Optional[str] = Field(None, description="Used when neither value nor definition default exists")

    model_config = {"frozen": True}


class NotificationType(str, Enum):
    """Build outcomes a recipient group (or the modifiers) can subscribe to."""

    ALWAYS = "Always"
    CHANGE = "Change"
    FAILED = "Failed"
    SUCCESS = "Success"
    FIXED = "Fixed"
    EXCEPTION = "Exception"

    def matches(self, result: IntegrationResult) -> bool:
        """Check whether this notification type applies to a build result."""
        if self is NotificationType.ALWAYS:
            return True
        if self is NotificationType.CHANGE:
            return result.status_changed
        if self is NotificationType.FAILED:
            return result.failed
        if self is NotificationType.SUCCESS:
            return result.succeeded
        if self is NotificationType.FIXED:
            return result.fixed
        return result.status == IntegrationStatus.EXCEPTION


class BuildResultType(str, Enum):
    """Subject line category of a build result."""

    SUCCESS = "Success"
    FIXED = "Fixed"
    BROKEN = "Broken"
    STILL_BROKEN = "StillBroken"
    EXCEPTION = "Exception"

    @classmethod
    def from_result(cls, result: IntegrationResult) -> "BuildResultType":
        if result.status == IntegrationStatus.EXCEPTION:
            return cls.EXCEPTION
        if result.succeeded:
            return cls.FIXED if result.fixed else cls.SUCCESS
        if result.last_integration_status == IntegrationStatus.FAILURE:
            return cls.STILL_BROKEN
        return cls.BROKEN
