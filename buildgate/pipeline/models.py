"""Data models for integration cycle tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from buildgate.domain.models import Modification


@dataclass
class PublisherOutcome:
    """
    What happened to a single publisher within a cycle.

    Attributes:
        name: Publisher description or class name
        state: Final PublishState value ("sent", "skipped", ...)
        published: Return value of execute (False when the outcome was unknown)
        duration_seconds: Time spent in the publisher
        error_message: Failure message if the publisher raised
    """

    name: str
    state: str
    published: bool = False
    duration_seconds: float = 0.0
    error_message: Optional[str] = None

    @property
    def had_errors(self) -> bool:
        return self.error_message is not None


@dataclass
class CycleResult:
    """
    Aggregate results from one integration cycle.

    Attributes:
        cycle_started_at: UTC timestamp when the cycle began
        cycle_finished_at: UTC timestamp when the cycle completed
        modifications: Modifications that survived filtering
        publisher_outcomes: Per-publisher outcomes, in execution order
        total_duration_seconds: Time for the whole cycle
        had_errors: Whether any publisher failed
        error_messages: Messages of every publisher failure
    """

    cycle_started_at: datetime
    cycle_finished_at: datetime
    modifications: List[Modification] = field(default_factory=list)
    publisher_outcomes: List[PublisherOutcome] = field(default_factory=list)
    total_duration_seconds: float = 0.0
    had_errors: bool = False
    error_messages: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Compute aggregates from publisher outcomes if not already set."""
        if self.publisher_outcomes and not self.error_messages:
            self.error_messages = [
                o.error_message for o in self.publisher_outcomes if o.error_message
            ]
        if self.error_messages:
            self.had_errors = True

        if self.total_duration_seconds == 0.0:
            delta = self.cycle_finished_at - self.cycle_started_at
            self.total_duration_seconds = delta.total_seconds()

    @property
    def modification_count(self) -> int:
        return len(self.modifications)

    @property
    def sent_count(self) -> int:
        return sum(1 for o in self.publisher_outcomes if o.state == "sent")
