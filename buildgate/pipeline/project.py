"""Runtime project: configured source control and publishers, ready to run."""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from buildgate.config.environment import EnvironmentConfig
from buildgate.config.exceptions import ConfigurationErrorProcessor
from buildgate.config.models import AppConfig
from buildgate.domain.models import ParameterDefinition
from buildgate.notifications.factory import build_email_publisher
from buildgate.sourcecontrol.base import SourceControl
from buildgate.sourcecontrol.factory import build_source_control

logger = logging.getLogger(__name__)


@dataclass
class Project:
    """
    A configured project.

    Attributes:
        name: Project name
        source_control: Provider (usually a FilteredSourceControl)
        publishers: Items run after the build, in order
        tasks: Items run as part of the build; publishers placed here still work
        parameters: Build parameter definitions
        working_directory: Build working directory
        web_url: Link to the project's build report
    """

    name: str
    source_control: SourceControl
    publishers: List[Any] = field(default_factory=list)
    tasks: List[Any] = field(default_factory=list)
    parameters: List[ParameterDefinition] = field(default_factory=list)
    working_directory: str = "."
    web_url: Optional[str] = None

    def validate(self, error_processor: ConfigurationErrorProcessor) -> None:
        """Let every task and publisher report its configuration problems."""
        for item in [*self.tasks, *self.publishers]:
            validate = getattr(item, "validate", None)
            if validate is not None:
                validate(self, error_processor)

        logger.debug(
            f"Validated project {self.name}: "
            f"{len(error_processor.errors)} errors, {len(error_processor.warnings)} warnings"
        )


def build_project(app_config: AppConfig, env_config: Optional[EnvironmentConfig] = None) -> Project:
    """Create the runtime project described by the configuration.

    Raises:
        ConfigurationError: If a provider, filter or publisher cannot be built
    """
    project_config = app_config.project

    return Project(
        name=project_config.name,
        source_control=build_source_control(app_config.source_control),
        publishers=[build_email_publisher(p, env_config) for p in project_config.publishers],
        tasks=[build_email_publisher(t, env_config) for t in project_config.tasks],
        parameters=list(project_config.parameters),
        working_directory=project_config.working_directory,
        web_url=project_config.web_url,
    )
