"""Template rendering for build result messages using Jinja2.

Bundled templates live in the ``buildgate.notifications.email_templates``
package directory. Transform files are templates on disk supplied by the
project configuration; they are rendered with the same context.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Union

from jinja2 import (
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
)

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)

_AUTOESCAPE = select_autoescape(
    enabled_extensions=("html", "htm", "html.j2", "htm.j2"),
    default_for_string=True,
    default=False,
)


class TemplateRenderer:
    """Renders bundled and on-disk templates.

    Undefined variables raise instead of rendering as empty strings, so a
    template mistake shows up as an error rather than a silently broken body.
    """

    def __init__(self, template_dir: str = "email_templates"):
        self.env = Environment(
            loader=PackageLoader("buildgate.notifications", template_dir),
            autoescape=_AUTOESCAPE,
            undefined=StrictUndefined,
        )
        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render a bundled template.

        Raises:
            NotificationTemplateError: If the template is missing or fails to render
        """
        try:
            return self.env.get_template(template_name).render(context)
        except TemplateError as e:
            raise NotificationTemplateError(f"Template rendering failed for {template_name}: {e}") from e

    def render_file(self, path: Union[str, Path], context: Dict[str, Any]) -> str:
        """Render a template file from disk.

        Raises:
            NotificationTemplateError: If the file is missing or fails to render
        """
        path = Path(path)
        env = Environment(
            loader=FileSystemLoader(str(path.parent)),
            autoescape=_AUTOESCAPE,
            undefined=StrictUndefined,
        )
        try:
            return env.get_template(path.name).render(context)
        except TemplateError as e:
            raise NotificationTemplateError(f"Transform file {path} failed: {e}") from e
