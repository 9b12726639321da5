"""Message builders: render a build result into an email body."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from buildgate.domain.models import IntegrationResult

from .payloads import build_message_context
from .templates import TemplateRenderer


class MessageBuilder(ABC):
    """Renders a build result into a message body.

    ``transform_files`` are extra templates the publisher hands over before
    each build; builders that do not use them ignore them.
    """

    is_html = True

    def __init__(self, renderer: Optional[TemplateRenderer] = None):
        self.renderer = renderer or TemplateRenderer()
        self.transform_files: Sequence[str] = ()

    @abstractmethod
    def build_message(self, result: IntegrationResult) -> str:
        ...


class HtmlLinkMessageBuilder(MessageBuilder):
    """One line naming the project, with a link to its build report."""

    def __init__(self, include_anchor_tag: bool = False, renderer: Optional[TemplateRenderer] = None):
        super().__init__(renderer)
        self.include_anchor_tag = include_anchor_tag

    def build_message(self, result: IntegrationResult) -> str:
        context = build_message_context(result)
        context["include_anchor_tag"] = self.include_anchor_tag
        return self.renderer.render("link_message.html.j2", context).strip()


class HtmlDetailsMessageBuilder(MessageBuilder):
    """Link line, build details and modifications, then each transform file."""

    def build_message(self, result: IntegrationResult) -> str:
        context = build_message_context(result)
        context["include_anchor_tag"] = True

        sections = [
            self.renderer.render("link_message.html.j2", context).strip(),
            self.renderer.render("details_message.html.j2", context).strip(),
        ]
        for transform_file in self.transform_files:
            sections.append(self.renderer.render_file(transform_file, context).strip())

        return "\n".join(section for section in sections if section)


class PlainTextMessageBuilder(MessageBuilder):
    """Plain text summary with the modification list."""

    is_html = False

    def build_message(self, result: IntegrationResult) -> str:
        return self.renderer.render("text_message.txt.j2", build_message_context(result)).strip()
