"""
ChallengeKit - Email template rendering.

Resolves templates with a two-tier loader:
1. User-specified ``templates_path`` (overrides)
2. Built-in templates shipped in ``challengekit/templates``

Each template name maps to two files: ``<name>_subject.txt`` and
``<name>_body.html``. Bodies extend ``user_wrapper.html``.
"""
from typing import Any, Dict, Optional, Protocol, Tuple

from jinja2 import BaseLoader, ChoiceLoader, Environment, FileSystemLoader, PackageLoader

VERIFICATION_TEMPLATE = "user_validated"
LOST_PASSWORD_TEMPLATE = "user_lost_password"


class Renderer(Protocol):
    def render(self, template_name: str, context: Dict[str, Any]) -> Tuple[str, str]: ...


class TemplateRenderer:
    """Renders challenge email subjects and bodies from Jinja2 templates."""

    def __init__(self, templates_path: Optional[str] = None):
        loaders: list[BaseLoader] = []
        if templates_path:
            loaders.append(FileSystemLoader(templates_path))
        loaders.append(PackageLoader("challengekit", "templates"))

        self._env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=True,
            keep_trailing_newline=False,
        )

    def render(self, template_name: str, context: Dict[str, Any]) -> Tuple[str, str]:
        """
        Render subject and body for a template.

        Args:
            template_name: Base name, e.g. "user_validated"
            context: Template variables

        Returns:
            (subject, body_html)
        """
        subject_tpl = self._env.get_template(f"{template_name}_subject.txt")
        body_tpl = self._env.get_template(f"{template_name}_body.html")

        subject = subject_tpl.render(**context).strip()
        body = body_tpl.render(**context)

        return subject, body
