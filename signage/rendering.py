"""Render collaborator turning widget context into markup for a render target."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from .widgets.base import RenderTarget

__all__ = ["DEFAULT_TEMPLATE_DIR", "RenderError", "Renderer", "TemplateRenderer"]

LOGGER = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


class RenderError(RuntimeError):
    """Raised when a template cannot be rendered."""


class Renderer(Protocol):
    async def render(
        self, target: RenderTarget, template_name: str, context: Mapping[str, Any]
    ) -> str: ...


class TemplateRenderer:
    """Render Jinja2 templates into a widget's render target.

    Each render replaces the target's content so repeated refreshes do not
    pile up stale fragments.
    """

    def __init__(self, template_dir: Optional[Path] = None) -> None:
        self.template_dir = Path(template_dir or DEFAULT_TEMPLATE_DIR)
        self.environment = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            enable_async=True,
        )

    async def render(
        self, target: RenderTarget, template_name: str, context: Mapping[str, Any]
    ) -> str:
        try:
            template = self.environment.get_template(template_name)
            markup = await template.render_async(**dict(context))
        except TemplateError as exc:
            raise RenderError(f"Could not render template {template_name}: {exc}") from exc
        target.replace(markup)
        LOGGER.debug("Rendered %s into %s", template_name, target.element_id)
        return markup
