from __future__ import annotations

import logging
from typing import Any, Mapping

LOGGER = logging.getLogger(__name__)

__all__ = ["TemplatedWidgetMixin"]


class TemplatedWidgetMixin:
    """Adds template rendering to a widget through its renderer service."""

    template_name: str = "widget.html"

    async def render_content(self, context: Mapping[str, Any]) -> bool:
        """Ask the render collaborator to render ``context``.

        Returns ``True`` when the render succeeded. Failures are logged and
        never affect the lifecycle state.
        """

        renderer = self.services.renderer  # type: ignore[attr-defined]
        target = self.wrapper  # type: ignore[attr-defined]
        if renderer is None or target is None:
            LOGGER.debug("Skipping render for widget %s: no renderer or target", self.id)  # type: ignore[attr-defined]
            return False
        try:
            await renderer.render(target, self.template_name, context)
        except Exception:
            LOGGER.exception(
                "Failed to render widget content (%s:%s)",
                self.id,  # type: ignore[attr-defined]
                self.name,  # type: ignore[attr-defined]
            )
            return False
        return True
