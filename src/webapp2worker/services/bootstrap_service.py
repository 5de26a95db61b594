# src/webapp2worker/services/bootstrap_service.py
from __future__ import annotations

import logging
from typing import List, Optional

from webapp2worker.model import RenderInput, RuntimeSettings, StyleNode, StyleResource, WorkerScript
from webapp2worker.runtime.adapter import RuntimeAdapter, get_adapter
from webapp2worker.services.css_scope_service import scope_css

logger = logging.getLogger(__name__)


class BootstrapService:
    """
    Builds the document half of the worker script: the runtime polyfill from the
    adapter, the virtual head/body markup and one scoped style node per stylesheet.
    """

    def __init__(self, settings: RuntimeSettings, adapter: Optional[RuntimeAdapter] = None):
        self.settings = settings
        self.adapter = adapter or get_adapter(settings)

    @staticmethod
    def build_style_nodes(styles: List[StyleResource]) -> List[StyleNode]:
        """Scopes every stylesheet (inline and external alike), keeping extraction order."""
        return [StyleNode(index=i, css=scope_css(style.content)) for i, style in enumerate(styles)]

    def build(self, render_input: RenderInput) -> WorkerScript:
        worker_script = WorkerScript(
            preamble=self.adapter.preamble(),
            head_markup=render_input.head_markup,
            body_markup=render_input.body_markup,
            styles=self.build_style_nodes(render_input.styles),
        )
        logger.debug(
            "Bootstrap built: %d preamble statement(s), %d style node(s).",
            len(worker_script.preamble), len(worker_script.styles)
        )
        return worker_script
