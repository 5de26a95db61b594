# src/webapp2worker/controllers/convert_controller.py
from __future__ import annotations

import logging
import time
from typing import Optional

from webapp2worker.model import RenderInput, RuntimeSettings
from webapp2worker.services.bootstrap_service import BootstrapService
from webapp2worker.services.document_service import HtmlDocument
from webapp2worker.services.resource_extract_service import ResolvePath, ResourceExtractService
from webapp2worker.services.resource_fetch_service import ResourceFetchService
from webapp2worker.services.script_assemble_service import build_script_nodes
from webapp2worker.services.script_render_service import ScriptRenderService
from webapp2worker.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)


class ConvertController:
    """
    Orchestrates the conversion of one HTML document into a worker script:
    parse -> extract styles -> extract scripts -> capture head/body -> build -> render.

    Any ParseError or ResourceFetchError propagates unchanged; nothing partial is returned.
    """

    def __init__(
            self,
            fetcher: ResourceFetchService,
            settings: Optional[RuntimeSettings] = None,
            *,
            parser_features: str = "html5lib",
            resolve_path: Optional[ResolvePath] = None,
    ) -> None:
        self.fetcher = fetcher
        self.settings = settings or RuntimeSettings()
        self.parser_features = parser_features
        self.custom_resolve_path = resolve_path
        self.bootstrap = BootstrapService(self.settings)
        self.renderer = ScriptRenderService()

    def _resolver_for(self, base_url: str) -> ResolvePath:
        if self.custom_resolve_path is not None:
            return self.custom_resolve_path
        return lambda path: UrlUtils.resolve(base_url, path)

    async def convert(self, content_path: str) -> str:
        """Reads the document at `content_path` (local path or URL) and converts it."""
        content_url = UrlUtils.to_url(content_path)
        logger.info("Converting %s", content_url)
        html = await self.fetcher.read_text(content_url)
        return await self.convert_html(html, content_url)

    async def convert_html(self, html: str, base_url: str) -> str:
        """Converts HTML text; relative resource references resolve against `base_url`."""
        start = time.perf_counter()
        document = HtmlDocument.parse(html, self.parser_features)

        extractor = ResourceExtractService(self._resolver_for(base_url), self.fetcher.fetch_text)
        # Styles before scripts; both before the markup is captured.
        styles = await extractor.extract_styles(document)
        scripts = await extractor.extract_scripts(document)

        render_input = RenderInput(
            head_markup=document.head_markup,
            body_markup=document.body_markup,
            styles=styles,
            scripts=scripts,
        )

        worker_script = self.bootstrap.build(render_input)
        worker_script = worker_script.model_copy(update={"scripts": build_script_nodes(render_input.scripts)})
        result = self.renderer.render(worker_script)

        logger.info(
            "Converted %s: %d style(s), %d script(s) in %.1f ms",
            base_url, len(styles), len(scripts), (time.perf_counter() - start) * 1000
        )
        return result
