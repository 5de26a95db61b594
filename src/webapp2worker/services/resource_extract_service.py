# src/webapp2worker/services/resource_extract_service.py
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Coroutine, List, TypeVar

from bs4 import Tag

from webapp2worker.model import (
    ExternalScript, ExternalStyle, InlineScript, InlineStyle, ScriptResource, StyleResource,
)
from webapp2worker.services.document_service import HtmlDocument

logger = logging.getLogger(__name__)

STYLE_SELECTOR = "head > link[rel=stylesheet][href]:not([media=print]), head style"
SCRIPT_SELECTOR = "script"

ResolvePath = Callable[[str], str]
FetchText = Callable[[str], Awaitable[str]]

T = TypeVar("T")


async def gather_in_order(jobs: List[Coroutine[object, object, T]]) -> List[T]:
    """
    Runs the jobs concurrently and returns their results in submission order.
    If one job fails, the others are cancelled before the error propagates.
    """
    tasks = [asyncio.ensure_future(job) for job in jobs]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


class ResourceExtractService:
    """
    Pulls stylesheets and scripts out of a parsed document.
    Matched elements are detached from the tree, so extracting twice from the
    same document yields nothing the second time.
    """

    def __init__(self, resolve_path: ResolvePath, fetch_text: FetchText):
        self.resolve_path = resolve_path
        self.fetch_text = fetch_text

    async def extract_styles(self, document: HtmlDocument) -> List[StyleResource]:
        """
        Returns <style> (anywhere in <head>) and linked screen stylesheets (direct
        children of <head>) in document order. Linked sheets are fetched concurrently.
        """
        elements = document.query(STYLE_SELECTOR)
        jobs = []
        for el in elements:
            document.remove(el)
            tag = document.tag_name(el)
            if tag == "style":
                jobs.append(self._inline_style(document.text_content(el)))
            elif tag == "link":
                jobs.append(self._external_style(document.attribute(el, "href") or ""))
            else:
                raise AssertionError(f"Style selector matched unexpected <{tag}>")

        styles = await gather_in_order(jobs)
        logger.debug(
            "Extracted %d stylesheet(s): %d inline, %d external.",
            len(styles),
            sum(1 for s in styles if s.kind == "inline"),
            sum(1 for s in styles if s.kind == "external"),
        )
        return styles

    async def extract_scripts(self, document: HtmlDocument) -> List[ScriptResource]:
        """Returns every <script> in document order. External sources are fetched concurrently."""
        elements: List[Tag] = document.query(SCRIPT_SELECTOR)
        jobs = []
        for el in elements:
            document.remove(el)
            src = document.attribute(el, "src")
            if src:
                jobs.append(self._external_script(src))
            else:
                jobs.append(self._inline_script(document.text_content(el)))

        scripts = await gather_in_order(jobs)
        logger.debug(
            "Extracted %d script(s): %d inline, %d external.",
            len(scripts),
            sum(1 for s in scripts if s.kind == "inline"),
            sum(1 for s in scripts if s.kind == "external"),
        )
        return scripts

    # -------- Per-element builders --------

    @staticmethod
    async def _inline_style(content: str) -> InlineStyle:
        return InlineStyle(content=content)

    async def _external_style(self, href: str) -> ExternalStyle:
        content = await self.fetch_text(self.resolve_path(href))
        logger.debug("Loaded stylesheet %s", href)
        return ExternalStyle(href=href, content=content)

    @staticmethod
    async def _inline_script(content: str) -> InlineScript:
        return InlineScript(content=content)

    async def _external_script(self, src: str) -> ExternalScript:
        content = await self.fetch_text(self.resolve_path(src))
        logger.debug("Loaded script %s", src)
        return ExternalScript(src=src, content=content)
