# src/webapp2worker/services/document_service.py
from __future__ import annotations

import logging
from typing import List, Optional

from bs4 import (
    BeautifulSoup, Comment, Declaration, Doctype, FeatureNotFound, NavigableString, ProcessingInstruction, Tag,
)
from bs4.exceptions import ParserRejectedMarkup

from webapp2worker.errors import ParseError

logger = logging.getLogger(__name__)

# Node types that do not contribute to an element's textContent.
_NON_TEXT_NODES = (Comment, Declaration, Doctype, ProcessingInstruction)


class HtmlDocument:
    """
    A mutable, parsed HTML tree owned by a single conversion.
    Wraps BeautifulSoup with the handful of DOM operations the converter needs.
    """

    def __init__(self, soup: BeautifulSoup):
        self.soup = soup

    @classmethod
    def parse(cls, content: str, features: str = "html5lib") -> "HtmlDocument":
        """
        Parses raw HTML into a document.
        The html5lib backend builds <html>/<head>/<body> like a browser, so omitted
        tags and empty input still give a complete (possibly empty) document.
        Raises ParseError for an unknown backend or markup the backend rejects.
        """
        # Strip a leading BOM, it otherwise ends up as text in the body.
        clean_html = (content or "").replace('\ufeff', '')
        try:
            soup = BeautifulSoup(clean_html, features)
        except ParserRejectedMarkup as e:
            raise ParseError(f"Failed to parse content as HTML: {e}") from e
        except FeatureNotFound as e:
            raise ParseError(f"Failed to parse content as HTML with '{features}': {e}") from e

        logger.debug("Parsed HTML document (%d chars) with '%s'.", len(clean_html), features)
        return cls(soup)

    # -------- Query & mutation --------

    def query(self, selector: str) -> List[Tag]:
        """Returns every element matching the CSS selector, in document order."""
        return list(self.soup.select(selector))

    @staticmethod
    def remove(element: Tag) -> None:
        """Detaches the element (and its subtree) from the document."""
        element.extract()

    # -------- Element access --------

    @staticmethod
    def tag_name(element: Tag) -> str:
        return (element.name or "").lower()

    @staticmethod
    def attribute(element: Tag, name: str) -> Optional[str]:
        """
        Returns the attribute as a string, or None when absent.
        Multi-valued attributes (rel, class) are joined with a space like the DOM does.
        """
        value = element.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    @staticmethod
    def text_content(element: Tag) -> str:
        """Concatenated text of all descendant text nodes (DOM textContent)."""
        return "".join(
            str(node) for node in element.descendants
            if isinstance(node, NavigableString) and not isinstance(node, _NON_TEXT_NODES)
        )

    # -------- Serialization --------

    @property
    def head_markup(self) -> str:
        """Serialized inner markup of <head>, or '' when the document has none."""
        head = self.soup.head
        return head.decode_contents() if head is not None else ""

    @property
    def body_markup(self) -> str:
        """
        Serialized inner markup of <body>.
        Without a <body> element (html.parser does not synthesize one), all
        top-level content outside <head> counts as body content.
        """
        body = self.soup.body
        if body is not None:
            return body.decode_contents()

        root = self.soup.html or self.soup
        parts = []
        for node in root.contents:
            if isinstance(node, Doctype):
                continue
            if isinstance(node, Tag) and node.name == "head":
                continue
            parts.append(node.decode() if isinstance(node, Tag) else node.output_ready())
        return "".join(parts)
