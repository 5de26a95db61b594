# tests/core/test_resource_extraction.py
import asyncio

import pytest

from webapp2worker.errors import ResourceFetchError
from webapp2worker.model import ExternalScript, ExternalStyle, InlineScript, InlineStyle
from webapp2worker.services.document_service import HtmlDocument
from webapp2worker.services.resource_extract_service import ResourceExtractService
from webapp2worker.utils.url_utils import UrlUtils

BASE_URL = "https://example.com/site/index.html"


class FakeFetcher:
    """Serves resources from a dict; optional per-URL delays shuffle completion order."""

    def __init__(self, resources, delays=None):
        self.resources = resources
        self.delays = delays or {}
        self.requested = []
        self.completed = []

    async def fetch_text(self, url):
        self.requested.append(url)
        await asyncio.sleep(self.delays.get(url, 0))
        if url not in self.resources:
            raise ResourceFetchError(url, "HTTP status 404")
        self.completed.append(url)
        return self.resources[url]


def make_extractor(fetcher):
    return ResourceExtractService(lambda path: UrlUtils.resolve(BASE_URL, path), fetcher.fetch_text)


def test_extract_styles_inline_and_external():
    """Test de classificatie van <style> en <link rel=stylesheet>."""
    html = """<html><head>
    <style>body{margin:0}</style>
    <link rel="stylesheet" href="css/main.css">
    </head><body></body></html>"""
    fetcher = FakeFetcher({"https://example.com/site/css/main.css": "html{color:red}"})
    doc = HtmlDocument.parse(html)

    styles = asyncio.run(make_extractor(fetcher).extract_styles(doc))

    assert styles == [
        InlineStyle(content="body{margin:0}"),
        ExternalStyle(href="css/main.css", content="html{color:red}"),
    ]
    assert doc.query("style, link") == []


def test_extract_styles_predicate():
    """Test welke stylesheets wel en niet worden opgepakt."""
    html = """<html><head>
    <link rel="stylesheet" href="print.css" media="print">
    <link rel="stylesheet">
    <link rel="icon" href="favicon.ico">
    <style>.head{display:block}</style>
    </head><body><style>.in-body{}</style></body></html>"""
    doc = HtmlDocument.parse(html)

    styles = asyncio.run(make_extractor(FakeFetcher({})).extract_styles(doc))

    # Only the <style> in <head> qualifies.
    assert styles == [InlineStyle(content=".head{display:block}")]
    assert 'media="print"' in doc.head_markup
    assert "favicon.ico" in doc.head_markup
    assert ".in-body{}" in doc.body_markup


def test_extract_styles_keeps_document_order_regardless_of_fetch_order():
    """Test dat de volgorde de documentvolgorde is, niet de volgorde van binnenkomst."""
    html = """<head>
    <link rel="stylesheet" href="a.css">
    <style>.b{}</style>
    <link rel="stylesheet" href="c.css">
    <link rel="stylesheet" href="d.css">
    </head><body></body>"""
    urls = {name: f"https://example.com/site/{name}" for name in ("a.css", "c.css", "d.css")}
    fetcher = FakeFetcher(
        {url: f"/* {name} */" for name, url in urls.items()},
        delays={urls["a.css"]: 0.05, urls["c.css"]: 0.0, urls["d.css"]: 0.02},
    )
    doc = HtmlDocument.parse(html)

    styles = asyncio.run(make_extractor(fetcher).extract_styles(doc))

    assert fetcher.completed == [urls["c.css"], urls["d.css"], urls["a.css"]]
    assert [s.content for s in styles] == ["/* a.css */", ".b{}", "/* c.css */", "/* d.css */"]


def test_extract_scripts_classification():
    html = """<html><head><script src="js/lib.js?v=2"></script></head>
    <body>
      <script>var a = 1;</script>
      <script src="">var b = 2;</script>
      <script type="module" src="/abs/app.js"></script>
    </body></html>"""
    fetcher = FakeFetcher({
        "https://example.com/site/js/lib.js?v=2": "lib()",
        "https://example.com/abs/app.js": "app()",
    })
    doc = HtmlDocument.parse(html)

    scripts = asyncio.run(make_extractor(fetcher).extract_scripts(doc))

    assert scripts == [
        ExternalScript(src="js/lib.js?v=2", content="lib()"),
        InlineScript(content="var a = 1;"),
        InlineScript(content="var b = 2;"),
        ExternalScript(src="/abs/app.js", content="app()"),
    ]
    assert "<script" not in doc.head_markup
    assert "<script" not in doc.body_markup


def test_extraction_is_not_idempotent():
    """Test dat een tweede extractie op dezelfde boom niets meer oplevert."""
    doc = HtmlDocument.parse("<head><style>p{}</style></head><body><script>x()</script></body>")
    extractor = make_extractor(FakeFetcher({}))

    assert len(asyncio.run(extractor.extract_styles(doc))) == 1
    assert len(asyncio.run(extractor.extract_scripts(doc))) == 1
    assert asyncio.run(extractor.extract_styles(doc)) == []
    assert asyncio.run(extractor.extract_scripts(doc)) == []


def test_fetch_failure_propagates():
    doc = HtmlDocument.parse('<head><link rel="stylesheet" href="missing.css"></head><body></body>')

    with pytest.raises(ResourceFetchError) as exc_info:
        asyncio.run(make_extractor(FakeFetcher({})).extract_styles(doc))

    assert exc_info.value.url == "https://example.com/site/missing.css"


def test_implicit_head_style_is_extracted():
    """Test dat een <style> in een impliciete <head> (zonder tags) wordt opgepakt."""
    doc = HtmlDocument.parse("<!DOCTYPE html><title>t</title><style>body{color:red}</style><p>hi</p>")

    styles = asyncio.run(make_extractor(FakeFetcher({})).extract_styles(doc))

    assert styles == [InlineStyle(content="body{color:red}")]
    assert doc.head_markup == "<title>t</title>"
    assert doc.body_markup == "<p>hi</p>"


def test_fetch_failure_cancels_pending_fetches():
    """Test dat lopende fetches geannuleerd worden zodra er één mislukt."""
    slow_url = "https://example.com/site/slow.js"

    class TrackingFetcher(FakeFetcher):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self.cancelled = []

        async def fetch_text(self, url):
            try:
                return await super().fetch_text(url)
            except asyncio.CancelledError:
                self.cancelled.append(url)
                raise

    fetcher = TrackingFetcher({slow_url: "slow()"}, delays={slow_url: 5})
    doc = HtmlDocument.parse('<body><script src="slow.js"></script><script src="gone.js"></script></body>')

    async def scenario():
        with pytest.raises(ResourceFetchError):
            await make_extractor(fetcher).extract_scripts(doc)
        # Let the cancellation reach the pending fetch.
        await asyncio.sleep(0)

    asyncio.run(scenario())

    assert fetcher.cancelled == [slow_url]
    assert fetcher.completed == []
