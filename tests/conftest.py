"""Shared fixtures: an in-memory page runtime and a scripted HTTP transport."""

import os
import tempfile
from contextlib import asynccontextmanager
from urllib.parse import urljoin

# Keep the service's storage dir out of the working tree
os.environ.setdefault("HYPERSHOT_BASE_STORAGE_DIR", tempfile.mkdtemp(prefix="hypershot-tests-"))

import httpx
import pytest
from bs4 import BeautifulSoup

from hypershot.config import Settings
from hypershot.runtime.base import ElementInfo, PageRuntime
from hypershot.services.rewriter import REWRITE_SCRIPT


class FakePage(PageRuntime):
    """
    BeautifulSoup stand-in for a loaded browser page. Resolves URLs against
    `url` the way the browser does and applies the rewrite payload with the
    same rules as the in-page script.
    """

    def __init__(self, html: str, url: str = "https://example.com/"):
        self.url = url
        self.soup = BeautifulSoup(html, "html.parser", multi_valued_attributes=None)
        self.scripts: list[str] = []

    async def query_all(self, selector):
        elements = []
        for index, el in enumerate(self.soup.select(selector)):
            attributes = dict(el.attrs)
            resolved = {
                prop: urljoin(self.url, attributes[prop].strip())
                for prop in ("href", "src")
                if prop in attributes
            }
            elements.append(ElementInfo(tag=el.name.upper(), index=index, attributes=attributes, resolved=resolved))
        return elements

    async def evaluate(self, script, arg=None):
        self.scripts.append(script)
        if script != REWRITE_SCRIPT:
            raise NotImplementedError("FakePage only runs the rewrite script")
        return [self._rewrite(entry) for entry in arg]

    async def content(self):
        return str(self.soup)

    def _rewrite(self, entry):
        attr, value, path = entry["attr"], entry["value"], entry["path"]
        orig = "orig-" + attr

        elem = None
        if entry["selector"] and entry["index"] >= 0:
            matches = self.soup.select(entry["selector"])
            if entry["index"] < len(matches):
                elem = matches[entry["index"]]
        if elem is not None and elem.get(attr) == path and elem.get(orig) == value:
            return "unchanged"
        if elem is None or elem.get(attr) != value:
            elem = self.soup.find(attrs={attr: value})
        if elem is None:
            done = self.soup.find(attrs={attr: path, orig: value})
            return "unchanged" if done is not None else "missed"

        elem[attr] = path
        elem[orig] = value
        for name in ("integrity", "crossorigin", "srcset"):
            elem.attrs.pop(name, None)
        return "rewritten"


def make_transport(routes):
    """
    Build an httpx transport from {url: (status, headers, body)} or
    {url: exception}. Unknown URLs answer 404.
    """
    calls = []

    async def handler(request):
        url = str(request.url)
        calls.append(url)
        route = routes.get(url)
        if route is None:
            return httpx.Response(404, request=request)
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return await route(request)
        status, headers, body = route
        return httpx.Response(status, headers=headers, content=body, request=request)

    transport = httpx.MockTransport(handler)
    transport.calls = calls
    return transport


def page_opener_for(page):
    @asynccontextmanager
    async def opener(url, settings):
        yield page

    return opener


@pytest.fixture
def settings():
    return Settings(_env_file=None, resource_timeout=5.0)


@pytest.fixture
def make_page():
    return FakePage


@pytest.fixture
def transport_for():
    return make_transport


@pytest.fixture
def opener_for():
    return page_opener_for
