"""
Playwright-backed page runtime: launches headless Chromium and exposes the
loaded page through the PageRuntime interface.
"""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from hypershot.config import Settings
from hypershot.runtime.base import ElementInfo, PageRuntime

logger = logging.getLogger(__name__)

QUERY_SCRIPT = """
(elements) => elements.map((el, index) => {
    const attributes = {};
    for (const attr of el.attributes) {
        attributes[attr.name] = attr.value;
    }
    const resolved = {};
    for (const prop of ['href', 'src']) {
        if (typeof el[prop] === 'string') {
            resolved[prop] = el[prop];
        }
    }
    return {tag: el.nodeName, index, attributes, resolved};
})
"""


class PlaywrightPage(PageRuntime):
    def __init__(self, page: Page):
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    async def query_all(self, selector: str) -> list[ElementInfo]:
        rows = await self._page.eval_on_selector_all(selector, QUERY_SCRIPT)
        return [
            ElementInfo(
                tag=row["tag"],
                index=row["index"],
                attributes=row.get("attributes") or {},
                resolved=row.get("resolved") or {},
            )
            for row in rows
        ]

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._page.evaluate(script, arg)

    async def content(self) -> str:
        return await self._page.content()


@asynccontextmanager
async def open_playwright_page(url: str, settings: Settings) -> AsyncIterator[PlaywrightPage]:
    """Launch Chromium, navigate to `url` and yield the loaded page."""
    async with async_playwright() as p:
        browser = await p.chromium.launch(
            headless=settings.headless,
            args=["--no-sandbox", "--disable-dev-shm-usage"],
        )
        try:
            context = await browser.new_context(
                viewport={"width": settings.viewport_width, "height": settings.viewport_height},
                user_agent=settings.user_agent,
                locale="en-US",
            )
            page = await context.new_page()
            page.on("console", lambda msg: logger.debug("[page] %s", msg.text))

            try:
                await page.goto(url, wait_until=settings.wait_until, timeout=settings.playwright_timeout_ms)
            except PlaywrightTimeoutError:
                # networkidle never settles on pages with long-polling; take what has loaded
                logger.warning("Navigation to %s timed out waiting for %s, retrying", url, settings.wait_until)
                await page.goto(url, wait_until="domcontentloaded", timeout=settings.playwright_timeout_ms)

            if settings.settle_ms:
                await page.wait_for_timeout(settings.settle_ms)

            logger.debug("Loaded %s", page.url)
            yield PlaywrightPage(page)
        finally:
            await browser.close()
