"""
Snapshotter: loads a page and produces
  1. <root>/assets/<hash>.<ext>  one file per fetched resource
  2. <root>/index.html           page markup rewritten to use the local copies
  3. <root>/build.json           manifest of the run
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import aiofiles
import httpx

from hypershot.config import Settings
from hypershot.config import settings as default_settings
from hypershot.errors import PipelineFailure
from hypershot.models import SnapshotResult
from hypershot.runtime.base import PageRuntime
from hypershot.services.extractor import extract_descriptors
from hypershot.services.fetcher import HttpFetcher, fetch_resources
from hypershot.services.manifest import build_manifest
from hypershot.services.rewriter import rewrite_references

logger = logging.getLogger(__name__)

PageOpener = Callable[[str, Settings], AbstractAsyncContextManager[PageRuntime]]


@dataclass(frozen=True)
class SnapshotPaths:
    folder: Path
    assets_dir: Path
    index_path: Path
    manifest_path: Path

    @classmethod
    def for_root(cls, root: str | Path, settings: Settings) -> SnapshotPaths:
        folder = Path(root)
        return cls(
            folder=folder,
            assets_dir=folder / settings.assets_dir_name,
            index_path=folder / settings.index_file_name,
            manifest_path=folder / settings.manifest_file_name,
        )


def _default_page_opener(url: str, settings: Settings) -> AbstractAsyncContextManager[PageRuntime]:
    from hypershot.runtime.browser import open_playwright_page

    return open_playwright_page(url, settings)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Snapshotter:
    def __init__(
        self,
        settings: Settings | None = None,
        page_opener: PageOpener | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.settings = settings or default_settings
        self._page_opener = page_opener or _default_page_opener
        self._transport = transport
        self._clock = clock

    async def snapshot(self, url: str, root: str | Path) -> SnapshotResult:
        """
        Snapshot `url` into `root`. Never raises: a failure anywhere in the
        pipeline is logged and reported on the returned result, whose index
        path is set either way.
        """
        result = self._new_result(url, root)
        logger.info("Fetching %s", url)
        try:
            (result.folder / self.settings.assets_dir_name).mkdir(parents=True, exist_ok=True)
            async with self._page_opener(url, self.settings) as page:
                await self._run(page, result)
        except Exception as exc:
            self._fail(result, exc)
        return result

    async def capture(self, page: PageRuntime, root: str | Path, url: str | None = None) -> SnapshotResult:
        """Snapshot an already loaded page. Same failure policy as `snapshot`."""
        result = self._new_result(url or page.url, root)
        try:
            await self._run(page, result)
        except Exception as exc:
            self._fail(result, exc)
        return result

    def _new_result(self, url: str, root: str | Path) -> SnapshotResult:
        paths = SnapshotPaths.for_root(root, self.settings)
        return SnapshotResult(
            url=url,
            folder=paths.folder,
            index_path=paths.index_path,
            manifest_path=paths.manifest_path,
        )

    def _fail(self, result: SnapshotResult, exc: Exception) -> None:
        logger.exception("Snapshot of %s failed", result.url)
        result.error = PipelineFailure(str(exc) or exc.__class__.__name__)

    async def _run(self, page: PageRuntime, result: SnapshotResult) -> None:
        paths = SnapshotPaths.for_root(result.folder, self.settings)
        paths.assets_dir.mkdir(parents=True, exist_ok=True)

        descriptors = await extract_descriptors(page, self.settings)
        result.resources = descriptors

        async with HttpFetcher(self.settings, transport=self._transport) as fetcher:
            result.outcomes = await fetch_resources(descriptors, paths.assets_dir, fetcher, self.settings)
        if result.failed_resources:
            logger.warning("%d of %d resources could not be fetched", len(result.failed_resources), len(descriptors))

        report = await rewrite_references(page, descriptors)
        if report.missed:
            logger.warning("%d fetched resources could not be rewritten", len(report.missed))

        content = await page.content()
        manifest = build_manifest(result.url, self._clock(), descriptors)

        async with aiofiles.open(paths.index_path, "w", encoding="utf-8") as fh:
            await fh.write(content)
        async with aiofiles.open(paths.manifest_path, "w", encoding="utf-8") as fh:
            await fh.write(manifest.to_json())

        result.manifest = manifest
        logger.info("Snapshot ready at %s", paths.index_path)
