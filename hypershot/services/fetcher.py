"""
Resource fetching: download every discovered resource into the assets
directory concurrently. A failure only ever affects its own descriptor.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import aiofiles
import aiofiles.os
import httpx

from hypershot.config import Settings
from hypershot.errors import FetchFailure
from hypershot.models import FetchOutcome, ResourceDescriptor
from hypershot.services.naming import local_name

logger = logging.getLogger(__name__)


@dataclass
class FetchedResponse:
    headers: httpx.Headers
    stream: AsyncIterator[bytes]


class HttpFetcher:
    """Thin GET-to-byte-stream wrapper over httpx. One attempt per call, no retries."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self._client = httpx.AsyncClient(
            timeout=settings.request_timeout,
            follow_redirects=settings.follow_redirects,
            headers={"User-Agent": settings.user_agent},
            transport=transport,
        )

    async def __aenter__(self) -> HttpFetcher:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @asynccontextmanager
    async def get(self, url: str) -> AsyncIterator[FetchedResponse]:
        try:
            async with self._client.stream("GET", url) as response:
                response.raise_for_status()
                yield FetchedResponse(headers=response.headers, stream=response.aiter_bytes())
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            # ValueError covers hosts httpx cannot encode (bad IDNA labels)
            raise FetchFailure(url, str(exc) or exc.__class__.__name__) from exc


async def _download(
    descriptor: ResourceDescriptor,
    assets_dir: Path,
    fetcher: HttpFetcher,
    settings: Settings,
) -> None:
    async with fetcher.get(descriptor.source_url) as response:
        name = local_name(descriptor.source_url, response.headers, settings.hash_algorithm)
        target = assets_dir / name
        # Identical URLs share a target name; each download lands under its own temp file
        partial = assets_dir / f".{name}.{uuid.uuid4().hex}.part"
        logger.debug("Saving %s to %s", descriptor.source_url, target)
        try:
            async with aiofiles.open(partial, "wb") as fh:
                async for chunk in response.stream:
                    await fh.write(chunk)
            await aiofiles.os.replace(partial, target)
        except BaseException:
            if partial.exists():
                await aiofiles.os.remove(partial)
            raise

    descriptor.mark_fetched(name, f"{settings.assets_dir_name}/{name}")


async def fetch_resource(
    descriptor: ResourceDescriptor,
    assets_dir: Path,
    fetcher: HttpFetcher,
    settings: Settings,
) -> FetchOutcome:
    try:
        await asyncio.wait_for(_download(descriptor, assets_dir, fetcher, settings), settings.resource_timeout)
    except TimeoutError:
        message = f"Timed out after {settings.resource_timeout:g}s"
    except FetchFailure as exc:
        message = exc.message
    except OSError as exc:
        message = str(exc) or exc.__class__.__name__
    except Exception as exc:
        logger.exception("Unexpected error fetching %s", descriptor.source_url)
        message = str(exc) or exc.__class__.__name__
    else:
        return FetchOutcome(descriptor)

    logger.warning("Error fetching %s: %s", descriptor.source_url, message)
    descriptor.mark_failed(message)
    return FetchOutcome(descriptor, error=message)


async def fetch_resources(
    descriptors: Sequence[ResourceDescriptor],
    assets_dir: Path,
    fetcher: HttpFetcher,
    settings: Settings,
) -> list[FetchOutcome]:
    """Fetch all descriptors at once and wait for every one to settle. Output order matches input order."""
    assets_dir.mkdir(parents=True, exist_ok=True)
    outcomes = await asyncio.gather(
        *(fetch_resource(d, assets_dir, fetcher, settings) for d in descriptors)
    )
    failed = sum(1 for o in outcomes if not o.ok)
    logger.info("Fetched %d/%d resources (%d failed)", len(outcomes) - failed, len(outcomes), failed)
    return list(outcomes)
