from __future__ import annotations

import logging
from pathlib import Path

from fastapi import Depends, FastAPI, Form
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from hypershot.config import settings
from hypershot.models import SnapshotResult
from hypershot.services.snapshotter import Snapshotter
from hypershot.utils import is_valid_url, safe_slug

logger = logging.getLogger(__name__)

storage_dir = Path(settings.base_storage_dir)
storage_dir.mkdir(parents=True, exist_ok=True)

app = FastAPI(title=settings.app_name)
# Snapshots replay straight from disk: /snapshots/<slug>/index.html loads ./assets/*
app.mount("/snapshots", StaticFiles(directory=storage_dir, html=True), name="snapshots")


def get_snapshotter() -> Snapshotter:
    return Snapshotter(settings)


def result_payload(result: SnapshotResult) -> dict:
    slug = result.folder.name
    return {
        "url": result.url,
        "folder": str(result.folder),
        "index": f"/snapshots/{slug}/{result.index_path.name}",
        "manifest": f"/snapshots/{slug}/{result.manifest_path.name}",
        "complete": result.complete,
        "error": str(result.error) if result.error else None,
        "resources": len(result.resources),
        "failed": [r.to_dict() for r in result.failed_resources],
    }


@app.post("/snapshot")
async def do_snapshot(url: str = Form(...), snapshotter: Snapshotter = Depends(get_snapshotter)):
    if not is_valid_url(url):
        return JSONResponse({"error": f"Invalid URL: {url}"}, status_code=400)

    folder = storage_dir / safe_slug(url)
    result = await snapshotter.snapshot(url, folder)
    if not result.complete:
        logger.warning("Snapshot of %s incomplete: %s", url, result.error)

    return JSONResponse(result_payload(result))
