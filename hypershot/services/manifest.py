from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from hypershot.models import ResourceDescriptor, SnapshotManifest


def build_manifest(
    source_url: str,
    captured_at: datetime,
    resources: Iterable[ResourceDescriptor],
) -> SnapshotManifest:
    """Assemble the build.json record. No I/O; the input sequence is copied, not modified."""
    return SnapshotManifest(source_url=source_url, captured_at=captured_at, resources=tuple(resources))
