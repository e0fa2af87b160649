from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

from hypershot.errors import PipelineFailure

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass
class ResourceDescriptor:
    """One resource reference discovered in the page and its fetch outcome."""

    tag_kind: str               # DOM node name: LINK, SCRIPT, IMG
    attribute_name: str         # href or src
    attribute_value: str        # authored value, never normalised
    source_url: str             # absolute URL as resolved by the browser
    selector: str = ""          # discovery selector the element matched
    element_index: int = -1     # position within that selector's matches
    local_file_name: str = ""
    local_relative_path: str = ""
    fetch_error: str | None = None

    @property
    def settled(self) -> bool:
        return self.fetch_error is not None or bool(self.local_file_name and self.local_relative_path)

    def mark_fetched(self, file_name: str, relative_path: str) -> None:
        self.local_file_name = file_name
        self.local_relative_path = relative_path
        self.fetch_error = None

    def mark_failed(self, message: str) -> None:
        self.local_file_name = ""
        self.local_relative_path = ""
        self.fetch_error = message or "unknown error"

    def to_dict(self) -> dict:
        data = {
            "type": self.tag_kind,
            "attr": self.attribute_name,
            "value": self.attribute_value,
            "url": self.source_url,
            "file": self.local_file_name,
            "path": self.local_relative_path,
        }
        if self.fetch_error is not None:
            data["error"] = self.fetch_error
        return data


@dataclass(frozen=True)
class FetchOutcome:
    descriptor: ResourceDescriptor
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SnapshotManifest:
    source_url: str
    captured_at: datetime
    resources: tuple[ResourceDescriptor, ...] = ()

    @property
    def timestamp_ms(self) -> int:
        return (self.captured_at.astimezone(UTC) - EPOCH) // timedelta(milliseconds=1)

    def to_dict(self) -> dict:
        return {
            "url": self.source_url,
            "timestamp": self.timestamp_ms,
            "resources": [r.to_dict() for r in self.resources],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=4, ensure_ascii=False)


@dataclass
class SnapshotResult:
    """What a snapshot run produced. The index path is always set, even on failure."""

    url: str
    folder: Path
    index_path: Path
    manifest_path: Path
    manifest: SnapshotManifest | None = None
    error: PipelineFailure | None = None
    resources: list[ResourceDescriptor] = field(default_factory=list)
    outcomes: list[FetchOutcome] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.error is None and self.manifest is not None

    @property
    def failed_resources(self) -> list[ResourceDescriptor]:
        return [o.descriptor for o in self.outcomes if not o.ok]
