from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ElementInfo:
    """Serializable view of a DOM element returned by a page query."""

    tag: str
    index: int
    attributes: dict[str, str] = field(default_factory=dict)
    # URL-valued properties (href, src) as resolved by the page
    resolved: dict[str, str] = field(default_factory=dict)


class PageRuntime(ABC):
    """A loaded page the snapshot pipeline can query, mutate and dump."""

    url: str

    @abstractmethod
    async def query_all(self, selector: str) -> list[ElementInfo]:
        raise NotImplementedError

    @abstractmethod
    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run `script` (a JS function source) against the live DOM with a serializable `arg`."""
        raise NotImplementedError

    @abstractmethod
    async def content(self) -> str:
        raise NotImplementedError
