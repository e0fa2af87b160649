"""
DOM reference rewriting: point every successfully fetched reference at its
local copy, inside the live page.

Elements are joined back to descriptors by their position in the discovery
selector's match list. If the element at that position no longer carries the
authored value, the first element whose attribute still equals it is used
instead. A descriptor matching neither is a rewrite miss: it is reported and
skipped, and keeps its local path fields.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from hypershot.models import ResourceDescriptor
from hypershot.runtime.base import PageRuntime

logger = logging.getLogger(__name__)

REWRITTEN = "rewritten"
UNCHANGED = "unchanged"
MISSED = "missed"

REWRITE_SCRIPT = """
(entries) => entries.map((entry) => {
    const attrSelector = (name, value) => '[' + name + '="' + CSS.escape(value) + '"]';
    const origAttr = 'orig-' + entry.attr;
    let elem = null;
    if (entry.selector && entry.index >= 0) {
        elem = document.querySelectorAll(entry.selector)[entry.index] || null;
    }
    if (elem && elem.getAttribute(entry.attr) === entry.path
            && elem.getAttribute(origAttr) === entry.value) {
        return 'unchanged';
    }
    if (!elem || elem.getAttribute(entry.attr) !== entry.value) {
        elem = document.querySelector(attrSelector(entry.attr, entry.value));
    }
    if (!elem) {
        const done = document.querySelector(
            attrSelector(entry.attr, entry.path) + attrSelector(origAttr, entry.value));
        return done ? 'unchanged' : 'missed';
    }
    elem.setAttribute(entry.attr, entry.path);
    elem.setAttribute(origAttr, entry.value);
    // a local copy fails SRI checks and is no longer cross-origin
    elem.removeAttribute('integrity');
    elem.removeAttribute('crossorigin');
    // no fallback to remote image variants
    elem.removeAttribute('srcset');
    return 'rewritten';
})
"""


@dataclass
class RewriteReport:
    rewritten: list[ResourceDescriptor] = field(default_factory=list)
    unchanged: list[ResourceDescriptor] = field(default_factory=list)
    missed: list[ResourceDescriptor] = field(default_factory=list)


def rewrite_payload(descriptor: ResourceDescriptor) -> dict:
    return {
        "selector": descriptor.selector,
        "index": descriptor.element_index,
        "attr": descriptor.attribute_name,
        "value": descriptor.attribute_value,
        "path": descriptor.local_relative_path,
    }


async def rewrite_references(page: PageRuntime, descriptors: Sequence[ResourceDescriptor]) -> RewriteReport:
    report = RewriteReport()
    pending = [d for d in descriptors if d.fetch_error is None and d.local_relative_path]
    if not pending:
        return report

    statuses = await page.evaluate(REWRITE_SCRIPT, [rewrite_payload(d) for d in pending])

    for descriptor, status in zip(pending, statuses):
        if status == REWRITTEN:
            logger.debug(
                "Updating %s %s %s with %s",
                descriptor.tag_kind,
                descriptor.attribute_name,
                descriptor.attribute_value,
                descriptor.local_relative_path,
            )
            report.rewritten.append(descriptor)
        elif status == UNCHANGED:
            report.unchanged.append(descriptor)
        else:
            logger.warning(
                "No element found for %s[%s=%r], leaving it remote",
                descriptor.tag_kind,
                descriptor.attribute_name,
                descriptor.attribute_value,
            )
            report.missed.append(descriptor)

    return report
