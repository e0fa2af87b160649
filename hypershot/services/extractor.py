"""
Resource discovery: turn the loaded page's stylesheet, script and image
references into ResourceDescriptors.

Discovery is best effort, not exhaustive. Candidates without the expected
attribute, with an unparsable URL or with a non-http scheme (data:,
javascript:, blob:) are dropped without being recorded anywhere.
"""
from __future__ import annotations

import logging

from hypershot.config import Settings
from hypershot.models import ResourceDescriptor
from hypershot.runtime.base import ElementInfo, PageRuntime
from hypershot.utils import is_http_url

logger = logging.getLogger(__name__)


def url_attribute(tag: str) -> str:
    return "href" if tag.upper() == "LINK" else "src"


def to_descriptor(element: ElementInfo, selector: str) -> ResourceDescriptor | None:
    tag = element.tag.upper()
    attr = url_attribute(tag)
    value = element.attributes.get(attr)
    resolved = element.resolved.get(attr)

    if value is None or not resolved:
        logger.debug("Skipping %s #%d: no %s", tag, element.index, attr)
        return None
    if not is_http_url(resolved):
        logger.debug("Filtering %s removed", resolved[:80])
        return None

    logger.debug("Parsing %s with %s = %s", tag, attr, resolved)
    return ResourceDescriptor(
        tag_kind=tag,
        attribute_name=attr,
        attribute_value=value,
        source_url=resolved,
        selector=selector,
        element_index=element.index,
    )


async def extract_descriptors(page: PageRuntime, settings: Settings) -> list[ResourceDescriptor]:
    selector = settings.resource_selector
    descriptors: list[ResourceDescriptor] = []
    for element in await page.query_all(selector):
        descriptor = to_descriptor(element, selector)
        if descriptor is not None:
            descriptors.append(descriptor)

    logger.info("Discovered %d resources", len(descriptors))
    return descriptors
