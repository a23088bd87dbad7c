"""Drives a paged listing call to completion."""

from typing import Any, Awaitable, Callable

import structlog

from backstroke_worker.utils.constants import DEFAULT_PAGE_SIZE

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def paginate(
    method: Callable[..., Awaitable[list[Any]]],
    base_args: dict[str, Any],
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[Any]:
    """Call `method` page by page, starting at page 0, and return every item.

    A full page means more may follow. A short page is the last one. A page
    longer than `page_size` should never happen; it is discarded and ends the
    listing. Errors raised by `method` propagate immediately.
    """
    results: list[Any] = []
    page = 0
    while True:
        data = await method(**base_args, page=page, per_page=page_size)
        if len(data) > page_size:
            logger.warning("Listing returned more items than requested, ignoring page", page=page, page_size=page_size, count=len(data))
            break
        results.extend(data)
        if len(data) < page_size:
            break
        page += 1
    logger.debug("Fetched all pages", pages=page + 1, total=len(results))
    return results
