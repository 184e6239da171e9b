"""
Pagination helpers.

v1 list endpoints use cursors (`has_more` + `starting_after`), v2 list
endpoints return a `next_page_url` carrying a `page_token`.
"""

from typing import Any, AsyncIterator, Mapping
from urllib.parse import parse_qs, urlsplit

from loguru import logger

from stripe_sdk.engine import Sdk


def extract_page_token(url: str | None) -> str | None:
    """
    Return the `page_token` query value of a next-page URL.

    Missing, malformed or token-less URLs all mean "no more pages" and
    return None.
    """
    if not url or not isinstance(url, str):
        return None
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None

    values = parse_qs(parts.query).get("page_token")
    return values[0] if values else None


def _next_page_args(page: Any, args: dict[str, Any]) -> dict[str, Any] | None:
    if not isinstance(page, Mapping):
        return None

    token = extract_page_token(page.get("next_page_url"))
    if token:
        return {**args, "page_token": token}

    data = page.get("data") or []
    if page.get("has_more") and data:
        last_id = data[-1].get("id") if isinstance(data[-1], Mapping) else None
        if last_id:
            return {**args, "starting_after": last_id}
    return None


async def paginate(
    sdk: Sdk,
    operation: str,
    args: Mapping[str, Any] | None = None,
    max_pages: int | None = None,
) -> AsyncIterator[Any]:
    """
    Yield every item of a list operation, page after page.

    Usage:
        async for event in paginate(sdk, "v2_list_events", {"limit": 50}):
            ...
    """
    page_args: dict[str, Any] | None = dict(args or {})
    pages = 0

    while page_args is not None:
        page = await sdk.invoke(operation, page_args)
        pages += 1

        items = page.get("data", []) if isinstance(page, Mapping) else []
        for item in items:
            yield item

        if max_pages is not None and pages >= max_pages:
            logger.debug(f"{operation}: stopped after {pages} pages")
            return

        page_args = _next_page_args(page, page_args)
