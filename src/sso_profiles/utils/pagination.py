"""Continuation-token pagination for the SSO portal API."""

from __future__ import annotations

from typing import Any, Callable, Iterator

from sso_profiles.utils.errors import ProtocolError

FetchPage = Callable[[str | None], dict[str, Any]]


def iter_pages(fetch_fn: FetchPage) -> Iterator[dict[str, Any]]:
    """Yield response pages, following nextToken until the provider omits it.

    Args:
        fetch_fn: Called with the continuation token (None for the first page)
                  and returns the decoded response body.
    """
    next_token: str | None = None
    while True:
        page = fetch_fn(next_token)
        yield page

        next_token = page.get("nextToken")
        if not next_token:
            return


def paginate(
    fetch_fn: FetchPage,
    results_key: str,
    required: bool = False,
) -> Iterator[dict[str, Any]]:
    """Lazily yield every item across all pages.

    Args:
        fetch_fn: See iter_pages.
        results_key: The key in each page holding the item list
                     (e.g. "accountList", "roleList").
        required: Raise ProtocolError when a page lacks results_key instead of
                  treating it as empty.
    """
    for page in iter_pages(fetch_fn):
        if results_key not in page:
            if required:
                raise ProtocolError(results_key, "Listing response")
            continue
        yield from page[results_key] or []
