"""Paginated window over the remote product catalog.

``PaginatedCatalog`` owns the loaded groups for the current query and
sequences page requests. Every request is tagged with the generation that
was current when it was issued; a response is applied only if that
generation is still current, so a slow answer for a superseded query (or
for a closed picker) can never overwrite newer state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from upsell.config import PAGE_SIZE
from upsell.errors import ErrorKind
from upsell.models import CatalogGroup

logger = logging.getLogger(__name__)

FetchPage = Callable[[str, int, int], Awaitable[Sequence[CatalogGroup]]]

FIRST_PAGE = 1


@dataclass(frozen=True)
class PaginationState:
    """Immutable snapshot handed to consumers after every transition."""

    query: str
    page_cursor: int
    loaded_groups: tuple[CatalogGroup, ...]
    is_loading: bool
    has_more: bool
    last_error: ErrorKind | None = None
    error_message: str | None = None
    # Bumped whenever loaded_groups or has_more change.
    structure_version: int = 0


class PaginatedCatalog:
    """Load catalog pages on demand for one query at a time."""

    def __init__(
        self,
        fetch_page: FetchPage,
        *,
        page_size: int = PAGE_SIZE,
        on_change: Callable[[PaginationState], None] | None = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._fetch_page = fetch_page
        self._page_size = page_size
        self._on_change = on_change
        self._generation = 0
        self._structure_version = 0
        self.discarded_responses = 0
        self._reset_fields("")

    def _reset_fields(self, query: str) -> None:
        self._query = query
        self._page_cursor = FIRST_PAGE
        self._loaded: tuple[CatalogGroup, ...] = ()
        self._seen_ids: set[int] = set()
        self._is_loading = False
        self._has_more = True
        self._last_error: ErrorKind | None = None
        self._error_message: str | None = None
        self._closed = False
        self._generation += 1
        self._structure_version += 1

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def state(self) -> PaginationState:
        return PaginationState(
            query=self._query,
            page_cursor=self._page_cursor,
            loaded_groups=self._loaded,
            is_loading=self._is_loading,
            has_more=self._has_more,
            last_error=self._last_error,
            error_message=self._error_message,
            structure_version=self._structure_version,
        )

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.state)

    def reset(self, query: str = "") -> None:
        """Drop loaded pages and errors and start over for ``query``."""
        self._reset_fields(query)
        self._notify()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Forget everything and stop paging until the next ``set_query``.

        Any request still in flight is ignored.
        """
        self._reset_fields("")
        self._has_more = False
        self._closed = True
        self._notify()

    async def set_query(self, query: str) -> bool:
        """Reset to ``query`` and load its first page.

        Consumers observe the reset and the start of the load as one
        transition (empty and loading), never an idle empty state.
        """
        self._reset_fields(query)
        return await self.load_next_page()

    async def retry(self) -> bool:
        """Try the failed page again; the cursor did not advance on failure."""
        return await self.load_next_page()

    async def load_next_page(self) -> bool:
        """Fetch the page at the cursor; return True if a response was applied."""
        if self._is_loading or not self._has_more or self._closed:
            return False

        generation = self._generation
        query = self._query
        page = self._page_cursor
        self._is_loading = True
        self._last_error = None
        self._error_message = None
        self._notify()

        try:
            fetched = list(await self._fetch_page(query, page, self._page_size))
        except Exception as exc:
            if generation != self._generation:
                self._discard(query, page, generation)
                return False
            logger.warning("Catalog fetch failed query=%r page=%d: %s", query, page, exc)
            self._is_loading = False
            self._last_error = ErrorKind.FETCH_FAILURE
            self._error_message = str(exc) or exc.__class__.__name__
            self._notify()
            return False

        if generation != self._generation:
            self._discard(query, page, generation)
            return False

        fresh: list[CatalogGroup] = []
        for group in fetched:
            if group.remote_id in self._seen_ids:
                continue
            self._seen_ids.add(group.remote_id)
            fresh.append(group)
        if len(fresh) != len(fetched):
            logger.debug("Dropped %d duplicate groups on page %d", len(fetched) - len(fresh), page)

        self._loaded = self._loaded + tuple(fresh)
        self._page_cursor = page + 1
        self._has_more = len(fetched) == self._page_size
        self._is_loading = False
        self._structure_version += 1
        self._notify()
        return True

    def _discard(self, query: str, page: int, generation: int) -> None:
        self.discarded_responses += 1
        logger.debug(
            "%s: dropped response query=%r page=%d generation=%d current=%d",
            ErrorKind.STALE_RESPONSE.value,
            query,
            page,
            generation,
            self._generation,
        )
