from __future__ import annotations

import asyncio
from datetime import date
from enum import Enum
from math import ceil
from typing import Any, Awaitable, Callable, Generic, Optional, Tuple, TypeVar

from api.client import ApiError
from api.models import ListQuery, PageResult
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")


class LoadState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


def total_pages(total: int, page_size: int) -> int:
    return ceil(max(total, 0) / page_size)


def clamp_page(page: int, total: int, page_size: int) -> int:
    return max(1, min(page, max(total_pages(total, page_size), 1)))


class Debouncer:
    """
    Calls `callback(value)` once the pushes have been quiet for `delay`
    seconds, with the last value pushed. Needs a running event loop.
    """

    def __init__(self, delay: float, callback: Callable[[Any], Any]) -> None:
        self.delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def push(self, value) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, value)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, value) -> None:
        self._handle = None
        self._callback(value)


class ListPageController(Generic[T]):
    """
    Query, loading state and rows of one list page.

    States: IDLE -> LOADING -> LOADED | ERROR, and back to LOADING whenever
    the query changes. Every transition is reported through `on_change`.
    Only the most recent load may touch the state; results of older loads
    are dropped when they arrive.
    """

    def __init__(
        self,
        fetch: Callable[[ListQuery], Awaitable[PageResult[T]]],
        remove: Optional[Callable[[T], Awaitable[None]]] = None,
        query: Optional[ListQuery] = None,
        on_change: Optional[Callable[["ListPageController[T]"], None]] = None,
    ) -> None:
        self._fetch = fetch
        self._remove = remove
        self.query = query or ListQuery()
        self.on_change = on_change

        self.state = LoadState.IDLE
        self.items: Tuple[T, ...] = ()
        self.total = 0
        self.error: Optional[ApiError] = None
        self._seq = 0

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.query.page_size)

    @property
    def is_loading(self) -> bool:
        return self.state is LoadState.LOADING

    @property
    def has_prev(self) -> bool:
        return self.query.page > 1

    @property
    def has_next(self) -> bool:
        return self.query.page < self.total_pages

    def _emit(self) -> None:
        if self.on_change:
            self.on_change(self)

    async def load(self) -> bool:
        """
        Fetch the current query. Returns False when the result was
        superseded by a newer load and therefore discarded.

        ApiError lands in the ERROR state. Any other exception also leaves
        the page in ERROR and is re-raised.
        """
        self._seq += 1
        seq = self._seq
        query = self.query
        self.state = LoadState.LOADING
        self.error = None
        self._emit()

        try:
            result = await self._fetch(query)
        except ApiError as e:
            if seq != self._seq:
                return False
            _logger.info(f"list load failed: {e!r}")
            self.state = LoadState.ERROR
            self.error = e
            self._emit()
            return True
        except Exception:
            if seq == self._seq:
                self.state = LoadState.ERROR
                self._emit()
            raise

        if seq != self._seq:
            _logger.debug(f"dropping stale page {query.page} (load {seq} < {self._seq})")
            return False

        self.items = tuple(result.items)
        self.total = result.total

        # rows went away since the page was picked, fall back to the last page
        last_page = clamp_page(query.page, self.total, query.page_size)
        if last_page != query.page:
            _logger.debug(f"page {query.page} is past the end, loading page {last_page}")
            self.query = query.with_changes(page=last_page)
            return await self.load()

        self.state = LoadState.LOADED
        self._emit()
        return True

    def _replace_query(self, query: ListQuery) -> bool:
        if query == self.query:
            return False
        self.query = query
        return True

    # query setters return True when a reload is due

    def set_search(self, term: str) -> bool:
        return self._replace_query(self.query.with_changes(search=term.strip()))

    def set_date_range(self, start: Optional[date], end: Optional[date]) -> bool:
        # ListQuery raises ValidationError for start > end
        return self._replace_query(
            self.query.with_changes(start_date=start, end_date=end)
        )

    def set_filter(self, key: str, value: Optional[str]) -> bool:
        return self._replace_query(self.query.with_filter(key, value))

    def set_page_size(self, page_size: int) -> bool:
        return self._replace_query(self.query.with_changes(page_size=page_size))

    def set_page(self, page: int) -> bool:
        page = clamp_page(page, self.total, self.query.page_size)
        return self._replace_query(self.query.with_changes(page=page))

    def clear_filters(self) -> bool:
        return self._replace_query(
            ListQuery(page_size=self.query.page_size, search=self.query.search)
        )

    async def apply(self, **changes) -> bool:
        """
        Convenience for callers without their own scheduling: replace query
        fields and reload if anything changed.
        """
        page = changes.pop("page", None)
        changed = False
        if changes:
            changed = self._replace_query(self.query.with_changes(**changes))
        if page is not None:
            changed = self.set_page(page) or changed
        if changed:
            await self.load()
        return changed

    async def delete(self, record: T, confirm: Callable[[], Awaitable[bool]]) -> bool:
        """
        Ask `confirm`; on yes remove the record and reload the current page.
        The reload steps back a page when the last row of the last page went
        away. ApiError from the removal propagates to the caller.
        """
        if self._remove is None:
            raise RuntimeError("this list has no delete operation")
        if not await confirm():
            return False

        await self._remove(record)
        await self.load()
        return True
