"""Synchronises rendered pages with Notion.

Each source file maps to one child page of a configured parent page. The
page is created once, and its whole content is replaced whenever the source
file is newer than the timestamp recorded on the page. All API calls go
through :meth:`NotionAdapter._with_retry`.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, TypeVar

from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from openapi_notion.errors import RetryExhaustedError, TransientRemoteError
from openapi_notion.notion.builder import MAX_CHILDREN, PAGE_ICON, Block, chunked
from openapi_notion.notion.client import RemoteStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROP_GENERATED = "OpenAPI-Generated"

MAX_ATTEMPTS = 25
BACKOFF_START = 1
BACKOFF_CAP = 10


class SyncStatus(Enum):
    UP_TO_DATE = "up-to-date"
    UPDATED = "updated"


@dataclass
class SyncResult:
    page_id: str
    status: SyncStatus
    created: bool = False
    blocks_written: int = 0


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class NotionAdapter:
    """Page-level operations on top of a :class:`RemoteStore`.

    ``sleep`` and ``clock`` are injectable so tests run without waiting.
    """

    def __init__(
        self,
        store: RemoteStore,
        max_attempts: int = MAX_ATTEMPTS,
        backoff_start: float = BACKOFF_START,
        backoff_cap: float = BACKOFF_CAP,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.max_attempts = max_attempts
        self.backoff_start = backoff_start
        self.backoff_cap = backoff_cap
        self.sleep = sleep
        self.clock = clock

    def sync(
        self,
        parent_id: str,
        title: str,
        blocks: list[Block],
        modified: datetime,
        force: bool = False,
    ) -> SyncResult:
        """Bring the page titled *title* under *parent_id* up to date with *blocks*."""
        page_id, created = self.get_or_create_page(parent_id, title)

        if not created and not force and self.is_up_to_date(page_id, modified):
            logger.info("Page '%s' is up to date", title)
            return SyncResult(page_id, SyncStatus.UP_TO_DATE)

        logger.info("Page '%s' not up to date -> Updating", title)
        if not created:
            self.delete_page_contents(page_id, title)
        logger.info("Writing template to page '%s'", title)
        saved = self.write_blocks(page_id, blocks)
        logger.info("Added %d blocks to page '%s'", len(saved), title)
        self.mark_generated(page_id, self.clock())
        return SyncResult(page_id, SyncStatus.UPDATED, created=created, blocks_written=len(saved))

    def get_or_create_page(self, parent_id: str, title: str) -> tuple[str, bool]:
        """Return ``(page_id, created)`` for the child page titled *title*."""
        for block in self.iter_children(parent_id):
            if block.get("type") == "child_page" and block["child_page"].get("title") == title:
                return block["id"], False

        logger.info("Creating Page '%s'", title)
        page = self._with_retry(self.store.create_page, parent_id, title, PAGE_ICON)
        return page["id"], True

    def iter_children(self, block_id: str):
        """Yield every child of *block_id*, following pagination cursors."""
        cursor = None
        while True:
            response = self._with_retry(self.store.list_block_children, block_id, cursor)
            yield from response.get("results", [])
            cursor = response.get("next_cursor")
            if not response.get("has_more") or not cursor:
                return

    def get_generated_time(self, page_id: str) -> datetime | None:
        page = self._with_retry(self.store.retrieve_page, page_id)
        prop = (page.get("properties") or {}).get(PROP_GENERATED) or {}
        start = (prop.get("date") or {}).get("start")
        if not start:
            return None
        return _as_utc(datetime.fromisoformat(start.replace("Z", "+00:00")))

    def is_up_to_date(self, page_id: str, modified: datetime) -> bool:
        generated = self.get_generated_time(page_id)
        if generated is None:
            return False
        # second precision: Notion dates and some filesystems drop fractions
        return int(generated.timestamp()) >= int(_as_utc(modified).timestamp())

    def delete_page_contents(self, page_id: str, title: str = "") -> int:
        """Delete every child block of the page; returns how many were removed."""
        logger.info("Deleting contents of page '%s'", title or page_id)
        deleted = 0
        while True:
            response = self._with_retry(self.store.list_block_children, page_id, None)
            for block in response.get("results", []):
                logger.debug("Deleting block %s from page %s", block["id"], title or page_id)
                self._with_retry(self.store.delete_block, block["id"])
                deleted += 1
            if not response.get("has_more") or not response.get("results"):
                return deleted

    def write_blocks(self, page_id: str, blocks: list[Block]) -> list[Block]:
        """Append *blocks* in batches no larger than the API child limit."""
        saved = []
        for chunk in chunked(blocks, MAX_CHILDREN):
            response = self._with_retry(self.store.append_block_children, page_id, chunk)
            saved.extend(response.get("results", []))
        return saved

    def mark_generated(self, page_id: str, when: datetime) -> None:
        logger.info("Updating Page '%s' with generation time %s", page_id, when.isoformat())
        properties = {PROP_GENERATED: {"date": {"start": _as_utc(when).isoformat()}}}
        self._with_retry(self.store.update_page, page_id, properties)

    # -- retry ----------------------------------------------------------------

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        logger.warning(
            "Received status=%s, waiting for %s seconds",
            getattr(error, "status", "?"),
            retry_state.next_action.sleep if retry_state.next_action else "?",
        )

    def _with_retry(self, fn: Callable[..., T], *args: Any) -> T:
        """Call *fn*, retrying transient errors with capped exponential backoff.

        Waits 1, 2, 4, 8, 10, 10, ... seconds (no jitter). Non-transient
        errors propagate immediately.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_start, max=self.backoff_cap),
            retry=retry_if_exception_type(TransientRemoteError),
            sleep=self.sleep,
            before_sleep=self._log_retry,
        )
        try:
            return retrying(fn, *args)
        except RetryError as e:
            last = e.last_attempt.exception()
            logger.error("Request failed after %d attempts: %s", self.max_attempts, last)
            raise RetryExhaustedError(self.max_attempts, last) from last
