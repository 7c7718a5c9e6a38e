"""Request sequencing and pagination cursors for the drill-down table."""

from __future__ import annotations

from dataclasses import dataclass

from .config import DEFAULT_PAGE_SIZE


@dataclass(frozen=True, slots=True)
class RequestToken:
    """Handle captured when a fetch is issued.

    A token is stale once a newer request has been issued on the same
    sequencer; its result must then be discarded. ``cancelled`` is the same
    signal under the name a real abort would use.
    """

    sequence: int
    sequencer: RequestSequencer

    @property
    def is_stale(self) -> bool:
        return self.sequencer.is_stale(self)

    @property
    def cancelled(self) -> bool:
        return self.is_stale


class RequestSequencer:
    def __init__(self):
        self._counter = 0

    @property
    def latest(self) -> int:
        return self._counter

    def issue(self) -> RequestToken:
        self._counter += 1
        return RequestToken(self._counter, self)

    def is_stale(self, token: RequestToken) -> bool:
        return token.sequencer is not self or token.sequence != self._counter

    def invalidate(self) -> None:
        """Make every outstanding token stale without issuing a new request."""
        self._counter += 1


@dataclass(slots=True)
class PartitionCursor:
    """Offset and more-data flag for one partition of the case list."""

    page_size: int = DEFAULT_PAGE_SIZE
    offset: int = 0
    has_more: bool = True

    def reset(self) -> None:
        self.offset = 0
        self.has_more = True

    @property
    def next_offset(self) -> int:
        return self.offset + self.page_size

    def record_page(self, offset: int, row_count: int) -> bool:
        """Commit a page loaded at ``offset``; a short page signals exhaustion."""
        self.offset = offset
        self.has_more = row_count == self.page_size
        return self.has_more
