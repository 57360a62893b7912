"""
Request Slots

Each logical AI result (the AI fill, the category suggestion, the
forecast, the advisor answer) lives in its own slot. Starting a new
request for a slot invalidates interest in any earlier request for the
same slot: the earlier call is not aborted, its result is simply
discarded when it arrives.

Implementation: a monotonically increasing sequence number per slot.
Only the result whose ticket matches the latest issued ticket is applied,
so the winner is decided by input recency, not by response arrival order.
Different slots never interfere with each other.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from finsight.models.transaction import AIRequestStatus, Category, SuggestionOutcome


class RequestSlot:
    """Sequence-numbered slot for one kind of AI result."""

    def __init__(self, name: str):
        self.name = name
        self._latest = 0
        self.status = AIRequestStatus.SKIPPED

    @property
    def latest_ticket(self) -> int:
        return self._latest

    def begin(self) -> int:
        """Issue a new ticket, superseding every earlier one."""
        self._latest += 1
        self.status = AIRequestStatus.PENDING
        return self._latest

    def is_current(self, ticket: int) -> bool:
        return ticket == self._latest

    def finish(self, ticket: int, status: AIRequestStatus) -> bool:
        """
        Record the outcome of a request.

        Returns False (and leaves the slot state alone) if the ticket
        has been superseded.
        """
        if not self.is_current(ticket):
            return False
        self.status = status
        return True


class SuggestionSlot:
    """
    Debounced category suggestion.

    A request waits for the quiet period; if another request arrived in
    the meantime, it stands down. Input no longer than `min_length`
    (after trimming) never reaches the backend. A result that comes back
    after a newer request was issued is discarded.
    """

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[Optional[Category]]],
        quiet_period: float = 0.8,
        min_length: int = 3,
        on_superseded: Optional[Callable[[str, int], None]] = None,
    ):
        self._fetch = fetch
        self._quiet_period = quiet_period
        self._min_length = min_length
        self._on_superseded = on_superseded
        self.slot = RequestSlot("category_suggestion")
        self.current: Optional[Category] = None

    async def request(self, text: str) -> SuggestionOutcome:
        ticket = self.slot.begin()

        if self._quiet_period > 0:
            await asyncio.sleep(self._quiet_period)
        if not self.slot.is_current(ticket):
            return self._superseded(ticket)

        if len(text.strip()) <= self._min_length:
            self.slot.finish(ticket, AIRequestStatus.SKIPPED)
            return SuggestionOutcome(status=AIRequestStatus.SKIPPED)

        category = await self._fetch(text)
        if not self.slot.is_current(ticket):
            return self._superseded(ticket)

        status = AIRequestStatus.SUCCESS if category is not None else AIRequestStatus.FAILURE
        self.slot.finish(ticket, status)
        self.current = category
        return SuggestionOutcome(status=status, category=category)

    def _superseded(self, ticket: int) -> SuggestionOutcome:
        if self._on_superseded is not None:
            self._on_superseded(self.slot.name, ticket)
        return SuggestionOutcome(status=AIRequestStatus.SUPERSEDED)
