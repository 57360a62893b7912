"""
Shared test fixtures.

No real API calls in tests: the AI backend is replaced by scripted
gateways, and storage by in-memory implementations.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from finsight.agents import AIGateway, ChatTurn, GatewayResponse
from finsight.audit import AuditLogger
from finsight.models.audit import AuditEvent
from finsight.models.transaction import Transaction, TransactionType
from finsight.services.storage import AuditStorageInterface, InMemoryStorage


class ScriptedGateway(AIGateway):
    """Replies from a fixed script, one entry per call."""

    def __init__(self, replies=None, error: Optional[Exception] = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: list[dict] = []

    async def generate(
        self,
        prompt: str,
        *,
        response_schema: Optional[dict] = None,
        use_search: bool = False,
        history: Optional[list[ChatTurn]] = None,
    ) -> GatewayResponse:
        self.calls.append({
            "prompt": prompt,
            "response_schema": response_schema,
            "use_search": use_search,
            "history": list(history or []),
        })
        if self.error is not None:
            raise self.error
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, GatewayResponse):
            return reply
        return GatewayResponse(text=reply)


class ManualGateway(AIGateway):
    """Each call blocks until the test resolves its future."""

    def __init__(self):
        self.pending: list[asyncio.Future] = []

    async def generate(
        self,
        prompt: str,
        *,
        response_schema: Optional[dict] = None,
        use_search: bool = False,
        history: Optional[list[ChatTurn]] = None,
    ) -> GatewayResponse:
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future

    def reply(self, index: int, text: str) -> None:
        self.pending[index].set_result(GatewayResponse(text=text))


class RecordingAuditStorage(AuditStorageInterface):
    """Keeps audit events in memory."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[dict]:
        return [e.to_log_dict() for e in reversed(self.events)][:limit]

    def event_types(self) -> list[str]:
        return [e.event_type.value for e in self.events]


def make_transaction(
    amount,
    day: date,
    category: str = "Food & Drink",
    type: TransactionType = TransactionType.EXPENSE,
    description: str = "Test",
    id: Optional[str] = None,
) -> Transaction:
    fields = dict(
        description=description,
        amount=Decimal(str(amount)),
        date=day,
        category=category,
        type=type,
    )
    if id is not None:
        fields["id"] = id
    return Transaction(**fields)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_storage():
    return RecordingAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)
