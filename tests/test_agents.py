"""
Tests for the AI agents and request slots.

Gateways are scripted; nothing here talks to a real model.
"""

import asyncio
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from conftest import ManualGateway, ScriptedGateway
from finsight.agents import (
    AdvisorAgent,
    CategorySuggestionAgent,
    ChatTurn,
    ForecastAgent,
    GatewayError,
    GatewayResponse,
    RequestSlot,
    SuggestionSlot,
    TransactionParseAgent,
)
from finsight.agents.gateway import _extract_citations
from finsight.ledger import sample_transactions
from finsight.models import AIRequestStatus, Category, RiskFactor, SearchSource
from finsight.reconciler import MalformedResponseError


class TestTransactionParseAgent:
    """Tests for natural language transaction parsing."""

    def test_prompt_lists_every_category(self):
        prompt = TransactionParseAgent(ScriptedGateway()).build_prompt("coffee 4")
        assert '"coffee 4"' in prompt
        for value in Category.values():
            assert value in prompt

    def test_parse_extracts_json_and_sends_schema(self):
        gateway = ScriptedGateway(['Here: {"amount": 4, "category": "Food & Drink"}'])
        payload = asyncio.run(TransactionParseAgent(gateway).parse("coffee 4"))

        assert payload == {"amount": 4, "category": "Food & Drink"}
        assert gateway.calls[0]["response_schema"]["type"] == "object"
        assert gateway.calls[0]["use_search"] is False

    def test_parse_malformed(self):
        gateway = ScriptedGateway(["no idea, sorry"])
        with pytest.raises(MalformedResponseError):
            asyncio.run(TransactionParseAgent(gateway).parse("coffee 4"))

    def test_parse_gateway_failure(self):
        gateway = ScriptedGateway(error=GatewayError("offline"))
        with pytest.raises(GatewayError):
            asyncio.run(TransactionParseAgent(gateway).parse("coffee 4"))


class TestCategorySuggestionAgent:
    """Tests for single-token category suggestion."""

    def test_exact_reply(self):
        gateway = ScriptedGateway(["  Health \n"])
        assert asyncio.run(CategorySuggestionAgent(gateway).suggest("pharmacy")) == Category.HEALTH

    def test_chatty_reply_is_no_suggestion(self):
        gateway = ScriptedGateway(["I think this is Health."])
        assert asyncio.run(CategorySuggestionAgent(gateway).suggest("pharmacy")) is None

    def test_empty_reply(self):
        gateway = ScriptedGateway([""])
        assert asyncio.run(CategorySuggestionAgent(gateway).suggest("pharmacy")) is None


class TestForecastAgent:
    """Tests for the forecast agent."""

    def test_prompt_includes_recent_history_only(self):
        agent = ForecastAgent(ScriptedGateway(), history_limit=2)
        prompt = agent.build_prompt(sample_transactions(), date(2024, 7, 1))

        assert "Monthly Rent" in prompt
        assert "Grocery Store Run" in prompt
        assert "Gas Station" not in prompt
        assert "assume today is 2024-07-01" in prompt

    def test_forecast_uses_search_and_citations(self):
        sources = [SearchSource(title="Inflation", uri="https://example.com/i")]
        reply = GatewayResponse(
            text='```json\n{"predictedSpendNextMonth": 1400, "riskFactor": "High", '
                 '"advice": ["Trim dining"]}\n```',
            citations=sources,
        )
        gateway = ScriptedGateway([reply])

        forecast = asyncio.run(ForecastAgent(gateway).forecast(sample_transactions(), date(2024, 7, 1)))
        assert gateway.calls[0]["use_search"] is True
        assert forecast.predicted_spend_next_month == Decimal("1400")
        assert forecast.risk_factor == RiskFactor.HIGH
        assert forecast.search_sources == sources


class TestAdvisorAgent:
    """Tests for the advisor agent."""

    def test_first_question_gets_preamble(self):
        gateway = ScriptedGateway(["Save 20%."])
        reply = asyncio.run(AdvisorAgent(gateway).ask("How much should I save?"))

        assert reply.text == "Save 20%."
        assert gateway.calls[0]["prompt"].startswith(AdvisorAgent.SYSTEM_PREAMBLE)
        assert gateway.calls[0]["prompt"].endswith("How much should I save?")

    def test_follow_up_passes_history(self):
        gateway = ScriptedGateway(["Yes."])
        history = [ChatTurn(role="user", text="Hi"), ChatTurn(role="model", text="Hello")]
        asyncio.run(AdvisorAgent(gateway).ask("Really?", history=history, use_search=True))

        assert gateway.calls[0]["prompt"] == "Really?"
        assert gateway.calls[0]["history"] == history
        assert gateway.calls[0]["use_search"] is True


class TestGeminiCitations:
    """Tests for reading grounding metadata off a raw response."""

    def test_extracts_web_chunks(self):
        response = SimpleNamespace(candidates=[SimpleNamespace(
            grounding_metadata=SimpleNamespace(grounding_chunks=[
                SimpleNamespace(web=SimpleNamespace(title="BLS", uri="https://bls.gov")),
                SimpleNamespace(web=None),
                SimpleNamespace(web=SimpleNamespace(title="", uri="https://x")),
            ])
        )])
        assert _extract_citations(response) == [SearchSource(title="BLS", uri="https://bls.gov")]

    def test_no_candidates(self):
        assert _extract_citations(SimpleNamespace(candidates=[])) == []
        assert _extract_citations(SimpleNamespace()) == []


class TestRequestSlot:
    """Tests for sequence-numbered slots."""

    def test_latest_ticket_wins(self):
        slot = RequestSlot("forecast")
        first = slot.begin()
        second = slot.begin()

        assert slot.status == AIRequestStatus.PENDING
        assert not slot.is_current(first)
        assert slot.finish(first, AIRequestStatus.SUCCESS) is False
        assert slot.status == AIRequestStatus.PENDING
        assert slot.finish(second, AIRequestStatus.FAILURE) is True
        assert slot.status == AIRequestStatus.FAILURE

    def test_slots_are_independent(self):
        fill = RequestSlot("ai_fill")
        suggestion = RequestSlot("category_suggestion")
        ticket = fill.begin()
        suggestion.begin()
        suggestion.begin()
        assert fill.is_current(ticket)


class TestSuggestionSlot:
    """Tests for the debounced category suggestion."""

    def test_short_input_never_reaches_backend(self):
        calls = []

        async def fetch(text):
            calls.append(text)
            return Category.HEALTH

        slot = SuggestionSlot(fetch, quiet_period=0, min_length=3)
        outcome = asyncio.run(slot.request("  abc  "))

        assert outcome.status == AIRequestStatus.SKIPPED
        assert calls == []

    def test_success(self):
        async def fetch(text):
            return Category.HEALTH

        slot = SuggestionSlot(fetch, quiet_period=0)
        outcome = asyncio.run(slot.request("pharmacy"))

        assert outcome.status == AIRequestStatus.SUCCESS
        assert outcome.category == Category.HEALTH
        assert slot.current == Category.HEALTH

    def test_no_suggestion_is_failure(self):
        async def fetch(text):
            return None

        slot = SuggestionSlot(fetch, quiet_period=0)
        assert asyncio.run(slot.request("pharmacy")).status == AIRequestStatus.FAILURE

    def test_typing_burst_fetches_once(self):
        calls = []
        superseded = []

        async def fetch(text):
            calls.append(text)
            return Category.SHOPPING

        slot = SuggestionSlot(
            fetch,
            quiet_period=0.01,
            on_superseded=lambda name, ticket: superseded.append(ticket),
        )

        async def burst():
            return await asyncio.gather(
                slot.request("sho"),
                slot.request("shoe"),
                slot.request("shoes"),
            )

        outcomes = asyncio.run(burst())
        assert [o.status for o in outcomes] == [
            AIRequestStatus.SUPERSEDED,
            AIRequestStatus.SUPERSEDED,
            AIRequestStatus.SUCCESS,
        ]
        assert calls == ["shoes"]
        assert superseded == [1, 2]

    def test_late_response_is_discarded(self):
        gateway = ManualGateway()
        agent = CategorySuggestionAgent(gateway)
        slot = SuggestionSlot(agent.suggest, quiet_period=0)

        async def scenario():
            first = asyncio.create_task(slot.request("pharmacy"))
            await asyncio.sleep(0)
            second = asyncio.create_task(slot.request("movie tickets"))
            await asyncio.sleep(0)

            gateway.reply(1, "Entertainment")
            second_outcome = await second
            gateway.reply(0, "Health")
            first_outcome = await first
            return first_outcome, second_outcome

        first_outcome, second_outcome = asyncio.run(scenario())
        assert second_outcome.category == Category.ENTERTAINMENT
        assert first_outcome.status == AIRequestStatus.SUPERSEDED
        assert slot.current == Category.ENTERTAINMENT
