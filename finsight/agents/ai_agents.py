"""
AI Agents for FinSight

Each agent builds a prompt, makes exactly one gateway call and hands the
raw text to the reconciler. Agents never touch the transaction store.

CRITICAL BOUNDARIES:

1. TRANSACTION PARSE AGENT:
   - CAN: Propose amount, category, type and a cleaned description
   - CANNOT: Commit anything; the user confirms the draft

2. CATEGORY SUGGESTION AGENT:
   - CAN: Name exactly one category from the closed set
   - MUST: Return no suggestion for anything else

3. FORECAST AGENT:
   - CAN: Predict next month's spend, with web search grounding
   - MUST: Fall back to an empty forecast on any failure

4. ADVISOR AGENT:
   - CAN: Answer general finance questions, optionally search-grounded
"""

from datetime import date
from typing import Iterable, Optional

from finsight.agents.gateway import AIGateway, ChatTurn, GatewayResponse
from finsight.models.transaction import Category, Forecast, Transaction
from finsight.reconciler import extract_json, match_category, reconcile_forecast_text


TRANSACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "amount": {"type": "number"},
        "category": {"type": "string"},
        "description": {"type": "string"},
        "type": {"type": "string", "enum": ["expense", "income"]},
    },
}


class TransactionParseAgent:
    """Turns a natural language note into proposed transaction fields."""

    def __init__(self, gateway: AIGateway):
        self._gateway = gateway

    def build_prompt(self, text: str) -> str:
        return f"""Extract transaction details from this text: "{text}".
Available categories: {', '.join(Category.values())}.
If no category fits perfectly, choose 'Other'.
Return a JSON object with keys: amount (number), category (string), description (cleaned string), type ('expense' or 'income')."""

    async def parse(self, text: str) -> dict:
        """
        Ask the model to parse a transaction note.

        Returns the extracted JSON payload, unvalidated.

        Raises:
            GatewayError: If the call fails
            MalformedResponseError: If no JSON could be extracted
        """
        response = await self._gateway.generate(
            self.build_prompt(text),
            response_schema=TRANSACTION_SCHEMA,
        )
        return extract_json(response.text)


class CategorySuggestionAgent:
    """Suggests a single category for a description."""

    def __init__(self, gateway: AIGateway):
        self._gateway = gateway

    def build_prompt(self, description: str) -> str:
        return f"""Categorize this personal finance transaction: "{description}".
Choose exactly one of: {', '.join(Category.values())}.
Respond with ONLY the category name, nothing else."""

    async def suggest(self, description: str) -> Optional[Category]:
        """
        Returns the suggested category, or None if the reply is not
        exactly one known category name.

        Raises:
            GatewayError: If the call fails
        """
        response = await self._gateway.generate(self.build_prompt(description))
        return match_category(response.text)


class ForecastAgent:
    """Analyzes recent history and predicts the coming month."""

    def __init__(self, gateway: AIGateway, history_limit: int = 50):
        self._gateway = gateway
        self._history_limit = history_limit

    def build_prompt(self, transactions: Iterable[Transaction], today: date) -> str:
        recent = list(transactions)[:self._history_limit]
        history = "\n".join(
            f"{t.date.isoformat()}: {t.description} - ${t.amount} ({t.category}) [{t.type.value}]"
            for t in recent
        )

        return f"""Act as a Senior Financial Advisor. Analyze these recent transactions and provide a forecast for the upcoming month.

Use Google Search to factor in:
1. Current inflation trends (specifically for food, fuel, or rent).
2. Upcoming seasonal spending patterns based on the current date (assume today is {today.isoformat()}).
3. Any economic news that might affect consumer spending.

Transactions:
{history}

Return a JSON object exactly with these keys:
{{
  "predictedSpendNextMonth": number,
  "savingsPotential": number,
  "advice": ["Actionable tip 1", "Actionable tip 2", "Actionable tip 3"],
  "riskFactor": "Low" | "Medium" | "High",
  "anomalies": ["Explanation of unusual spending found"]
}}"""

    async def forecast(self, transactions: Iterable[Transaction], today: date) -> Forecast:
        """
        Raises:
            GatewayError: If the call fails
            MalformedResponseError: If the reply holds no JSON object
        """
        response = await self._gateway.generate(
            self.build_prompt(transactions, today),
            use_search=True,
        )
        return reconcile_forecast_text(response.text, response.citations)


class AdvisorAgent:
    """Conversational finance assistant."""

    SYSTEM_PREAMBLE = (
        "You are a concise personal finance assistant. "
        "Answer in plain language and never invent figures about the user's accounts."
    )

    def __init__(self, gateway: AIGateway):
        self._gateway = gateway

    async def ask(
        self,
        question: str,
        history: Optional[list[ChatTurn]] = None,
        use_search: bool = False,
    ) -> GatewayResponse:
        """
        Raises:
            GatewayError: If the call fails
        """
        prompt = question if history else f"{self.SYSTEM_PREAMBLE}\n\n{question}"
        return await self._gateway.generate(
            prompt,
            use_search=use_search,
            history=history,
        )
