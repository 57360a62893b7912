"""AI Agents package."""

from finsight.agents.ai_agents import (
    AdvisorAgent,
    CategorySuggestionAgent,
    ForecastAgent,
    TransactionParseAgent,
)
from finsight.agents.gateway import (
    AIGateway,
    ChatTurn,
    GatewayError,
    GatewayResponse,
    GeminiGateway,
)
from finsight.agents.slots import RequestSlot, SuggestionSlot

__all__ = [
    "AdvisorAgent",
    "AIGateway",
    "CategorySuggestionAgent",
    "ChatTurn",
    "ForecastAgent",
    "GatewayError",
    "GatewayResponse",
    "GeminiGateway",
    "RequestSlot",
    "SuggestionSlot",
    "TransactionParseAgent",
]
