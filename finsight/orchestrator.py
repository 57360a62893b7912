"""
Main Orchestrator for FinSight

This module ties together all the components and defines the
end-to-end flows for:
1. Transaction entry (AI fill → review → confirm → store)
2. Budget editing
3. Dashboard snapshots
4. Forecasts and the advisor chat

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing enters the store without explicit confirmation
- AI failures degrade to "no suggestion" and never block manual entry
- Stale AI results are discarded, never applied
- Every step is audited

Each AI call is modelled as submit → pending → success | failure |
superseded, so the UI only has to render the outcome.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from finsight.aggregation import (
    compute_budget_progress,
    compute_category_breakdown,
    compute_totals,
    compute_trend,
    filter_transactions,
    summarize_budgets,
    top_budget_alerts,
)
from finsight.agents import (
    AdvisorAgent,
    AIGateway,
    CategorySuggestionAgent,
    ChatTurn,
    ForecastAgent,
    GatewayError,
    GeminiGateway,
    RequestSlot,
    SuggestionSlot,
    TransactionParseAgent,
)
from finsight.audit import AuditLogger
from finsight.config import get_settings
from finsight.ledger import AppState, StateRepository, budget_category
from finsight.models.transaction import (
    AdvisorReply,
    AIFillResult,
    AIRequestStatus,
    BudgetProgress,
    BudgetSummary,
    Category,
    CategoryBudget,
    CategoryTotal,
    FinancialTotals,
    Forecast,
    SuggestionOutcome,
    Transaction,
    TransactionDraft,
    TransactionType,
    TrendBucket,
)
from finsight.reconciler import (
    MalformedResponseError,
    fallback_forecast,
    reconcile_transaction,
)
from finsight.services.export import export_transactions_csv
from finsight.services.storage import (
    AuditStorageInterface,
    JsonFileStorage,
    JsonLinesAuditStorage,
    KeyValueStorageInterface,
)
from finsight.validation import TransactionValidator, ValidationError


logger = structlog.get_logger("finsight.orchestrator")

AI_UNAVAILABLE_MESSAGE = "The AI assistant is not configured."


class TransactionEntryFlow:
    """
    Orchestrates adding and removing transactions.

    Flow:
    1. User types a note → optional AI fill proposes fields
    2. Category suggestion runs (debounced) as the user types
    3. User reviews and edits the draft
    4. Confirm → validate → commit to the store (persisted immediately)

    The AI fill and the category suggestion are independent slots;
    neither takes precedence over the other.
    """

    def __init__(
        self,
        state: AppState,
        parse_agent: Optional[TransactionParseAgent] = None,
        suggestion_agent: Optional[CategorySuggestionAgent] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        ai_fill_min_length: Optional[int] = None,
        suggestion_quiet_period: Optional[float] = None,
        suggestion_min_length: Optional[int] = None,
    ):
        app_settings = get_settings().app
        self._state = state
        self._parse_agent = parse_agent
        self._suggestion_agent = suggestion_agent
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger
        self._ai_fill_min_length = (
            app_settings.ai_fill_min_length if ai_fill_min_length is None else ai_fill_min_length
        )
        self.fill_slot = RequestSlot("ai_fill")
        self.suggestions = SuggestionSlot(
            fetch=self._fetch_suggestion,
            quiet_period=(
                app_settings.suggestion_quiet_period_seconds
                if suggestion_quiet_period is None else suggestion_quiet_period
            ),
            min_length=(
                app_settings.suggestion_min_length
                if suggestion_min_length is None else suggestion_min_length
            ),
            on_superseded=self._log_superseded,
        )

    async def ai_fill(
        self,
        draft: TransactionDraft,
        text: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AIFillResult:
        """
        Propose draft fields from a natural language note.

        Only well-typed fields from the model overwrite the draft.
        The returned draft is never committed here.
        """
        text = draft.description if text is None else text
        if len(text.strip()) < self._ai_fill_min_length:
            return AIFillResult(status=AIRequestStatus.SKIPPED, draft=draft)
        if self._parse_agent is None:
            return AIFillResult(
                status=AIRequestStatus.FAILURE,
                draft=draft,
                message=AI_UNAVAILABLE_MESSAGE,
            )

        ticket = self.fill_slot.begin()
        payload: Any = None
        try:
            payload = await self._parse_agent.parse(text)
            patch = reconcile_transaction(payload, draft)
        except MalformedResponseError as e:
            if not self.fill_slot.is_current(ticket):
                return self._fill_superseded(ticket, draft)
            self.fill_slot.finish(ticket, AIRequestStatus.FAILURE)
            if self._audit_logger:
                self._audit_logger.log_ai_response_malformed(
                    slot=self.fill_slot.name,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return AIFillResult(
                status=AIRequestStatus.FAILURE,
                draft=draft,
                message="The AI response could not be understood.",
            )
        except GatewayError as e:
            if not self.fill_slot.is_current(ticket):
                return self._fill_superseded(ticket, draft)
            self.fill_slot.finish(ticket, AIRequestStatus.FAILURE)
            if self._audit_logger:
                self._audit_logger.log_external_service_error(
                    service="gemini",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return AIFillResult(
                status=AIRequestStatus.FAILURE,
                draft=draft,
                message="The AI assistant is unavailable right now.",
            )

        if not self.fill_slot.is_current(ticket):
            return self._fill_superseded(ticket, draft)

        self.fill_slot.finish(ticket, AIRequestStatus.SUCCESS)
        if self._audit_logger:
            if "category" in patch.rejected_fields:
                self._audit_logger.log_unknown_category(
                    value=payload.get("category"),
                    source=self.fill_slot.name,
                    correlation_id=correlation_id,
                )
            self._audit_logger.log_ai_request(
                slot=self.fill_slot.name,
                status=AIRequestStatus.SUCCESS.value,
                details={
                    "applied": patch.applied_fields,
                    "rejected": patch.rejected_fields,
                },
                correlation_id=correlation_id,
            )

        return AIFillResult(
            status=AIRequestStatus.SUCCESS,
            draft=patch.draft,
            applied_fields=patch.applied_fields,
        )

    async def suggest_category(self, text: str) -> SuggestionOutcome:
        """Debounced, last-writer-wins category suggestion."""
        return await self.suggestions.request(text)

    def confirm(
        self,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Commit a draft.

        CRITICAL: This is called ONLY after explicit user confirmation.

        Raises:
            ValidationError: If the draft violates an invariant
        """
        try:
            transaction = self._validator.to_transaction(draft)
        except ValidationError as e:
            if self._audit_logger:
                self._audit_logger.log_validation_failed(
                    issues=[issue.model_dump() for issue in e.issues],
                    correlation_id=correlation_id,
                )
            raise

        self._state.transactions.add(transaction)

        if self._audit_logger:
            self._audit_logger.log_transaction_added(
                transaction_id=transaction.id,
                amount=str(transaction.amount),
                category=transaction.category,
                transaction_type=transaction.type.value,
                correlation_id=correlation_id,
            )
        return transaction

    def delete(self, transaction_id: str) -> bool:
        deleted = self._state.transactions.delete(transaction_id)
        if deleted and self._audit_logger:
            self._audit_logger.log_transaction_deleted(transaction_id)
        return deleted

    def list_transactions(
        self,
        search: str = "",
        type_filter: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        return filter_transactions(self._state.transactions, search, type_filter)

    def export_csv(
        self,
        search: str = "",
        type_filter: Optional[TransactionType] = None,
    ) -> str:
        """CSV of the ledger in the current filter order."""
        return export_transactions_csv(self.list_transactions(search, type_filter))

    async def _fetch_suggestion(self, text: str) -> Optional[Category]:
        if self._suggestion_agent is None:
            return None
        try:
            return await self._suggestion_agent.suggest(text)
        except GatewayError as e:
            if self._audit_logger:
                self._audit_logger.log_external_service_error(
                    service="gemini",
                    error_message=str(e),
                )
            return None

    def _fill_superseded(self, ticket: int, draft: TransactionDraft) -> AIFillResult:
        self._log_superseded(self.fill_slot.name, ticket)
        return AIFillResult(status=AIRequestStatus.SUPERSEDED, draft=draft)

    def _log_superseded(self, slot: str, ticket: int) -> None:
        if self._audit_logger:
            self._audit_logger.log_ai_result_superseded(slot, ticket)


class BudgetFlow:
    """Budget editing and month-to-date progress."""

    def __init__(
        self,
        state: AppState,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._state = state
        self._audit_logger = audit_logger

    def update_limit(self, category: str, limit: Any) -> CategoryBudget:
        """
        Raises:
            ValidationError: If the category cannot carry a budget, or if
                limit is not a finite number >= 0 (the previous limit is kept)
        """
        if budget_category(category) is None and self._audit_logger:
            self._audit_logger.log_unknown_category(category, source="budget_update")
        previous = self._state.budgets.get(category)
        budget = self._state.budgets.upsert(category, limit)
        if self._audit_logger:
            self._audit_logger.log_budget_updated(
                category=budget.category,
                old_limit=str(previous.limit) if previous else None,
                new_limit=str(budget.limit),
            )
        return budget

    def progress(self, reference_date: Optional[date] = None) -> list[BudgetProgress]:
        return compute_budget_progress(
            self._state.transactions,
            self._state.budgets,
            reference_date or date.today(),
        )

    def summary(self, reference_date: Optional[date] = None) -> BudgetSummary:
        return summarize_budgets(self.progress(reference_date))


class DashboardSnapshot(BaseModel):
    """Everything the dashboard renders, computed in one pass."""

    reference_date: date
    totals: FinancialTotals
    category_breakdown: list[CategoryTotal] = Field(default_factory=list)
    budget_alerts: list[BudgetProgress] = Field(default_factory=list)
    trend: list[TrendBucket] = Field(default_factory=list)


class DashboardFlow:
    """Builds dashboard views from the current state."""

    def __init__(self, state: AppState, trend_window: Optional[int] = None):
        self._state = state
        self._trend_window = (
            get_settings().app.trend_window_days if trend_window is None else trend_window
        )

    def snapshot(self, reference_date: Optional[date] = None) -> DashboardSnapshot:
        reference_date = reference_date or date.today()
        transactions = self._state.transactions.transactions
        progress = compute_budget_progress(transactions, self._state.budgets, reference_date)
        return DashboardSnapshot(
            reference_date=reference_date,
            totals=compute_totals(transactions),
            category_breakdown=compute_category_breakdown(transactions),
            budget_alerts=top_budget_alerts(progress),
            trend=list(compute_trend(transactions, self._trend_window)),
        )


class ForecastFlow:
    """
    Orchestrates the forecast request.

    A failed or malformed response yields the fallback forecast;
    a superseded one is dropped.
    """

    def __init__(
        self,
        state: AppState,
        forecast_agent: Optional[ForecastAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._state = state
        self._forecast_agent = forecast_agent
        self._audit_logger = audit_logger
        self.slot = RequestSlot("forecast")
        self.current: Optional[Forecast] = None

    async def generate(self, reference_date: Optional[date] = None) -> Optional[Forecast]:
        """
        Returns the new forecast, or None if a newer request was issued
        while this one was in flight.
        """
        reference_date = reference_date or date.today()
        ticket = self.slot.begin()
        status = AIRequestStatus.SUCCESS

        if self._forecast_agent is None:
            forecast = fallback_forecast()
            status = AIRequestStatus.FAILURE
        else:
            try:
                forecast = await self._forecast_agent.forecast(
                    self._state.transactions, reference_date
                )
            except MalformedResponseError as e:
                forecast = fallback_forecast()
                status = AIRequestStatus.FAILURE
                if self._audit_logger:
                    self._audit_logger.log_ai_response_malformed(self.slot.name, str(e))
            except GatewayError as e:
                forecast = fallback_forecast()
                status = AIRequestStatus.FAILURE
                if self._audit_logger:
                    self._audit_logger.log_external_service_error("gemini", str(e))

        if not self.slot.finish(ticket, status):
            if self._audit_logger:
                self._audit_logger.log_ai_result_superseded(self.slot.name, ticket)
            return None

        self.current = forecast
        if self._audit_logger:
            self._audit_logger.log_ai_request(
                slot=self.slot.name,
                status=status.value,
                details={"sources": len(forecast.search_sources)},
            )
        return forecast


class AdvisorFlow:
    """Multi-turn advisor chat with optional search grounding."""

    def __init__(
        self,
        advisor_agent: Optional[AdvisorAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._advisor_agent = advisor_agent
        self._audit_logger = audit_logger
        self.slot = RequestSlot("advisor")
        self.history: list[ChatTurn] = []

    async def ask(self, question: str, use_search: bool = False) -> AdvisorReply:
        if self._advisor_agent is None:
            return AdvisorReply(text=AI_UNAVAILABLE_MESSAGE, status=AIRequestStatus.FAILURE)

        ticket = self.slot.begin()
        try:
            response = await self._advisor_agent.ask(
                question,
                history=list(self.history),
                use_search=use_search,
            )
        except GatewayError as e:
            if self.slot.finish(ticket, AIRequestStatus.FAILURE) and self._audit_logger:
                self._audit_logger.log_external_service_error("gemini", str(e))
            return AdvisorReply(
                text="The AI assistant is unavailable right now.",
                status=AIRequestStatus.FAILURE,
            )

        if not self.slot.finish(ticket, AIRequestStatus.SUCCESS):
            if self._audit_logger:
                self._audit_logger.log_ai_result_superseded(self.slot.name, ticket)
            return AdvisorReply(text="", status=AIRequestStatus.SUPERSEDED)

        self.history.append(ChatTurn(role="user", text=question))
        self.history.append(ChatTurn(role="model", text=response.text))
        return AdvisorReply(text=response.text, sources=response.citations)

    def reset(self) -> None:
        self.history.clear()


@dataclass
class AppComponents:
    """Everything the UI needs, wired together."""

    state: AppState
    repository: StateRepository
    entry: TransactionEntryFlow
    budgets: BudgetFlow
    dashboard: DashboardFlow
    forecast: ForecastFlow
    advisor: AdvisorFlow
    audit_logger: AuditLogger


def create_app_components(
    storage: Optional[KeyValueStorageInterface] = None,
    gateway: Optional[AIGateway] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
    use_ai: bool = True,
    suggestion_quiet_period: Optional[float] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: Key/value storage. Defaults to JSON files in the
                configured data directory.
        gateway: AI gateway. Defaults to Gemini when an API key is
                configured; without one the app runs with AI disabled.
        audit_storage: Audit log storage. Defaults to a JSON lines file
                next to the data, unless a custom storage was given.
        use_ai: Set to False to run without any AI backend.
        suggestion_quiet_period: Debounce for category suggestions, in
                seconds. Defaults to the configured value. The debounce only
                matters for callers that issue overlapping requests.
    """
    settings = get_settings()

    if storage is None:
        storage_settings = settings.storage
        storage = JsonFileStorage(storage_settings.data_path)
        if audit_storage is None:
            audit_storage = JsonLinesAuditStorage(storage_settings.audit_log_path)

    audit_logger = AuditLogger(audit_storage)

    if gateway is None and use_ai:
        try:
            gateway = GeminiGateway()
        except Exception as e:
            # Gemini not configured - continue without AI
            logger.warning("ai_gateway_unavailable", error=str(e))
            gateway = None
    if not use_ai:
        gateway = None

    repository = StateRepository(
        storage,
        default_budget_limit=settings.app.default_budget_limit,
        audit_logger=audit_logger,
    )
    state = repository.load()

    parse_agent = TransactionParseAgent(gateway) if gateway else None
    suggestion_agent = CategorySuggestionAgent(gateway) if gateway else None
    forecast_agent = (
        ForecastAgent(gateway, history_limit=settings.app.forecast_history_limit)
        if gateway else None
    )
    advisor_agent = AdvisorAgent(gateway) if gateway else None

    return AppComponents(
        state=state,
        repository=repository,
        entry=TransactionEntryFlow(
            state,
            parse_agent=parse_agent,
            suggestion_agent=suggestion_agent,
            audit_logger=audit_logger,
            suggestion_quiet_period=suggestion_quiet_period,
        ),
        budgets=BudgetFlow(state, audit_logger=audit_logger),
        dashboard=DashboardFlow(state),
        forecast=ForecastFlow(state, forecast_agent=forecast_agent, audit_logger=audit_logger),
        advisor=AdvisorFlow(advisor_agent, audit_logger=audit_logger),
        audit_logger=audit_logger,
    )
