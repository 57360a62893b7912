"""
Data Models Package

This package contains all Pydantic models used in FinSight.
All data flowing through the system must conform to these schemas.
"""

from finsight.models.transaction import (
    UNTITLED_DESCRIPTION,
    AdvisorReply,
    AIFillResult,
    AIRequestStatus,
    BudgetProgress,
    BudgetStatus,
    BudgetSummary,
    Category,
    CategoryBudget,
    CategoryTotal,
    DraftPatch,
    FinancialTotals,
    Forecast,
    RiskFactor,
    SearchSource,
    SuggestionOutcome,
    Transaction,
    TransactionDraft,
    TransactionType,
    TrendBucket,
    ValidationIssue,
    ValidationResult,
)
from finsight.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "UNTITLED_DESCRIPTION",
    "AdvisorReply",
    "AIFillResult",
    "AIRequestStatus",
    "BudgetProgress",
    "BudgetStatus",
    "BudgetSummary",
    "Category",
    "CategoryBudget",
    "CategoryTotal",
    "DraftPatch",
    "FinancialTotals",
    "Forecast",
    "RiskFactor",
    "SearchSource",
    "SuggestionOutcome",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "TrendBucket",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
