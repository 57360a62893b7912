"""
Streamlit Frontend for FinSight

The interface people use every day to log spending, watch budgets and
ask for advice.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything is saved
3. AI fills the form, the user decides
4. Clear error messages in simple language
5. No hidden actions

The UI enforces the human-in-the-loop principle:
- AI fill only proposes values in the form
- User reviews and edits
- Nothing is saved without the explicit "Add Transaction" action
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from finsight.audit import create_correlation_id
from finsight.config import get_settings, validate_all_settings
from finsight.models import (
    AIRequestStatus,
    BudgetProgress,
    BudgetStatus,
    Category,
    TransactionDraft,
    TransactionType,
)
from finsight.orchestrator import (
    AdvisorFlow,
    AppComponents,
    BudgetFlow,
    DashboardFlow,
    ForecastFlow,
    TransactionEntryFlow,
    create_app_components,
)
from finsight.validation import ValidationError


# Page configuration
st.set_page_config(
    page_title="FinSight",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)

STATUS_ICONS = {
    BudgetStatus.OK: "🟢",
    BudgetStatus.NEAR: "🟡",
    BudgetStatus.OVER: "🔴",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    # Each rerun drives one suggestion to completion, so requests never
    # overlap here and a quiet period would only delay the result.
    try:
        return create_app_components(suggestion_quiet_period=0)
    except Exception as e:
        st.error(f"Failed to initialize AI features: {e}")
        return create_app_components(use_ai=False, suggestion_quiet_period=0)


def money(value: Decimal) -> str:
    return f"${value:,.2f}"


def budget_icon(progress: BudgetProgress) -> str:
    warning = get_settings().app.budget_warning_percentage
    return STATUS_ICONS[progress.status(warning)]


def main():
    """Main application entry point."""
    components = get_components()

    st.sidebar.title("💸 FinSight")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🧾 Transactions", "🎯 Budgets", "🔮 Forecast", "💬 Advisor", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    render_entry_form(components.entry)

    if page == "📊 Dashboard":
        render_dashboard_page(components.dashboard)
    elif page == "🧾 Transactions":
        render_transactions_page(components.entry)
    elif page == "🎯 Budgets":
        render_budgets_page(components.budgets)
    elif page == "🔮 Forecast":
        render_forecast_page(components.forecast)
    elif page == "💬 Advisor":
        render_advisor_page(components.advisor)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_entry_form(entry: TransactionEntryFlow):
    """Sidebar form for adding a transaction."""
    st.sidebar.subheader("➕ Add Transaction")

    if "draft" not in st.session_state:
        st.session_state.draft = TransactionDraft()
    draft: TransactionDraft = st.session_state.draft

    note = st.sidebar.text_input(
        "Describe it",
        value=draft.description,
        placeholder="e.g. Lunch with team 45 dollars",
    )

    if st.sidebar.button("✨ AI Fill"):
        with st.spinner("Reading your note..."):
            result = run_async(entry.ai_fill(draft.model_copy(update={"description": note})))
        if result.status == AIRequestStatus.SUCCESS:
            st.session_state.draft = result.draft
            st.rerun()
        elif result.status == AIRequestStatus.SKIPPED:
            st.sidebar.info("Type a bit more before using AI Fill.")
        elif result.message:
            st.sidebar.warning(result.message)

    categories = list(Category)
    if note and note != st.session_state.get("suggested_for"):
        outcome = run_async(entry.suggest_category(note))
        st.session_state.suggested_for = note
        if outcome.status == AIRequestStatus.SUCCESS:
            st.session_state.suggested_category = outcome.category
    suggestion = st.session_state.get("suggested_category")
    if suggestion is not None:
        st.sidebar.caption(f"Suggested category: **{suggestion.value}**")

    amount = st.sidebar.number_input(
        "Amount *",
        value=float(draft.amount) if draft.amount is not None else 0.0,
        min_value=0.0,
        step=0.01,
        format="%.2f",
    )
    tx_date = st.sidebar.date_input("Date *", value=draft.date)
    category = st.sidebar.selectbox(
        "Category *",
        options=categories,
        index=categories.index(draft.category),
        format_func=lambda c: c.value,
    )
    tx_type = st.sidebar.radio(
        "Type *",
        options=list(TransactionType),
        index=list(TransactionType).index(draft.type),
        format_func=lambda t: t.value.title(),
        horizontal=True,
    )

    if st.sidebar.button("✅ Add Transaction", type="primary"):
        final = TransactionDraft(
            description=note,
            amount=Decimal(str(amount)),
            date=tx_date,
            category=category,
            type=tx_type,
        )
        try:
            transaction = entry.confirm(final, correlation_id=create_correlation_id())
        except ValidationError as e:
            st.sidebar.error(str(e))
        else:
            st.session_state.draft = TransactionDraft()
            st.session_state.pop("suggested_category", None)
            st.sidebar.success(f"Saved {transaction.description} ({money(transaction.amount)})")


def render_dashboard_page(dashboard: DashboardFlow):
    """Totals, breakdown, alerts and the recent trend."""
    st.title("📊 Dashboard")
    snapshot = dashboard.snapshot()
    totals = snapshot.totals

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Balance", money(totals.balance))
    col2.metric("Income", money(totals.total_income))
    col3.metric("Expenses", money(totals.total_expense))
    col4.metric("Savings Rate", f"{totals.savings_rate:.1f}%")

    st.markdown("---")
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Spending by Category")
        if snapshot.category_breakdown:
            st.bar_chart(
                {c.category: float(c.amount) for c in snapshot.category_breakdown}
            )
        else:
            st.info("No expenses yet.")

    with col2:
        st.subheader("Budget Alerts")
        for alert in snapshot.budget_alerts:
            icon = budget_icon(alert)
            st.markdown(
                f"{icon} **{alert.category}**: {money(alert.actual)} of {money(alert.limit)}"
            )
            st.progress(min(alert.percentage, 100.0) / 100.0)

    st.subheader("Recent Trend")
    if snapshot.trend:
        st.line_chart({
            "income": {b.label: float(b.income) for b in snapshot.trend},
            "expense": {b.label: float(b.expense) for b in snapshot.trend},
        })
    else:
        st.info("Add transactions to see your trend.")


def render_transactions_page(entry: TransactionEntryFlow):
    """Searchable ledger with delete and CSV export."""
    st.title("🧾 Transactions")

    col1, col2 = st.columns([3, 1])
    with col1:
        search = st.text_input("Search", placeholder="Description or category")
    with col2:
        type_filter = st.selectbox(
            "Type",
            options=[None] + list(TransactionType),
            format_func=lambda t: "All" if t is None else t.value.title(),
        )

    transactions = entry.list_transactions(search, type_filter)

    st.download_button(
        "⬇️ Export CSV",
        data=entry.export_csv(search, type_filter),
        file_name=f"transactions_{date.today().isoformat()}.csv",
        mime="text/csv",
    )

    if not transactions:
        st.info("No transactions match your filters.")
        return

    for t in transactions:
        col1, col2, col3, col4, col5 = st.columns([1, 3, 2, 2, 1])
        col1.write(t.date.isoformat())
        col2.write(t.description)
        col3.write(t.category)
        sign = "+" if t.type == TransactionType.INCOME else "-"
        col4.write(f"{sign}{money(t.amount)}")
        if col5.button("🗑️", key=f"delete_{t.id}"):
            entry.delete(t.id)
            st.rerun()


def render_budgets_page(budgets: BudgetFlow):
    """Monthly limits and progress."""
    st.title("🎯 Budgets")
    progress = budgets.progress()
    summary = budgets.summary()

    col1, col2 = st.columns(2)
    col1.metric("Total Budget", money(summary.total_budget))
    col2.metric("Spent This Month", money(summary.total_spent), f"{summary.percentage:.0f}%")

    st.markdown("---")
    for item in progress:
        col1, col2 = st.columns([3, 1])
        with col1:
            icon = budget_icon(item)
            st.markdown(f"{icon} **{item.category}**: {money(item.actual)} of {money(item.limit)}")
            st.progress(min(item.percentage, 100.0) / 100.0)
        with col2:
            new_limit = st.number_input(
                "Limit",
                value=float(item.limit),
                min_value=0.0,
                step=10.0,
                key=f"limit_{item.category}",
                label_visibility="collapsed",
            )
            if Decimal(str(new_limit)) != item.limit:
                try:
                    budgets.update_limit(item.category, new_limit)
                except ValidationError as e:
                    st.error(str(e))
                else:
                    st.rerun()


def render_forecast_page(forecast_flow: ForecastFlow):
    """AI forecast for next month."""
    st.title("🔮 Forecast")

    if st.button("Generate Forecast", type="primary"):
        with st.spinner("Analyzing your spending..."):
            run_async(forecast_flow.generate())

    forecast = forecast_flow.current
    if forecast is None:
        st.info("Generate a forecast to see next month's outlook.")
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Predicted Spend", money(forecast.predicted_spend_next_month))
    col2.metric("Savings Potential", money(forecast.savings_potential))
    col3.metric("Risk", forecast.risk_factor.value)

    st.subheader("Advice")
    for tip in forecast.advice:
        st.markdown(f"- {tip}")

    if forecast.anomalies:
        st.subheader("Anomalies")
        for anomaly in forecast.anomalies:
            st.markdown(f"- {anomaly}")

    if forecast.search_sources:
        with st.expander("Sources"):
            for source in forecast.search_sources:
                st.markdown(f"- [{source.title}]({source.uri})")


def render_advisor_page(advisor: AdvisorFlow):
    """Chat with the finance assistant."""
    st.title("💬 Advisor")

    use_search = st.toggle("Search the web", value=False)
    if st.button("Clear conversation"):
        advisor.reset()

    for turn in advisor.history:
        with st.chat_message("user" if turn.role == "user" else "assistant"):
            st.markdown(turn.text)

    question = st.chat_input("Ask about budgeting, saving, or your spending")
    if question:
        with st.spinner("Thinking..."):
            reply = run_async(advisor.ask(question, use_search=use_search))
        if reply.status == AIRequestStatus.SUCCESS:
            st.rerun()
        else:
            st.warning(reply.text)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")
    status = validate_all_settings()

    sections = [
        ("Gemini (AI)", "gemini"),
        ("Local Storage", "storage"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Ready")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
