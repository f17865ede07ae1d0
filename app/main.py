"""
Streamlit Frontend for Trip Budget

This is the screen the traveller keeps open during the trip.

DESIGN PRINCIPLES:
1. Totals always visible in both currencies
2. Destructive actions ask for confirmation here, never in the core
3. "Rejected, try again" looks different from "working on stale data"
4. Every change is saved immediately

The UI only calls BudgetSession; it never touches the state directly.
"""

import asyncio
from datetime import date, datetime, time

import streamlit as st

from trip_budget.models.ledger import (
    Currency,
    OperationResult,
    RateSource,
    SortMode,
    TransactionKind,
)
from trip_budget.money import format_display, format_home, format_rate
from trip_budget.orchestrator import BudgetSession, create_session
from trip_budget.export import CSV_FILENAME


# Page configuration
st.set_page_config(
    page_title="Korea Trip Budget",
    page_icon="💶",
    layout="wide",
    initial_sidebar_state="expanded",
)

SORT_LABELS = {
    SortMode.NEWEST: "Newest first",
    SortMode.AMOUNT_DESC: "Amount (high to low)",
    SortMode.CATEGORY_ASC: "Category (A to Z)",
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
def get_session() -> BudgetSession:
    """Create and start the session once per server process."""
    session = create_session(use_storage=True)
    report = run_async(session.start())
    st.session_state.startup_report = report
    return session


def show_result(result: OperationResult) -> None:
    """Render an operation outcome in the matching tone."""
    if result.success:
        st.success(result.message or "Done")
    elif result.is_degraded:
        st.warning(result.message)
    else:
        st.error(result.message)


def main():
    """Main application entry point."""
    session = get_session()

    report = st.session_state.get("startup_report")
    if report is not None:
        if not report.load.success:
            st.warning(report.load.message)
        if report.rate_refresh is not None and not report.rate_refresh.success:
            st.info("Could not fetch a live rate. Using the built-in fallback rate.")
        st.session_state.startup_report = None

    st.sidebar.title("💶 Korea Trip Budget")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["💸 Transactions", "📄 Daily Report", "⚙️ Settings"],
        index=0,
    )

    render_summary(session)

    if page == "💸 Transactions":
        render_transactions_page(session)
    elif page == "📄 Daily Report":
        render_report_page(session)
    elif page == "⚙️ Settings":
        render_settings_page(session)


def render_summary(session: BudgetSession):
    """Budget form plus the running totals."""
    totals = session.totals()
    display = session.display_totals()
    rate = session.rate.value

    with st.form("budget_form"):
        budget_input = st.text_input(
            "Trip budget (KRW)",
            value=str(session.state.budget_krw) if session.state.budget_krw else "",
            placeholder="e.g. 2,000,000",
        )
        if st.form_submit_button("Save budget"):
            session.set_budget(budget_input)
            st.rerun()

    columns = st.columns(4 if session.income_enabled else 3)
    columns[0].metric(
        "Budget",
        format_home(session.state.budget_krw),
        format_display(session.state.budget_krw * rate),
        delta_color="off",
    )
    columns[1].metric(
        "Spent",
        format_home(totals.expense_total),
        format_display(display.expense_total),
        delta_color="off",
    )
    if session.income_enabled:
        columns[2].metric(
            "Income",
            format_home(totals.income_total),
            format_display(display.income_total),
            delta_color="off",
        )
    columns[-1].metric(
        "Remaining",
        format_home(totals.remaining),
        format_display(display.remaining),
        delta_color="off",
    )
    st.caption(f"Rate: {format_rate(rate)}")
    st.markdown("---")


def render_transactions_page(session: BudgetSession):
    """Add, list, edit and delete transactions."""
    st.subheader("Add transaction")

    with st.form("txn_form", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            amount = st.text_input("Amount *", placeholder="e.g. 15,000")
            if session.income_enabled:
                kind = st.selectbox(
                    "Type",
                    options=list(TransactionKind),
                    format_func=lambda k: k.value.title(),
                )
                currency = Currency.KRW
            else:
                kind = TransactionKind.EXPENSE
                currency = st.selectbox(
                    "Currency",
                    options=list(Currency),
                    format_func=lambda c: c.value.upper(),
                )
        with col2:
            category = st.text_input("Category", placeholder="Food, Transport...")
            notes = st.text_input("Notes")
        with col3:
            txn_date = st.date_input("Date", value=date.today())
            txn_time = st.time_input("Time", value=datetime.now().time().replace(second=0, microsecond=0))

        if st.form_submit_button("Add", type="primary"):
            result = session.add_transaction(
                kind=kind,
                raw_amount=amount,
                currency=currency,
                category=category,
                notes=notes,
                occurred_at=datetime.combine(txn_date, txn_time or time.min),
            )
            show_result(result)

    st.subheader("Transactions")
    mode = st.selectbox(
        "Sort by",
        options=list(SortMode),
        format_func=lambda m: SORT_LABELS[m],
    )

    rows = session.rows(mode)
    if not rows:
        st.info("No transactions yet")
        return

    for row in rows:
        sign = "+" if row.kind is TransactionKind.INCOME else ""
        with st.expander(
            f"{row.occurred_at.astimezone():%Y-%m-%d %H:%M} · "
            f"{row.category or '—'} · {sign}{format_home(row.amount_home)} "
            f"({format_display(row.amount_display)})"
        ):
            if row.notes:
                st.markdown(f"*{row.notes}*")
            with st.form(f"edit_{row.id}"):
                new_amount = st.text_input("Amount in KRW", value=str(row.amount_home))
                new_category = st.text_input("Category", value=row.category)
                new_notes = st.text_input("Notes", value=row.notes)
                if st.form_submit_button("Save changes"):
                    result = session.edit_transaction(
                        row.id, new_amount, new_category, new_notes
                    )
                    if result.success:
                        st.rerun()
                    show_result(result)

            confirm = st.checkbox("Yes, delete this transaction", key=f"confirm_{row.id}")
            if st.button("🗑️ Delete", key=f"delete_{row.id}", disabled=not confirm):
                session.delete_transaction(row.id)
                st.rerun()

    st.download_button(
        "⬇️ Export CSV",
        data=session.export_csv(),
        file_name=CSV_FILENAME,
        mime="text/csv",
    )


def render_report_page(session: BudgetSession):
    """One day's transactions, oldest first."""
    st.subheader("Daily report")
    day = st.date_input("Day", value=date.today())
    report = session.daily_report(day)
    text = report.render_text()
    st.code(text)
    st.download_button(
        "⬇️ Download report",
        data=text,
        file_name=f"{report.filename}.txt",
        mime="text/plain",
    )


def render_settings_page(session: BudgetSession):
    """Exchange rate controls and the danger zone."""
    st.subheader("Exchange rate")

    rate = session.rate
    if rate.source is RateSource.FALLBACK or rate.updated_at is None:
        updated = "fallback"
    else:
        updated = f"{rate.updated_at.astimezone():%Y-%m-%d %H:%M} ({rate.source.value})"
    st.markdown(f"**Current:** {format_rate(rate.value)}  \n**Updated:** {updated}")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("🔄 Refresh rate"):
            with st.spinner("Refreshing…"):
                show_result(run_async(session.refresh_rate()))
    with col2:
        manual = st.text_input("Manual rate (EUR per KRW)", placeholder="0.000666")
        if st.button("Apply manual rate"):
            show_result(session.set_manual_rate(manual))

    st.markdown("---")
    st.subheader("Clear all data")
    st.caption("Removes the budget and every transaction. The exchange rate is kept.")
    confirm = st.checkbox("I understand this cannot be undone")
    if st.button("Clear ALL data", disabled=not confirm):
        show_result(session.clear_all())
        st.rerun()

    st.markdown("---")
    st.subheader("Configuration")

    from trip_budget.config import validate_all_settings

    status = validate_all_settings()
    for name, key in [("Storage", "storage"), ("Rate source", "rate_source"), ("App", "app")]:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Not configured')}")


if __name__ == "__main__":
    main()
