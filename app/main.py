"""
Streamlit Frontend for Smart Ledger

The screen the user works with every day:
1. Balance, income and expense at a glance
2. A short form to add a transaction - the category is filled in by AI
3. Expense-by-category and recent cash-flow charts
4. History with delete, and a clear-all button, both confirmed first
5. The AI advisor panel, refreshed a couple of seconds after changes

All ledger work happens on one background event loop thread. The UI
only submits calls to it and renders the results.
"""

import asyncio
import threading
from decimal import Decimal

import pandas as pd
import plotly.express as px
import streamlit as st
from pydantic import ValidationError

from smart_ledger.config import get_settings
from smart_ledger.models.transaction import (
    MAX_CATEGORY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    TransactionType,
)
from smart_ledger.orchestrator import LedgerFlow, create_app_components


# Page configuration
st.set_page_config(
    page_title="AI Smart Ledger",
    page_icon="💰",
    layout="wide",
)

CHART_COLORS = ["#3b82f6", "#ef4444", "#10b981", "#f59e0b", "#8b5cf6", "#ec4899", "#64748b"]


class LedgerRuntime:
    """
    Owns the event loop the ledger, agents and insight scheduler live on.

    Streamlit reruns the script on its own threads; every core call is
    handed to this loop so the core only ever sees one scheduling context.
    """

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self.loop.run_forever,
            name="smart-ledger-loop",
            daemon=True,
        )
        self._thread.start()

    def run(self, coro, timeout: float = 30.0):
        """Run a coroutine on the ledger loop and wait for its result."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result(timeout)

    def call(self, func, *args, **kwargs):
        """Run a plain function on the ledger loop."""
        async def _invoke():
            return func(*args, **kwargs)
        return self.run(_invoke())


@st.cache_resource
def get_components() -> tuple[LedgerRuntime, LedgerFlow]:
    """Create the runtime and load the stored ledger once per server."""
    runtime = LedgerRuntime()
    flow = create_app_components()
    runtime.call(flow.start)
    return runtime, flow


def money(amount: Decimal) -> str:
    symbol = get_settings().app.currency_symbol
    return f"{symbol}{amount:,.2f}"


def main():
    """Main application entry point."""
    runtime, flow = get_components()

    header_left, header_right = st.columns([4, 1])
    with header_left:
        st.title("💰 AI Smart Ledger")
        st.caption("Local storage enabled")
    with header_right:
        render_clear_all(runtime, flow)

    snapshot = runtime.call(flow.dashboard)

    col1, col2, col3 = st.columns(3)
    col1.metric("Current Balance", money(snapshot.stats.balance))
    col2.metric("Total Income", money(snapshot.stats.total_income))
    col3.metric("Total Expenses", money(snapshot.stats.total_expense))

    left, right = st.columns([1, 2])
    with left:
        render_add_form(runtime, flow)
        render_advisor(runtime, flow)
    with right:
        render_charts(snapshot)
        render_history(runtime, flow, snapshot.transactions)


def render_add_form(runtime: LedgerRuntime, flow: LedgerFlow):
    """Render the add-transaction form."""
    st.subheader("Add Transaction")

    with st.form("add_transaction", clear_on_submit=True):
        transaction_type = st.radio(
            "Type",
            options=[TransactionType.EXPENSE, TransactionType.INCOME],
            format_func=lambda t: t.value.title(),
            horizontal=True,
        )
        description = st.text_input(
            "Description *",
            placeholder="e.g. Coffee at Starbucks",
            max_chars=MAX_DESCRIPTION_LENGTH,
        )
        amount = st.number_input(
            "Amount *",
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )
        category = st.text_input(
            "Category (optional)",
            placeholder="Leave empty to let AI decide",
            max_chars=MAX_CATEGORY_LENGTH,
        )
        submitted = st.form_submit_button("Add Transaction", type="primary")

    if submitted:
        if not description.strip():
            st.error("Please enter a description")
        elif amount <= 0:
            st.error("Please enter a valid amount")
        else:
            try:
                with st.spinner("Categorizing..."):
                    transaction = runtime.run(
                        flow.add_transaction(
                            description=description,
                            amount=Decimal(str(amount)),
                            transaction_type=transaction_type,
                            category=category or None,
                        )
                    )
            except ValidationError as e:
                st.error(f"Invalid transaction: {e.errors()[0]['msg']}")
            else:
                st.toast(f"Added {transaction.description} as {transaction.category}")
                st.rerun()


@st.fragment(run_every=1.0)
def render_advisor(runtime: LedgerRuntime, flow: LedgerFlow):
    """AI advisor panel; polls the scheduler's state every second."""
    st.subheader("⚡ AI Financial Advisor")
    insight = runtime.call(lambda: flow.scheduler.insight)
    if insight.loading:
        st.info("Generating your personalized advice...")
    else:
        st.write(insight.text)


def render_charts(snapshot):
    """Expense-by-category pie and recent daily cash-flow bars."""
    col1, col2 = st.columns(2)

    with col1:
        st.markdown("**Expense by Category**")
        if snapshot.category_breakdown:
            df = pd.DataFrame({
                "Category": list(snapshot.category_breakdown.keys()),
                "Amount": [float(v) for v in snapshot.category_breakdown.values()],
            })
            fig = px.pie(
                df,
                names="Category",
                values="Amount",
                hole=0.6,
                color_discrete_sequence=CHART_COLORS,
            )
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("No expenses yet.")

    with col2:
        st.markdown("**Recent Cash Flow**")
        if snapshot.daily_series:
            df = pd.DataFrame([
                {"Day": p.label, "Income": float(p.income), "Expense": float(p.expense)}
                for p in snapshot.daily_series
            ])
            fig = px.bar(
                df,
                x="Day",
                y=["Income", "Expense"],
                barmode="group",
                color_discrete_sequence=["#10b981", "#ef4444"],
            )
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("No transactions yet.")


def render_history(runtime: LedgerRuntime, flow: LedgerFlow, transactions):
    """Transaction list, newest first, with a confirmed delete per row."""
    st.subheader("History")
    st.caption(f"{len(transactions)} transactions")

    if not transactions:
        st.info("📭 No records found. What did you spend today?")
        return

    pending = st.session_state.get("confirm_delete")

    for t in transactions:
        sign = "" if t.type == TransactionType.INCOME else "-"
        col_a, col_b, col_c = st.columns([4, 2, 1])
        with col_a:
            st.markdown(f"**{t.description}**")
            st.caption(f"{t.category} • {t.date.strftime('%d/%m/%Y')}")
        with col_b:
            st.markdown(f"{sign}{money(t.amount)}")
        with col_c:
            if st.button("🗑️", key=f"delete_{t.id}", help="Delete record"):
                st.session_state.confirm_delete = str(t.id)
                st.rerun()

        if pending == str(t.id):
            st.warning("Are you sure you want to delete this record?")
            yes, no = st.columns(2)
            if yes.button("✅ Delete", key=f"confirm_{t.id}"):
                runtime.call(flow.delete_transaction, t.id)
                st.session_state.confirm_delete = None
                st.rerun()
            if no.button("❌ Cancel", key=f"cancel_{t.id}"):
                st.session_state.confirm_delete = None
                st.rerun()


def render_clear_all(runtime: LedgerRuntime, flow: LedgerFlow):
    """Clear-all button with a confirmation step."""
    if st.button("Clear All Data"):
        st.session_state.confirm_clear = True

    if st.session_state.get("confirm_clear", False):
        st.warning("Clear ALL history? This cannot be undone.")
        yes, no = st.columns(2)
        if yes.button("✅ Confirm", key="confirm_clear_btn"):
            runtime.call(flow.clear_all)
            st.session_state.confirm_clear = False
            st.rerun()
        if no.button("❌ Cancel", key="cancel_clear_btn"):
            st.session_state.confirm_clear = False
            st.rerun()


if __name__ == "__main__":
    main()
