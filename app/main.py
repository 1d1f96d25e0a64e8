"""
Streamlit Frontend for SmartCash

The dashboard people use to track their income and expenses.

DESIGN PRINCIPLES:
1. Summary first: balance, income and expenses at the top
2. Every change is visible immediately (the list is the source of truth)
3. Clear error messages with the provider's own text
4. Three kinds of errors, three presentations:
   - sync failures: a dismissable banner
   - validation and delete failures: a blocking error message
   - AI insight failures: silent (the panel just stays empty)

All state lives in one DashboardFlow per browser session.
"""

import asyncio
from datetime import date

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from smartcash.analytics import format_date_label, sorted_breakdown
from smartcash.config import remote_storage_configured, validate_all_settings
from smartcash.formatting import format_currency, format_signed_currency
from smartcash.models import (
    EXPENSE_CATEGORIES,
    Category,
    Guest,
    InsightSeverity,
    MAX_LENGTHS,
    TransactionForm,
    TransactionType,
)
from smartcash.orchestrator import DashboardFlow, create_app_components
from smartcash.services import AuthError, StorageError
from smartcash.validation import TransactionValidationError


# Page configuration
st.set_page_config(
    page_title="SmartCash",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .insight-box {
        padding: 16px;
        border-radius: 10px;
        margin: 8px 0;
        background-color: #f8f9fa;
    }
    .insight-low { border-left: 5px solid #28a745; }
    .insight-medium { border-left: 5px solid #ffc107; }
    .insight-high { border-left: 5px solid #dc3545; }
    .day-header {
        font-weight: bold;
        color: #2c3e50;
        margin-top: 16px;
    }
</style>
""", unsafe_allow_html=True)

SEVERITY_ICONS = {
    InsightSeverity.LOW: "🟢",
    InsightSeverity.MEDIUM: "🟡",
    InsightSeverity.HIGH: "🔴",
}

TYPE_FILTER_LABELS = {
    "all": "All",
    "income": "Income",
    "expense": "Expenses",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_flow() -> DashboardFlow:
    """Get or create the dashboard flow of this browser session."""
    if "flow" not in st.session_state:
        flow = create_app_components()
        run_async(flow.restore_session())
        # Provider events (token expiry, sign-out elsewhere) update the flow
        st.session_state.unsubscribe_session = flow.subscribe_to_session_changes()
        st.session_state.flow = flow
        st.session_state.insights = None
    return st.session_state.flow


def main():
    """Main application entry point."""
    flow = get_flow()

    if not flow.session.is_active:
        render_login_page(flow)
        return

    # Sidebar navigation
    st.sidebar.title("💰 SmartCash")
    if isinstance(flow.session, Guest):
        st.sidebar.caption("Demo mode (local data only)")
    else:
        st.sidebar.caption(f"Signed in as {flow.user_email}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "➕ Add Transaction", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    render_admin_toggle(flow)

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Sign out"):
        try:
            run_async(flow.sign_out())
            st.session_state.insights = None
            st.rerun()
        except AuthError as e:
            st.sidebar.error(f"Could not sign out: {e}")

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(flow)
    elif page == "➕ Add Transaction":
        render_add_transaction_page(flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_login_page(flow: DashboardFlow):
    """Render sign in / sign up / password reset / demo mode."""
    st.title("💰 SmartCash")
    st.markdown("Track your income and expenses, and get AI tips to save more.")

    if flow.connection_error:
        st.warning(f"⚠️ {flow.connection_error}")

    if not remote_storage_configured():
        st.info(
            "Supabase is not configured: accounts are local to this machine "
            "and transactions are stored in a local file."
        )

    sign_in_tab, sign_up_tab, reset_tab = st.tabs(["Sign in", "Create account", "Forgot password"])

    with sign_in_tab:
        with st.form("sign_in_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", type="primary")
        if submitted:
            with st.spinner("Signing in..."):
                try:
                    run_async(flow.sign_in(email, password))
                    st.rerun()
                except AuthError as e:
                    st.error(str(e))

    with sign_up_tab:
        with st.form("sign_up_form"):
            email = st.text_input("Email", key="sign_up_email")
            password = st.text_input("Password", type="password", key="sign_up_password")
            submitted = st.form_submit_button("Create account", type="primary")
        if submitted:
            try:
                session = run_async(flow.sign_up(email, password))
                if session.is_active:
                    st.rerun()
                st.success("Account created! Check your email to confirm it, then sign in.")
            except AuthError as e:
                st.error(str(e))

    with reset_tab:
        with st.form("reset_form"):
            email = st.text_input("Email", key="reset_email")
            submitted = st.form_submit_button("Send reset link")
        if submitted:
            try:
                run_async(flow.reset_password(email))
                st.success("If this email has an account, a reset link is on its way.")
            except AuthError as e:
                st.error(str(e))

    st.markdown("---")
    if st.button("🧪 Try the demo (no account)"):
        run_async(flow.start_guest_session())
        st.rerun()


def render_admin_toggle(flow: DashboardFlow):
    """Admin mode switch in the sidebar."""
    if not flow.admin_available:
        return

    if flow.admin_mode:
        st.sidebar.success("🛡️ Admin mode: all users")
        if st.sidebar.button("Leave admin mode"):
            run_async(flow.disable_admin())
            st.session_state.insights = None
            st.rerun()
        return

    with st.sidebar.expander("🛡️ Admin"):
        passphrase = st.text_input("Passphrase", type="password", key="admin_passphrase")
        if st.button("Enable admin mode"):
            if run_async(flow.enable_admin(passphrase)):
                st.session_state.insights = None
                st.rerun()
            else:
                st.error("Wrong passphrase")


def render_dashboard_page(flow: DashboardFlow):
    """Render the main dashboard."""
    st.title("📊 Admin Dashboard" if flow.admin_mode else "📊 Dashboard")

    # Sync banner
    if flow.connection_error:
        col1, col2 = st.columns([6, 1])
        with col1:
            st.warning(f"⚠️ Could not sync with the server: {flow.connection_error}")
        with col2:
            if st.button("Dismiss"):
                flow.dismiss_connection_error()
                st.rerun()

    _, refresh_col = st.columns([6, 1])
    with refresh_col:
        if st.button("🔄 Refresh"):
            with st.spinner("Loading transactions..."):
                run_async(flow.load_transactions())
            st.rerun()

    stats = flow.stats

    # Summary cards
    cards = st.columns(4 if flow.admin_mode else 3)
    cards[0].metric("Balance", format_currency(stats.total_balance))
    cards[1].metric("Income", format_currency(stats.total_income))
    cards[2].metric("Expenses", format_currency(stats.total_expenses))
    if flow.admin_mode:
        cards[3].metric("Users", stats.user_count or 0)

    st.markdown("---")

    # Charts
    chart_col1, chart_col2 = st.columns(2)
    with chart_col1:
        st.subheader("Spending by category")
        breakdown = sorted_breakdown(stats)
        if breakdown:
            df = pd.DataFrame(
                [{"Category": item.name, "Amount": float(item.value)} for item in breakdown]
            )
            fig = px.pie(df, names="Category", values="Amount", hole=0.5)
            fig.update_layout(margin=dict(t=10, b=10, l=10, r=10))
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("No expenses yet.")

    with chart_col2:
        st.subheader("Recent flow")
        flows = flow.chart_flow()
        if flows:
            labels = [f.date.strftime("%d/%m") for f in flows]
            fig = go.Figure()
            fig.add_trace(go.Bar(
                x=labels, y=[float(f.income) for f in flows],
                name="Income", marker_color="#28a745",
            ))
            fig.add_trace(go.Bar(
                x=labels, y=[float(f.expense) for f in flows],
                name="Expenses", marker_color="#dc3545",
            ))
            fig.update_layout(barmode="group", margin=dict(t=10, b=10, l=10, r=10))
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("No transactions yet.")

    # Admin ranking
    if flow.admin_mode:
        st.markdown("---")
        st.subheader("🏆 Users by spending")
        summaries = flow.user_summaries
        if summaries:
            st.dataframe(
                pd.DataFrame([
                    {
                        "User": s.email,
                        "Total spent": format_currency(s.total_spent),
                        "Expenses": s.transaction_count,
                        "Last activity": s.last_activity.strftime("%d/%m/%Y"),
                    }
                    for s in summaries
                ]),
                use_container_width=True,
                hide_index=True,
            )

    st.markdown("---")
    render_insights_panel(flow)

    st.markdown("---")
    render_transaction_list(flow)


def render_insights_panel(flow: DashboardFlow):
    """AI insights on demand. Failures just leave the panel empty."""
    col1, col2 = st.columns([4, 1])
    with col1:
        st.subheader("🤖 AI insights")
    with col2:
        generate = st.button("✨ Generate", disabled=not flow.transactions)

    if generate:
        with st.spinner("Analyzing your transactions..."):
            st.session_state.insights = run_async(flow.get_insights())

    insights = st.session_state.get("insights")
    if insights is None:
        st.caption("Click Generate to get tips based on your transactions.")
        return
    if not insights:
        st.caption("No insights available right now.")
        return

    for insight in insights:
        icon = SEVERITY_ICONS.get(insight.severity, "")
        st.markdown(f"""
        <div class="insight-box insight-{insight.severity.value}">
            <h4>{icon} {insight.title}</h4>
            <p>{insight.description}</p>
            <p><strong>💡 {insight.recommendation}</strong></p>
        </div>
        """, unsafe_allow_html=True)


def render_transaction_list(flow: DashboardFlow):
    """Searchable list grouped by day, with delete."""
    st.subheader("📋 Transactions")

    col1, col2 = st.columns([3, 2])
    with col1:
        search = st.text_input(
            "Search",
            placeholder="Description, category" + (", email" if flow.admin_mode else ""),
        )
    with col2:
        type_filter = st.radio(
            "Show",
            options=list(TYPE_FILTER_LABELS),
            format_func=lambda x: TYPE_FILTER_LABELS[x],
            horizontal=True,
        )

    groups = flow.visible_groups(search=search, type_filter=type_filter)
    if not groups:
        st.info("No transactions found.")
        return

    today = date.today()
    for group in groups:
        st.markdown(
            f'<div class="day-header">{format_date_label(group.date, today)} '
            f'· {format_signed_currency(group.daily_total)}</div>',
            unsafe_allow_html=True,
        )
        for transaction in group.transactions:
            col1, col2, col3 = st.columns([5, 2, 1])
            with col1:
                st.markdown(f"**{transaction.description}**")
                details = [transaction.category.value]
                if flow.admin_mode and transaction.user_email:
                    details.append(transaction.user_email)
                if transaction.payment_method:
                    details.append(transaction.payment_method)
                if transaction.location:
                    details.append(transaction.location)
                if transaction.tags:
                    details.append(" ".join(f"#{tag}" for tag in transaction.tags))
                st.caption(" · ".join(details))
            with col2:
                amount = format_currency(transaction.amount)
                if transaction.is_income:
                    st.markdown(f":green[+{amount}]")
                else:
                    st.markdown(f":red[-{amount}]")
            with col3:
                if st.button("🗑️", key=f"delete_{transaction.id}", help="Delete"):
                    outcome = run_async(flow.delete_transaction(transaction.id))
                    if outcome.succeeded:
                        st.rerun()
                    elif outcome.rolled_back:
                        st.error(f"Could not delete: {outcome.error_message}")
                    else:
                        st.error(
                            f"Could not delete on the server: {outcome.error_message}. "
                            "Refresh to see the stored list."
                        )


def render_add_transaction_page(flow: DashboardFlow):
    """Render the entry form."""
    st.title("➕ Add Transaction")

    transaction_type = st.radio(
        "Type",
        options=list(TransactionType),
        format_func=lambda x: "Expense" if x == TransactionType.EXPENSE else "Income",
        horizontal=True,
    )

    with st.form("transaction_form", clear_on_submit=True):
        col1, col2 = st.columns(2)

        with col1:
            description = st.text_input(
                "Description *",
                placeholder="e.g., Supermercado",
                max_chars=MAX_LENGTHS["description"],
            )
            amount = st.text_input(
                "Amount (R$) *",
                placeholder="e.g., 1.234,56",
            )
            transaction_date = st.date_input("Date *", value=date.today())

        with col2:
            if transaction_type == TransactionType.INCOME:
                # Income is always filed under Renda
                st.selectbox("Category", options=[Category.INCOME.value], disabled=True)
                category = Category.INCOME
            else:
                category = st.selectbox(
                    "Category *",
                    options=EXPENSE_CATEGORIES,
                    format_func=lambda x: x.value,
                )
            payment_method = st.text_input(
                "Payment method (optional)",
                placeholder="e.g., Pix",
                max_chars=MAX_LENGTHS["payment_method"],
            )
            location = st.text_input(
                "Location (optional)",
                max_chars=MAX_LENGTHS["location"],
            )

        tags = st.text_input("Tags (optional)", placeholder="Comma separated, e.g., mercado, mensal")
        notes = st.text_area("Notes (optional)", max_chars=MAX_LENGTHS["notes"])

        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        form = TransactionForm(
            description=description,
            amount=amount,
            date=transaction_date,
            category=category,
            type=transaction_type,
            notes=notes,
            location=location,
            payment_method=payment_method,
            tags=tags.split(",") if tags else [],
        )
        try:
            with st.spinner("Saving..."):
                created = run_async(flow.add_transaction(form))
            st.success(
                f"✅ Saved {created.description} ({format_currency(created.amount)})"
            )
        except TransactionValidationError as e:
            st.error(str(e))
        except StorageError as e:
            st.error(f"Could not save: {e}")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Supabase (Storage and Auth)", "supabase"),
        ("Gemini (AI insights)", "gemini"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if not status.get("supabase", False):
        st.info("Without Supabase, SmartCash runs in local mode.")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
