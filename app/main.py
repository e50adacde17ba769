"""
Streamlit Frontend for Finance Tracker

Pages: Dashboard, Transactions, Upload Receipt, Reports, Analysis,
Investments and Settings, behind a sign-in screen.

DESIGN PRINCIPLES:
1. Every page works from one snapshot of the user's data, reloaded per run
2. Failures show a toast or an error box, never a stack trace
3. Receipt extractions are only saved through the review form

Run with:
    streamlit run app/main.py
"""

import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal

import plotly.graph_objects as go
import streamlit as st
from pydantic import ValidationError

from finance_tracker.config import get_settings, validate_all_settings
from finance_tracker.models import (
    ACCOUNT_TYPES,
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    InvestmentType,
    ReportType,
    TransactionType,
    categories_for,
    form_errors,
)
from finance_tracker.orchestrator import (
    AppComponents,
    ReceiptRejectedError,
    create_app_components,
)
from finance_tracker.reports import (
    ExportError,
    dashboard_summary,
    export_filename,
    export_period_csv,
    export_user_data_json,
    filter_transactions,
    period_report,
    portfolio_summary,
    spending_analysis,
)
from finance_tracker.services.auth import AuthError, UserSession, clear_user_state
from finance_tracker.services.data_service import FinanceDataService, FinanceSnapshot
from finance_tracker.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

CURRENCY = get_settings().app.currency_symbol

INSIGHT_ICONS = {"positive": "✅", "warning": "⚠️", "info": "💡"}


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
    return create_app_components(use_storage=True)


def money(value) -> str:
    return f"{CURRENCY}{Decimal(value):,.2f}"


def chart_layout(**overrides) -> dict:
    """Shared Plotly layout."""
    base = dict(
        template="plotly",
        paper_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=40, r=20, t=40, b=40),
    )
    base.update(overrides)
    return base


def log_event(components: AppComponents, event: ActivityEvent):
    run_async(components.activity_logger.log(event))


def show_form_errors(exc: ValidationError):
    for field, message in form_errors(exc).items():
        st.error(f"{field.replace('_', ' ').title()}: {message}")


def run_action(action, success: str) -> bool:
    """
    Run a data-service call, toasting the outcome.

    Returns True when it succeeded.
    """
    try:
        run_async(action)
    except ValidationError as e:
        show_form_errors(e)
        return False
    except StorageError as e:
        st.toast(f"Could not save your changes: {e}", icon="❌")
        return False
    st.toast(success, icon="✅")
    return True


def delete_confirmed(key: str, what: str) -> bool:
    """Delete button that stays disabled until the user ticks the confirmation box."""
    sure = st.checkbox(f"Yes, delete this {what}", key=f"confirm_{key}")
    return st.button("🗑️ Delete", key=key, disabled=not sure)


# ===== AUTH =====

def render_auth_page(components: AppComponents):
    """Sign in / register / reset password."""
    st.title("💰 Finance Tracker")
    st.markdown("Track accounts, transactions, receipts and investments in one place.")

    auth = components.auth_service
    if auth is None:
        st.error(
            "Sign-in is not configured. Set FIREBASE_API_KEY in your `.env` file."
        )
        if get_settings().app.app_environment == "development":
            if st.button("Continue in demo mode"):
                st.session_state.user = UserSession(
                    uid="demo-user",
                    email="demo@localhost",
                    display_name="Demo",
                    id_token="",
                    refresh_token="",
                    expires_at=datetime.max.replace(tzinfo=timezone.utc),
                )
                st.rerun()
        return

    sign_in_tab, register_tab, reset_tab = st.tabs(["Sign In", "Register", "Forgot Password"])

    with sign_in_tab:
        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign In", type="primary"):
                try:
                    user = run_async(auth.sign_in(email, password))
                except AuthError as e:
                    log_event(components, ActivityEventBuilder.sign_in_failed(email, str(e)))
                    st.error(str(e))
                else:
                    log_event(components, ActivityEventBuilder.user_signed_in(user.uid, user.email))
                    st.session_state.user = user
                    st.rerun()

    with register_tab:
        with st.form("register"):
            name = st.text_input("Full Name")
            email = st.text_input("Email", key="register_email")
            password = st.text_input("Password", type="password", key="register_password")
            confirm = st.text_input("Confirm Password", type="password")
            if st.form_submit_button("Create Account", type="primary"):
                if password != confirm:
                    st.error("Passwords do not match")
                else:
                    try:
                        user = run_async(
                            auth.sign_up(email, password, display_name=name or None)
                        )
                    except AuthError as e:
                        st.error(str(e))
                    else:
                        log_event(
                            components,
                            ActivityEventBuilder.user_signed_in(user.uid, user.email, signed_up=True),
                        )
                        st.session_state.user = user
                        st.rerun()

    with reset_tab:
        with st.form("reset"):
            email = st.text_input("Email", key="reset_email")
            if st.form_submit_button("Send Reset Link"):
                try:
                    run_async(auth.send_password_reset(email))
                    log_event(components, ActivityEvent(
                        event_type=ActivityEventType.PASSWORD_RESET_REQUESTED,
                        entity_type="user",
                        description="Password reset requested",
                    ))
                    st.success("Password reset email sent. Check your inbox.")
                except AuthError as e:
                    st.error(str(e))


def current_user(components: AppComponents):
    """Signed-in user, refreshing an expired token once."""
    user = st.session_state.get("user")
    if user is None or not user.is_expired or components.auth_service is None:
        return user
    try:
        user = run_async(components.auth_service.refresh(user))
        st.session_state.user = user
        return user
    except AuthError:
        clear_user_state(st.session_state)
        st.warning("Your session has expired. Please sign in again.")
        return None


# ===== MAIN =====

def main():
    """Main application entry point."""
    components = get_components()
    user = current_user(components)

    if user is None:
        render_auth_page(components)
        return

    service = components.data_service(user.uid)
    try:
        snapshot = run_async(service.load())
    except StorageError as e:
        st.error(f"Could not load your data: {e}")
        st.stop()

    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.caption(user.display_name or user.email)
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "📊 Dashboard",
            "💳 Transactions",
            "📤 Upload Receipt",
            "📑 Reports",
            "🔍 Analysis",
            "📈 Investments",
            "⚙️ Settings",
        ],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("Sign Out"):
        log_event(components, ActivityEvent(
            event_type=ActivityEventType.USER_SIGNED_OUT,
            user_id=user.uid,
            entity_type="user",
            description="User signed out",
        ))
        clear_user_state(st.session_state)
        st.rerun()

    if page == "📊 Dashboard":
        render_dashboard_page(snapshot)
    elif page == "💳 Transactions":
        render_transactions_page(service, snapshot)
    elif page == "📤 Upload Receipt":
        render_upload_page(components, service, snapshot)
    elif page == "📑 Reports":
        render_reports_page(snapshot)
    elif page == "🔍 Analysis":
        render_analysis_page(components, snapshot, user.uid)
    elif page == "📈 Investments":
        render_investments_page(service, snapshot)
    elif page == "⚙️ Settings":
        render_settings_page(components, service, snapshot, user)


# ===== DASHBOARD =====

def render_dashboard_page(snapshot: FinanceSnapshot):
    st.title("📊 Dashboard")
    summary = dashboard_summary(
        snapshot.accounts,
        snapshot.transactions,
        snapshot.investments,
        today=date.today(),
        months=get_settings().app.trend_months,
    )

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Balance", money(summary.total_balance))
    col2.metric("Income (this month)", money(summary.month.income))
    col3.metric("Expenses (this month)", money(summary.month.expenses))
    col4.metric(
        "Savings (this month)",
        money(summary.month.net),
        delta=f"{summary.month.savings_rate:.1f}%",
    )

    left, right = st.columns(2)
    with left:
        st.subheader("Income vs Expenses")
        labels = [p.label for p in summary.monthly_trend]
        fig = go.Figure([
            go.Bar(name="Income", x=labels, y=[float(p.income) for p in summary.monthly_trend]),
            go.Bar(name="Expenses", x=labels, y=[float(p.expenses) for p in summary.monthly_trend]),
        ])
        fig.update_layout(**chart_layout(barmode="group", height=340))
        st.plotly_chart(fig, use_container_width=True)

    with right:
        st.subheader("Spending by Category")
        if summary.category_data:
            fig = go.Figure(go.Pie(
                labels=[c.category for c in summary.category_data],
                values=[float(c.amount) for c in summary.category_data],
                hole=0.4,
            ))
            fig.update_layout(**chart_layout(height=340))
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("No expenses this month yet.")

    col1, col2 = st.columns(2)
    col1.metric("Portfolio Value", money(summary.portfolio_value))
    col2.metric("Portfolio Gain/Loss", money(summary.portfolio_gain_loss))

    st.subheader("Recent Transactions")
    by_id = {t.id: t for t in snapshot.transactions}
    recent = [by_id[i] for i in summary.recent_transactions]
    if recent:
        st.dataframe(transaction_rows(recent, snapshot), use_container_width=True)
    else:
        st.info("No transactions yet. Add one on the Transactions page.")


def transaction_rows(transactions, snapshot: FinanceSnapshot) -> list[dict]:
    return [
        {
            "Date": t.date.isoformat(),
            "Description": t.description,
            "Category": t.category,
            "Type": t.type.value.title(),
            "Amount": float(t.signed_amount),
            "Account": snapshot.account_name(t.account_id),
            "Receipt": t.receipt_url or "",
        }
        for t in transactions
    ]


# ===== TRANSACTIONS =====

def transaction_form(key: str, snapshot: FinanceSnapshot, existing=None) -> dict | None:
    """Render the add/edit transaction form and return submitted values."""
    type_options = [TransactionType.EXPENSE, TransactionType.INCOME]
    tx_type = st.radio(
        "Type",
        type_options,
        index=type_options.index(existing.type) if existing else 0,
        format_func=lambda t: t.value.title(),
        horizontal=True,
        key=f"{key}_type",
    )
    categories = list(categories_for(tx_type))

    with st.form(key):
        account_ids = [a.id for a in snapshot.accounts]
        account_id = st.selectbox(
            "Account *",
            account_ids,
            index=account_ids.index(existing.account_id)
            if existing and existing.account_id in account_ids else 0,
            format_func=snapshot.account_name,
        )
        amount = st.number_input(
            f"Amount ({CURRENCY}) *",
            min_value=0.0,
            value=float(existing.amount) if existing else 0.0,
            step=0.01,
            format="%.2f",
        )
        category = st.selectbox(
            "Category *",
            categories,
            index=categories.index(existing.category)
            if existing and existing.category in categories else 0,
        )
        description = st.text_input(
            "Description *", value=existing.description if existing else ""
        )
        tx_date = st.date_input("Date *", value=existing.date if existing else date.today())
        notes = st.text_area("Notes", value=(existing.notes or "") if existing else "")
        submitted = st.form_submit_button("Save", type="primary")

    if not submitted:
        return None
    return {
        "account_id": account_id,
        "type": tx_type,
        "amount": Decimal(str(amount)),
        "category": category,
        "description": description,
        "date": tx_date,
        "notes": notes or None,
    }


def render_transactions_page(service: FinanceDataService, snapshot: FinanceSnapshot):
    st.title("💳 Transactions")

    if not snapshot.accounts:
        st.warning("Add an account on the Settings page before recording transactions.")
        return

    with st.expander("➕ Add Transaction"):
        values = transaction_form("add_transaction", snapshot)
        if values and run_action(service.add_transaction(**values), "Transaction added"):
            st.rerun()

    col1, col2, col3 = st.columns(3)
    search = col1.text_input("Search", placeholder="Description or category")
    type_filter = col2.selectbox("Type", ["all", "income", "expense"])
    category_filter = col3.selectbox(
        "Category",
        ["all"] + sorted(set(EXPENSE_CATEGORIES) | set(INCOME_CATEGORIES)),
    )

    filtered = filter_transactions(snapshot.transactions, search, type_filter, category_filter)
    st.caption(f"{len(filtered)} of {len(snapshot.transactions)} transactions")

    for transaction in filtered:
        label = (
            f"{transaction.date.isoformat()}  |  {transaction.description}  |  "
            f"{'+' if transaction.type == TransactionType.INCOME else '-'}"
            f"{money(transaction.amount)}  |  {transaction.category}"
        )
        with st.expander(label):
            st.caption(f"Account: {snapshot.account_name(transaction.account_id)}")
            if transaction.receipt_url:
                st.markdown(f"[View receipt]({transaction.receipt_url})")
            values = transaction_form(f"edit_{transaction.id}", snapshot, existing=transaction)
            if values and run_action(
                service.update_transaction(transaction.id, values), "Transaction updated"
            ):
                st.rerun()
            if delete_confirmed(f"delete_{transaction.id}", "transaction"):
                if run_action(service.delete_transaction(transaction.id), "Transaction deleted"):
                    st.rerun()


# ===== UPLOAD RECEIPT =====

def render_upload_page(
    components: AppComponents,
    service: FinanceDataService,
    snapshot: FinanceSnapshot,
):
    st.title("📤 Upload Receipt")
    st.markdown("Upload a photo of a receipt and review the details before saving.")
    flow = components.upload_flow

    if not snapshot.accounts:
        st.warning("Add an account on the Settings page first.")
        return

    if "receipt_result" not in st.session_state:
        st.session_state.receipt_result = None

    uploaded_file = st.file_uploader(
        "Choose a receipt photo",
        type=get_settings().app.supported_formats_list,
        help="JPG, PNG or WEBP, up to 10MB",
    )

    if uploaded_file and st.button("🔍 Process Receipt", type="primary"):
        try:
            upload = flow.check_file(uploaded_file.name, uploaded_file.size, uploaded_file.type)
            with st.spinner("Reading your receipt... Please wait."):
                st.session_state.receipt_result = run_async(
                    flow.process(uploaded_file.getvalue(), upload, user_id=service.user_id)
                )
        except ReceiptRejectedError as e:
            st.session_state.receipt_result = None
            st.error(str(e))

    result = st.session_state.receipt_result
    if result is None:
        return

    st.markdown("---")
    st.subheader("📋 Review Extracted Data")
    if result.validation.is_valid and not result.validation.warnings:
        st.success(result.summary)
    else:
        st.warning(result.summary)
    if result.hosting_error:
        st.info("The receipt image could not be stored; the transaction will be saved without it.")

    draft = result.draft
    account_ids = [a.id for a in snapshot.accounts]
    categories = list(EXPENSE_CATEGORIES)

    with st.form("receipt_review"):
        account_id = st.selectbox("Account *", account_ids, format_func=snapshot.account_name)
        amount = st.number_input(
            f"Amount ({CURRENCY}) *",
            min_value=0.0,
            value=float(draft.amount) if draft.amount else 0.0,
            step=0.01,
            format="%.2f",
        )
        category = st.selectbox(
            "Category *",
            categories,
            index=categories.index(draft.category) if draft.category in categories else 0,
        )
        description = st.text_input("Description *", value=draft.description or "")
        tx_date = st.date_input("Date *", value=draft.date or date.today())
        notes = st.text_area("Notes")
        col1, col2 = st.columns(2)
        save = col1.form_submit_button("✅ Save Transaction", type="primary")
        discard = col2.form_submit_button("❌ Discard")

    if save:
        try:
            run_async(flow.confirm(
                service,
                account_id=account_id,
                amount=Decimal(str(amount)),
                category=category,
                description=description,
                date=tx_date,
                notes=notes or None,
                receipt_url=result.receipt_url,
            ))
        except ValidationError as e:
            show_form_errors(e)
        except StorageError as e:
            st.toast(f"Could not save the transaction: {e}", icon="❌")
        else:
            st.session_state.receipt_result = None
            st.toast("Transaction saved", icon="✅")
            st.rerun()

    if discard:
        st.session_state.receipt_result = None
        st.rerun()


# ===== REPORTS =====

def render_reports_page(snapshot: FinanceSnapshot):
    st.title("📑 Reports")

    col1, col2 = st.columns(2)
    report_type = col1.selectbox(
        "Report Type",
        list(ReportType),
        format_func=lambda r: r.value.title(),
    )
    period = col2.date_input("Period", value=date.today())

    report = period_report(snapshot.accounts, snapshot.transactions, report_type, period)
    st.caption(
        f"Period: {report.period_start.strftime('%b %d')} - "
        f"{report.period_end.strftime('%b %d, %Y')}"
    )

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", money(report.totals.income))
    col2.metric("Expenses", money(report.totals.expenses))
    col3.metric("Net Savings", money(report.totals.net))
    col4.metric("Transactions", report.transaction_count)

    if report.trend:
        labels = [p.label for p in report.trend]
        fig = go.Figure([
            go.Scatter(name="Income", x=labels, y=[float(p.income) for p in report.trend]),
            go.Scatter(name="Expenses", x=labels, y=[float(p.expenses) for p in report.trend]),
        ])
        fig.update_layout(**chart_layout(height=340))
        st.plotly_chart(fig, use_container_width=True)

    left, right = st.columns(2)
    with left:
        st.subheader("Expenses by Category")
        if report.category_data:
            st.dataframe(
                [
                    {"Category": c.category, "Amount": float(c.amount), "Share %": c.percentage}
                    for c in report.category_data
                ],
                use_container_width=True,
            )
        else:
            st.info("No expenses in this period.")
    with right:
        st.subheader("By Account")
        st.dataframe(
            [
                {
                    "Account": a.account,
                    "Income": float(a.income),
                    "Expenses": float(a.expenses),
                    "Net": float(a.net),
                }
                for a in report.account_breakdown
            ],
            use_container_width=True,
        )

    try:
        csv_text = export_period_csv(
            snapshot.transactions, snapshot.accounts, report_type, period
        )
    except ExportError as e:
        st.info(str(e))
    else:
        st.download_button(
            "⬇️ Export CSV",
            data=csv_text,
            file_name=export_filename(period),
            mime="text/csv",
        )


# ===== ANALYSIS =====

def render_analysis_page(components: AppComponents, snapshot: FinanceSnapshot, user_id: str):
    st.title("🔍 Spending Analysis")
    analysis = spending_analysis(
        snapshot.transactions,
        today=date.today(),
        months=get_settings().app.trend_months,
    )

    col1, col2, col3, col4 = st.columns(4)
    col1.metric(
        "Income (this month)",
        money(analysis.current.income),
        delta=f"{analysis.income_change:.1f}%",
    )
    col2.metric(
        "Expenses (this month)",
        money(analysis.current.expenses),
        delta=f"{analysis.expense_change:.1f}%",
        delta_color="inverse",
    )
    col3.metric("Avg Monthly Expenses", money(analysis.average_monthly_expenses))
    col4.metric("Avg Savings Rate", f"{analysis.average_savings_rate:.1f}%")

    labels = [p.label for p in analysis.monthly_data]
    fig = go.Figure([
        go.Bar(name="Savings", x=labels, y=[float(p.net) for p in analysis.monthly_data]),
        go.Scatter(
            name="Savings Rate %",
            x=labels,
            y=[p.savings_rate for p in analysis.monthly_data],
            yaxis="y2",
        ),
    ])
    fig.update_layout(**chart_layout(
        height=340,
        yaxis2=dict(overlaying="y", side="right", title="%"),
    ))
    st.plotly_chart(fig, use_container_width=True)

    st.subheader("Top Categories This Month")
    for category in analysis.top_categories:
        st.markdown(f"**{category.category}** {money(category.amount)} ({category.percentage:.1f}%)")
        st.progress(min(category.percentage / 100, 1.0))

    st.subheader("AI Insights")
    if st.button("✨ Generate Insights", type="primary"):
        if not snapshot.transactions:
            st.info("Add some transactions first.")
        else:
            with st.spinner("Analyzing your finances..."):
                st.session_state.insights = run_async(
                    components.insight_flow.generate(snapshot, user_id=user_id)
                )

    for insight in st.session_state.get("insights", []):
        icon = INSIGHT_ICONS.get(insight.type.value, "💡")
        st.markdown(f"#### {icon} {insight.title}")
        st.markdown(insight.message)
        if insight.recommendation:
            st.caption(f"Recommendation: {insight.recommendation}")


# ===== INVESTMENTS =====

def render_investments_page(service: FinanceDataService, snapshot: FinanceSnapshot):
    st.title("📈 Investments")
    summary = portfolio_summary(snapshot.investments)

    col1, col2, col3 = st.columns(3)
    col1.metric("Current Value", money(summary.total_value))
    col2.metric("Invested", money(summary.total_cost))
    col3.metric(
        "Gain/Loss",
        money(summary.total_gain_loss),
        delta=f"{summary.total_gain_loss_percentage:.2f}%",
    )

    with st.expander("➕ Add Investment"):
        with st.form("add_investment"):
            name = st.text_input("Name *")
            inv_type = st.selectbox("Type *", list(InvestmentType), format_func=lambda t: t.label)
            quantity = st.number_input("Quantity *", min_value=0.0, step=1.0)
            buy_price = st.number_input(f"Buy Price ({CURRENCY}) *", min_value=0.0, step=0.01)
            current_price = st.number_input(
                f"Current Price ({CURRENCY}) *", min_value=0.0, step=0.01
            )
            if st.form_submit_button("Save", type="primary"):
                if run_action(
                    service.add_investment(
                        name=name,
                        type=inv_type,
                        quantity=Decimal(str(quantity)),
                        buy_price=Decimal(str(buy_price)),
                        current_price=Decimal(str(current_price)),
                    ),
                    "Investment added",
                ):
                    st.rerun()

    if summary.type_data:
        fig = go.Figure(go.Pie(
            labels=[b.name for b in summary.type_data],
            values=[float(b.value) for b in summary.type_data],
            hole=0.4,
        ))
        fig.update_layout(**chart_layout(height=320))
        st.plotly_chart(fig, use_container_width=True)

    for perf in summary.investments:
        label = (
            f"{perf.name} ({perf.type.label})  |  {money(perf.current_value)}  |  "
            f"{perf.gain_loss_percentage:+.2f}%"
        )
        with st.expander(label):
            with st.form(f"edit_investment_{perf.investment_id}"):
                types = list(InvestmentType)
                name = st.text_input("Name", value=perf.name)
                inv_type = st.selectbox(
                    "Type",
                    types,
                    index=types.index(perf.type),
                    format_func=lambda t: t.label,
                )
                quantity = st.number_input(
                    "Quantity", min_value=0.0, value=float(perf.quantity), step=1.0
                )
                buy_price = st.number_input(
                    f"Buy Price ({CURRENCY})",
                    min_value=0.0,
                    value=float(perf.buy_price),
                    step=0.01,
                )
                current_price = st.number_input(
                    f"Current Price ({CURRENCY})",
                    min_value=0.0,
                    value=float(perf.current_price),
                    step=0.01,
                )
                if st.form_submit_button("Update"):
                    if run_action(
                        service.update_investment(
                            perf.investment_id,
                            {
                                "name": name,
                                "type": inv_type,
                                "quantity": Decimal(str(quantity)),
                                "buy_price": Decimal(str(buy_price)),
                                "current_price": Decimal(str(current_price)),
                            },
                        ),
                        "Investment updated",
                    ):
                        st.rerun()
            if delete_confirmed(f"delete_inv_{perf.investment_id}", "investment"):
                if run_action(service.delete_investment(perf.investment_id), "Investment deleted"):
                    st.rerun()


# ===== SETTINGS =====

def render_settings_page(
    components: AppComponents,
    service: FinanceDataService,
    snapshot: FinanceSnapshot,
    user: UserSession,
):
    st.title("⚙️ Settings")

    st.markdown("### Profile")
    st.markdown(f"**Name:** {user.display_name or '-'}  \n**Email:** {user.email}")

    st.markdown("### Accounts")
    with st.expander("➕ Add Account"):
        with st.form("add_account"):
            name = st.text_input("Account Name *")
            acc_type = st.selectbox("Account Type *", ACCOUNT_TYPES)
            balance = st.number_input(f"Balance ({CURRENCY}) *", min_value=0.0, step=0.01)
            if st.form_submit_button("Save", type="primary"):
                if run_action(
                    service.add_account(
                        name=name, type=acc_type, balance=Decimal(str(balance))
                    ),
                    "Account added",
                ):
                    st.rerun()

    for account in snapshot.accounts:
        with st.expander(f"{account.name} ({account.type})  |  {money(account.balance)}"):
            with st.form(f"edit_account_{account.id}"):
                name = st.text_input("Account Name", value=account.name)
                types = list(ACCOUNT_TYPES)
                acc_type = st.selectbox(
                    "Account Type",
                    types,
                    index=types.index(account.type) if account.type in types else 0,
                )
                balance = st.number_input(
                    f"Balance ({CURRENCY})",
                    min_value=0.0,
                    value=float(account.balance),
                    step=0.01,
                )
                if st.form_submit_button("Update"):
                    if run_action(
                        service.update_account(
                            account.id,
                            {"name": name, "type": acc_type, "balance": Decimal(str(balance))},
                        ),
                        "Account updated",
                    ):
                        st.rerun()
            if delete_confirmed(f"delete_acc_{account.id}", "account"):
                if run_action(service.delete_account(account.id), "Account deleted"):
                    st.rerun()

    st.markdown("### Export Data")
    if st.download_button(
        "⬇️ Download all data (JSON)",
        data=export_user_data_json(
            service.user_id,
            snapshot.accounts,
            snapshot.transactions,
            snapshot.investments,
        ),
        file_name=f"finance-tracker-{date.today().isoformat()}.json",
        mime="application/json",
    ):
        log_event(components, ActivityEvent(
            event_type=ActivityEventType.EXPORT_CREATED,
            user_id=user.uid,
            description="User data exported",
            details={"format": "json"},
        ))

    st.markdown("### Connection Status")
    status = validate_all_settings()
    services = [
        ("Firebase (Sign-in)", "identity"),
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (AI)", "gemini"),
        ("Cloudinary (Receipt Images)", "cloudinary"),
    ]
    for label, key in services:
        if status.get(key, False):
            st.success(f"✅ {label} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {label} - {error}")
    st.caption(f"Storage backend in use: {components.storage_backend}")

    recent = components.activity_logger.recent_events(user.uid)
    if recent:
        with st.expander("Recent activity"):
            for event in recent[:20]:
                st.text(f"{event.timestamp:%Y-%m-%d %H:%M}  {event.description}")


if __name__ == "__main__":
    main()
