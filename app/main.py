"""
Streamlit Frontend for Expense Tracker

This is the user interface people use day to day to record spending,
track savings goals and pull reports.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Clear error messages in simple language
3. Visual feedback for all operations
4. No hidden actions

Identity comes from the sidebar sign-in form. The hosted identity
provider is external; this app only ever sees the resulting user.
"""

import asyncio
from datetime import date, timedelta
from decimal import Decimal

import streamlit as st

from expense_tracker.auth import AuthenticationError
from expense_tracker.config import get_settings, validate_all_settings
from expense_tracker.models.finance import (
    CategoryUpdate,
    ContactCreate,
    ContactPriority,
    DateRange,
    GoalCreate,
    GoalPriority,
    GoalStatus,
    GoalUpdate,
    TransactionCreate,
    TransactionType,
    UserIdentity,
    VoucherStatus,
    VoucherType,
)
from expense_tracker.orchestrator import AppComponents, create_app_components
from expense_tracker.services.storage import BackendError
from expense_tracker.stores import filter_transactions, filter_vouchers
from expense_tracker.validation import ValidationError


# Page configuration
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


PAGES = [
    "🏠 Dashboard",
    "💸 Expenses",
    "🎯 Goals",
    "🧾 Vouchers",
    "📊 Reports",
    "👥 Contacts",
    "📂 Categories",
    "⚙️ Settings",
]


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
    return create_app_components()


def money(amount) -> str:
    return f"{get_settings().app.currency_symbol}{amount:,.2f}"


def show_error(e: Exception) -> None:
    """Translate domain errors into plain messages."""
    if isinstance(e, AuthenticationError):
        st.error("Please sign in first.")
    elif isinstance(e, ValidationError):
        st.error("Please fix the following:")
        for issue in e.issues:
            st.markdown(f"- {issue.message}")
    elif isinstance(e, BackendError):
        st.error(f"Could not reach your data right now: {e}")
    else:
        st.error(f"Something went wrong: {e}")


def render_sign_in():
    """Sidebar sign-in; stores a UserIdentity in the session."""
    user = st.session_state.get("user")

    if user:
        st.sidebar.markdown(f"Signed in as **{user.display_name or user.uid}**")
        if st.sidebar.button("Sign out"):
            st.session_state.user = None
            st.rerun()
        return user

    with st.sidebar.form("sign_in"):
        st.markdown("**Sign in**")
        uid = st.text_input("User ID *")
        display_name = st.text_input("Name")
        email = st.text_input("Email")
        if st.form_submit_button("Sign in") and uid.strip():
            st.session_state.user = UserIdentity(
                uid=uid.strip(),
                display_name=display_name or None,
                email=email or None,
            )
            st.rerun()
    return None


def main():
    """Main application entry point."""
    components = get_components()

    # Sidebar navigation
    st.sidebar.title("💰 Expense Tracker")
    st.sidebar.markdown("---")
    user = render_sign_in()
    st.sidebar.markdown("---")

    page = st.sidebar.radio("Navigate to:", PAGES, index=0)

    if page == "⚙️ Settings":
        render_settings_page()
        return

    if user is None:
        st.markdown("""
        <div class="info-box">
            <h4>👋 Welcome</h4>
            <p>Sign in from the sidebar to start tracking your money.</p>
        </div>
        """, unsafe_allow_html=True)
        return

    # Route to appropriate page
    if page == "🏠 Dashboard":
        render_dashboard_page(components, user)
    elif page == "💸 Expenses":
        render_expenses_page(components, user)
    elif page == "🎯 Goals":
        render_goals_page(components, user)
    elif page == "🧾 Vouchers":
        render_vouchers_page(components, user)
    elif page == "📊 Reports":
        render_reports_page(components, user)
    elif page == "👥 Contacts":
        render_contacts_page(components, user)
    elif page == "📂 Categories":
        render_categories_page(components, user)


def render_dashboard_page(components: AppComponents, user: UserIdentity):
    st.title("🏠 Dashboard")

    try:
        stats = run_async(components.report_flow.dashboard(user))
        recent = run_async(components.transactions.list(user))[:5]
    except Exception as e:
        show_error(e)
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Balance", money(stats.total_balance))
    col2.metric("This Month's Expenses", money(stats.monthly_expenses))
    col3.metric("This Month's Income", money(stats.monthly_income))
    col4.metric("Saved Toward Goals", money(stats.total_saved))

    st.progress(stats.savings_progress / 100, text=f"Savings progress: {stats.savings_progress:.0f}%")
    st.caption(f"{stats.active_goals} active goals · {stats.completed_goals} completed")

    st.markdown("### Recent Transactions")
    if not recent:
        st.info("No transactions yet. Add one on the Expenses page.")
    for t in recent:
        sign = "+" if t.type == TransactionType.INCOME else "-"
        st.markdown(f"`{t.transaction_id}` {t.date:%d %b %Y} · {t.description or '—'} · **{sign}{money(t.amount)}**")


def render_expenses_page(components: AppComponents, user: UserIdentity):
    st.title("💸 Expenses")

    categories = run_async(components.categories.list_all(user))
    contacts = run_async(components.contacts.list(user))

    if not categories:
        st.warning("Create a category first on the Categories page.")

    with st.form("new_transaction", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            tx_type = st.radio(
                "Type",
                options=list(TransactionType),
                format_func=lambda x: x.value.title(),
                horizontal=True,
            )
            amount = st.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f")
            tx_date = st.date_input("Date *", value=date.today())
        with col2:
            category = st.selectbox(
                "Category *",
                options=categories,
                format_func=lambda c: f"{c.icon} {c.name}",
            )
            contact = st.selectbox(
                "Contact (optional)",
                options=[None] + contacts,
                format_func=lambda c: "—" if c is None else c.name,
            )
            issue_voucher = st.checkbox("Issue a voucher", value=True)
        description = st.text_area("Description")

        if st.form_submit_button("💾 Save", type="primary"):
            try:
                transaction, voucher = run_async(
                    components.transaction_flow.record(
                        user,
                        TransactionCreate(
                            amount=Decimal(str(amount)),
                            category_id=category.id if category else "",
                            contact_id=contact.id if contact else None,
                            description=description,
                            type=tx_type,
                            date=tx_date,
                        ),
                        issue_voucher=issue_voucher,
                    )
                )
                st.success(f"Saved {transaction.transaction_id}")
                if voucher:
                    st.info(f"Voucher {voucher.voucher_number} issued")
            except Exception as e:
                show_error(e)

    st.markdown("---")
    st.markdown("### All Transactions")

    names = {c.id: f"{c.icon} {c.name}" for c in categories}
    transactions = run_async(components.transactions.list(user))
    if not transactions:
        st.info("Nothing recorded yet.")

    search = st.text_input("🔍 Search", placeholder="Date, ID, category, contact, description, type or amount")
    transactions = filter_transactions(
        transactions,
        search,
        category_names={c.id: c.name for c in categories},
        contact_names={c.id: c.name for c in contacts},
    )
    if search and not transactions:
        st.info("No transactions match your search.")

    for t in transactions:
        col1, col2, col3, col4 = st.columns([4, 2, 1, 1])
        col1.markdown(
            f"`{t.transaction_id}` **{t.description or t.type.value.title()}**  \n"
            f"{t.date:%d %b %Y} · {names.get(t.category_id, t.category_id)}"
        )
        sign = "+" if t.type == TransactionType.INCOME else "-"
        col2.markdown(f"**{sign}{money(t.amount)}**")

        filename, pdf = run_async(components.report_flow.transaction_pdf(user, t))
        col3.download_button("PDF", data=pdf, file_name=filename, mime="application/pdf", key=f"tx_pdf_{t.id}")

        if col4.button("🗑️", key=f"del_tx_{t.id}"):
            try:
                run_async(components.transactions.delete(user, t.id))
                st.rerun()
            except Exception as e:
                show_error(e)


def render_goals_page(components: AppComponents, user: UserIdentity):
    st.title("🎯 Goals")

    with st.expander("➕ New Goal"):
        with st.form("new_goal", clear_on_submit=True):
            title = st.text_input("Title *")
            description = st.text_area("Description")
            col1, col2 = st.columns(2)
            with col1:
                target = st.number_input("Target Amount *", min_value=0.0, step=1.0, format="%.2f")
                current = st.number_input("Already Saved", min_value=0.0, step=1.0, format="%.2f")
            with col2:
                priority = st.selectbox(
                    "Priority",
                    options=list(GoalPriority),
                    index=1,
                    format_func=lambda x: x.value.title(),
                )
                target_date = st.date_input("Target Date", value=date.today() + timedelta(days=90))
            category = st.text_input("Category", value="other")

            if st.form_submit_button("Create Goal", type="primary"):
                try:
                    run_async(components.goals.create(user, GoalCreate(
                        title=title,
                        description=description,
                        target_amount=Decimal(str(target)),
                        current_amount=Decimal(str(current)),
                        category=category or "other",
                        priority=priority,
                        target_date=target_date,
                    )))
                    st.success("Goal created")
                except Exception as e:
                    show_error(e)

    goals = run_async(components.goals.list(user))
    if not goals:
        st.info("No goals yet.")

    for goal in goals:
        progress = (
            min(float(goal.current_amount / goal.target_amount * 100), 100.0)
            if goal.target_amount > 0 else 0.0
        )
        st.markdown(f"#### {goal.title} · _{goal.status.value}_")
        st.progress(progress / 100, text=f"{money(goal.current_amount)} of {money(goal.target_amount)}")

        col1, col2, col3 = st.columns([2, 1, 1])
        contribution = col1.number_input(
            "Contribution", min_value=0.0, step=1.0, key=f"contrib_{goal.id}",
        )
        if col2.button("Add", key=f"add_{goal.id}"):
            try:
                run_async(components.goal_flow.contribute(user, goal.id, Decimal(str(contribution))))
                st.rerun()
            except Exception as e:
                show_error(e)

        if goal.status == GoalStatus.ACTIVE and col3.button("Pause", key=f"pause_{goal.id}"):
            run_async(components.goals.update(user, goal.id, GoalUpdate(status=GoalStatus.PAUSED)))
            st.rerun()
        elif goal.status == GoalStatus.PAUSED and col3.button("Resume", key=f"resume_{goal.id}"):
            run_async(components.goals.update(user, goal.id, GoalUpdate(status=GoalStatus.ACTIVE)))
            st.rerun()

        if st.button("🗑️ Delete goal", key=f"del_goal_{goal.id}"):
            run_async(components.goals.delete(user, goal.id))
            st.rerun()
        st.markdown("---")


def render_vouchers_page(components: AppComponents, user: UserIdentity):
    st.title("🧾 Vouchers")

    col1, col2, col3 = st.columns(3)
    search = col1.text_input("Search", placeholder="Title, description or number")
    type_filter = col2.selectbox(
        "Type",
        options=[None] + list(VoucherType),
        format_func=lambda x: "All Types" if x is None else x.value.replace("_", " ").title(),
    )
    status_filter = col3.selectbox(
        "Status",
        options=[None] + list(VoucherStatus),
        format_func=lambda x: "All Statuses" if x is None else x.value.title(),
    )

    vouchers = filter_vouchers(
        run_async(components.vouchers.list(user)),
        search=search,
        voucher_type=type_filter,
        status=status_filter,
    )
    if not vouchers:
        st.info("No vouchers match.")

    for voucher in vouchers:
        col1, col2, col3, col4 = st.columns([4, 2, 1, 1])
        col1.markdown(
            f"**{voucher.title}** `{voucher.voucher_number}`  \n"
            f"{voucher.date:%d %b %Y} · {voucher.type.value.replace('_', ' ')} · {voucher.status.value}"
        )
        col2.markdown(f"**{money(voucher.amount)}**")

        filename, pdf = run_async(components.report_flow.voucher_pdf(user, voucher))
        col3.download_button("PDF", data=pdf, file_name=filename, mime="application/pdf", key=f"pdf_{voucher.id}")

        if voucher.status == VoucherStatus.ACTIVE and col4.button("Void", key=f"void_{voucher.id}"):
            try:
                run_async(components.vouchers.void(user, voucher.id))
                st.rerun()
            except Exception as e:
                show_error(e)


def render_reports_page(components: AppComponents, user: UserIdentity):
    st.title("📊 Reports")

    period = st.date_input("Date Range", value=[], help="Leave empty for all time")
    date_range = None
    if len(period) == 2:
        date_range = DateRange(start=period[0], end=period[1])
    elif len(period) == 1:
        date_range = DateRange(start=period[0])

    try:
        report = run_async(components.report_flow.build(user, date_range))
    except Exception as e:
        show_error(e)
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Income", money(report.total_income))
    col2.metric("Total Expenses", money(report.total_expenses))
    col3.metric("Net Income", money(report.net_income))

    st.markdown("### Monthly Trends")
    st.bar_chart(
        {
            "Expenses": {t.month: float(t.expenses) for t in report.monthly_trends},
            "Income": {t.month: float(t.income) for t in report.monthly_trends},
        }
    )

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("### Expenses by Category")
        for entry in report.expenses_by_category:
            st.markdown(f"- {entry.category}: **{money(entry.amount)}** ({entry.count})")
    with col2:
        st.markdown("### Income by Category")
        for entry in report.income_by_category:
            st.markdown(f"- {entry.category}: **{money(entry.amount)}** ({entry.count})")

    if report.goal_progress:
        st.markdown("### Goal Progress")
        for goal in report.goal_progress:
            st.progress(goal.progress / 100, text=f"{goal.title}: {goal.progress:.0f}%")

    st.markdown("---")
    col1, col2 = st.columns(2)
    csv_name, csv_bytes = run_async(components.report_flow.export_csv(user, report))
    col1.download_button("⬇️ Export as CSV", data=csv_bytes, file_name=csv_name, mime="text/csv")
    pdf_name, pdf_bytes = run_async(components.report_flow.export_pdf(user, report))
    col2.download_button("⬇️ Export as PDF", data=pdf_bytes, file_name=pdf_name, mime="application/pdf")


def render_contacts_page(components: AppComponents, user: UserIdentity):
    st.title("👥 Contacts")

    categories = run_async(components.categories.list_all(user))

    with st.form("new_contact", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name *")
            category = st.selectbox(
                "Category *",
                options=[None] + categories,
                format_func=lambda c: "Select a category" if c is None else f"{c.icon} {c.name}",
            )
            priority = st.selectbox(
                "Priority",
                options=list(ContactPriority),
                index=1,
                format_func=lambda x: x.value.title(),
            )
        with col2:
            phone = st.text_input("Phone")
            email = st.text_input("Email")
            address = st.text_input("Address")

        if st.form_submit_button("Save Contact", type="primary"):
            try:
                run_async(components.contacts.create(user, ContactCreate(
                    name=name,
                    category_id=category.id if category else "",
                    phone=phone,
                    email=email,
                    address=address,
                    priority=priority,
                )))
                st.success("Contact saved")
            except Exception as e:
                show_error(e)

    names = {c.id: c.name for c in categories}
    for contact in run_async(components.contacts.list(user)):
        col1, col2 = st.columns([5, 1])
        col1.markdown(
            f"**{contact.name}** · {names.get(contact.category_id, contact.category_id)}  \n"
            f"{contact.phone} {contact.email}"
        )
        if col2.button("🗑️", key=f"del_contact_{contact.id}"):
            run_async(components.contacts.delete(user, contact.id))
            st.rerun()


def render_categories_page(components: AppComponents, user: UserIdentity):
    st.title("📂 Categories")

    categories = run_async(components.categories.list_all(user))

    with st.form("new_category", clear_on_submit=True):
        col1, col2, col3 = st.columns([3, 1, 3])
        name = col1.text_input("Name *")
        icon = col2.text_input("Icon", value=get_settings().app.default_category_icon)
        parent = col3.selectbox(
            "Parent",
            options=[None] + categories,
            format_func=lambda c: "— top level —" if c is None else f"{c.icon} {c.name}",
        )
        if st.form_submit_button("Add Category", type="primary"):
            try:
                run_async(components.categories.create(
                    user, name, icon or None, parent.id if parent else None,
                ))
                st.rerun()
            except Exception as e:
                show_error(e)

    st.caption(f"Deleting a category with subcategories: **{components.categories.delete_policy}**")

    def render_node(node, depth: int = 0):
        category = node.category
        col1, col2, col3 = st.columns([5, 2, 1])
        col1.markdown(f"{'&nbsp;' * 6 * depth}{category.icon} **{category.name}**", unsafe_allow_html=True)
        new_name = col2.text_input("Rename", value=category.name, key=f"name_{category.id}", label_visibility="collapsed")
        if new_name and new_name != category.name:
            run_async(components.categories.update(user, category.id, CategoryUpdate(name=new_name)))
            st.rerun()
        if col3.button("🗑️", key=f"del_cat_{category.id}"):
            try:
                run_async(components.categories.delete(user, category.id))
                st.rerun()
            except Exception as e:
                show_error(e)
        for child in node.children:
            render_node(child, depth + 1)

    for root in run_async(components.categories.get_tree(user)):
        render_node(root)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()
    app_settings = get_settings().app

    if status.get("app", False):
        st.success(f"✅ Application settings loaded ({app_settings.app_environment})")
    else:
        st.error(f"❌ Application settings - {status.get('app_error', 'Invalid')}")

    if app_settings.storage_backend == "google_sheets":
        if status.get("google_sheets", False):
            st.success("✅ Google Sheets (Storage) - Configured")
        else:
            st.error(f"❌ Google Sheets (Storage) - {status.get('google_sheets_error', 'Not configured')}")
    else:
        st.info("ℹ️ Using in-memory storage. Data is lost when the app restarts.")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        f"- Voucher prefix: `{app_settings.voucher_prefix}`\n"
        f"- Currency symbol: `{app_settings.currency_symbol}`\n"
        f"- Category delete policy: `{app_settings.category_delete_policy}`"
    )
    st.markdown(
        "To configure the application, create a `.env` file. "
        "Set `STORAGE_BACKEND=google_sheets` plus the `GOOGLE_SHEETS_` variables "
        "to keep data in a spreadsheet."
    )


if __name__ == "__main__":
    main()
