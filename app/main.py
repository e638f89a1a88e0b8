"""
Streamlit Frontend for Finance Tracker

The screens a signed-in user works with every day, plus the account
screens (sign in, register, password reset).

DESIGN PRINCIPLES:
1. The UI holds no account state of its own; AuthService does
2. Every finance call passes the actor from require_user()
3. Errors are shown with the message the service raised
4. Nothing is deleted without an explicit confirmation
"""

import asyncio
from datetime import date, datetime, time, timezone
from decimal import Decimal

import streamlit as st
from pydantic import ValidationError

from finance_tracker.config import validate_all_settings
from finance_tracker.models.transaction import (
    ExpenseCategory,
    IncomeCategory,
    SortBy,
    SortOrder,
    TransactionFilter,
)
from finance_tracker.orchestrator import AppComponents, create_app_components
from finance_tracker.services.auth import AuthError, InvalidInputError
from finance_tracker.services.finance import InvalidAmountError, RecordNotFoundError
from finance_tracker.services.storage import StorageError
from finance_tracker.validation import evaluate_password_strength


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)


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
    return create_app_components(use_file_storage=True)


def show_error(error: Exception) -> None:
    if isinstance(error, InvalidInputError):
        for issue in error.issues:
            st.error(issue.message)
    elif isinstance(error, ValidationError):
        for detail in error.errors():
            field = ".".join(str(part) for part in detail["loc"])
            st.error(f"{field}: {detail['msg']}")
    else:
        st.error(str(error))


def as_utc(day: date) -> datetime:
    return datetime.combine(day, time(12, 0), tzinfo=timezone.utc)


def ensure_restored(components: AppComponents) -> None:
    """Load the session on first run, and again once it has run out."""
    if components.auth.needs_restore:
        run_async(components.auth.restore())


def main():
    """Main application entry point."""
    components = get_components()
    ensure_restored(components)

    if components.auth.current_user is None:
        render_account_pages(components)
        return

    user = components.auth.current_user
    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.markdown(f"Signed in as **{user.name}**")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "💸 Expenses", "💵 Income", "👤 Profile"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("Sign out"):
        run_async(components.auth.sign_out())
        st.rerun()

    if page == "📊 Dashboard":
        render_dashboard_page(components)
    elif page == "💸 Expenses":
        render_transactions_page(components, kind="expense")
    elif page == "💵 Income":
        render_transactions_page(components, kind="income")
    elif page == "👤 Profile":
        render_profile_page(components)


# =============================================================================
# ACCOUNT PAGES
# =============================================================================

def render_account_pages(components: AppComponents):
    st.title("💰 Finance Tracker")
    sign_in_tab, register_tab, reset_tab = st.tabs(
        ["Sign in", "Register", "Forgot password"]
    )

    with sign_in_tab:
        render_sign_in(components)
    with register_tab:
        render_register(components)
    with reset_tab:
        render_password_reset(components)


def render_sign_in(components: AppComponents):
    with st.form("sign_in"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        remember_me = st.checkbox("Remember me")
        submitted = st.form_submit_button("Sign in")

    if submitted:
        try:
            run_async(components.auth.sign_in(email, password, remember_me=remember_me))
            st.rerun()
        except (AuthError, StorageError) as e:
            show_error(e)


def render_register(components: AppComponents):
    with st.form("register"):
        name = st.text_input("Full name")
        email = st.text_input("Email", key="register_email")
        password = st.text_input("Password", type="password", key="register_password")
        confirm = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button("Create account")

    if password:
        evaluation = evaluate_password_strength(password)
        st.caption(f"Strength: {evaluation.message}")

    if submitted:
        if password != confirm:
            st.error("Passwords do not match")
            return
        try:
            run_async(components.auth.sign_up(email, name, password))
            st.rerun()
        except (AuthError, StorageError) as e:
            show_error(e)


def render_password_reset(components: AppComponents):
    with st.form("request_reset"):
        email = st.text_input("Email", key="reset_email")
        requested = st.form_submit_button("Send reset code")

    if requested:
        try:
            expiry = run_async(components.auth.request_password_reset(email))
            st.session_state.reset_email = email.strip()
            st.success(f"A reset code was sent. It is valid until {expiry:%H:%M} UTC.")
        except (AuthError, StorageError) as e:
            show_error(e)

    if "reset_email" not in st.session_state:
        return

    with st.form("reset_password"):
        code = st.text_input("6-digit code", max_chars=6)
        new_password = st.text_input("New password", type="password", key="reset_new")
        submitted = st.form_submit_button("Reset password")

    if submitted:
        try:
            run_async(components.auth.reset_password(
                st.session_state.reset_email, code, new_password
            ))
            del st.session_state.reset_email
            st.success("Password updated. You can sign in now.")
        except (AuthError, StorageError) as e:
            show_error(e)


# =============================================================================
# SIGNED-IN PAGES
# =============================================================================

def render_dashboard_page(components: AppComponents):
    st.title("📊 Dashboard")
    actor = components.auth.require_user()
    dashboard = run_async(components.dashboard.build_dashboard(actor))

    overview = dashboard.overview
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Net income", f"{overview.net_income:.2f}", f"{overview.net_income_trend:.1f}%")
    col2.metric("Income", f"{overview.income_total:.2f}", f"{overview.income_trend:.1f}%")
    col3.metric(
        "Expenses",
        f"{overview.expense_total:.2f}",
        f"{overview.expense_trend:.1f}%",
        delta_color="inverse",
    )
    col4.metric("Savings rate", f"{overview.savings_rate:.1f}%")

    st.markdown("---")
    budget_col, savings_col = st.columns(2)

    with budget_col:
        st.subheader("Monthly budget")
        budget = dashboard.budget
        st.progress(min(budget.percentage_used, 100.0) / 100)
        st.write(
            f"{budget.spent:.2f} of {budget.monthly_budget:.2f} spent "
            f"({budget.percentage_used:.1f}% used)"
        )
        if budget.is_over_budget:
            st.warning(f"Over budget by {-budget.remaining:.2f}")
        with st.form("budget"):
            amount = st.number_input("New monthly budget", min_value=0.0, step=50.0)
            if st.form_submit_button("Update budget"):
                try:
                    run_async(components.budget.set_monthly_budget(actor, Decimal(str(amount))))
                    st.rerun()
                except (InvalidAmountError, StorageError) as e:
                    show_error(e)

    with savings_col:
        st.subheader("Savings goal")
        savings = dashboard.savings
        st.progress(min(savings.percentage, 100.0) / 100)
        st.write(
            f"{savings.current:.2f} of {savings.goal:.2f} "
            f"({savings.percentage:.1f}%, {savings.status.value.replace('_', ' ')})"
        )
        with st.form("savings"):
            deposit = st.number_input("Add to savings", min_value=0.0, step=10.0)
            goal = st.number_input("New goal (0 keeps current)", min_value=0.0, step=500.0)
            if st.form_submit_button("Save"):
                try:
                    if goal > 0:
                        run_async(components.budget.set_savings_goal(actor, Decimal(str(goal))))
                    if deposit > 0:
                        run_async(components.budget.add_to_savings(actor, Decimal(str(deposit))))
                    st.rerun()
                except (InvalidAmountError, StorageError) as e:
                    show_error(e)

    st.markdown("---")
    st.subheader("Monthly expenses")
    st.bar_chart({m.label: float(m.total) for m in dashboard.monthly_expenses})

    breakdown_col, income_col = st.columns(2)
    with breakdown_col:
        st.subheader("Expenses by category")
        for item in dashboard.expense_categories:
            st.write(f"{item.category}: {item.total:.2f} ({item.percentage:.1f}%)")
    with income_col:
        st.subheader("Income by category")
        for item in dashboard.income_categories:
            st.write(f"{item.category}: {item.total:.2f} ({item.percentage:.1f}%)")


def render_transactions_page(components: AppComponents, kind: str):
    actor = components.auth.require_user()
    if kind == "expense":
        store, categories, title = components.expenses, ExpenseCategory, "💸 Expenses"
    else:
        store, categories, title = components.incomes, IncomeCategory, "💵 Income"

    st.title(title)

    with st.expander(f"Add {kind}"):
        with st.form(f"add_{kind}"):
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
            description = st.text_input("Description")
            category = st.selectbox("Category", [c.value for c in categories])
            day = st.date_input("Date", value=date.today())
            if st.form_submit_button("Add"):
                try:
                    run_async(store.add(actor, {
                        "amount": Decimal(str(amount)).quantize(Decimal("0.01")),
                        "description": description,
                        "category": category,
                        "date": as_utc(day),
                    }))
                    st.success("Saved")
                except (ValidationError, StorageError) as e:
                    show_error(e)

    col1, col2, col3 = st.columns(3)
    with col1:
        category_filter = st.selectbox(
            "Category", ["All"] + [c.value for c in categories], key=f"{kind}_filter"
        )
    with col2:
        sort_by = st.selectbox("Sort by", [s.value for s in SortBy], key=f"{kind}_sort")
    with col3:
        order = st.selectbox("Order", [o.value for o in SortOrder], key=f"{kind}_order")

    from_col, to_col = st.columns(2)
    start_day = from_col.date_input("From", value=None, key=f"{kind}_from")
    end_day = to_col.date_input("To", value=None, key=f"{kind}_to")

    try:
        filters = TransactionFilter.for_days(
            category=None if category_filter == "All" else category_filter,
            start_day=start_day,
            end_day=end_day,
        )
    except ValidationError as e:
        show_error(e)
        return

    records = run_async(store.list_records(
        actor, filters=filters, sort_by=SortBy(sort_by), order=SortOrder(order)
    ))

    if not records:
        st.info(f"No {kind} records match.")
        return

    for record in records:
        row = st.columns([2, 4, 2, 2, 1, 1])
        row[0].write(record.occurred_at.strftime("%d %b %Y"))
        row[1].write(record.description)
        row[2].write(record.category.value)
        row[3].write(f"{record.amount:.2f}")
        if row[4].button("✏️", key=f"edit_{record.id}"):
            st.session_state.pending_edit = record.id
        if row[5].button("🗑️", key=f"delete_{record.id}"):
            st.session_state.pending_delete = record.id

    editing = next(
        (r for r in records if r.id == st.session_state.get("pending_edit")), None
    )
    if editing is not None:
        render_edit_form(store, actor, editing, categories, kind)

    pending = st.session_state.get("pending_delete")
    if pending and any(r.id == pending for r in records):
        st.warning("Delete this record? This cannot be undone.")
        confirm_col, cancel_col = st.columns(2)
        if confirm_col.button("Delete"):
            run_async(store.delete(actor, pending))
            del st.session_state.pending_delete
            st.rerun()
        if cancel_col.button("Cancel"):
            del st.session_state.pending_delete
            st.rerun()


def render_edit_form(store, actor, record, categories, kind: str):
    category_values = [c.value for c in categories]
    with st.form(f"edit_{kind}"):
        st.markdown(f"**Edit {kind}**")
        amount = st.number_input(
            "Amount", min_value=0.0, step=1.0, format="%.2f", value=float(record.amount)
        )
        description = st.text_input("Description", value=record.description)
        category = st.selectbox(
            "Category", category_values, index=category_values.index(record.category.value)
        )
        day = st.date_input("Date", value=record.occurred_at.date())
        save_col, cancel_col = st.columns(2)
        save = save_col.form_submit_button("Save")
        cancel = cancel_col.form_submit_button("Cancel")

    if cancel:
        del st.session_state.pending_edit
        st.rerun()
    if save:
        try:
            run_async(store.update(actor, record.id, {
                "amount": Decimal(str(amount)).quantize(Decimal("0.01")),
                "description": description,
                "category": category,
                "date": as_utc(day),
            }))
        except (ValidationError, RecordNotFoundError, StorageError) as e:
            show_error(e)
            return
        del st.session_state.pending_edit
        st.rerun()


def render_profile_page(components: AppComponents):
    st.title("👤 Profile")
    user = components.auth.require_user()

    with st.form("profile"):
        name = st.text_input("Full name", value=user.name)
        email = st.text_input("Email", value=user.email)
        if st.form_submit_button("Save changes"):
            try:
                run_async(components.auth.update_user_profile(name=name, email=email))
                st.success("Profile updated")
                st.rerun()
            except (AuthError, StorageError) as e:
                show_error(e)

    expiry = components.auth.session_expiry
    if expiry is not None:
        st.caption(f"Session valid until {expiry:%d %b %Y %H:%M} UTC")

    st.markdown("---")
    st.markdown("### Configuration")
    status = validate_all_settings()
    for name in ("storage", "auth", "app"):
        if status.get(name, False):
            st.success(f"✅ {name} settings loaded")
        else:
            st.error(f"❌ {name}: {status.get(f'{name}_error', 'invalid')}")


if __name__ == "__main__":
    main()
