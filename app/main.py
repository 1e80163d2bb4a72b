import locale
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date

import streamlit as st

from expenses.aggregation import available_years, dashboard_summary
from expenses.api import ApiClient
from expenses.chatbot import SUGGESTIONS, append_message, format_reply, show_suggestions, start_transcript
from expenses.charts import budget_bars, category_doughnut, monthly_line, predictions_line
from expenses.domain import ExportRequest, FilterCriteria, HistoryState, PeriodFilter
from expenses.functional import find_category
from expenses.goals import (
    budget_level,
    budget_share_of_spending,
    format_currency,
    goal_form_values,
    goal_payload,
    goal_progress,
)
from expenses.history import ALL_CATEGORIES, FILTER_WIDGET_KEYS, criteria_from_inputs, history_view, reset_filters
from expenses.logger import configure_logging, get_logger
from expenses.predictions import prediction_categories, prediction_series
from expenses.services import ExpenseService
from expenses.settings import get_settings
from expenses.transforms import expenses_to_csv, expenses_to_frame, remove_expense, unique_categories

settings = get_settings()
configure_logging(settings.log_level, settings.log_file)
logger = get_logger("app")

try:
    locale.setlocale(locale.LC_COLLATE, "")
except locale.Error as e:
    logger.warning(f"Using default collation for category sorting: {e}")

st.set_page_config(page_title=settings.app_name, layout="wide")

MONTHS = ["All Months", "January", "February", "March", "April", "May", "June", "July",
          "August", "September", "October", "November", "December"]

if "token" not in st.session_state:
    st.session_state.token = None
if "expenses" not in st.session_state:
    st.session_state.expenses = None
if "history_state" not in st.session_state:
    st.session_state.history_state = HistoryState(page_size=settings.page_size)
if "chat" not in st.session_state:
    st.session_state.chat = start_transcript()

client = ApiClient(settings.api_base_url, token=st.session_state.token, timeout=settings.api_timeout_seconds)
service = ExpenseService(client)


def money(amount) -> str:
    return format_currency(amount, settings.currency_symbol)


def load_expenses(force: bool = False):
    if st.session_state.expenses is None or force:
        result = service.load_expenses()
        if not result.ok:
            st.error(result.message)
            return ()
        expenses, rejected = result.data
        if rejected:
            st.warning(f"{len(rejected)} malformed expense record(s) were skipped.")
        st.session_state.expenses = expenses
        st.session_state.history_state = st.session_state.history_state.first_page()
    return st.session_state.expenses


def on_login(token: str):
    st.session_state.token = token
    st.session_state.expenses = None
    st.rerun()


# auth screens

if not st.session_state.token:
    st.title(f"💰 {settings.app_name}")
    tab_login, tab_register, tab_reset = st.tabs(["Login", "Register", "Forgot password"])
    with tab_login:
        with st.form("login_form"):
            username = st.text_input("Username")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in"):
                result = service.login(username, password)
                if result.ok:
                    on_login(result.data)
                else:
                    st.error(result.message)
    with tab_register:
        with st.form("register_form"):
            username = st.text_input("Username", key="reg_username")
            email = st.text_input("Email")
            password = st.text_input("Password", type="password", key="reg_password")
            confirm = st.text_input("Confirm password", type="password")
            if st.form_submit_button("Create account"):
                result = service.register(username, email, password, confirm)
                if result.ok:
                    on_login(result.data)
                else:
                    st.error(result.message)
    with tab_reset:
        with st.form("reset_request_form"):
            email = st.text_input("Email", key="reset_email")
            if st.form_submit_button("Send reset link"):
                result = service.request_password_reset(email)
                if result.ok:
                    st.success("If an account exists for that email, a reset link is on its way.")
                else:
                    st.error(result.message)
        with st.form("reset_form"):
            uid = st.text_input("Reset uid")
            reset_token = st.text_input("Reset token")
            new_password = st.text_input("New password", type="password")
            confirm = st.text_input("Confirm new password", type="password")
            if st.form_submit_button("Reset password"):
                result = service.reset_password(uid, reset_token, new_password, confirm)
                if result.ok:
                    st.success("Password reset. You can now log in.")
                else:
                    st.error(result.message)
    st.stop()


menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "➕ Add Expense", "🧾 History", "💰 Budgets", "🎯 Goals", "🔮 Predictions", "👤 Profile"]
)

if st.sidebar.button("🔄 Reload data"):
    load_expenses(force=True)

if st.sidebar.button("🚪 Logout"):
    service.logout()
    st.session_state.token = None
    st.session_state.expenses = None
    st.rerun()


if menu == "🏠 Dashboard":
    st.title("🏠 Dashboard")
    expenses = load_expenses()

    col_m, col_y = st.columns(2)
    with col_m:
        month_choice = st.selectbox("Month", MONTHS, index=0)
    with col_y:
        year_choice = st.selectbox("Year", ["All Years"] + [str(y) for y in available_years(expenses)])
    period = PeriodFilter(
        month=None if month_choice == "All Months" else MONTHS.index(month_choice),
        year=None if year_choice == "All Years" else int(year_choice),
    )
    summary = dashboard_summary(expenses, period, settings.recent_count)

    k1, k2, k3 = st.columns(3)
    with k1:
        st.metric("Total Expenses", money(summary.total))
    with k2:
        st.metric("Average Expense", money(summary.average))
    with k3:
        st.metric("Transactions", summary.count)

    if summary.count:
        c1, c2 = st.columns(2)
        with c1:
            st.plotly_chart(category_doughnut(summary.by_category), use_container_width=True)
        with c2:
            st.plotly_chart(monthly_line(summary.by_month), use_container_width=True)

        st.subheader("Recent Expenses")
        recent = expenses_to_frame(summary.recent)
        recent["date"] = recent["date"].dt.strftime("%Y-%m-%d")
        st.table(recent.drop(columns=["id"]).reset_index(drop=True))
    else:
        st.info("No expenses for the selected period.")

    export_request = ExportRequest(fmt="csv", month=period.month, year=period.year)
    if st.button("⬇ Prepare CSV export"):
        result = service.export(export_request)
        if result.ok:
            st.download_button("Download", result.data, file_name=export_request.filename(), mime="text/csv")
        else:
            st.error(result.message)

    with st.expander("💬 Ask the expense assistant"):
        for message in st.session_state.chat:
            with st.chat_message("user" if message.is_user else "assistant"):
                reply = format_reply(message.text)
                st.write(reply.intro)
                for bullet in reply.bullets:
                    st.markdown(f"- {bullet}")
        if show_suggestions(st.session_state.chat):
            st.caption("Try: " + " · ".join(SUGGESTIONS))
        with st.form("chat_form", clear_on_submit=True):
            query = st.text_input("Ask about your expenses")
            asked = st.form_submit_button("Send")
        if asked and query.strip():
            st.session_state.chat = append_message(st.session_state.chat, query, is_user=True)
            st.session_state.chat = append_message(st.session_state.chat, service.ask(query), is_user=False)
            st.rerun()

elif menu == "➕ Add Expense":
    st.title("➕ Add Expense")
    categories_result = service.load_categories()
    categories = categories_result.data if categories_result.ok else ()
    if not categories_result.ok:
        st.error(categories_result.message)

    with st.form("expense_form", clear_on_submit=True):
        amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
        description = st.text_input("Description")
        category = st.selectbox("Category", [c.name for c in categories])
        day = st.date_input("Date", value=date.today())
        if st.form_submit_button("Add Expense"):
            result = service.add_expense(amount, description, category, day)
            if result.ok:
                st.success("Expense added successfully!")
                load_expenses(force=True)
            else:
                st.error(result.message)

    st.subheader("Categories")
    with st.form("category_form", clear_on_submit=True):
        new_category = st.text_input("New category")
        if st.form_submit_button("Add Category"):
            result = service.add_category(new_category)
            if result.ok:
                st.rerun()
            st.error(result.message)
    for c in categories:
        col_name, col_confirm, col_delete = st.columns([3, 1, 1])
        col_name.write(c.name)
        confirmed = col_confirm.checkbox("Confirm", key=f"confirm_cat_{c.id}")
        if col_delete.button("Delete", key=f"delete_cat_{c.id}"):
            result = service.delete_category(c.id, confirmed=confirmed)
            if result.ok:
                st.rerun()
            st.error(result.message)

elif menu == "🧾 History":
    st.title("🧾 Expense History")
    expenses = load_expenses()
    state = st.session_state.history_state

    c1, c2, c3 = st.columns(3)
    with c1:
        st.selectbox("Category", [ALL_CATEGORIES] + list(unique_categories(expenses)), key="history_category")
        st.text_input("Search description or category", key="history_search")
    with c2:
        st.date_input("From", value=None, key="history_start")
        st.date_input("To", value=None, key="history_end")
    with c3:
        st.number_input("Min amount", min_value=0.0, value=None, key="history_min")
        st.number_input("Max amount", min_value=0.0, value=None, key="history_max")

    criteria = criteria_from_inputs(*(st.session_state.get(key) for key in FILTER_WIDGET_KEYS))
    if criteria != state.criteria:
        state = state.with_criteria(criteria)

    s1, s2, s3, s4 = st.columns(4)
    for col, field in ((s1, "date"), (s2, "category"), (s3, "amount")):
        arrow = ""
        if state.sort_field == field:
            arrow = " ↑" if state.sort_direction == "asc" else " ↓"
        if col.button(f"Sort by {field}{arrow}"):
            state = state.toggle_sort(field)
    s4.button("Reset filters", on_click=reset_filters, args=(st.session_state,))

    view = history_view(expenses, state)
    if view.rows:
        for e in view.rows:
            r1, r2, r3, r4, r5, r6 = st.columns([2, 3, 2, 2, 1, 1])
            r1.write(e.date.isoformat())
            r2.write(e.description)
            r3.write(e.category)
            r4.write(money(e.amount))
            confirmed = r5.checkbox("Confirm", key=f"confirm_exp_{e.id}")
            if r6.button("Delete", key=f"delete_exp_{e.id}"):
                result = service.delete_expense(e.id, confirmed=confirmed)
                if result.ok:
                    st.session_state.expenses = remove_expense(expenses, e.id)
                    state = state.first_page()
                    st.session_state.history_state = state
                    st.rerun()
                st.error(result.message)

        p1, p2, p3 = st.columns([1, 2, 1])
        if p1.button("Previous", disabled=view.page <= 1):
            state = state.with_page(view.page - 1)
            st.session_state.history_state = state
            st.rerun()
        p2.write(f"Page {view.page} of {view.total_pages} ({view.total_count} expenses)")
        if p3.button("Next", disabled=view.page >= view.total_pages):
            state = state.with_page(view.page + 1)
            st.session_state.history_state = state
            st.rerun()

        st.download_button(
            "⬇️ Download Filtered Data",
            expenses_to_csv(view.filtered),
            file_name="expenses_filtered.csv",
            mime="text/csv",
        )
    else:
        st.info("No expenses match the selected filters")

    st.session_state.history_state = state

elif menu == "💰 Budgets":
    st.title("💰 Budget Management")
    categories_result = service.load_categories()
    categories = categories_result.data if categories_result.ok else ()

    with st.form("budget_form", clear_on_submit=True):
        names = [c.name for c in categories]
        chosen = st.selectbox("Category", names)
        limit = st.number_input("Monthly limit", min_value=0.0, step=100.0)
        if st.form_submit_button("Save Budget"):
            category_id = find_category(categories, chosen).map(lambda c: c.id).get_or_else(None)
            result = service.save_budget(category_id, limit)
            if not result.ok:
                st.error(result.message)

    result = service.load_budgets()
    if not result.ok:
        st.error(result.message)
    elif result.data:
        budgets = result.data
        st.plotly_chart(budget_bars(budgets, [budget_level(b) for b in budgets]), use_container_width=True)
        for b in budgets:
            st.subheader(b.category_name)
            st.write(f"Monthly: {money(b.spent)} spent of {money(b.limit)}")
            st.write(f"Total: {money(b.total_spent)} (all time)")
            st.progress(min(b.percentage, 100.0) / 100)
            if b.remaining < 0:
                st.error(f"Over budget by {money(abs(b.remaining))}")
            else:
                st.success(f"Remaining: {money(b.remaining)}")
            share = budget_share_of_spending(b)
            if share is not None:
                st.caption(f"Monthly budget represents {share:.1f}% of total spending")
            confirmed = st.checkbox("Confirm", key=f"confirm_budget_{b.id}")
            if st.button("Delete", key=f"delete_budget_{b.id}"):
                deleted = service.delete_budget(b.id, confirmed=confirmed)
                if deleted.ok:
                    st.rerun()
                st.error(deleted.message)
    else:
        st.info("No budgets defined")

elif menu == "🎯 Goals":
    st.title("🎯 Financial Goals")
    result = service.load_goals()
    if not result.ok:
        st.error(result.message)
    goals = result.data or ()
    editing = next((g for g in goals if g.id == st.session_state.get("editing_goal")), None)

    st.subheader("Edit goal" if editing else "New goal")
    values = goal_form_values(editing)
    with st.form(f"goal_form_{editing.id if editing else 'new'}", clear_on_submit=True):
        name = st.text_input("Goal name", value=values["name"])
        target = st.number_input("Target amount", min_value=0.0, step=100.0, value=values["targetAmount"])
        current = st.number_input("Current amount", min_value=0.0, step=100.0, value=values["currentAmount"])
        deadline = st.date_input("Deadline", value=values["deadline"])
        if st.form_submit_button("Update Goal" if editing else "Save Goal"):
            saved = service.save_goal(goal_payload(name, target, current, deadline),
                                      goal_id=editing.id if editing else None)
            if saved.ok:
                st.session_state.editing_goal = None
                st.rerun()
            st.error(saved.message)
    if editing and st.button("Cancel edit"):
        st.session_state.editing_goal = None
        st.rerun()

    for goal in goals:
        gp = goal_progress(goal)
        st.subheader(goal.name + (" ✅" if gp.completed else ""))
        st.progress(gp.bar_width / 100)
        st.write(f"{gp.progress:.1f}% complete · {money(goal.current_amount)} of {money(goal.target_amount)}")
        if gp.overdue:
            st.error(f"Deadline passed {-gp.days_left} days ago")
        elif not gp.completed:
            st.caption(f"{gp.days_left} days left · {money(gp.still_needed)} to go")
            amount = st.number_input("Add contribution", min_value=0.0, key=f"contrib_{goal.id}")
            if st.button("Contribute", key=f"contribute_{goal.id}"):
                updated = service.contribute_to_goal(goal.id, amount)
                if updated.ok:
                    st.rerun()
                st.error(updated.message)
        if st.button("Edit", key=f"edit_goal_{goal.id}"):
            st.session_state.editing_goal = goal.id
            st.rerun()
        confirmed = st.checkbox("Confirm", key=f"confirm_goal_{goal.id}")
        if st.button("Delete", key=f"delete_goal_{goal.id}"):
            deleted = service.delete_goal(goal.id, confirmed=confirmed)
            if deleted.ok:
                st.rerun()
            st.error(deleted.message)

elif menu == "🔮 Predictions":
    st.title("🔮 Expense Predictions")
    result = service.load_predictions()
    if not result.ok:
        st.error(result.message)
    elif not result.data:
        st.info("Not enough history to predict expenses yet.")
    else:
        predictions = result.data
        choice = st.selectbox("Category", ["all"] + list(prediction_categories(predictions)))
        months, series = prediction_series(predictions, None if choice == "all" else choice)
        st.plotly_chart(predictions_line(months, series), use_container_width=True)

elif menu == "👤 Profile":
    st.title("👤 Profile")
    result = service.profile()
    if not result.ok:
        st.error(result.message)
    else:
        profile = result.data["profile"] or {}
        st.write(f"**Username:** {profile.get('username', '')}")
        st.write(f"**Email:** {profile.get('email', '')}")
        k1, k2 = st.columns(2)
        k1.metric("Expenses", result.data["expense_count"])
        k2.metric("Categories", result.data["category_count"])

    with st.form("password_form", clear_on_submit=True):
        current = st.text_input("Current password", type="password")
        new = st.text_input("New password", type="password")
        confirm = st.text_input("Confirm new password", type="password")
        if st.form_submit_button("Change password"):
            changed = service.change_password(current, new, confirm)
            if changed.ok:
                st.success("Password changed")
            else:
                st.error(changed.message)

    with st.form("username_form", clear_on_submit=True):
        new_username = st.text_input("New username")
        if st.form_submit_button("Update username"):
            updated = service.update_username(new_username)
            if updated.ok:
                st.session_state.token = updated.data or st.session_state.token
                st.success("Username updated")
            else:
                st.error(updated.message)

    with st.form("email_form", clear_on_submit=True):
        new_email = st.text_input("New email")
        if st.form_submit_button("Update email"):
            updated = service.update_email(new_email)
            if updated.ok:
                st.session_state.token = updated.data or st.session_state.token
                st.success("Email updated")
            else:
                st.error(updated.message)
