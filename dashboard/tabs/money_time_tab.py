import streamlit as st

from backend.analytics import finance_summary, format_duration, period_bounds, time_summary
from dashboard.constants import EXPENSE_CATEGORIES, INCOME_CATEGORIES
from dashboard.visualizations import donut_chart


def _add_money(ctx, kind):
    amount = float(st.session_state.get(f"money.{kind}_amount") or 0)
    description = (st.session_state.get(f"money.{kind}_description") or "").strip()
    category = st.session_state.get(f"money.{kind}_category")
    if amount <= 0 or not description:
        return
    action = ctx.store.add_expense if kind == "expense" else ctx.store.add_income
    if ctx.attempt(action, amount, description, category):
        st.session_state[f"money.{kind}_amount"] = 0.0
        st.session_state[f"money.{kind}_description"] = ""


def _add_time_log(ctx):
    activity = (st.session_state.get("time.activity") or "").strip()
    minutes = int(st.session_state.get("time.minutes") or 0)
    if not activity or minutes <= 0:
        return
    if ctx.attempt(ctx.store.add_time_log, activity, minutes):
        st.session_state["time.activity"] = ""


def _money_form(ctx, kind, categories):
    label = "Expense" if kind == "expense" else "Income"
    with st.form(f"money.{kind}_form"):
        cols = st.columns([0.3, 0.4, 0.3])
        cols[0].number_input(f"Amount ({ctx.currency})", min_value=0.0, step=100.0, key=f"money.{kind}_amount")
        cols[1].text_input("Description", key=f"money.{kind}_description")
        cols[2].selectbox("Category", categories, key=f"money.{kind}_category")
        st.form_submit_button(f"Add {label.lower()}", on_click=_add_money, args=(ctx, kind))


def _money_list(ctx, items, delete):
    for item in items:
        cols = st.columns([0.55, 0.3, 0.15])
        cols[0].markdown(f"{item.get('description', '')} <span class='small-label'>{item.get('category', '')}</span>", unsafe_allow_html=True)
        cols[1].markdown(ctx.money(item.get("amount")))
        cols[2].button("✕", key=f"money.delete.{item['id']}", on_click=ctx.attempt, args=(delete, item["id"]))


def _render_finance(ctx):
    store = ctx.store
    st.markdown("<div class='section-title'>Money</div>", unsafe_allow_html=True)
    start, end = period_bounds("month", ctx.today)
    month = finance_summary(store.data, start, end)
    cols = st.columns(3)
    cols[0].metric("Income this month", ctx.money(month["totalIncome"]))
    cols[1].metric("Expenses this month", ctx.money(month["totalExpenses"]))
    cols[2].metric("Net balance", ctx.money(month["netBalance"]))

    today = store.day(ctx.today_key)
    expense_tab, income_tab = st.tabs(["Expenses", "Income"])
    with expense_tab:
        _money_form(ctx, "expense", EXPENSE_CATEGORIES)
        _money_list(ctx, today.get("expenses") or [], store.delete_expense)
    with income_tab:
        _money_form(ctx, "income", INCOME_CATEGORIES)
        _money_list(ctx, today.get("income") or [], store.delete_income)

    if month["expenseByCategory"]:
        st.plotly_chart(donut_chart(month["expenseByCategory"], "Spending by category"), use_container_width=True)


def _render_time(ctx):
    store = ctx.store
    st.markdown("<div class='section-title'>Time</div>", unsafe_allow_html=True)
    with st.form("time.form"):
        cols = st.columns([0.6, 0.4])
        cols[0].text_input("Activity", key="time.activity")
        cols[1].number_input("Minutes", min_value=1, step=15, value=30, key="time.minutes")
        st.form_submit_button("Log time", on_click=_add_time_log, args=(ctx,))

    logs = store.day(ctx.today_key).get("timeLogs") or []
    summary = time_summary(store.data, ctx.today, ctx.today)
    st.metric("Tracked today", format_duration(summary["totalMinutes"]))
    for log in logs:
        cols = st.columns([0.6, 0.25, 0.15])
        cols[0].markdown(log.get("activity", ""))
        cols[1].markdown(format_duration(log.get("minutes")))
        cols[2].button("✕", key=f"time.delete.{log['id']}", on_click=ctx.attempt, args=(store.delete_time_log, log["id"]))


def render_money_time_tab(ctx):
    left, right = st.columns([1.15, 0.85])
    with left:
        _render_finance(ctx)
    with right:
        _render_time(ctx)
