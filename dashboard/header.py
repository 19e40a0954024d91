import streamlit as st

from backend.analytics import current_streak
from backend.lifedata import local_date
from dashboard.context import pop_error


def render_global_header(ctx):
    store = ctx.store
    today = store.day(ctx.today_key)
    habits = store.habits
    done = sum(
        1 for habit in habits
        if any(local_date(value, ctx.tz) == ctx.today for value in habit.get("completions") or [])
    )
    tasks = today.get("tasks") or []
    mood = (today.get("moodLog") or {}).get("mood") or "-"

    st.markdown(f"<div class='small-label'>Momentum • {ctx.today.isoformat()}</div>", unsafe_allow_html=True)
    cols = st.columns(4)
    cols[0].metric("Tasks done", f"{sum(1 for task in tasks if task.get('completed'))}/{len(tasks)}")
    cols[1].metric("Habits today", f"{done}/{len(habits)}")
    cols[2].metric("Mood", mood)
    best = max((current_streak(habit.get("completions"), ctx.today, ctx.tz) for habit in habits), default=0)
    cols[3].metric("Best streak", f"{best} days")

    error = pop_error()
    if error:
        st.error(error)
    if st.button("Refresh", key="header.refresh") and ctx.attempt(store.load) is not None:
        st.rerun()
