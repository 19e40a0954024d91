import streamlit as st

from backend.analytics import day_overview, format_duration, month_overview
from dashboard.constants import MOOD_EMOJIS
from dashboard.visualizations import month_marker_frame


def _render_month(ctx, picked):
    rows = month_overview(ctx.store.data, picked.year, picked.month, ctx.tz)
    st.markdown(f"<div class='section-title'>{picked.strftime('%B %Y')}</div>", unsafe_allow_html=True)
    if not rows:
        st.caption("Nothing recorded this month.")
        return
    frame = month_marker_frame(rows)
    frame["Mood"] = frame["Mood"].map(lambda mood: f"{MOOD_EMOJIS.get(mood, '')} {mood}".strip() if mood else "")
    st.dataframe(frame, hide_index=True, use_container_width=True)


def _render_day(ctx, picked, overview):
    st.markdown(f"<div class='section-title'>{picked.strftime('%A, %d %B')}</div>", unsafe_allow_html=True)
    if overview["mood"]:
        st.markdown(f"{MOOD_EMOJIS.get(overview['mood'], '')} You felt **{overview['mood']}**")

    left, right = st.columns(2)
    with left:
        st.markdown("<div class='small-label'>Tasks</div>", unsafe_allow_html=True)
        for task in overview["tasks"]:
            text = task.get("text", "")
            st.markdown(f"- ~~{text}~~" if task.get("completed") else f"- {text}")
        if not overview["tasks"]:
            st.caption("No tasks.")
        st.markdown("<div class='small-label'>Habits completed</div>", unsafe_allow_html=True)
        for name in overview["completedHabits"]:
            st.markdown(f"- {name}")
        if not overview["completedHabits"]:
            st.caption("No habits completed.")
    with right:
        st.markdown("<div class='small-label'>Transactions</div>", unsafe_allow_html=True)
        for item in overview["transactions"]:
            sign = "+" if item["type"] == "income" else "-"
            st.markdown(f"- {item.get('description', '')} · {sign}{ctx.money(item.get('amount'))}")
        if not overview["transactions"]:
            st.caption("No transactions.")
        st.markdown("<div class='small-label'>Time</div>", unsafe_allow_html=True)
        for log in overview["timeLogs"]:
            st.markdown(f"- {log.get('activity', '')} · {format_duration(log.get('minutes'))}")
        if not overview["timeLogs"]:
            st.caption("No time logged.")

    if overview["journal"]:
        st.markdown("<div class='small-label'>Journal</div>", unsafe_allow_html=True)
        st.markdown(overview["journal"])
    photo = overview["photo"]
    if photo:
        st.image(photo.get("imageDataUrl"), caption=photo.get("note") or None, use_container_width=True)


def render_calendar_tab(ctx):
    picked = st.date_input("Day", key="calendar.day", value=ctx.today, max_value=ctx.today)
    overview = day_overview(ctx.store.data, picked, ctx.tz)
    _render_day(ctx, picked, overview)
    _render_month(ctx, picked)
