import base64
from datetime import datetime, time

import streamlit as st

from backend.lifedata import date_key, parse_timestamp
from dashboard.constants import MOOD_EMOJIS, MOODS, NOTIFICATION_OPTIONS
from dashboard.context import ERROR_KEY
from dashboard.services import ai_client
from dashboard.state.session_slices import get_value, set_value


def _add_task(ctx):
    text = (st.session_state.get("today.task_text") or "").strip()
    if not text:
        st.session_state[ERROR_KEY] = "Task text is required."
        return
    due_day = st.session_state.get("today.task_date") or ctx.today
    due_time = st.session_state.get("today.task_time") or time(9, 0)
    due = datetime.combine(due_day, due_time)
    if ctx.tz is not None:
        due = due.replace(tzinfo=ctx.tz)
    else:
        due = due.astimezone()
    reminder = NOTIFICATION_OPTIONS.get(st.session_state.get("today.task_reminder"))
    if ctx.attempt(ctx.store.add_task, text, due, reminder):
        st.session_state["today.task_text"] = ""


def _task_time(task):
    due = parse_timestamp(task.get("dueDate"))
    return due.strftime("%H:%M") if due and (due.hour or due.minute) else ""


def _render_tasks(ctx):
    store = ctx.store
    st.markdown("<div class='section-title'>Tasks</div>", unsafe_allow_html=True)
    with st.form("today.task_form", clear_on_submit=False):
        st.text_input("New task", key="today.task_text")
        cols = st.columns(3)
        cols[0].date_input("Due date", key="today.task_date", value=ctx.today)
        cols[1].time_input("Time", key="today.task_time", value=time(9, 0))
        cols[2].selectbox("Reminder", list(NOTIFICATION_OPTIONS), key="today.task_reminder")
        st.form_submit_button("Add task", on_click=_add_task, args=(ctx,))

    tasks = sorted(store.day(ctx.today_key).get("tasks") or [], key=lambda task: task.get("dueDate") or "")
    if not tasks:
        st.caption("No tasks for today.")
    for task in tasks:
        cols = st.columns([0.8, 0.2])
        with cols[0]:
            label = task.get("text", "")
            hour = _task_time(task)
            st.checkbox(
                f"{hour} {label}".strip(),
                value=bool(task.get("completed")),
                key=f"today.task.{task['id']}",
                on_change=ctx.attempt,
                args=(store.toggle_task, task["id"]),
            )
        with cols[1]:
            st.button("Delete", key=f"today.task_delete.{task['id']}", on_click=ctx.attempt, args=(store.delete_task, task["id"]))

    upcoming = [
        task for task in store.tasks
        if not task.get("completed") and date_key(task.get("dueDate"), ctx.tz) > ctx.today_key
    ]
    if upcoming:
        st.markdown("<div class='small-label'>Upcoming</div>", unsafe_allow_html=True)
        for task in sorted(upcoming, key=lambda item: item.get("dueDate") or "")[:5]:
            st.markdown(f"- {task.get('text', '')} · {(task.get('dueDate') or '')[:10]}")


def _render_mood(ctx):
    store = ctx.store
    st.markdown("<div class='section-title'>Mood</div>", unsafe_allow_html=True)
    current = (store.day(ctx.today_key).get("moodLog") or {}).get("mood")
    cols = st.columns(len(MOODS))
    for col, mood in zip(cols, MOODS):
        label = f"{MOOD_EMOJIS[mood]} {mood}"
        col.button(
            label,
            key=f"today.mood.{mood}",
            type="primary" if mood == current else "secondary",
            on_click=ctx.attempt,
            args=(store.log_mood, mood),
        )


def _save_journal(ctx):
    ctx.attempt(ctx.store.save_journal_entry, st.session_state.get("today.journal", ""))


def _render_journal(ctx):
    entry = ctx.store.day(ctx.today_key).get("journalEntry") or {}
    st.markdown("<div class='section-title'>Journal</div>", unsafe_allow_html=True)
    if "today.journal" not in st.session_state:
        st.session_state["today.journal"] = entry.get("text", "")
    st.text_area("What's on your mind?", key="today.journal", height=140)
    st.button("Save entry", key="today.journal_save", on_click=_save_journal, args=(ctx,))


def _render_photo(ctx):
    store = ctx.store
    photo = store.day(ctx.today_key).get("photoLog")
    st.markdown("<div class='section-title'>Photo of the day</div>", unsafe_allow_html=True)
    if photo:
        st.image(photo.get("imageDataUrl"), caption=photo.get("note") or None, use_container_width=True)
        st.button("Remove photo", key="today.photo_delete", on_click=ctx.attempt, args=(store.delete_photo_log, photo["id"]))
    upload = st.file_uploader("Upload a photo", type=["png", "jpg", "jpeg", "webp"], key="today.photo_upload")
    note = st.text_input("Note", key="today.photo_note", value=(photo or {}).get("note") or "")
    if upload is not None and st.button("Save photo", key="today.photo_save"):
        encoded = base64.b64encode(upload.getvalue()).decode("ascii")
        data_url = f"data:{upload.type or 'image/jpeg'};base64,{encoded}"
        if ctx.attempt(store.save_photo_log, data_url, note or None):
            st.rerun()


def _render_summary(ctx):
    st.markdown("<div class='section-title'>Daily reflection</div>", unsafe_allow_html=True)
    if st.button("Reflect on my day", key="today.summary"):
        with st.spinner("Thinking about your day..."):
            set_value("today", "summary", ai_client.daily_summary(ctx.store.data))
    summary = get_value("today", "summary")
    if summary:
        for paragraph in summary.split("\n"):
            if paragraph.strip():
                st.markdown(paragraph)


def render_today_tab(ctx):
    st.markdown(f"<div class='small-label'>{ctx.today.strftime('%A, %d %B %Y')}</div>", unsafe_allow_html=True)
    left, right = st.columns([1.1, 0.9])
    with left:
        _render_tasks(ctx)
        _render_journal(ctx)
    with right:
        _render_mood(ctx)
        _render_photo(ctx)
        _render_summary(ctx)
