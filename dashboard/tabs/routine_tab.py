from datetime import time

import streamlit as st

from dashboard.constants import WEEKDAYS


def _add_routine_task(ctx, day):
    text = (st.session_state.get(f"routine.text.{day}") or "").strip()
    at = st.session_state.get(f"routine.time.{day}") or time(9, 0)
    if text and ctx.attempt(ctx.store.add_routine_task, day, at.strftime("%H:%M"), text):
        st.session_state[f"routine.text.{day}"] = ""


def _update_routine_task(ctx, day, task_id):
    text = (st.session_state.get(f"routine.edit_text.{task_id}") or "").strip()
    at = st.session_state.get(f"routine.edit_time.{task_id}")
    if text and at:
        ctx.attempt(ctx.store.update_routine_task, day, task_id, at.strftime("%H:%M"), text)


def _apply_today(ctx):
    created = ctx.attempt(ctx.store.apply_routine_for_today)
    if created is not None:
        st.session_state["routine.applied"] = created


def _parse_time(value):
    hours, minutes = (int(part) for part in str(value).split(":"))
    return time(hours, minutes)


def render_routine_tab(ctx):
    store = ctx.store
    st.markdown("<div class='section-title'>Weekly routine</div>", unsafe_allow_html=True)
    st.button("Add today's routine to my tasks", key="routine.apply", on_click=_apply_today, args=(ctx,))
    applied = st.session_state.pop("routine.applied", None)
    if applied is not None:
        if applied:
            st.success(f"Added {applied} task(s) from today's routine.")
        else:
            st.info("Nothing to add: today's routine is already on your list or its times have passed.")

    routine = store.weekly_routine
    today_name = WEEKDAYS[(ctx.today.weekday() + 1) % 7]
    for day in WEEKDAYS:
        tasks = routine.get(day) or []
        with st.expander(f"{day} · {len(tasks)} item(s)", expanded=day == today_name):
            for task in tasks:
                cols = st.columns([0.22, 0.5, 0.14, 0.14])
                cols[0].time_input(
                    "Time",
                    value=_parse_time(task["time"]),
                    key=f"routine.edit_time.{task['id']}",
                    label_visibility="collapsed",
                )
                cols[1].text_input(
                    "Text",
                    value=task.get("text", ""),
                    key=f"routine.edit_text.{task['id']}",
                    label_visibility="collapsed",
                )
                cols[2].button(
                    "Save",
                    key=f"routine.save.{task['id']}",
                    on_click=_update_routine_task,
                    args=(ctx, day, task["id"]),
                )
                cols[3].button(
                    "✕",
                    key=f"routine.delete.{task['id']}",
                    on_click=ctx.attempt,
                    args=(store.delete_routine_task, day, task["id"]),
                )
            add_cols = st.columns([0.22, 0.5, 0.28])
            add_cols[0].time_input("Time", value=time(9, 0), key=f"routine.time.{day}", label_visibility="collapsed")
            add_cols[1].text_input("New routine item", key=f"routine.text.{day}", label_visibility="collapsed")
            add_cols[2].button("Add", key=f"routine.add.{day}", on_click=_add_routine_task, args=(ctx, day))
