import streamlit as st

from backend.analytics import current_streak, goal_progress
from backend.lifedata import local_date


def _add_habit(ctx):
    name = (st.session_state.get("habits.new_name") or "").strip()
    if not name:
        return
    description = (st.session_state.get("habits.new_description") or "").strip()
    if ctx.attempt(ctx.store.add_habit, name, description):
        st.session_state["habits.new_name"] = ""
        st.session_state["habits.new_description"] = ""


def _rename_habit(ctx, habit_id):
    name = (st.session_state.get(f"habits.edit_name.{habit_id}") or "").strip()
    if not name:
        return
    description = (st.session_state.get(f"habits.edit_description.{habit_id}") or "").strip()
    ctx.attempt(ctx.store.update_habit, habit_id, name, description)


def _render_habits(ctx):
    store = ctx.store
    st.markdown("<div class='section-title'>Habits</div>", unsafe_allow_html=True)
    with st.form("habits.add_form"):
        cols = st.columns([0.45, 0.55])
        cols[0].text_input("Habit", key="habits.new_name")
        cols[1].text_input("Description", key="habits.new_description")
        st.form_submit_button("Add habit", on_click=_add_habit, args=(ctx,))

    if not store.habits:
        st.caption("No habits yet. Add one above to start a streak.")
    for habit in store.habits:
        completions = habit.get("completions") or []
        done_today = any(local_date(value, ctx.tz) == ctx.today for value in completions)
        streak = current_streak(completions, ctx.today, ctx.tz)
        cols = st.columns([0.08, 0.62, 0.3])
        cols[0].checkbox(
            "done",
            value=done_today,
            key=f"habits.toggle.{habit['id']}",
            label_visibility="collapsed",
            on_change=ctx.attempt,
            args=(store.toggle_habit_today, habit["id"]),
        )
        with cols[1]:
            st.markdown(f"**{habit.get('name', '')}**")
            if habit.get("description"):
                st.caption(habit["description"])
        cols[2].markdown(f"<div class='streak-row'>🔥 {streak} day streak</div>", unsafe_allow_html=True)
        with st.expander("Edit", expanded=False):
            st.text_input("Name", value=habit.get("name", ""), key=f"habits.edit_name.{habit['id']}")
            st.text_input("Description", value=habit.get("description") or "", key=f"habits.edit_description.{habit['id']}")
            edit_cols = st.columns(2)
            edit_cols[0].button("Save", key=f"habits.save.{habit['id']}", on_click=_rename_habit, args=(ctx, habit["id"]))
            edit_cols[1].button(
                "Delete habit",
                key=f"habits.delete.{habit['id']}",
                on_click=ctx.attempt,
                args=(store.delete_habit, habit["id"]),
            )


def _add_goal(ctx):
    title = (st.session_state.get("goals.new_title") or "").strip()
    if not title:
        return
    description = (st.session_state.get("goals.new_description") or "").strip() or None
    target = st.session_state.get("goals.new_target")
    if ctx.attempt(ctx.store.add_goal, title, description, target.isoformat() if target else None):
        st.session_state["goals.new_title"] = ""
        st.session_state["goals.new_description"] = ""


def _add_milestone(ctx, goal_id):
    key = f"goals.milestone_text.{goal_id}"
    text = (st.session_state.get(key) or "").strip()
    if text and ctx.attempt(ctx.store.add_milestone, goal_id, text):
        st.session_state[key] = ""


def _render_goals(ctx):
    store = ctx.store
    st.markdown("<div class='section-title'>Goals</div>", unsafe_allow_html=True)
    with st.form("goals.add_form"):
        st.text_input("Goal", key="goals.new_title")
        st.text_input("Description", key="goals.new_description")
        st.date_input("Target date", key="goals.new_target", value=None)
        st.form_submit_button("Add goal", on_click=_add_goal, args=(ctx,))

    if not store.goals:
        st.caption("No goals set.")
    for goal in store.goals:
        progress = goal_progress(goal)
        header = f"{goal.get('title', '')} · {progress}%"
        with st.expander(header, expanded=False):
            if goal.get("description"):
                st.caption(goal["description"])
            if goal.get("targetDate"):
                st.markdown(f"<div class='small-label'>Target: {goal['targetDate'][:10]}</div>", unsafe_allow_html=True)
            st.progress(progress / 100)
            for milestone in goal.get("milestones") or []:
                cols = st.columns([0.85, 0.15])
                cols[0].checkbox(
                    milestone.get("text", ""),
                    value=bool(milestone.get("completed")),
                    key=f"goals.milestone.{goal['id']}.{milestone['id']}",
                    on_change=ctx.attempt,
                    args=(store.toggle_milestone, goal["id"], milestone["id"]),
                )
                cols[1].button(
                    "✕",
                    key=f"goals.milestone_delete.{goal['id']}.{milestone['id']}",
                    on_click=ctx.attempt,
                    args=(store.delete_milestone, goal["id"], milestone["id"]),
                )
            st.text_input("New milestone", key=f"goals.milestone_text.{goal['id']}")
            action_cols = st.columns(2)
            action_cols[0].button(
                "Add milestone",
                key=f"goals.milestone_add.{goal['id']}",
                on_click=_add_milestone,
                args=(ctx, goal["id"]),
            )
            action_cols[1].button(
                "Delete goal",
                key=f"goals.delete.{goal['id']}",
                on_click=ctx.attempt,
                args=(store.delete_goal, goal["id"]),
            )


def render_habits_goals_tab(ctx):
    left, right = st.columns(2)
    with left:
        _render_habits(ctx)
    with right:
        _render_goals(ctx)
