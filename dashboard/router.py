import streamlit as st

from dashboard.tabs.analytics_tab import render_analytics_tab
from dashboard.tabs.calendar_tab import render_calendar_tab
from dashboard.tabs.chat_tab import render_chat_tab
from dashboard.tabs.habits_goals_tab import render_habits_goals_tab
from dashboard.tabs.money_time_tab import render_money_time_tab
from dashboard.tabs.routine_tab import render_routine_tab
from dashboard.tabs.settings_tab import render_settings_tab
from dashboard.tabs.today_tab import render_today_tab


TAB_RENDERERS = {
    "Today": render_today_tab,
    "Calendar": render_calendar_tab,
    "Habits & Goals": render_habits_goals_tab,
    "Money & Time": render_money_time_tab,
    "Routine": render_routine_tab,
    "Analytics": render_analytics_tab,
    "Chat": render_chat_tab,
    "Settings": render_settings_tab,
}
TAB_OPTIONS = list(TAB_RENDERERS)


def render_router(ctx):
    active = st.session_state.get("ui.active_tab") or TAB_OPTIONS[0]
    active = st.segmented_control(
        "Workspace",
        TAB_OPTIONS,
        key="ui.active_tab",
        default=active,
    )
    _render_active(ctx, active or TAB_OPTIONS[0])


@st.fragment
def _render_active(ctx, active):
    TAB_RENDERERS[active](ctx)
