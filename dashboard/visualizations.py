from __future__ import annotations

import pandas as pd

from backend.analytics import MOOD_VALUES
from backend.lifedata import local_date
from dashboard.constants import CHART_COLORS, MOOD_COLORS
from dashboard.theme import get_active_theme


def _active_theme():
    return get_active_theme()[1]


def apply_common_plot_style(fig, title, show_xgrid=True, show_ygrid=True):
    theme = _active_theme()
    fig.update_layout(
        title=title,
        title_font=dict(color=theme["text_main"], size=16, family="Crimson Text"),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(color=theme["text_main"], family="IBM Plex Sans"),
        margin=dict(l=40, r=20, t=40, b=30),
        xaxis=dict(
            showgrid=show_xgrid,
            gridcolor=theme["plot_grid"],
            tickfont=dict(color=theme["text_soft"]),
            zeroline=False,
            showline=True,
            linecolor=theme["border"],
            mirror=True,
        ),
        yaxis=dict(
            showgrid=show_ygrid,
            gridcolor=theme["plot_grid"],
            zeroline=False,
            tickfont=dict(color=theme["text_soft"]),
            showline=True,
            linecolor=theme["border"],
            mirror=True,
        ),
    )
    return fig


def category_frame(totals: dict, label: str, value: str) -> pd.DataFrame:
    frame = pd.DataFrame(list((totals or {}).items()), columns=[label, value])
    return frame.sort_values(value, ascending=False).reset_index(drop=True)


def month_marker_frame(rows) -> pd.DataFrame:
    columns = ["date", "mood", "taskCount", "hasJournal", "hasPhoto", "hasCompletedHabits"]
    frame = pd.DataFrame(rows or [], columns=columns)
    return frame.rename(
        columns={
            "date": "Day",
            "mood": "Mood",
            "taskCount": "Tasks",
            "hasJournal": "Journal",
            "hasPhoto": "Photo",
            "hasCompletedHabits": "Habits",
        }
    )


def mood_trend_frame(mood_logs) -> pd.DataFrame:
    rows = [
        {"createdAt": log.get("createdAt"), "mood": log.get("mood"), "value": MOOD_VALUES.get(log.get("mood"))}
        for log in mood_logs or []
        if log.get("mood") in MOOD_VALUES
    ]
    frame = pd.DataFrame(rows, columns=["createdAt", "mood", "value"])
    if frame.empty:
        return frame
    frame["date"] = frame["createdAt"].apply(local_date)
    return frame.dropna(subset=["date"]).sort_values("date")


def donut_chart(totals: dict, title: str, height=300):
    import plotly.graph_objects as go

    frame = category_frame(totals, "label", "value")
    fig = go.Figure(
        data=go.Pie(
            labels=frame["label"],
            values=frame["value"],
            hole=0.55,
            marker=dict(colors=CHART_COLORS[: len(frame)]),
            sort=False,
        )
    )
    apply_common_plot_style(fig, title, show_xgrid=False, show_ygrid=False)
    fig.update_layout(height=height, showlegend=True)
    return fig


def bar_chart(totals: dict, title: str, color="#a9c0e8", suffix="", height=280):
    import plotly.graph_objects as go

    frame = category_frame(totals, "label", "value")
    fig = go.Figure(
        data=go.Bar(
            x=frame["value"],
            y=frame["label"],
            orientation="h",
            marker=dict(color=color, line=dict(width=1, color=_active_theme()["plot_marker_line"])),
            hovertemplate=f"%{{y}}: %{{x}}{suffix}<extra></extra>",
        )
    )
    apply_common_plot_style(fig, title, show_xgrid=True, show_ygrid=False)
    fig.update_layout(height=height)
    fig.update_yaxes(autorange="reversed", automargin=True)
    return fig


def mood_distribution_chart(distribution: dict, height=280):
    import plotly.graph_objects as go

    moods = list(distribution or {})
    fig = go.Figure(
        data=go.Bar(
            x=moods,
            y=[distribution[mood] for mood in moods],
            marker=dict(color=[MOOD_COLORS.get(mood, "#B8B8B8") for mood in moods]),
        )
    )
    apply_common_plot_style(fig, "Mood distribution", show_xgrid=False, show_ygrid=True)
    fig.update_layout(height=height)
    return fig


def mood_trend_chart(frame: pd.DataFrame, height=260):
    import plotly.graph_objects as go

    fig = go.Figure(
        data=go.Scatter(
            x=frame["date"],
            y=frame["value"],
            text=frame["mood"],
            mode="lines+markers",
            line=dict(color=_active_theme()["accent"], width=2),
            marker=dict(
                size=8,
                color=[MOOD_COLORS.get(mood, "#B8B8B8") for mood in frame["mood"]],
                line=dict(width=1, color=_active_theme()["plot_marker_line"]),
            ),
            hovertemplate="%{x}: %{text}<extra></extra>",
        )
    )
    apply_common_plot_style(fig, "Mood over time", show_xgrid=True, show_ygrid=True)
    fig.update_layout(height=height)
    fig.update_yaxes(range=[0.5, 5.5], tickvals=list(range(1, 6)))
    return fig


def consistency_chart(rows, height=280):
    totals = {row["name"]: row["consistency"] for row in rows or []}
    fig = bar_chart(totals, "Habit consistency", color="#c9b3e5", suffix="%", height=height)
    fig.update_xaxes(range=[0, 100])
    return fig
