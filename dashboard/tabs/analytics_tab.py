import streamlit as st

from backend.analytics import mood_logs_in_range, period_bounds, period_summary
from backend.services.ai_service import split_report_sections
from dashboard.constants import REPORT_PERIODS
from dashboard.services import ai_client
from dashboard.state.session_slices import get_value, set_value
from dashboard.visualizations import (
    bar_chart,
    consistency_chart,
    donut_chart,
    mood_distribution_chart,
    mood_trend_chart,
    mood_trend_frame,
)


def _render_report(ctx, start, end):
    st.markdown("<div class='section-title'>AI report</div>", unsafe_allow_html=True)
    report_key = f"{start.isoformat()}:{end.isoformat()}"
    if st.button("Generate report", key="analytics.report"):
        with st.spinner("Analyzing your data..."):
            text = ai_client.periodic_report(ctx.store.data, start, end)
        set_value("analytics", "report", {"key": report_key, "text": text})
    report = get_value("analytics", "report") or {}
    if report.get("key") != report_key:
        return
    sections = split_report_sections(report.get("text", ""))
    if not sections:
        st.markdown(report.get("text", ""))
        return
    for section in sections:
        st.markdown(f"<div class='report-section'><h4>{section['title']}</h4></div>", unsafe_allow_html=True)
        for paragraph in section["paragraphs"]:
            st.markdown(paragraph)


def render_analytics_tab(ctx):
    store = ctx.store
    label = st.segmented_control("Period", list(REPORT_PERIODS), key="analytics.period", default="This month")
    period = REPORT_PERIODS.get(label or "This month", "month")
    start, end = period_bounds(period, ctx.today)
    summary = period_summary(store.data, start, end, ctx.tz, ctx.currency)

    st.markdown(
        f"<div class='small-label'>{start.strftime('%d %b %Y')} – {end.strftime('%d %b %Y')}</div>",
        unsafe_allow_html=True,
    )
    metric_cols = st.columns(len(summary["keyMetrics"]))
    for col, (name, value) in zip(metric_cols, summary["keyMetrics"].items()):
        col.metric(name, value)

    cols = st.columns(2)
    if summary["moodDistribution"]:
        cols[0].plotly_chart(mood_distribution_chart(summary["moodDistribution"]), use_container_width=True)
        trend = mood_trend_frame(mood_logs_in_range(store.data, start, end))
        if not trend.empty:
            cols[1].plotly_chart(mood_trend_chart(trend), use_container_width=True)
    else:
        cols[0].caption("No moods logged in this period.")

    cols = st.columns(2)
    if summary["expenseByCategory"]:
        cols[0].plotly_chart(donut_chart(summary["expenseByCategory"], "Expenses by category"), use_container_width=True)
    if summary["incomeByCategory"]:
        cols[1].plotly_chart(donut_chart(summary["incomeByCategory"], "Income by category"), use_container_width=True)

    cols = st.columns(2)
    if summary["habitConsistency"]:
        cols[0].plotly_chart(consistency_chart(summary["habitConsistency"]), use_container_width=True)
    if summary["timeByActivity"]:
        cols[1].plotly_chart(
            bar_chart(summary["timeByActivity"], "Time by activity (minutes)", color="#b7d1c9", suffix=" min"),
            use_container_width=True,
        )

    if summary["goalProgress"]:
        st.markdown("<div class='section-title'>Goal progress</div>", unsafe_allow_html=True)
        for goal in summary["goalProgress"]:
            st.progress(goal["progress"] / 100, text=f"{goal['title']} · {goal['progress']}%")

    _render_report(ctx, start, end)
