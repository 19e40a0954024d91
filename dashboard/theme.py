import streamlit as st

THEME_PRESETS = {
    "dark": {
        "bg_main": "#0f1419",
        "bg_glow": "#16232e",
        "bg_accent": "#142029",
        "bg_card": "#18252f",
        "border": "#2f4a5c",
        "text_main": "#e8f1f5",
        "text_soft": "#9db4c2",
        "accent": "#38b2ac",
        "plot_grid": "#263b49",
        "plot_marker_line": "#d5e6ee",
        "today_border": "#f6ad55",
    },
    "light": {
        "bg_main": "#f5f8fa",
        "bg_glow": "#e3eef4",
        "bg_accent": "#edf3f7",
        "bg_card": "#ffffff",
        "border": "#c3d3dd",
        "text_main": "#1a202c",
        "text_soft": "#4a5568",
        "accent": "#2c7a7b",
        "plot_grid": "#d6e2e9",
        "plot_marker_line": "#ffffff",
        "today_border": "#dd6b20",
    },
}


def ensure_theme_state():
    if st.session_state.get("ui_theme") not in THEME_PRESETS:
        st.session_state["ui_theme"] = "dark"
    return st.session_state["ui_theme"]


def get_active_theme():
    name = ensure_theme_state()
    return name, THEME_PRESETS[name]


def toggle_theme():
    name = ensure_theme_state()
    st.session_state["ui_theme"] = "light" if name == "dark" else "dark"


def inject_theme_css() -> dict:
    _, theme = get_active_theme()
    theme_vars_css = "\n".join(f"    --{key.replace('_', '-')}: {value};" for key, value in theme.items())
    st.markdown(
        f"""
<style>
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@300;400;600&family=Space+Grotesk:wght@500;600&display=swap');
:root {{
{theme_vars_css}
}}

html, body, [class*="css"] {{
    font-family: 'Inter', sans-serif;
    color: var(--text-main);
}}

h1, h2, h3, .page-title {{
    font-family: 'Space Grotesk', sans-serif;
    letter-spacing: 0.4px;
}}

.stApp {{
    background: radial-gradient(1400px 900px at 20% 0%, var(--bg-glow) 0%, var(--bg-main) 58%);
    color: var(--text-main);
}}

.section-title {{
    font-size: 14px;
    font-weight: 600;
    margin: 0 0 8px 0;
}}

.small-label {{
    color: var(--text-soft);
    font-size: 12px;
    letter-spacing: 0.2px;
}}

.card {{
    background: var(--bg-card);
    border: 1px solid var(--border);
    border-radius: 14px;
    padding: 16px 18px;
    margin-bottom: 14px;
}}

.stMetric {{
    background: var(--bg-card);
    padding: 10px 12px;
    border-radius: 12px;
    border: 1px solid var(--border);
}}

.report-section h4 {{
    font-family: 'Space Grotesk', sans-serif;
    margin-bottom: 4px;
}}

.streak-row {{
    border-left: 2px solid var(--today-border);
    padding-left: 8px;
    margin-bottom: 6px;
}}
</style>
""",
        unsafe_allow_html=True,
    )
    return theme
