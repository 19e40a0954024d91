from __future__ import annotations

import logging
import os

import streamlit as st

from dashboard.data import api_client
from dashboard.data.api_client import ApiError
from dashboard.state.session_slices import clear_session, get_token, set_token

logger = logging.getLogger(__name__)

ENV_PATH = os.path.join(os.path.dirname(__file__), "..", ".env")

ENV_FALLBACK_KEYS = {
    ("app", "API_BASE_URL"): "API_BASE_URL",
    ("app", "currency"): "CURRENCY",
}


def load_local_env():
    if not os.path.exists(ENV_PATH):
        return
    with open(ENV_PATH, "r", encoding="utf-8") as env_file:
        for raw_line in env_file:
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


def get_secret(path, default=None):
    env_key = ENV_FALLBACK_KEYS.get(tuple(path))
    if env_key:
        env_value = os.getenv(env_key)
        if env_value:
            return env_value
    try:
        current = st.secrets
        for key in path:
            if key not in current:
                return default
            current = current[key]
    except (FileNotFoundError, KeyError):
        return default
    return current


def _password_form(key, title, button_label, confirm=False):
    st.markdown(f"<div class='section-title'>{title}</div>", unsafe_allow_html=True)
    with st.form(key):
        password = st.text_input("Password", type="password")
        repeat = st.text_input("Confirm password", type="password") if confirm else password
        submitted = st.form_submit_button(button_label)
    if not submitted:
        return None
    if not password:
        st.error("Password is required.")
        return None
    if confirm and password != repeat:
        st.error("Passwords do not match.")
        return None
    return password


def _authenticate(path, password):
    try:
        result = api_client.request("POST", path, json={"password": password}, auth=False)
    except ApiError as exc:
        st.error(str(exc.detail))
        return
    set_token(result["token"])
    st.rerun()


def enforce_login():
    """Block the page until the single user is authenticated."""
    if get_token():
        with st.sidebar:
            if st.button("Logout", key="logout_sidebar"):
                logout()
        return

    st.markdown("<h1 class='page-title'>Momentum</h1>", unsafe_allow_html=True)
    try:
        status = api_client.request("GET", "/api/auth/status", auth=False)
    except ApiError as exc:
        logger.warning("Auth status check failed: %s", exc)
        st.error("The backend is not reachable. Check API_BASE_URL and try again.")
        st.caption(f"Technical detail: {exc.detail}")
        st.stop()

    if not status.get("isSetup"):
        st.markdown("Welcome! Choose a password to protect your dashboard.")
        password = _password_form("auth.setup", "Set up your dashboard", "Create password", confirm=True)
        if password:
            _authenticate("/api/auth/setup", password)
        st.stop()

    password = _password_form("auth.login", "Login Required", "Unlock")
    if password:
        _authenticate("/api/auth/login", password)
    st.stop()


def logout():
    clear_session()
    st.rerun()
