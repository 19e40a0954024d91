import logging
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import streamlit as st

from dashboard.auth import enforce_login, get_secret, load_local_env
from dashboard.context import DashboardContext
from dashboard.data import api_client
from dashboard.data.life_data import LifeDataStore, SyncError
from dashboard.header import render_global_header
from dashboard.logging_config import configure_logging
from dashboard.router import render_router
from dashboard.state.session_slices import get_store, get_token, set_store
from dashboard.theme import inject_theme_css

st.set_page_config(page_title="Momentum Life Dashboard", layout="wide")

load_local_env()
configure_logging()
logger = logging.getLogger("dashboard")

api_client.configure(get_secret, get_token)
inject_theme_css()
enforce_login()


def _dashboard_timezone():
    name = get_secret(("app", "timezone")) or os.getenv("APP_TIMEZONE")
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning("Unknown timezone %s, using the machine's local zone", name)
        return None


store = get_store()
if store is None:
    store = LifeDataStore(tz=_dashboard_timezone())
    with st.spinner("Loading your data..."):
        try:
            store.load()
        except SyncError as exc:
            st.error(str(exc))
            st.stop()
    set_store(store)

context = DashboardContext(
    store=store,
    currency=str(get_secret(("app", "currency")) or "PKR"),
    tz=store.tz,
)

render_global_header(context)
render_router(context)
