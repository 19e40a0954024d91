from dataclasses import dataclass
from datetime import date, tzinfo
from typing import Optional

import streamlit as st

from dashboard.data.life_data import LifeDataStore, SyncError

ERROR_KEY = "ui.error"


@dataclass
class DashboardContext:
    store: LifeDataStore
    currency: str = "PKR"
    tz: Optional[tzinfo] = None

    @property
    def today(self) -> date:
        return self.store.now().date()

    @property
    def today_key(self) -> str:
        return self.store.today_key()

    def money(self, amount) -> str:
        return f"{self.currency} {float(amount or 0):,.0f}"

    def attempt(self, action, *args, **kwargs):
        """Run a store mutation; a sync failure becomes a banner on the next run."""
        try:
            return action(*args, **kwargs)
        except SyncError as exc:
            st.session_state[ERROR_KEY] = str(exc)
            return None


def pop_error():
    return st.session_state.pop(ERROR_KEY, None)
