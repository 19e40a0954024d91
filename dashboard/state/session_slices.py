import streamlit as st


PREFIX = "slice"
TOKEN_KEY = "auth.token"
STORE_KEY = "data.store"


def get_slice(slice_name):
    key = f"{PREFIX}.{slice_name}"
    if key not in st.session_state:
        st.session_state[key] = {}
    return st.session_state[key]


def get_value(slice_name, name, default=None):
    payload = get_slice(slice_name)
    return payload.get(name, default)


def set_value(slice_name, name, value):
    payload = get_slice(slice_name)
    payload[name] = value


def clear_slice(slice_name):
    key = f"{PREFIX}.{slice_name}"
    if key in st.session_state:
        del st.session_state[key]


def get_token():
    return st.session_state.get(TOKEN_KEY)


def set_token(token):
    st.session_state[TOKEN_KEY] = token


def get_store():
    return st.session_state.get(STORE_KEY)


def set_store(store):
    st.session_state[STORE_KEY] = store


def clear_session():
    for key in list(st.session_state.keys()):
        if key in {TOKEN_KEY, STORE_KEY} or str(key).startswith(f"{PREFIX}."):
            del st.session_state[key]
