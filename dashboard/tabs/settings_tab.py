import json

import streamlit as st

from dashboard.auth import logout
from dashboard.data import api_client
from dashboard.data.api_client import ApiError
from dashboard.data.life_data import SyncError
from dashboard.theme import get_active_theme, toggle_theme


def _render_transfer(ctx):
    st.markdown("<div class='section-title'>Backup</div>", unsafe_allow_html=True)
    if st.button("Prepare export", key="settings.export"):
        try:
            st.session_state["settings.export_blob"] = json.dumps(ctx.store.export_data(), indent=2, ensure_ascii=False)
        except SyncError as exc:
            st.error(str(exc))
    blob = st.session_state.get("settings.export_blob")
    if blob:
        st.download_button(
            "Download JSON",
            data=blob,
            file_name=f"momentum-export-{ctx.today_key}.json",
            mime="application/json",
            key="settings.download",
        )

    upload = st.file_uploader("Import a backup", type=["json"], key="settings.import_file")
    st.caption("Importing replaces all current data. If anything in the file is invalid, nothing changes.")
    if upload is not None and st.button("Import", key="settings.import"):
        try:
            result = ctx.store.import_data(upload.getvalue().decode("utf-8"))
        except (SyncError, ValueError) as exc:
            st.error(str(exc))
        else:
            counts = result.get("counts") or {}
            st.success(f"Imported {sum(counts.values())} item(s).")


def _render_vault(ctx):
    store = ctx.store
    st.markdown("<div class='section-title'>Password vault</div>", unsafe_allow_html=True)
    with st.form("settings.vault_form", clear_on_submit=True):
        website = st.text_input("Website")
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        note = st.text_input("Note")
        submitted = st.form_submit_button("Save credential")
    if submitted and website.strip() and username.strip():
        ctx.attempt(store.add_credential, website.strip(), username.strip(), password or None, note or None)
        st.rerun()
    for credential in store.credentials:
        with st.expander(f"{credential.get('website', '')} · {credential.get('username', '')}"):
            if credential.get("password"):
                st.code(credential["password"], language=None)
            if credential.get("note"):
                st.caption(credential["note"])
            st.button(
                "Delete",
                key=f"settings.vault_delete.{credential['id']}",
                on_click=ctx.attempt,
                args=(store.delete_credential, credential["id"]),
            )


def _render_account():
    st.markdown("<div class='section-title'>Account</div>", unsafe_allow_html=True)
    with st.form("settings.password_form", clear_on_submit=True):
        current = st.text_input("Current password", type="password")
        new = st.text_input("New password", type="password")
        submitted = st.form_submit_button("Change password")
    if submitted:
        try:
            result = api_client.request(
                "POST",
                "/api/auth/change-password",
                json={"currentPassword": current, "newPassword": new},
            )
        except ApiError as exc:
            st.error(str(exc.detail))
        else:
            st.success(result.get("message", "Password updated."))

    with st.expander("Danger zone"):
        st.warning("Deleting your account permanently removes every entry, the routine and your password.")
        confirm = st.text_input("Type DELETE to confirm", key="settings.delete_confirm")
        if st.button("Delete account and all data", key="settings.delete", disabled=confirm != "DELETE"):
            try:
                api_client.request("DELETE", "/api/auth/delete-account")
            except ApiError as exc:
                st.error(str(exc.detail))
            else:
                logout()


def render_settings_tab(ctx):
    name, _ = get_active_theme()
    st.button(
        "Switch to light mode" if name == "dark" else "Switch to dark mode",
        key="settings.theme",
        on_click=toggle_theme,
    )
    left, right = st.columns(2)
    with left:
        _render_transfer(ctx)
        _render_account()
    with right:
        _render_vault(ctx)
