import streamlit as st

from dashboard.services import ai_client
from dashboard.state.session_slices import clear_slice, get_value, set_value


def render_chat_tab(ctx):
    st.markdown("<div class='section-title'>Ask Momentum AI</div>", unsafe_allow_html=True)
    history = get_value("chat", "history")
    if history is None:
        with st.spinner("Connecting..."):
            history = [ai_client.chat_opening(ctx.store.data)]
        set_value("chat", "history", history)

    for message in history:
        role = "assistant" if message["role"] == "model" else "user"
        with st.chat_message(role):
            st.markdown(message["content"])

    prompt = st.chat_input("Ask about your spending, tasks, moods...")
    if prompt:
        # Gemini expects the conversation to open with a user turn.
        conversation = history[1:] + [{"role": "user", "content": prompt}]
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            with st.spinner("Thinking..."):
                reply = ai_client.chat_reply(conversation, ctx.store.data)
            st.markdown(reply["content"])
        set_value("chat", "history", history + [{"role": "user", "content": prompt}, reply])

    if len(history) > 1 and st.button("Start over", key="chat.reset"):
        clear_slice("chat")
        st.rerun()
