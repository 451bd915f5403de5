"""
UI layer
Purpose: Streamlit-only glue. Renders the session sidebar and the chat transcript,
collects user inputs, and delegates all work to the controller. Keeps UI concerns
(layout/state widgets) separate from session logic so it can be unit tested
without Streamlit.
"""

import hashlib
from datetime import datetime, timezone
from typing import Optional

import streamlit as st
import streamlit.components.v1 as components
from audio_recorder_streamlit import audio_recorder

from microbot.bootstrap import build_controller
from microbot.config import get_settings, setup_logging
from microbot.controller import ChatSessionController
from microbot.models import ChatSession, Message, Role
from microbot.services.speech import speech_html, stop_speech_html

# ---------------------------
# Session state init
# ---------------------------
st_session = st.session_state
if "controller" not in st_session:
    setup_logging(get_settings().log_level)
    st_session.controller = build_controller()
st_session.setdefault("voice_mode", False)
st_session.setdefault("last_voice_sig", None)
st_session.setdefault("speech_queue", [])

controller: ChatSessionController = st_session.controller

# ---------------------------
# Page config
# ---------------------------
st.set_page_config(
    page_title="MicroBot",
    page_icon="🤖",
    layout="wide",
    initial_sidebar_state="collapsed" if controller.sidebar_collapsed else "expanded",
)

TITLE_MAX_CHARS = 25


# ---------------------------
# Helpers
# ---------------------------
def relative_day(ts: datetime) -> str:
    """Today / Yesterday / N days ago / date."""
    days = (datetime.now(timezone.utc) - ts).days
    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    return ts.astimezone().strftime("%Y-%m-%d")


def short_title(title: str, max_chars: int = TITLE_MAX_CHARS) -> str:
    if len(title) <= max_chars:
        return title
    return title[:max_chars] + "..."


def format_time(ts: datetime) -> str:
    return ts.astimezone().strftime("%H:%M")


def on_new_chat():
    controller.create_session()


def on_select(session_id: str):
    controller.select_session(session_id)


def on_rename(session_id: str):
    controller.rename_session(session_id, st_session.get(f"rename_{session_id}", ""))


def on_delete(session_id: str):
    controller.delete_session(session_id)


def on_retry(session_id: str):
    draft = controller.retry_last_turn(session_id)
    if draft is not None:
        st_session[f"draft_{session_id}"] = controller.take_draft(session_id)


def on_sidebar_pref():
    controller.set_sidebar_collapsed(st_session.sidebar_pref)


def on_speak(text: str):
    st_session.speech_queue.append(speech_html(text))


def on_stop_speech():
    st_session.speech_queue.append(stop_speech_html())


def render_message(msg: Message, idx: int) -> None:
    avatar = "🧑" if msg.role is Role.USER else ("⚠️" if msg.error else "🤖")
    with st.chat_message(msg.role.value, avatar=avatar):
        if msg.error:
            st.error(msg.content)
        elif msg.role is Role.ASSISTANT:
            st.markdown(msg.content)
        else:
            st.text(msg.content)
        cols = st.columns([6, 1])
        cols[0].caption(format_time(msg.timestamp))
        if msg.role is Role.ASSISTANT and not msg.error:
            cols[1].button(
                "🔊",
                key=f"speak_{msg.id}_{idx}",
                help="Read aloud",
                on_click=on_speak,
                args=(msg.content,),
            )


def send(session: ChatSession, text: str) -> None:
    """Render the turn live while the controller streams it in."""
    with st.chat_message("user", avatar="🧑"):
        st.text(text.strip())
    with st.chat_message("assistant", avatar="🤖"):
        placeholder = st.empty()
        placeholder.markdown("_MicroBot is thinking..._")
        parts: list[str] = []

        def on_chunk(chunk: str) -> None:
            parts.append(chunk)
            placeholder.markdown("".join(parts) + "▌")

        controller.send_message(session.id, text, on_chunk=on_chunk)
    st.rerun()


def voice_input() -> Optional[str]:
    wav_bytes = audio_recorder(
        pause_threshold=2,
        sample_rate=16_000,
        text="Press to speak",
        icon_size="2x",
    )
    if not wav_bytes:
        return None
    sig = hashlib.sha1(wav_bytes).hexdigest()
    if sig == st_session.get("last_voice_sig"):
        return None
    with st.spinner("Transcribing…"):
        text = controller.voice_to_text(wav_bytes)
    if not text:
        st.toast("Could not recognise speech, please try again.", icon="⚠️")
        return None
    st_session.last_voice_sig = sig
    return text


# ---------------------------
# SIDEBAR: sessions
# ---------------------------
with st.sidebar:
    st.markdown("# MicroBot")
    st.button("➕ New chat", type="primary", on_click=on_new_chat, use_container_width=True)
    st.divider()

    if not controller.sessions:
        st.caption("No conversations yet.")

    for s in controller.sessions:
        is_active = s.id == controller.active_id
        c1, c2 = st.columns([5, 1])
        c1.button(
            short_title(s.title),
            key=f"select_{s.id}",
            type="primary" if is_active else "secondary",
            on_click=on_select,
            args=(s.id,),
            use_container_width=True,
        )
        with c2.popover("⋯"):
            st.text_input("Title", value=s.title, key=f"rename_{s.id}")
            st.button("Rename", key=f"do_rename_{s.id}", on_click=on_rename, args=(s.id,))
            st.divider()
            st.caption("This will permanently delete the conversation.")
            st.button("Delete", key=f"do_delete_{s.id}", on_click=on_delete, args=(s.id,))
        st.caption(f"{relative_day(s.timestamp)} · {short_title(s.preview, 40)}")

    st.divider()
    st.toggle(
        "Start with sidebar collapsed",
        value=controller.sidebar_collapsed,
        key="sidebar_pref",
        on_change=on_sidebar_pref,
    )

# ---------------------------
# Main: transcript & input
# ---------------------------
if st_session.speech_queue:
    components.html(st_session.speech_queue.pop(0), height=0)

session = controller.active_session

if session is None:
    st.title("Welcome to MicroBot!")
    st.markdown(
        "I'm your AI tech assistant, ready to help you choose the right tech "
        "products or get instant support. You can type or speak to me in English "
        "or Roman Urdu!"
    )
    st.button("Start a new chat", type="primary", on_click=on_new_chat)
    st.stop()

st.subheader(session.title)

error = controller.error_for(session.id)
if error:
    bcol1, bcol2 = st.columns([6, 1])
    bcol1.error(f"Error: {error}")
    bcol2.button("Retry", key=f"retry_{session.id}", on_click=on_retry, args=(session.id,))

if not session.messages:
    st.info("Ask MicroBot anything about tech... (Type or speak)")

for i, msg in enumerate(session.messages):
    render_message(msg, i)

if any(m.role is Role.ASSISTANT and not m.error for m in session.messages):
    st.button("⏹ Stop reading", on_click=on_stop_speech)

user_text = None
pending = controller.is_pending(session.id)
draft_key = f"draft_{session.id}"

if controller.has_voice_input:
    st_session.voice_mode = st.toggle("🎙️ Voice mode", value=st_session.voice_mode)

if st_session.get(draft_key):
    with st.form(f"resend_{session.id}", clear_on_submit=True):
        edited = st.text_area("Edit and resend", value=st_session[draft_key])
        if st.form_submit_button("Send", type="primary", disabled=pending):
            st_session[draft_key] = None
            user_text = edited
elif st_session.voice_mode and controller.has_voice_input:
    user_text = voice_input()
else:
    raw = st.chat_input(
        "Ask MicroBot anything about tech... (Type or speak)", disabled=pending
    )
    if raw is not None and raw.strip():
        user_text = raw

if user_text and user_text.strip():
    send(session, user_text)
