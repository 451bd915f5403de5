"""
Purpose: text-to-speech integration. Read assistant replies aloud with the
browser's speechSynthesis, in the voice language inferred from the text.
Browsers without speechSynthesis get a no-op; nothing is raised.
"""

from __future__ import annotations
import json
import uuid

from .language import detect_language

SPEECH_RATE = 0.9


def _js_string(value: str) -> str:
    return json.dumps(value).replace("</", "<\\/")


def speech_html(text: str, *, rate: float = SPEECH_RATE) -> str:
    """Return an HTML snippet that speaks `text` once (hidden)."""
    safe = (text or "").strip()
    if not safe:
        return ""
    lang = detect_language(safe).speech_tag
    el_id = f"tts_{uuid.uuid4().hex}"
    return f"""
    <span id="{el_id}" style="display:none"></span>
    <script>
      (function() {{
        const synth = window.parent.speechSynthesis || window.speechSynthesis;
        if (!synth || typeof SpeechSynthesisUtterance === "undefined") {{
          return;
        }}
        synth.cancel();
        const u = new SpeechSynthesisUtterance({_js_string(safe)});
        u.lang = {_js_string(lang)};
        u.rate = {rate};
        u.pitch = 1;
        u.volume = 1;
        u.onerror = (e) => console.error("Speech synthesis error:", e.error);
        synth.speak(u);
      }})();
    </script>
    """


def stop_speech_html() -> str:
    """Return an HTML snippet that cancels any ongoing speech."""
    return """
    <script>
      (function() {
        const synth = window.parent.speechSynthesis || window.speechSynthesis;
        if (synth) { synth.cancel(); }
      })();
    </script>
    """
