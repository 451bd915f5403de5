"""
Purpose: Language/script classifiers for prompt adaptation and speech.
Heuristics only: keyword patterns for Roman Urdu, Unicode ranges for Urdu script.
All functions are pure; no state, no I/O.
"""

from __future__ import annotations
import re
from enum import Enum


ROMAN_URDU_PATTERNS = [
    re.compile(
        r"\b(aap|ap|hum|main|mein|hai|hain|ka|ki|ke|ko|se|par|or|aur|kya|kaise|"
        r"kahan|kab|kyun|jo|jis|agar|lekin|phir|abhi|yahan|wahan|yeh|ye|woh|wo|"
        r"iska|uska|hamara|tumhara|apka)\b",
        re.I,
    ),
    re.compile(r"\b(kya|kaise|kahan|kab|kyun|kaun|kitna|kitni|kitne)\b", re.I),
    re.compile(
        r"\b(batao|bataiye|samjhao|samjhaiye|dekho|dekhiye|suno|suniye|karo|"
        r"kariye|acha|accha|theek|thik|bilkul|zaroor|shayad)\b",
        re.I,
    ),
    re.compile(
        r"\b(router|device|mobile|phone|laptop|internet|wifi|network|app|website|"
        r"email|settings)\s+(ka|ki|ke|ko|se|mein|par|hai|hain)\b",
        re.I,
    ),
]

URDU_SCRIPT = re.compile(r"[؀-ۿݐ-ݿࢠ-ࣿ]")


class Language(str, Enum):
    ENGLISH = "en"
    URDU = "ur"

    @property
    def speech_tag(self) -> str:
        return "ur-PK" if self is Language.URDU else "en-US"


def is_roman_urdu(text: str) -> bool:
    t = text or ""
    return any(p.search(t) for p in ROMAN_URDU_PATTERNS)


def has_urdu_script(text: str) -> bool:
    return bool(URDU_SCRIPT.search(text or ""))


def detect_language(text: str) -> Language:
    if has_urdu_script(text) or is_roman_urdu(text):
        return Language.URDU
    return Language.ENGLISH
