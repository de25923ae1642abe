from __future__ import annotations

import re
import unicodedata

_BULLET_CHARS = "•◦▪▫●○■□◆◇▶►-–—*·"
# A number only counts as a list marker when whitespace follows ("1. Led"), never "3.8 GPA".
_BULLET_PATTERN = re.compile(rf"^\s*(?:[{re.escape(_BULLET_CHARS)}]|\d+[.)](?=\s|$))\s*")
_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_PHONE_RE = re.compile(r"\+?\d[\d\s().-]{6,}\d")
_URL_RE = re.compile(r"(?:https?://|www\.|linkedin\.com|github\.com)", re.IGNORECASE)
_CONTACT_MARKERS = ("@", "linkedin", "github", "+", "phone", "email")
_SALVAGE_RUN_RE = re.compile(r"[\w@.+#&/-]+")
_READABLE_CHARS = set(" \t.,;:!?()[]{}'\"/\\|&@#%$€£+-–—_*•·%")


def normalize_line(line: str) -> str:
    return re.sub(r"\s+", " ", line).strip()


def is_bullet_like(line: str) -> bool:
    stripped = line.lstrip()
    return bool(stripped) and stripped[0] in _BULLET_CHARS


def strip_bullet_prefix(line: str) -> str:
    return _BULLET_PATTERN.sub("", line, count=1).strip()


def is_contact_line(line: str) -> bool:
    stripped = normalize_line(line)
    if not stripped:
        return False
    lowered = stripped.lower()
    if any(marker in lowered for marker in _CONTACT_MARKERS):
        return True
    if "|" in stripped:
        return True
    return bool(_EMAIL_RE.search(stripped) or _PHONE_RE.search(stripped) or _URL_RE.search(stripped))


def _is_garbled(line: str) -> bool:
    if "�" in line:
        return True
    if any(unicodedata.category(char) in {"Cc", "Cf", "Co", "Cs"} for char in line if char != "\t"):
        return True
    if not line:
        return False
    readable = sum(1 for char in line if char.isalnum() or char in _READABLE_CHARS)
    return readable / len(line) < 0.6


def salvage_text(raw: str, *, min_run: int = 3) -> str:
    """Drop binary noise, keeping printable runs with at least ``min_run`` alphanumerics.

    Clean lines pass through untouched; only lines that look garbled (control
    characters, replacement characters, mostly symbols) are reduced to their
    salvageable runs.
    """
    if not raw:
        return ""
    text = raw.replace("\r\n", "\n").replace("\r", "\n").replace("\x00", " ")
    kept: list[str] = []
    for line in text.split("\n"):
        if not _is_garbled(line):
            kept.append(line)
            continue
        runs = [
            token
            for token in _SALVAGE_RUN_RE.findall(line)
            if sum(1 for char in token if char.isalnum()) >= min_run
        ]
        if runs:
            kept.append(" ".join(runs))
    return "\n".join(kept).strip()


def split_list_items(line: str) -> list[str]:
    parts = re.split(r"\s*[,;|•]\s*", strip_bullet_prefix(line))
    return [part.strip() for part in parts if part and part.strip()]


def find_years_of_experience(text: str) -> str | None:
    match = re.search(r"(\d+)\+?\s*years?", text, re.IGNORECASE)
    return match.group(1) if match else None
