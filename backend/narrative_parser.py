# Extract SUMMARY / INSIGHT sections from free-form Gemini output
from __future__ import annotations
import re
from dataclasses import asdict, dataclass
from typing import Optional

from prompt_builder import INSIGHT_MARKER, SUMMARY_MARKER

FALLBACK_SUMMARY = "Hasil survei menunjukkan tingkat partisipasi yang baik dari responden."
FALLBACK_INSIGHT = "Perlu dilakukan analisis lebih lanjut untuk mendapatkan insight yang lebih mendalam."

# Returned when generation itself failed and there is nothing to parse
UNAVAILABLE_SUMMARY = "Unable to generate analysis at this time."
UNAVAILABLE_INSIGHT = "Please try again later."

_S, _I = SUMMARY_MARKER, INSIGHT_MARKER
_FLAGS = re.IGNORECASE | re.DOTALL | re.MULTILINE
# Start of a line, allowing markdown heading or quote prefixes
_LINE_START = r"^[ \t#>]*"

# Summary ends at an "INSIGHT:" label, an INSIGHT heading line, or end of text
_INSIGHT_BOUNDARY = rf"(?={_I}\s*:|{_LINE_START}{_I}\b|\Z)"

# Colon form first, bare heading line second
_SUMMARY_PATTERNS = (
    re.compile(rf"{_S}\s*:\s*(?!{_I}\b)(.+?){_INSIGHT_BOUNDARY}", _FLAGS),
    re.compile(rf"{_LINE_START}{_S}\s+(?!{_I}\b)(.+?){_INSIGHT_BOUNDARY}", _FLAGS),
)
_INSIGHT_PATTERNS = (
    re.compile(rf"{_I}\s*:\s*(.+)\Z", _FLAGS),
    re.compile(rf"{_LINE_START}{_I}\s+(.+)\Z", _FLAGS),
)

_BLANK_LINE = re.compile(r"\n\s*\n")
# Each field only loses its own labels
_LEADING_LABELS = {
    "summary": re.compile(rf"^\s*(?:{_S}|Ringkasan)\b[ \t]*:?", re.IGNORECASE),
    "insight": re.compile(rf"^\s*(?:{_I}|Rekomendasi)\b[ \t]*:?", re.IGNORECASE),
}

# Trace values
MARKER = "marker"
SPLIT = "split"
FALLBACK = "fallback"


@dataclass(frozen=True)
class NarrativeResult:
    summary: str
    insight: str

    def to_dict(self) -> dict:
        return asdict(self)


def unavailable_narrative() -> NarrativeResult:
    return NarrativeResult(summary=UNAVAILABLE_SUMMARY, insight=UNAVAILABLE_INSIGHT)


def strip_markup(text: str) -> str:
    """Drop markdown bold markers and normalise line endings."""
    return (text or "").replace("\r\n", "\n").replace("**", "")


def _first_match(patterns, text: str, pos: int = 0) -> tuple[str, Optional[int]]:
    for pattern in patterns:
        m = pattern.search(text, pos)
        if m and m.group(1).strip():
            return m.group(1), m.end(1)
    return "", None


def extract_marked_sections(text: str) -> tuple[str, str]:
    """Return the raw (summary, insight) captured after their markers.

    Either value is ``""`` when its marker is absent or followed by nothing.
    The insight search starts where the summary capture ended so a stray
    word inside the summary cannot shadow the real INSIGHT label.
    """
    summary, end = _first_match(_SUMMARY_PATTERNS, text)
    insight, _ = _first_match(_INSIGHT_PATTERNS, text, end or 0)
    if not insight and end:
        insight, _ = _first_match(_INSIGHT_PATTERNS, text)
    return summary, insight


def split_on_blank_line(text: str) -> list[str]:
    """Split on the first blank line into at most two non-empty parts."""
    return [p for p in _BLANK_LINE.split(text.strip(), maxsplit=1) if p.strip()]


def strip_leading_label(text: str, field: str) -> str:
    """Remove one leading label belonging to ``field`` ("summary" or "insight")."""
    return _LEADING_LABELS[field].sub("", text, count=1)


def parse_with_trace(raw: str) -> tuple[NarrativeResult, dict]:
    """Parse ``raw`` and report which tier produced each field.

    Returns:
        tuple[NarrativeResult, dict]: the result and ``{"summary": tier, "insight": tier}``
        where tier is ``"marker"``, ``"split"`` or ``"fallback"``.
    """
    text = strip_markup(raw)
    summary, insight = extract_marked_sections(text)
    trace = {
        "summary": MARKER if summary.strip() else FALLBACK,
        "insight": MARKER if insight.strip() else FALLBACK,
    }

    if not summary.strip() or not insight.strip():
        parts = split_on_blank_line(text)
        if len(parts) == 2:
            if not summary.strip():
                summary, trace["summary"] = parts[0], SPLIT
            if not insight.strip():
                insight, trace["insight"] = parts[1], SPLIT
        elif len(parts) == 1 and not summary.strip() and not insight.strip():
            summary, trace["summary"] = parts[0], SPLIT

    summary = strip_leading_label(summary, "summary").strip()
    insight = strip_leading_label(insight, "insight").strip()

    if not summary:
        summary, trace["summary"] = FALLBACK_SUMMARY, FALLBACK
    if not insight:
        insight, trace["insight"] = FALLBACK_INSIGHT, FALLBACK

    return NarrativeResult(summary=summary, insight=insight), trace


def parse_narrative(raw: str) -> NarrativeResult:
    """Turn free-form model output into a non-empty summary/insight pair. Never raises."""
    result, _ = parse_with_trace(raw)
    return result
