from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List


_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_TOKEN_SPLIT = re.compile(r"\W+")

_STOPWORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "is", "are", "was", "were", "be", "been", "have", "has", "had", "do", "does", "did",
    "will", "would", "could", "should",
})

_ACTION_MARKERS = ("will", "should", "must", "need to")

BULLET = "• "
MAX_KEY_PHRASES = 10


class SummaryMode(str, Enum):
    BULLETED = "bulleted"
    ACTION_ITEMS = "action_items"
    NARRATIVE = "narrative"


@dataclass(frozen=True)
class KeyPhrase:
    text: str
    count: int


def classify_instruction(instruction: str) -> SummaryMode:
    """Pick the rendering mode from keywords in the user's instruction."""
    low = instruction.lower()
    if "bullet" in low or "points" in low:
        return SummaryMode.BULLETED
    if "action" in low:
        return SummaryMode.ACTION_ITEMS
    return SummaryMode.NARRATIVE


def split_sentences(text: str) -> List[str]:
    parts = (p.strip() for p in _SENTENCE_SPLIT.split(text))
    return [p for p in parts if len(p) > 10]


def extract_key_phrases(text: str, limit: int = MAX_KEY_PHRASES) -> List[KeyPhrase]:
    """Most frequent content words, ties kept in first-seen order."""
    counts: Dict[str, int] = {}
    for tok in _TOKEN_SPLIT.split(text.lower()):
        if len(tok) <= 3 or tok in _STOPWORDS:
            continue
        counts[tok] = counts.get(tok, 0) + 1
    # sorted() is stable, so equal counts stay in insertion order
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    return [KeyPhrase(text=t, count=c) for t, c in ranked[:limit]]


def _bullets(items: List[str]) -> str:
    return "\n".join(f"{BULLET}{it}" for it in items)


def _render_bulleted(transcript: str) -> str:
    phrases = extract_key_phrases(transcript)[:5]
    return _bullets([p.text for p in phrases])


def _render_action_items(sentences: List[str]) -> str:
    actions = [s for s in sentences if any(m in s.lower() for m in _ACTION_MARKERS)][:5]
    if not actions:
        return "Action Items:"
    return "Action Items:\n" + _bullets(actions)


def _render_narrative(sentences: List[str]) -> str:
    return ". ".join(sentences[:3]) + "."


def summarize_fallback(transcript: str, instruction: str) -> str:
    """Deterministic local summary used when the provider call fails.

    Output is always prefixed with ``Summary based on: "<instruction>"`` and a
    blank line. The body depends on :func:`classify_instruction`:

    - bulleted: the top five key phrases, one per line
    - action items: up to five sentences mentioning will/should/must/need to
    - narrative: the first three sentences joined into a paragraph

    Never raises for string inputs.
    """
    sentences = split_sentences(transcript)
    mode = classify_instruction(instruction)
    if mode is SummaryMode.BULLETED:
        body = _render_bulleted(transcript)
    elif mode is SummaryMode.ACTION_ITEMS:
        body = _render_action_items(sentences)
    else:
        body = _render_narrative(sentences)
    return f'Summary based on: "{instruction}"\n\n{body}'
