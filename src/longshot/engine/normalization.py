"""Prompt text normalisation.

Free-text hypotheticals arrive with smart quotes, doubled punctuation,
trailing meta-instructions ("no explanation please") and question boilerplate
("what are the odds that ...").  Everything downstream pattern-matches on the
canonical form produced here. An instruction clause is only removed when the
*whole* clause reads as an instruction.
"""

from __future__ import annotations

import re
from typing import Pattern, Sequence, Tuple

_UNICODE_FOLDS: Tuple[Tuple[str, str], ...] = (
    ("\u2019", "'"),
    ("\u2018", "'"),
    ("\u201c", '"'),
    ("\u201d", '"'),
    ("\u2013", "-"),
    ("\u2014", "-"),
    ("\u2026", "..."),
    ("\u00a0", " "),
)

INSTRUCTION_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"\b(?:explain\s+why|explanation|explain|why)\b", re.IGNORECASE),
    re.compile(r"\b(?:give|show|return)\s+(?:odds\s+only|just\s+odds|only\s+odds)\b", re.IGNORECASE),
    re.compile(r"\b(?:odds\s+only|no\s+explanation|no\s+explainer|no\s+rationale)\b", re.IGNORECASE),
    re.compile(r"\b(?:brief|short)\s+(?:explanation|rationale)\b", re.IGNORECASE),
)

# Multi-word instruction phrases that may trail a prompt without punctuation.
_TRAILING_PHRASES: Tuple[Pattern[str], ...] = tuple(
    re.compile(rf"\s+{pattern}\s*[.!?]*\s*$", re.IGNORECASE)
    for pattern in (
        r"(?:and\s+)?explain\s+why",
        r"(?:and\s+)?(?:give|show|return)\s+(?:odds\s+only|just\s+odds|only\s+odds)",
        r"(?:odds\s+only|no\s+explanation|no\s+explainer|no\s+rationale)(?:\s+please)?",
        r"(?:with\s+a\s+)?(?:brief|short)\s+(?:explanation|rationale)",
    )
)

# Longest first so "what are the odds that" wins over "what are the odds".
LEADING_BOILERPLATE: Tuple[str, ...] = (
    "what are the chances that",
    "what are the odds that",
    "what are the chances",
    "what are the odds of",
    "what are the odds",
    "what are odds that",
    "what're the odds that",
    "what would the odds be that",
    "give me the odds that",
    "give me the odds on",
    "give me odds that",
    "give me odds on",
    "what is the probability that",
    "what's the probability that",
    "how likely is it that",
    "odds that",
    "odds on",
)

_LEADING_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(rf"^\s*{re.escape(phrase)}\b[\s,:]*", re.IGNORECASE)
    for phrase in sorted(LEADING_BOILERPLATE, key=len, reverse=True)
)

_TRAILING_PARENTHETICAL = re.compile(r"\(([^)]{0,80})\)\s*$")
_TRAILING_CLAUSE = re.compile(r"([;,:])\s*([^;,:]{0,80})$")
_PUNCTUATION_RUN = re.compile(r"([!?.,;:])\1+")
_DASH_RUN = re.compile(r"-{2,}")
_WHITESPACE = re.compile(r"\s+")

NUMBER_WORDS = {
    "one": "1",
    "two": "2",
    "three": "3",
    "four": "4",
    "five": "5",
    "six": "6",
    "seven": "7",
    "eight": "8",
    "nine": "9",
    "ten": "10",
    "eleven": "11",
    "twelve": "12",
    "fifteen": "15",
    "twenty": "20",
}
_NUMBER_WORD_PATTERN = re.compile(
    r"\b(" + "|".join(sorted(NUMBER_WORDS, key=len, reverse=True)) + r")\b", re.IGNORECASE
)


def fold_unicode(text: str) -> str:
    for source, target in _UNICODE_FOLDS:
        text = text.replace(source, target)
    return text


def is_instruction(fragment: str, patterns: Sequence[Pattern[str]] = INSTRUCTION_PATTERNS) -> bool:
    """Whether ``fragment`` reads as a meta-instruction rather than content."""

    candidate = fragment.strip().strip(".!?").strip()
    if not candidate:
        return False
    for pattern in patterns:
        match = pattern.search(candidate)
        if match is None:
            continue
        # The instruction has to carry the clause; stray filler words around it are fine.
        leftover = (candidate[: match.start()] + " " + candidate[match.end() :]).strip()
        if not leftover or re.fullmatch(r"(?:please|and|just|pls|thanks|with|a|the|\s)*", leftover, re.IGNORECASE):
            return True
    return False


def strip_trailing_instructions(text: str) -> str:
    out = text
    match = _TRAILING_PARENTHETICAL.search(out)
    if match and is_instruction(match.group(1)):
        out = out[: match.start()].rstrip()
    match = _TRAILING_CLAUSE.search(out)
    if match and is_instruction(match.group(2)):
        out = out[: match.start()].rstrip()
    for pattern in _TRAILING_PHRASES:
        out = pattern.sub("", out)
    return out


def strip_leading_boilerplate(text: str) -> str:
    """Remove at most one known leading question phrase."""

    for pattern in _LEADING_PATTERNS:
        stripped, count = pattern.subn("", text, count=1)
        if count:
            return stripped
    return text


def collapse_punctuation(text: str) -> str:
    text = _PUNCTUATION_RUN.sub(r"\1", text)
    return _DASH_RUN.sub("-", text)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def normalize(raw: object) -> str:
    """Canonicalise prompt text. Never raises; may return ``""``."""

    if raw is None:
        return ""
    text = raw if isinstance(raw, str) else str(raw)
    text = fold_unicode(text)
    text = strip_trailing_instructions(text)
    text = strip_leading_boilerplate(collapse_whitespace(text))
    text = collapse_punctuation(text)
    text = collapse_whitespace(text)
    return text.strip(" ?")


def normalize_lower(raw: object) -> str:
    return normalize(raw).lower()


def number_words_to_digits(text: str) -> str:
    return _NUMBER_WORD_PATTERN.sub(lambda m: NUMBER_WORDS[m.group(1).lower()], text)


def normalize_person_name(name: object) -> str:
    """Dataset key for a player name: lowercase alphanumerics, single spaced."""

    text = "" if name is None else fold_unicode(str(name))
    text = re.sub(r"[.']", "", text.lower())
    text = re.sub(r"[^a-z0-9\s]", " ", text)
    return collapse_whitespace(text)


__all__ = [
    "INSTRUCTION_PATTERNS",
    "LEADING_BOILERPLATE",
    "NUMBER_WORDS",
    "collapse_punctuation",
    "collapse_whitespace",
    "fold_unicode",
    "is_instruction",
    "normalize",
    "normalize_lower",
    "normalize_person_name",
    "number_words_to_digits",
    "strip_leading_boilerplate",
    "strip_trailing_instructions",
]
