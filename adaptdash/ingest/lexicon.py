from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from adaptdash.app.errors import ConfigError
from adaptdash.ingest.models import UNKNOWN


_NUMERIC_RE = re.compile(r"^-?(\d+(\.\d*)?|\.\d+)$")


@dataclass(frozen=True)
class Lexicon:
    """
    Locale-specific lexical rules for free-text answers.

    Rules are (phrase, result) pairs checked in order with case-insensitive
    substring containment, so longer/more specific phrases must come first
    ("strongly agree" before "agree", "21-30" before "30").
    """

    name: str
    agreement_rules: Tuple[Tuple[str, float], ...]
    years_rules: Tuple[Tuple[str, str], ...]

    def agreement_score(self, text: Optional[str]) -> Optional[float]:
        if text is None:
            return None
        s = str(text).strip().lower()
        if not s:
            return None
        if _NUMERIC_RE.match(s):
            return float(s)
        for phrase, score in self.agreement_rules:
            if phrase in s:
                return score
        return None

    def years_category(self, text: Optional[str]) -> str:
        s = str(text or "").strip().lower()
        if not s:
            return UNKNOWN
        for phrase, bucket in self.years_rules:
            if phrase in s:
                return bucket
        return UNKNOWN


def _years(bucket: str, *phrases: str) -> Tuple[Tuple[str, str], ...]:
    return tuple((p, bucket) for p in phrases)


ENGLISH = Lexicon(
    name="en",
    agreement_rules=(
        ("strongly disagree", 1.0),
        ("strongly agree", 5.0),
        ("neither", 3.0),
        ("neutral", 3.0),
        ("disagree", 2.0),
        ("agree", 4.0),
    ),
    years_rules=(
        *_years("30+", "30+", ">30", "> 30", "more than 30"),
        *_years("21-30", "21-30", "21–30", "20-30", "20–30"),
        *_years("11-20", "11-20", "11–20"),
        *_years("6-10", "6-10", "6–10", "6-11", "6–11"),
        *_years("0-5", "0-5", "0–5"),
    ),
)

SWEDISH = Lexicon(
    name="sv",
    agreement_rules=(
        ("instämmer inte alls", 1.0),
        ("instämmer helt", 5.0),
        ("instämmer inte", 2.0),
        ("varken", 3.0),
        ("instämmer", 4.0),
    ),
    years_rules=(
        *_years("30+", "30+", ">30", "> 30", "mer än 30", "över 30"),
        *_years("21-30", "21-30", "21–30", "20-30", "20–30"),
        *_years("11-20", "11-20", "11–20"),
        *_years("6-10", "6-10", "6–10", "6-11", "6–11"),
        *_years("0-5", "0-5", "0–5"),
    ),
)

LEXICONS: Dict[str, Lexicon] = {lex.name: lex for lex in (ENGLISH, SWEDISH)}


def get_lexicon(name: str) -> Lexicon:
    try:
        return LEXICONS[name.strip().lower()]
    except KeyError:
        raise ConfigError(f"Unknown lexicon {name!r}; available: {sorted(LEXICONS)}") from None
