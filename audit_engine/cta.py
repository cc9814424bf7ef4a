"""
CTA selection.

Every clickable element the crawler flagged gets an intent (call, quote,
estimate, schedule, book, contact) and a prominence score. Exactly one
eligible candidate, or none, is elected primary.

Scoring:
    +50 above the fold (desktop or mobile)
    +40 tel: link
    +20 button-like DOM context
    +10 intent inferred
Only above-fold candidates with an intent are eligible. Navigation items
and structural labels (home / services / about) never are.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .models import CtaCandidate, PageRecord
from .warning_codes import DataQualityWarning, WARN_CTA_UNCLEAR, WARN_PRIMARY_CTA_NOT_INTENT, warn

logger = logging.getLogger(__name__)

VALID_INTENTS = {"call", "quote", "estimate", "schedule", "book", "contact"}
NAV_BLACKLIST = {"home", "services", "about"}

SCORE_ABOVE_FOLD = 50
SCORE_TEL_LINK = 40
SCORE_BUTTON_LIKE = 20
SCORE_HAS_INTENT = 10

MAX_CTA_CANDIDATES = 40

# (intent, pattern) checked in order against normalized text
INTENT_RULES: List[Tuple[str, re.Pattern]] = [
    ("call", re.compile(r"\bcall\b|\bemergency\b|\b24/7\b")),
    ("quote", re.compile(r"get a quote|request a quote|\bquote\b|\bpricing\b|\bprice\b")),
    ("estimate", re.compile(r"\bestimate\b")),
    ("schedule", re.compile(r"\bschedule\b|\bappointment\b")),
    ("book", re.compile(r"\bbook\b")),
    ("contact", re.compile(r"\bcontact\b|get in touch")),
]

BUTTON_HINTS = (".btn", ".button", ".cta", "btn", "button")


@dataclass(frozen=True)
class ScoredCta:
    candidate: CtaCandidate
    intent: Optional[str]
    score: int
    index: int
    source: str = "dom"

    @property
    def eligible(self) -> bool:
        return self.candidate.above_fold and self.intent is not None and not is_structural(self.candidate)

    def to_dict(self) -> Dict:
        c = self.candidate
        return {
            "text": c.text,
            "href": c.href or None,
            "target": c.target,
            "intent": self.intent,
            "above_fold": c.above_fold,
            "above_fold_desktop": c.above_fold_desktop,
            "above_fold_mobile": c.above_fold_mobile,
            "in_nav": c.in_nav,
            "score": self.score,
            "source": self.source,
        }


@dataclass
class CtaMap:
    primary: Optional[ScoredCta] = None
    primary_source: Optional[str] = None
    primary_reason: Optional[str] = None
    candidates: List[ScoredCta] = field(default_factory=list)

    @property
    def above_fold_count(self) -> int:
        return sum(1 for c in self.candidates if c.candidate.above_fold and not is_structural(c.candidate))

    def to_dict(self) -> Dict:
        primary = None
        if self.primary:
            primary = dict(self.primary.to_dict(), reason=self.primary_reason)
        return {
            "primary": primary,
            "primary_cta_text": self.primary.candidate.text if self.primary else None,
            "primary_cta_source": self.primary_source,
            "cta_candidates": [c.to_dict() for c in self.candidates[:MAX_CTA_CANDIDATES]],
        }


def normalize_cta_text(text: str) -> str:
    return " ".join((text or "").lower().split()).strip(" .!>»→")


def infer_intent(candidate: CtaCandidate) -> Optional[str]:
    """Explicit tag if valid, else link target, else keyword rules on the text."""
    if candidate.intent in VALID_INTENTS:
        return candidate.intent
    text = normalize_cta_text(candidate.text)
    if candidate.target == "tel":
        return "call"
    for intent, pattern in INTENT_RULES:
        if pattern.search(text):
            return intent
    if candidate.target == "mailto":
        return "contact"
    return None


def is_button_like(candidate: CtaCandidate) -> bool:
    hint = (candidate.dom_hint or "").lower()
    return hint.startswith("button") or any(h in hint for h in BUTTON_HINTS)


def is_structural(candidate: CtaCandidate) -> bool:
    return candidate.in_nav or normalize_cta_text(candidate.text) in NAV_BLACKLIST


def score_candidate(candidate: CtaCandidate, intent: Optional[str]) -> int:
    score = 0
    if candidate.above_fold:
        score += SCORE_ABOVE_FOLD
    if candidate.target == "tel":
        score += SCORE_TEL_LINK
    if is_button_like(candidate):
        score += SCORE_BUTTON_LIKE
    if intent:
        score += SCORE_HAS_INTENT
    return score


def _primary_source(scored: ScoredCta) -> str:
    if scored.candidate.target == "tel":
        return "tel"
    if is_button_like(scored.candidate):
        return "button"
    return "hero"


def _reason(scored: ScoredCta) -> str:
    parts = ["above the fold"]
    if scored.candidate.target == "tel":
        parts.append("tel: link")
    if is_button_like(scored.candidate):
        parts.append("button-like")
    return f"{scored.intent} intent, " + ", ".join(parts) + f" (score {scored.score})"


def select_primary(candidates: Sequence[CtaCandidate]) -> Tuple[CtaMap, List[DataQualityWarning]]:
    """
    Score every candidate and elect the primary CTA.

    Ties go to the earlier candidate in input order.

    Returns:
        (CtaMap, warnings). ``CtaMap.primary`` is None when nothing is eligible.
    """
    scored = []
    for idx, candidate in enumerate(candidates):
        intent = infer_intent(candidate)
        scored.append(ScoredCta(candidate, intent, score_candidate(candidate, intent), idx))

    eligible = [s for s in scored if s.eligible]
    warnings: List[DataQualityWarning] = []
    cta_map = CtaMap(candidates=scored)
    if eligible:
        best = max(eligible, key=lambda s: (s.score, -s.index))
        cta_map.primary = best
        cta_map.primary_source = _primary_source(best)
        cta_map.primary_reason = _reason(best)
    elif any(s.candidate.above_fold and not is_structural(s.candidate) for s in scored):
        warnings.append(warn(WARN_PRIMARY_CTA_NOT_INTENT, "Above-fold CTAs exist but none states a clear action"))
    else:
        warnings.append(warn(WARN_CTA_UNCLEAR, "No above-fold call-to-action found"))
    return cta_map, warnings


def fallback_candidates(phones: Sequence[str]) -> List[ScoredCta]:
    """Call candidates synthesized from resolved phones when the crawl found no CTAs."""
    out = []
    for idx, phone in enumerate(phones[:2]):
        digits = re.sub(r"\D", "", phone)
        candidate = CtaCandidate(text=f"Call {phone}", href=f"tel:{digits}", target="tel")
        out.append(ScoredCta(candidate, "call", score_candidate(candidate, "call"), idx, source="generated_tel"))
    return out


def page_candidates(home: Optional[PageRecord]) -> List[CtaCandidate]:
    """Homepage CTAs, deduped by text + href."""
    seen = set()
    out = []
    for c in (home.cta_candidates if home is not None else ()):
        key = (normalize_cta_text(c.text), c.href.lower())
        if key in seen:
            continue
        seen.add(key)
        out.append(c)
    return out


def build_cta_map(home: Optional[PageRecord], phones: Sequence[str]) -> Tuple[CtaMap, List[DataQualityWarning]]:
    """CTA map for the homepage; phone-based fallbacks fill an empty candidate list."""
    candidates = page_candidates(home)
    cta_map, warnings = select_primary(candidates)
    if not candidates:
        cta_map.candidates = fallback_candidates(phones)
    logger.debug("CTA map: %d candidates, primary=%s", len(cta_map.candidates),
                 cta_map.primary.candidate.text if cta_map.primary else None)
    return cta_map, warnings
