"""
Trust evidence collection and trust level.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .models import PageRecord
from .structured_data import StructuredExtract
from .warning_codes import DataQualityWarning, WARN_TRUST_HAS_NO_NUMBERS_OR_LICENSE, warn

MAX_TRUST_EVIDENCE = 8
MAX_SNIPPET_CHARS = 160

YEARS_PATTERN = re.compile(r"(over\s+)?(\d{1,2})\+?\s*(years?|yrs?)\b", re.IGNORECASE)

# Evidence types grouped into the three categories that drive trust level
TRUST_CATEGORIES: Dict[str, set] = {
    "reviews": {"review_count", "star_rating", "testimonial", "review_snippet", "review", "rating"},
    "credentials": {"licensed", "insured", "certified", "certification", "bbb_accredited", "badge", "award"},
    "longevity": {"years_experience", "years_in_business", "established_year"},
}
LICENSE_TYPES = {"licensed", "insured", "certified", "certification", "bbb_accredited"}

TRUST_STRONG = "strong"
TRUST_OK = "ok"
TRUST_WEAK = "weak"


@dataclass(frozen=True)
class TrustEvidence:
    type: str
    snippet: str
    source: str

    def to_dict(self) -> Dict:
        return {"type": self.type, "snippet": self.snippet, "source": self.source}


def _snippet(text: str, start: int, end: int) -> str:
    left = max(0, start - 40)
    return " ".join(text[left:end + 40].split())[:MAX_SNIPPET_CHARS]


def _years_evidence(home: Optional[PageRecord]) -> Optional[TrustEvidence]:
    if home is None:
        return None
    m = YEARS_PATTERN.search(home.text_snippet)
    if not m:
        return None
    return TrustEvidence("years_in_business", _snippet(home.text_snippet, m.start(), m.end()), "page_text")


def _rating_evidence(structured: StructuredExtract) -> Optional[TrustEvidence]:
    rating = structured.aggregate_rating or {}
    value = rating.get("ratingValue")
    count = rating.get("reviewCount") or rating.get("ratingCount")
    if not value and not count:
        return None
    parts = []
    if value:
        parts.append(f"{value} stars")
    if count:
        parts.append(f"{count} reviews")
    return TrustEvidence("star_rating", " from ".join(parts), "jsonld_aggregateRating")


def collect_trust_evidence(
    pages: Sequence[PageRecord],
    home: Optional[PageRecord],
    structured: StructuredExtract,
) -> Tuple[List[TrustEvidence], List[DataQualityWarning]]:
    """
    Gather trust evidence: crawler trust phrases, a years-in-business claim,
    the structured aggregate rating and the first review snippet.

    Returns:
        (evidence, warnings). Warns when nothing carries a number or a
        license/insurance claim.
    """
    evidence: List[TrustEvidence] = []
    seen = set()

    def _add(item: Optional[TrustEvidence]) -> None:
        if item is None or not item.snippet:
            return
        key = item.snippet.lower()
        if key in seen or len(evidence) >= MAX_TRUST_EVIDENCE:
            return
        seen.add(key)
        evidence.append(item)

    for page in pages:
        for phrase in page.trust_phrases:
            _add(TrustEvidence(phrase.type, phrase.text[:MAX_SNIPPET_CHARS], "trust_phrase"))
    _add(_rating_evidence(structured))
    if not any(e.type in TRUST_CATEGORIES["longevity"] for e in evidence):
        _add(_years_evidence(home))
    review = next((s for p in pages for s in p.review_snippets), None)
    if review:
        _add(TrustEvidence("review_snippet", review[:MAX_SNIPPET_CHARS], "review_snippet"))

    warnings = []
    has_number = any(re.search(r"\d", e.snippet) for e in evidence)
    has_license = any(e.type in LICENSE_TYPES for e in evidence)
    if not has_number and not has_license:
        warnings.append(warn(
            WARN_TRUST_HAS_NO_NUMBERS_OR_LICENSE,
            "No review counts, years in business or license claims found",
        ))
    return evidence, warnings


def trust_categories(evidence: Sequence[TrustEvidence]) -> List[str]:
    types = {e.type for e in evidence}
    return [name for name, members in TRUST_CATEGORIES.items() if types & members]


def trust_level(evidence: Sequence[TrustEvidence]) -> str:
    """strong with two or more evidence categories, ok with one, weak with none."""
    count = len(trust_categories(evidence))
    if count >= 2:
        return TRUST_STRONG
    if count == 1:
        return TRUST_OK
    return TRUST_WEAK
