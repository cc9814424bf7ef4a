"""
Issue deduplication and backlog assembly.

Several heuristics can report the same finding in different words
("Phone number not in header" / "Telephone isn't visible in the header").
Titles are canonicalized into keys: exact key matches are duplicates, and
within one selection near-duplicates (token Jaccard >= 0.90) are dropped
too. Anything already shown in the top-issues highlight never reappears
in the backlog.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .models import Issue

logger = logging.getLogger(__name__)

NEAR_DUPLICATE_THRESHOLD = 0.90

BUCKET_CRITICAL = "critical"
BUCKET_WARNING = "warning"
BUCKET_OPPORTUNITY = "opportunity"
BUCKET_ORDER = [BUCKET_CRITICAL, BUCKET_WARNING, BUCKET_OPPORTUNITY]

SEVERITY_BUCKETS = {
    "critical": BUCKET_CRITICAL,
    "blocker": BUCKET_CRITICAL,
    "high": BUCKET_CRITICAL,
    "medium": BUCKET_WARNING,
    "warning": BUCKET_WARNING,
}

DEFAULT_CAPS = {BUCKET_CRITICAL: 6, BUCKET_WARNING: 9, BUCKET_OPPORTUNITY: 12}
DEFAULT_TOP_ISSUES = 3

# Applied in order, before digits and punctuation are normalized
SYNONYM_RULES = [
    (re.compile(r"\bphone\s+numbers?\b"), "phone"),
    (re.compile(r"\btelephone\b"), "phone"),
    (re.compile(r"\bcall[\s-]*to[\s-]*actions?\b"), "cta"),
    (re.compile(r"\bctas\b"), "cta"),
    (re.compile(r"\babove[\s-]+the[\s-]+fold\b"), "above fold"),
    (re.compile(r"\b(?:click|tap)[\s-]*to[\s-]*call\b"), "click to call"),
]


def canonicalize(title: str) -> str:
    """Canonical key for an issue title. Used for matching only, never displayed."""
    key = (title or "").lower()
    for pattern, token in SYNONYM_RULES:
        key = pattern.sub(token, key)
    key = re.sub(r"\d+", "0", key)
    key = re.sub(r"[^a-z0-9\s]", " ", key)
    return " ".join(key.split())


def jaccard_similarity(a: str, b: str) -> float:
    """Token-set Jaccard over whitespace-split canonical keys; 0 when either is empty."""
    ta, tb = set(a.split()), set(b.split())
    if not ta or not tb:
        return 0.0
    return len(ta & tb) / len(ta | tb)


def normalize_severity(label: Optional[str]) -> str:
    return SEVERITY_BUCKETS.get((label or "").strip().lower(), BUCKET_OPPORTUNITY)


def _keys(issues: Iterable) -> Set[str]:
    out = set()
    for item in issues or ():
        title = item.title if isinstance(item, Issue) else (item.get("title") if isinstance(item, dict) else item)
        if isinstance(title, str) and title.strip():
            out.add(canonicalize(title))
    return out


def dedupe(
    issues: Sequence[Issue],
    already_shown: Iterable = (),
    threshold: float = NEAR_DUPLICATE_THRESHOLD,
    limit: Optional[int] = None,
) -> List[Issue]:
    """
    Drop issues already shown, exact duplicates and near-duplicates.

    Args:
        issues: Candidates in priority order; earlier ones win.
        already_shown: Issues, dicts or titles surfaced elsewhere in the report.
        threshold: Jaccard similarity at or above which two keys are near-duplicates.
        limit: Max issues kept.

    Returns:
        Surviving issues in input order. Running dedupe on its own output
        removes nothing further.
    """
    shown = _keys(already_shown)
    kept: List[Issue] = []
    kept_keys: List[str] = []
    for issue in issues:
        key = canonicalize(issue.title)
        if not key or key in shown or key in kept_keys:
            continue
        if any(jaccard_similarity(key, k) >= threshold for k in kept_keys):
            continue
        kept.append(issue)
        kept_keys.append(key)
        if limit is not None and len(kept) >= limit:
            break
    return kept


def _by_bucket(issue: Issue) -> int:
    return BUCKET_ORDER.index(normalize_severity(issue.severity))


def select_top_issues(
    issues: Sequence[Issue],
    count: int = DEFAULT_TOP_ISSUES,
    already_shown: Iterable = (),
) -> List[Issue]:
    """Top-N highlight: most severe first, near-duplicates suppressed."""
    ordered = sorted(issues, key=_by_bucket)
    return dedupe(ordered, already_shown, limit=count)


@dataclass
class Backlog:
    critical: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)
    opportunities: List[Issue] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "counts": dict(self.counts),
            "critical": [i.to_dict() for i in self.critical],
            "warnings": [i.to_dict() for i in self.warnings],
            "opportunities": [i.to_dict() for i in self.opportunities],
        }


def build_backlog(
    issues: Sequence[Issue],
    already_shown: Iterable = (),
    caps: Optional[Dict[str, int]] = None,
) -> Backlog:
    """
    Partition deduplicated issues into severity buckets.

    Counts are taken after deduplication and before capping.
    """
    caps = dict(DEFAULT_CAPS, **(caps or {}))
    normalized = [replace(i, severity=normalize_severity(i.severity)) for i in issues]
    unique = dedupe(normalized, already_shown)

    buckets: Dict[str, List[Issue]] = {b: [] for b in BUCKET_ORDER}
    for issue in unique:
        buckets[issue.severity].append(issue)

    counts = {b: len(buckets[b]) for b in BUCKET_ORDER}
    counts["total"] = sum(counts.values())
    dropped = len(issues) - len(unique)
    if dropped:
        logger.debug("Backlog: %d duplicate or already-shown issues removed", dropped)
    return Backlog(
        critical=buckets[BUCKET_CRITICAL][:caps[BUCKET_CRITICAL]],
        warnings=buckets[BUCKET_WARNING][:caps[BUCKET_WARNING]],
        opportunities=buckets[BUCKET_OPPORTUNITY][:caps[BUCKET_OPPORTUNITY]],
        counts=counts,
    )
