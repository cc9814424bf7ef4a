"""
Priority-ordered candidate resolution.

Phones, emails, address, hours, business name and logo are all resolved the
same way: an ordered list of extractor functions, each yielding candidates
tagged with a source, is run top to bottom. The first acceptable candidate
fills the primary slot; every unique candidate (by a normalized key) is kept
for the full list, first occurrence by priority winning.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Sequence

from .models import ABSENT, Evidence, Present


@dataclass(frozen=True)
class Candidate:
    value: Any
    source: str


Extractor = Callable[..., Iterable[Candidate]]


@dataclass
class Resolution:
    primary: Evidence = ABSENT
    candidates: List[Candidate] = field(default_factory=list)

    @property
    def values(self) -> List[Any]:
        return [c.value for c in self.candidates]


def run_extractors(extractors: Sequence[Extractor], *args: Any) -> List[Candidate]:
    """Run extractors in priority order and concatenate their candidates."""
    out: List[Candidate] = []
    for extractor in extractors:
        for candidate in extractor(*args) or ():
            if candidate is not None and candidate.value not in (None, "", [], {}):
                out.append(candidate)
    return out


def first_success(
    candidates: Iterable[Candidate],
    accept: Optional[Callable[[Candidate], bool]] = None,
) -> Evidence:
    for candidate in candidates:
        if accept is None or accept(candidate):
            return Present(candidate.value, candidate.source)
    return ABSENT


def collect_unique(
    candidates: Iterable[Candidate],
    key: Callable[[Any], Optional[str]],
    cap: Optional[int] = None,
) -> List[Candidate]:
    """Keep the first candidate per key; candidates with an empty key are dropped."""
    seen = set()
    out: List[Candidate] = []
    for candidate in candidates:
        k = key(candidate.value)
        if not k or k in seen:
            continue
        seen.add(k)
        out.append(candidate)
        if cap is not None and len(out) >= cap:
            break
    return out


def resolve(
    extractors: Sequence[Extractor],
    *args: Any,
    key: Optional[Callable[[Any], Optional[str]]] = None,
    cap: Optional[int] = None,
    accept: Optional[Callable[[Candidate], bool]] = None,
) -> Resolution:
    """
    First-success-wins, collect-all-for-dedup.

    Args:
        extractors: Functions in priority order, each returning candidates.
        *args: Passed to every extractor.
        key: Normalizer used for dedup; without it only the primary slot is filled.
        cap: Max unique candidates kept.
        accept: Predicate a candidate must pass to take the primary slot.

    Returns:
        Resolution with the primary Evidence and the deduplicated candidates.
    """
    candidates = run_extractors(extractors, *args)
    if key is not None:
        candidates = collect_unique(candidates, key, cap)
    return Resolution(primary=first_success(candidates, accept), candidates=candidates)
