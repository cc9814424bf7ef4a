"""
Raw page statistics for the health scorer.

Everything here is counted straight from the crawl (roles, word counts,
city mentions, content hashes) or read off the Evidence Pack's structured
data; no scoring happens in this module.
"""

import hashlib
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .content import ROLE_CONTACT, ROLE_HOME, ROLE_LEGAL, ROLE_LOCATIONS, ROLE_SERVICES, find_homepage, page_roles
from .contacts import PHONE_PATTERN
from .evidence_pack import EvidencePack
from .models import PageRecord, value_of

RICH_PAGE_MIN_WORDS = 350
THIN_PAGE_MAX_WORDS = 180
RICH_PAGE_EXCLUDED_ROLES = {ROLE_HOME, ROLE_CONTACT, ROLE_LEGAL}
SERVICE_AREA_URL_TOKENS = ("service-area", "service-areas", "areas-served", "areas-we-serve")


@dataclass(frozen=True)
class PageStat:
    url: str
    role: str
    word_count: int
    content_hash: str


@dataclass
class PageStats:
    pages: List[PageStat] = field(default_factory=list)
    city_mentions: int = 0
    city_in_h1: bool = False
    has_service_area: bool = False
    localbusiness_schema: bool = False
    hours_in_schema: bool = False
    has_rating: bool = False
    contact_page_present: bool = False
    phone_in_header: bool = False
    phone_clickable: bool = False
    lighthouse_mobile_score: Optional[int] = None
    # Factor list from a stored upstream audit, with its origin tag
    external_factors: Optional[List[Dict[str, Any]]] = None
    factors_origin: Optional[str] = None
    # Filled by ux.attach_ux
    mobile_score: Optional[int] = None
    clarity_score: Optional[int] = None
    ux_score: Optional[float] = None
    friction_level: Optional[str] = None
    mobile_issue_count: int = 0

    @property
    def roles(self) -> set:
        return {p.role for p in self.pages}

    @property
    def home_word_count(self) -> int:
        return next((p.word_count for p in self.pages if p.role == ROLE_HOME), 0)

    @property
    def services_word_count(self) -> Optional[int]:
        counts = [p.word_count for p in self.pages if p.role == ROLE_SERVICES]
        return max(counts) if counts else None

    @property
    def rich_page_count(self) -> int:
        return sum(
            1 for p in self.pages
            if p.word_count >= RICH_PAGE_MIN_WORDS and p.role not in RICH_PAGE_EXCLUDED_ROLES
        )

    @property
    def duplicate_fraction(self) -> float:
        hashes = [p.content_hash for p in self.pages if p.content_hash]
        if not self.pages or not hashes:
            return 0.0
        counts: Dict[str, int] = {}
        for h in hashes:
            counts[h] = counts.get(h, 0) + 1
        duplicated = sum(c for c in counts.values() if c > 1)
        return duplicated / len(self.pages)

    @property
    def thin_fraction(self) -> float:
        if not self.pages:
            return 0.0
        return sum(1 for p in self.pages if p.word_count < THIN_PAGE_MAX_WORDS) / len(self.pages)


def city_name(city: str) -> str:
    """'Miami, FL' -> 'Miami'."""
    return (city or "").split(",")[0].strip()


def count_city_mentions(text: str, city: str) -> int:
    name = city_name(city)
    if not name:
        return 0
    return len(re.findall(r"\b" + re.escape(name.lower()) + r"\b", (text or "").lower()))


def content_hash(page: PageRecord) -> str:
    if page.content_hash:
        return page.content_hash
    normalized = " ".join(page.text_snippet.lower().split())
    if not normalized:
        return ""
    return hashlib.sha1(normalized.encode("utf-8")).hexdigest()


def compute_page_stats(
    pages: Sequence[PageRecord],
    pack: EvidencePack,
    lighthouse_mobile_score: Optional[int] = None,
    external_factors: Optional[List[Dict[str, Any]]] = None,
    factors_origin: Optional[str] = None,
) -> PageStats:
    """
    Count the page-level facts the health axes need.

    Args:
        pages: Crawled pages.
        pack: Evidence pack built from the same pages.
        lighthouse_mobile_score: Optional upstream mobile score.
        external_factors: Optional factor list from a stored audit.
        factors_origin: "template" or "legacy" for ``external_factors``.
    """
    niche = pack.job.niche
    roles = page_roles(pages, niche)
    home = find_homepage(pages)
    stats = [
        PageStat(p.url, roles.get(p.normalized_url or p.url, "other"), p.word_count, content_hash(p))
        for p in pages
    ]

    city = pack.job.city
    mentions = 0
    city_in_h1 = False
    if home is not None:
        home_text = " ".join([home.title, home.text_snippet, *home.h1, *home.h2])
        mentions = count_city_mentions(home_text, city)
        city_in_h1 = any(count_city_mentions(h, city) for h in home.h1)

    structured = pack.structured
    service_area = (
        ROLE_LOCATIONS in {s.role for s in stats}
        or any(tok in (p.normalized_url or p.url).lower() for p in pages for tok in SERVICE_AREA_URL_TOKENS)
        or bool(structured.area_served)
    )
    phone_in_header = any(PHONE_PATTERN.search(p.header_text) for p in pages) or any(
        c.target == "tel" and c.above_fold for c in (home.cta_candidates if home else ())
    )
    phone_clickable = any(c.target == "tel" for p in pages for c in p.cta_candidates)

    return PageStats(
        pages=stats,
        city_mentions=mentions,
        city_in_h1=city_in_h1,
        has_service_area=service_area,
        localbusiness_schema=structured.localbusiness_present,
        hours_in_schema=bool(structured.opening_hours) and value_of(pack.profile.hours) is not None
        and pack.profile.hours.source.startswith("jsonld"),
        has_rating=bool(structured.aggregate_rating),
        contact_page_present=ROLE_CONTACT in {s.role for s in stats},
        phone_in_header=phone_in_header,
        phone_clickable=phone_clickable,
        lighthouse_mobile_score=lighthouse_mobile_score,
        external_factors=external_factors,
        factors_origin=factors_origin,
    )
