"""
Business identity: display name and logo.

Name candidates come from weakly-labeled places (structured data, og:site_name,
the HTML title). Page titles in this market are frequently keyword lists
("Emergency Plumbing, Drain Cleaning, Water Heater Repair | Miami") rather
than a business name, so every candidate except the domain-derived fallback
must pass a plausibility filter before it is accepted.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from .models import ABSENT, BrandAssetCandidate, Evidence, Present
from .resolution import Candidate, resolve
from .structured_data import StructuredExtract
from .warning_codes import DataQualityWarning, WARN_LOGO_LOW_RES, WARN_LOGO_MISSING, warn

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

# Tried in this order; the domain fallback is always accepted
NAME_SOURCE_ORDER = [
    "jsonld_organization",
    "jsonld_localbusiness",
    "og_site_name",
    "jsonld_website",
    "domain_fallback",
    "html_title",
]
DEFAULT_NAME = "Your Company"

MAX_NAME_CHARS = 110
MAX_CANDIDATE_CHARS = 200
JARGON_WORD_THRESHOLD = 7
JARGON_HIT_THRESHOLD = 2

SERVICE_JARGON_TERMS = [
    "emergency", "same day", "service", "services", "repair", "repairs",
    "installation", "install", "replacement", "plumbing", "plumber", "hvac",
    "electric", "electrical", "roof", "roofing", "pest control", "landscaping",
]

GENERIC_TITLES = {"home", "homepage", "home page", "welcome", "welcome to", "official site", "index"}

DIRECTORY_PREFIX_PATTERN = re.compile(r"\b(directory|listing|listings|reviews|near me|best|top \d+)\b", re.IGNORECASE)
SEPARATOR_PATTERN = re.compile(r"\s+(?:\||—|–|-|•|·)\s+|\s*\|\s*")
PHONE_LIKE_PATTERN = re.compile(r"\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}")
EMAIL_LIKE_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
ACRONYM_PATTERN = re.compile(r"^[A-Z0-9]{2,4}$")

# Logo selection
LOGO_MAX_WIDTH = 1500
LOGO_MAX_HEIGHT = 800
LOGO_MIN_WIDTH = 80

LOGO_SOURCE_MAP = {
    "jsonld_org_logo": "jsonld_organization",
    "jsonld_localbusiness_image": "jsonld_localbusiness",
    "og_image": "og_image",
    "header_img": "header_logo",
    "header_svg": "header_logo",
}


# =============================================================================
# NAME HELPERS
# =============================================================================

def _collapse(text: str) -> str:
    return " ".join((text or "").split())[:MAX_CANDIDATE_CHARS]


def _service_hits(text: str) -> int:
    # Substring hits: "plumbers" counts "plumber", "repairs" counts "repair" and "repairs"
    lower = text.lower()
    return sum(1 for term in SERVICE_JARGON_TERMS if term in lower)


def normalize_name_candidate(text: str) -> str:
    """Cut a raw title/site name down to the part most likely to be the business name."""
    name = _collapse(text)
    if not name:
        return ""
    name = SEPARATOR_PATTERN.split(name)[0].strip()

    idx = name.find(":")
    if 0 < idx <= 50:
        left, right = name[:idx], name[idx + 1:].strip()
        if right and (_service_hits(left) or DIRECTORY_PREFIX_PATTERN.search(left)):
            name = right

    name = PHONE_LIKE_PATTERN.sub(" ", name)
    return " ".join(name.split()).strip(" ,;:-|")


def is_likely_business_name(name: str) -> bool:
    """
    Plausibility filter for a business display name.

    Rejects over-long strings, emails, phone numbers, pipe-joined titles,
    comma-separated keyword lists, long service-jargon phrases and generic
    page titles. The candidate is normalized first, so a brand followed by a
    separator suffix ("Empire Plumbing | Miami") is judged on the brand.
    """
    text = normalize_name_candidate(name or "")
    if not text:
        return False
    if len(text) > MAX_NAME_CHARS:
        return False
    if EMAIL_LIKE_PATTERN.search(text) or "|" in text:
        return False
    if PHONE_LIKE_PATTERN.search(text):
        return False
    if text.count(",") >= 2:
        return False
    words = text.split()
    if len(words) >= JARGON_WORD_THRESHOLD and _service_hits(text) >= JARGON_HIT_THRESHOLD:
        return False
    if text.lower().strip(" !.") in GENERIC_TITLES:
        return False
    return True


def title_case_words(text: str) -> str:
    """Title-case each word, keeping short all-caps acronyms (HVAC, AC, ABC)."""
    out = []
    for word in text.split():
        if ACRONYM_PATTERN.match(word):
            out.append(word)
        else:
            out.append(word[:1].upper() + word[1:].lower())
    return " ".join(out)


def _host(url: str) -> str:
    host = re.sub(r"^[a-z][a-z0-9+.-]*://", "", (url or "").strip(), flags=re.IGNORECASE)
    host = re.split(r"[/?#]", host, maxsplit=1)[0]
    host = host.split("@")[-1].split(":")[0]
    return re.sub(r"^www\.", "", host, flags=re.IGNORECASE)


def derive_domain_fallback_name(url: str) -> str:
    """'https://miami-dade-plumbing.com/' -> 'Miami Dade Plumbing'."""
    labels = [label for label in _host(url).split(".") if label]
    if len(labels) > 1:
        labels = labels[:-1]
    text = " ".join(labels)
    text = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", text)
    text = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1 \2", text)
    text = re.sub(r"[._\-]+", " ", text)
    return title_case_words(" ".join(text.split()))


# =============================================================================
# NAME RESOLUTION
# =============================================================================

def name_candidates(structured: StructuredExtract, site_name: str, page_title: str) -> Dict[str, str]:
    """Raw name candidates keyed by source tag."""
    return {
        "jsonld_organization": structured.organization_name,
        "jsonld_localbusiness": structured.localbusiness_name,
        "og_site_name": site_name,
        "jsonld_website": structured.website_name,
        "html_title": page_title,
    }


def _name_extractor(source: str, raw: Dict[str, str], fallback_url: str):
    def _extract(*_args) -> List[Candidate]:
        if source == "domain_fallback":
            value = derive_domain_fallback_name(fallback_url) if fallback_url else ""
        else:
            value = normalize_name_candidate(raw.get(source) or "")
        return [Candidate(value, source)] if value else []
    return _extract


def resolve_name(candidates: Dict[str, str], fallback_url: str) -> Tuple[str, str]:
    """
    Choose the business display name.

    Args:
        candidates: Raw candidate text keyed by source tag (see NAME_SOURCE_ORDER).
        fallback_url: Site URL used for the domain-derived fallback.

    Returns:
        (name, source). ``(DEFAULT_NAME, "default")`` only when nothing,
        not even a URL, is available.
    """
    extractors = [_name_extractor(s, candidates, fallback_url) for s in NAME_SOURCE_ORDER]
    primary = resolve(
        extractors,
        accept=lambda c: c.source == "domain_fallback" or is_likely_business_name(c.value),
    ).primary
    if isinstance(primary, Present):
        return primary.value, primary.source
    return DEFAULT_NAME, "default"


# =============================================================================
# LOGO RESOLUTION
# =============================================================================

def _within_bounds(c: BrandAssetCandidate) -> bool:
    if c.width is not None and c.width > LOGO_MAX_WIDTH:
        return False
    if c.height is not None and c.height > LOGO_MAX_HEIGHT:
        return False
    return True


def _logo_source(tag: str) -> str:
    return LOGO_SOURCE_MAP.get(tag, tag or "brand_asset")


def _ranked(candidates: Sequence[BrandAssetCandidate]) -> List[BrandAssetCandidate]:
    # sorted() is stable: equal scores keep input order
    return sorted((c for c in candidates if c.url), key=lambda c: -c.priority_score)


def resolve_logo(
    candidates: Sequence[BrandAssetCandidate],
    structured: Optional[StructuredExtract] = None,
) -> Tuple[Evidence, List[DataQualityWarning]]:
    """
    Choose the logo.

    The highest-scoring candidate inside the size bound wins; when every
    candidate is oversized the highest-scoring one is used anyway. Without
    candidates, the structured Organization logo then LocalBusiness image
    are used.

    Returns:
        (Evidence of BrandAssetCandidate with a normalized source, warnings)
    """
    ranked = _ranked(candidates)
    structured = structured or StructuredExtract()

    def _bounded(*_):
        return [Candidate(c, _logo_source(c.source)) for c in ranked if _within_bounds(c)][:1]

    def _oversized(*_):
        return [Candidate(c, _logo_source(c.source)) for c in ranked][:1]

    def _org_logo(*_):
        url = structured.organization_logo
        return [Candidate(BrandAssetCandidate(url, "jsonld_org_logo"), "jsonld_organization")] if url else []

    def _local_image(*_):
        url = structured.localbusiness_image
        return [Candidate(BrandAssetCandidate(url, "jsonld_localbusiness_image"), "jsonld_localbusiness")] if url else []

    logo = resolve([_bounded, _oversized, _org_logo, _local_image]).primary
    warnings = []
    if not isinstance(logo, Present):
        warnings.append(warn(WARN_LOGO_MISSING, "No logo candidate found"))
        return ABSENT, warnings
    if logo.value.width is not None and logo.value.width < LOGO_MIN_WIDTH:
        warnings.append(warn(WARN_LOGO_LOW_RES, f"Logo is only {logo.value.width}px wide"))
    return logo, warnings
