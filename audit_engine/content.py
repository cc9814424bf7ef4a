"""
Page-role classification and featured-service extraction.

Crawler page-type labels are often missing or wrong for real-world URL
patterns (/what-we-do/, /drain-cleaning-miami/). Trusted labels are used
as-is; everything else goes through a token classifier over the URL path
and title. Services are then pulled from the strongest available source:
structured offer catalogs, an upstream services list, or H3/H6 heading
pairs.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple
from urllib.parse import urlparse

from .models import PageRecord
from .structured_data import StructuredExtract
from .warning_codes import DataQualityWarning, WARN_SERVICES_MISSING, warn

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------
ROLE_HOME = "home"
ROLE_CONTACT = "contact"
ROLE_SERVICES = "services"
ROLE_ABOUT = "about"
ROLE_FAQ = "faq"
ROLE_PRICING = "pricing"
ROLE_BLOG = "blog"
ROLE_GALLERY = "gallery"
ROLE_LOCATIONS = "locations"
ROLE_LEGAL = "legal"
ROLE_OTHER = "other"

# Crawler labels trusted as-is, with their common spellings
TRUSTED_LABELS: Dict[str, str] = {
    "home": ROLE_HOME, "homepage": ROLE_HOME,
    "contact": ROLE_CONTACT,
    "services": ROLE_SERVICES, "service": ROLE_SERVICES,
    "about": ROLE_ABOUT,
    "faq": ROLE_FAQ,
    "pricing": ROLE_PRICING,
    "blog": ROLE_BLOG,
    "gallery": ROLE_GALLERY,
    "locations": ROLE_LOCATIONS, "location": ROLE_LOCATIONS, "service_area": ROLE_LOCATIONS,
    "legal": ROLE_LEGAL, "privacy": ROLE_LEGAL, "terms": ROLE_LEGAL,
}

# Matched before the services test, in this order
ROLE_TOKENS: List[Tuple[str, Set[str]]] = [
    (ROLE_ABOUT, {"about", "team", "story", "history", "mission"}),
    (ROLE_FAQ, {"faq", "faqs", "questions"}),
    (ROLE_PRICING, {"pricing", "prices", "price", "rates", "cost", "costs", "financing"}),
    (ROLE_BLOG, {"blog", "news", "articles", "article", "tips", "posts"}),
    (ROLE_GALLERY, {"gallery", "portfolio", "projects", "photos"}),
]
LOCATION_TOKENS = {"locations", "location"}
LOCATION_TOKEN_PAIRS = [("areas", "served"), ("service", "area"), ("service", "areas")]
LEGAL_TOKENS = {"privacy", "terms", "policy", "disclaimer", "accessibility", "sitemap"}
CONTACT_TOKENS = {"contact", "contacts"}

SERVICE_ACTION_WORDS = {
    "services", "service", "residential", "commercial", "emergency",
    "repair", "repairs", "installation", "install", "maintenance",
    "replacement", "inspection", "cleaning",
}

NICHE_VOCABULARY: Dict[str, Set[str]] = {
    "plumbing": {"plumbing", "plumber", "drain", "drains", "sewer", "leak", "leaks", "pipe", "pipes",
                 "water", "heater", "toilet", "faucet", "repipe", "gas", "sump", "backflow", "jetting"},
    "hvac": {"hvac", "heating", "cooling", "air", "conditioning", "furnace", "heat", "pump",
             "duct", "ducts", "thermostat", "ventilation"},
    "electrical": {"electrical", "electrician", "wiring", "panel", "panels", "outlet", "outlets",
                   "lighting", "generator", "breaker", "charger"},
    "roofing": {"roofing", "roof", "roofs", "shingle", "shingles", "gutter", "gutters", "flashing", "skylight"},
    "landscaping": {"landscaping", "lawn", "mowing", "irrigation", "sod", "garden", "tree", "trees",
                    "hardscape", "mulch"},
    "pest_control": {"pest", "termite", "termites", "rodent", "rodents", "mosquito", "ant", "ants",
                     "roach", "roaches", "wildlife", "exterminator"},
    "dental": {"dental", "dentist", "implant", "implants", "crown", "crowns", "veneers", "whitening",
               "invisalign", "orthodontics", "root", "canal"},
    "cleaning": {"cleaning", "maid", "janitorial", "carpet", "housekeeping", "sanitizing"},
}

# Substring of the job niche -> vocabulary key
NICHE_ALIASES: List[Tuple[str, str]] = [
    ("plumb", "plumbing"),
    ("hvac", "hvac"), ("heating", "hvac"), ("air condition", "hvac"),
    ("electric", "electrical"),
    ("roof", "roofing"),
    ("landscap", "landscaping"), ("lawn", "landscaping"),
    ("pest", "pest_control"), ("extermin", "pest_control"),
    ("dent", "dental"),
    ("clean", "cleaning"), ("maid", "cleaning"),
]

SERVICES_MIN_WORDS = 200

FEATURED_CAP = 20
FEATURED_DISPLAY_CAP = 6
OTHER_SERVICES_CAP = 60
SERVICE_AREAS_CAP = 20
HEADING_SCAN_LIMIT = 20
DESCRIPTION_MAX_CHARS = 220


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _tokens(text: str) -> Set[str]:
    return set(re.findall(r"[a-z]+", (text or "").lower()))


def _path(url: str) -> str:
    return urlparse(url or "").path or "/"


def niche_key(niche: str) -> Optional[str]:
    n = (niche or "").lower()
    for needle, key in NICHE_ALIASES:
        if needle in n:
            return key
    return None


def niche_vocabulary(niche: str) -> Set[str]:
    key = niche_key(niche)
    return NICHE_VOCABULARY.get(key, set()) if key else set()


def _is_home_path(url: str) -> bool:
    return _path(url).strip("/") == "" or _path(url).lower() in ("/index.html", "/index.php", "/home")


def _is_locations(tokens: Set[str]) -> bool:
    if tokens & LOCATION_TOKENS:
        return True
    return any(a in tokens and b in tokens for a, b in LOCATION_TOKEN_PAIRS)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify_page_role(page: PageRecord, niche: str = "") -> str:
    """
    Decide a page's role.

    Trusted crawler labels win. Otherwise tokens from the URL path and title
    are matched against fixed role sets; a page only counts as a services
    page when it has enough words and hits service-action or niche words.
    """
    label = (page.page_type or "").strip().lower()
    if label in TRUSTED_LABELS:
        return TRUSTED_LABELS[label]
    if _is_home_path(page.normalized_url or page.url):
        return ROLE_HOME

    path_tokens = _tokens(_path(page.normalized_url or page.url).replace("-", " ").replace("_", " "))
    tokens = path_tokens | _tokens(page.title)

    for role, role_tokens in ROLE_TOKENS:
        if tokens & role_tokens:
            return role
    if _is_locations(tokens):
        return ROLE_LOCATIONS
    if path_tokens & LEGAL_TOKENS:
        return ROLE_LEGAL
    if path_tokens & CONTACT_TOKENS:
        return ROLE_CONTACT
    if page.word_count >= SERVICES_MIN_WORDS:
        if tokens & SERVICE_ACTION_WORDS or tokens & niche_vocabulary(niche):
            return ROLE_SERVICES
    return ROLE_OTHER


def _home_rank(page: PageRecord):
    url = page.normalized_url or page.url
    return (_path(url).count("/"), len(url), url)


def find_homepage(pages: Sequence[PageRecord]) -> Optional[PageRecord]:
    """The page labeled home, else the root path, else the shallowest URL."""
    if not pages:
        return None
    # ties go to the shallowest, then shortest URL, so input order never decides
    labeled = [p for p in pages if (p.page_type or "").lower() in ("home", "homepage")]
    if labeled:
        return min(labeled, key=_home_rank)
    rooted = [p for p in pages if _is_home_path(p.normalized_url or p.url)]
    return min(rooted or pages, key=_home_rank)


def ordered_pages(pages: Sequence[PageRecord], niche: str = "") -> List[PageRecord]:
    """Homepage first, then contact pages, then the rest by normalized URL."""
    home = find_homepage(pages)
    rest = [p for p in pages if p is not home]

    def _rank(p: PageRecord):
        return (0 if classify_page_role(p, niche) == ROLE_CONTACT else 1, p.normalized_url or p.url)

    return ([home] if home else []) + sorted(rest, key=_rank)


def page_roles(pages: Sequence[PageRecord], niche: str = "") -> Dict[str, str]:
    """normalized URL -> role; the homepage is always ``home``."""
    home = find_homepage(pages)
    roles = {}
    for page in pages:
        key = page.normalized_url or page.url
        roles[key] = ROLE_HOME if page is home else classify_page_role(page, niche)
    return roles


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FeaturedService:
    title: str
    description: str = ""
    source_page: str = ""
    source: str = ""

    def to_dict(self) -> Dict:
        return {
            "title": self.title,
            "description": self.description or None,
            "source_page": self.source_page or None,
            "source": self.source,
        }


@dataclass
class ServiceCatalog:
    featured: List[FeaturedService] = field(default_factory=list)
    other_services: List[str] = field(default_factory=list)
    service_areas: List[str] = field(default_factory=list)

    @property
    def display_featured(self) -> List[FeaturedService]:
        return self.featured[:FEATURED_DISPLAY_CAP]

    def to_dict(self) -> Dict:
        return {
            "featured": [s.to_dict() for s in self.featured],
            "display_featured": [s.to_dict() for s in self.display_featured],
            "other_services": list(self.other_services),
            "service_areas": list(self.service_areas),
        }


def _is_service_heading(text: str, vocabulary: Set[str]) -> bool:
    if not 3 <= len(text) <= 100:
        return False
    return bool(_tokens(text) & (SERVICE_ACTION_WORDS | vocabulary))


def _from_offer_catalog(structured: StructuredExtract, home_url: str) -> List[FeaturedService]:
    return [FeaturedService(t, "", home_url, "jsonld_offer_catalog") for t in structured.offer_catalog]


def _from_upstream(pages: Sequence[PageRecord]) -> List[FeaturedService]:
    out = []
    for page in pages:
        for item in page.extracted_services:
            out.append(FeaturedService(
                title=item.get("title", ""),
                description=(item.get("description") or "")[:DESCRIPTION_MAX_CHARS],
                source_page=page.url,
                source="extracted_services",
            ))
    return out


def _from_heading_pairs(pages: Sequence[PageRecord], vocabulary: Set[str]) -> List[FeaturedService]:
    out = []
    for page in pages:
        for idx, heading in enumerate(page.h3[:HEADING_SCAN_LIMIT]):
            if not _is_service_heading(heading, vocabulary):
                continue
            description = page.h6[idx] if idx < len(page.h6) else ""
            out.append(FeaturedService(heading, description[:DESCRIPTION_MAX_CHARS], page.url, "heading_pairs"))
    return out


def _dedupe_services(services: Sequence[FeaturedService], cap: int) -> List[FeaturedService]:
    seen = set()
    out = []
    for s in services:
        key = s.title.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(s)
        if len(out) >= cap:
            break
    return out


def extract_services(
    pages: Sequence[PageRecord],
    niche: str,
    structured: StructuredExtract,
) -> Tuple[ServiceCatalog, List[DataQualityWarning]]:
    """
    Build the service catalog.

    Args:
        pages: Crawled pages, homepage first.
        niche: Job niche, selects the vocabulary for the heading heuristic.
        structured: Merged structured data (offer catalog, areaServed).

    Returns:
        (ServiceCatalog, warnings)
    """
    home = find_homepage(pages)
    home_url = home.url if home else ""
    vocabulary = niche_vocabulary(niche)

    featured = _dedupe_services(_from_offer_catalog(structured, home_url), FEATURED_CAP)
    if not featured:
        featured = _dedupe_services(_from_upstream(pages), FEATURED_CAP)
    if not featured:
        featured = _dedupe_services(_from_heading_pairs(pages, vocabulary), FEATURED_CAP)

    taken = {s.title.lower() for s in featured}
    other: List[str] = []
    for page in pages:
        for name in page.extracted_other_services:
            if name.lower() not in taken and len(other) < OTHER_SERVICES_CAP:
                taken.add(name.lower())
                other.append(name)

    catalog = ServiceCatalog(
        featured=featured,
        other_services=other,
        service_areas=list(structured.area_served[:SERVICE_AREAS_CAP]),
    )
    warnings = []
    if not featured:
        warnings.append(warn(WARN_SERVICES_MISSING, "No featured services found in structured data, service lists or headings"))
    logger.debug("Services: %d featured (%s), %d other", len(featured),
                 featured[0].source if featured else "none", len(other))
    return catalog, warnings
