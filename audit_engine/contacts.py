"""
Source merger for contact evidence.

Phones, emails, address, hours and social links arrive from several places
at once: structured-data blocks, tel:/mailto: anchors, header and footer
text, body text, secondary-page text. Each field is resolved by an ordered
list of extractors (highest-trust source first); the first hit fills the
primary slot and every unique value is retained for the list.

Source priority for phones and emails:
    structured_data > anchor_target > header_text > footer_text
    > body_text_regex > secondary_page_text
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import quote, urlparse

from .content import find_homepage
from .hours import RawHours, StructuredHours, hours_from_text, parse_opening_hours, render_hours
from .models import ABSENT, Evidence, PageRecord, Present, value_of
from .resolution import Candidate, resolve
from .structured_data import StructuredExtract
from .warning_codes import (
    DataQualityWarning,
    WARN_ADDRESS_BLOB,
    WARN_ADDRESS_MISSING,
    WARN_ADDRESS_PARTIAL_FROM_TEXT,
    WARN_ADDRESS_PARTIAL_MISSING_STREET,
    WARN_EMAIL_MISSING,
    WARN_HOURS_BLOB,
    WARN_HOURS_FROM_TEXT,
    WARN_HOURS_MISSING,
    WARN_PHONE_MISSING,
    warn,
)

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

ORIGIN_STRUCTURED = "structured_data"
ORIGIN_ANCHOR = "anchor_target"
ORIGIN_HEADER = "header_text"
ORIGIN_FOOTER = "footer_text"
ORIGIN_BODY = "body_text_regex"
ORIGIN_SECONDARY = "secondary_page_text"

MAX_PHONES = 5
MAX_EMAILS = 5
MAX_LINKS_PER_PLATFORM = 2

PHONE_PATTERN = re.compile(r"(?<!\d)(?:\+?1[\s.-]?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}(?!\d)")
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

# Placeholder and asset strings that look like emails
EMAIL_FALSE_POSITIVES = [
    "example.com", "domain.com", "email.com", "test.com",
    "yoursite.com", "website.com", "yourdomain.com", "sentry.io", "wixpress.com",
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".css", ".js",
]

# "street, City, ST 12345"
ADDRESS_LINE_PATTERN = re.compile(
    r"^\s*(?P<street>[^,]+?),\s*(?P<city>[A-Za-z .'-]+?),\s*(?P<region>[A-Z]{2}),?\s*(?P<postal>\d{5}(?:-\d{4})?)"
    r"(?:,?\s*(?P<country>[A-Za-z .]+))?\s*$"
)
# "City, ST 12345" inside free text
CITY_REGION_POSTAL_PATTERN = re.compile(r"\b([A-Za-z][A-Za-z\s]+),\s*([A-Z]{2})\s*(\d{5})\b")

SOCIAL_PLATFORMS: List[Tuple[str, Tuple[str, ...]]] = [
    ("facebook", ("facebook.com", "fb.com")),
    ("instagram", ("instagram.com",)),
    ("twitter", ("twitter.com", "x.com")),
    ("linkedin", ("linkedin.com",)),
    ("youtube", ("youtube.com", "youtu.be")),
    ("yelp", ("yelp.com",)),
    ("google_business", ("business.google.com", "g.page")),
    ("google_maps", ("maps.google.com", "goo.gl/maps", "maps.app.goo.gl", "google.com/maps")),
]

GOOGLE_MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query="


# =============================================================================
# VALUE TYPES
# =============================================================================

@dataclass(frozen=True)
class ContactEntry:
    value: str       # normalized: digits for phones, lower-cased address for emails
    display: str
    source: str

    def to_dict(self) -> Dict:
        return {"value": self.display, "normalized": self.value, "source": self.source}


@dataclass(frozen=True)
class Address:
    street: str = ""
    city: str = ""
    region: str = ""
    postal: str = ""
    country: str = ""
    raw: str = ""

    def one_line(self) -> str:
        if self.raw and not (self.city or self.street):
            return self.raw
        tail = " ".join(p for p in (self.region, self.postal) if p)
        return ", ".join(p for p in (self.street, self.city, tail) if p)

    def to_dict(self) -> Dict:
        return {
            "street": self.street or None,
            "city": self.city or None,
            "region": self.region or None,
            "postal": self.postal or None,
            "country": self.country or None,
            "raw": self.raw or None,
        }


@dataclass(frozen=True)
class SocialLink:
    url: str
    source: str

    def to_dict(self) -> Dict:
        return {"url": self.url, "source": self.source}


@dataclass
class CompanyProfile:
    phones: List[ContactEntry] = field(default_factory=list)
    emails: List[ContactEntry] = field(default_factory=list)
    address: Evidence = ABSENT
    hours: Evidence = ABSENT
    social_links: Dict[str, List[SocialLink]] = field(default_factory=dict)

    @property
    def primary_phone(self) -> Optional[str]:
        return self.phones[0].display if self.phones else None

    def to_dict(self, name: Optional[str] = None) -> Dict:
        address = value_of(self.address)
        hours = value_of(self.hours)
        hours_doc = None
        if hours is not None:
            hours_doc = {"value": render_hours(hours), "source": self.hours.source}
            if isinstance(hours, StructuredHours):
                hours_doc.update({"days": list(hours.days), "opens": hours.opens, "closes": hours.closes})
            else:
                hours_doc["raw"] = True
        return {
            "name": name,
            "phones": [p.to_dict() for p in self.phones],
            "emails": [e.to_dict() for e in self.emails],
            "address": dict(address.to_dict(), source=self.address.source) if address else None,
            "hours": hours_doc,
            "social_links": {k: [s.to_dict() for s in v] for k, v in self.social_links.items()},
        }


@dataclass(frozen=True)
class MergeContext:
    """What every extractor reads: pages homepage-first plus merged structured data."""
    pages: Tuple[PageRecord, ...]
    home: Optional[PageRecord]
    structured: StructuredExtract

    @property
    def secondary_pages(self) -> List[PageRecord]:
        return [p for p in self.pages if p is not self.home]


# =============================================================================
# NORMALIZERS
# =============================================================================

def normalize_phone_digits(raw: str) -> Optional[str]:
    """Digits-only US phone key; a leading country code 1 on 11 digits is dropped."""
    digits = re.sub(r"\D", "", raw or "")
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) < 10 or len(digits) > 15:
        return None
    return digits


def format_phone(digits: str) -> str:
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return "+" + digits


def normalize_email(raw: str) -> Optional[str]:
    email = (raw or "").strip().lower()
    if email.startswith("mailto:"):
        email = email[7:]
    email = email.split("?")[0].strip()
    if not EMAIL_PATTERN.fullmatch(email):
        return None
    if any(fp in email for fp in EMAIL_FALSE_POSITIVES):
        return None
    return email


def social_platform(url: str) -> Optional[str]:
    u = (url or "").lower()
    if not u.startswith(("http://", "https://", "//")):
        return None
    for platform, needles in SOCIAL_PLATFORMS:
        if any(n in u for n in needles):
            return platform
    return None


def _phones_in(text: str) -> List[str]:
    return PHONE_PATTERN.findall(text or "")


def _emails_in(text: str) -> List[str]:
    return EMAIL_PATTERN.findall(text or "")


# =============================================================================
# PHONE / EMAIL EXTRACTORS (priority order)
# =============================================================================

def _text_candidates(texts: Iterable[str], finder, origin: str) -> List[Candidate]:
    return [Candidate(v, origin) for text in texts for v in finder(text)]


def _structured_phones(ctx: MergeContext) -> List[Candidate]:
    return [Candidate(t, ORIGIN_STRUCTURED) for t in ctx.structured.telephones]


def _anchor_phones(ctx: MergeContext) -> List[Candidate]:
    return [
        Candidate(c.href[4:], ORIGIN_ANCHOR)
        for p in ctx.pages for c in p.cta_candidates
        if c.href.lower().startswith("tel:")
    ]


def _header_phones(ctx: MergeContext) -> List[Candidate]:
    return _text_candidates((p.header_text for p in ctx.pages), _phones_in, ORIGIN_HEADER)


def _footer_phones(ctx: MergeContext) -> List[Candidate]:
    return _text_candidates((p.footer_text for p in ctx.pages), _phones_in, ORIGIN_FOOTER)


def _body_phones(ctx: MergeContext) -> List[Candidate]:
    return _text_candidates([ctx.home.text_snippet] if ctx.home else [], _phones_in, ORIGIN_BODY)


def _secondary_phones(ctx: MergeContext) -> List[Candidate]:
    return _text_candidates((p.text_snippet for p in ctx.secondary_pages), _phones_in, ORIGIN_SECONDARY)


PHONE_EXTRACTORS = [
    _structured_phones,
    _anchor_phones,
    _header_phones,
    _footer_phones,
    _body_phones,
    _secondary_phones,
]


def _structured_emails(ctx: MergeContext) -> List[Candidate]:
    return [Candidate(e, ORIGIN_STRUCTURED) for e in ctx.structured.emails]


def _anchor_emails(ctx: MergeContext) -> List[Candidate]:
    return [
        Candidate(c.href, ORIGIN_ANCHOR)
        for p in ctx.pages for c in p.cta_candidates
        if c.href.lower().startswith("mailto:")
    ]


def _header_emails(ctx: MergeContext) -> List[Candidate]:
    return _text_candidates((p.header_text for p in ctx.pages), _emails_in, ORIGIN_HEADER)


def _footer_emails(ctx: MergeContext) -> List[Candidate]:
    return _text_candidates((p.footer_text for p in ctx.pages), _emails_in, ORIGIN_FOOTER)


def _body_emails(ctx: MergeContext) -> List[Candidate]:
    return _text_candidates([ctx.home.text_snippet] if ctx.home else [], _emails_in, ORIGIN_BODY)


def _secondary_emails(ctx: MergeContext) -> List[Candidate]:
    return _text_candidates((p.text_snippet for p in ctx.secondary_pages), _emails_in, ORIGIN_SECONDARY)


EMAIL_EXTRACTORS = [
    _structured_emails,
    _anchor_emails,
    _header_emails,
    _footer_emails,
    _body_emails,
    _secondary_emails,
]


def merge_phones(ctx: MergeContext) -> List[ContactEntry]:
    resolution = resolve(PHONE_EXTRACTORS, ctx, key=normalize_phone_digits, cap=MAX_PHONES)
    entries = []
    for c in resolution.candidates:
        digits = normalize_phone_digits(c.value)
        entries.append(ContactEntry(digits, format_phone(digits), c.source))
    return entries


def merge_emails(ctx: MergeContext) -> List[ContactEntry]:
    resolution = resolve(EMAIL_EXTRACTORS, ctx, key=normalize_email, cap=MAX_EMAILS)
    entries = []
    for c in resolution.candidates:
        email = normalize_email(c.value)
        entries.append(ContactEntry(email, email, c.source))
    return entries


# =============================================================================
# ADDRESS
# =============================================================================

def parse_address_line(text: str) -> Optional[Address]:
    m = ADDRESS_LINE_PATTERN.match(text or "")
    if not m:
        return None
    return Address(
        street=m.group("street").strip(),
        city=m.group("city").strip(),
        region=m.group("region"),
        postal=m.group("postal"),
        country=(m.group("country") or "").strip(),
    )


def _structured_address(ctx: MergeContext) -> List[Candidate]:
    raw = ctx.structured.address
    if isinstance(raw, dict):
        return [Candidate(Address(**raw), "jsonld")]
    if isinstance(raw, str) and raw:
        parsed = parse_address_line(raw)
        if parsed:
            return [Candidate(parsed, "jsonld")]
        return [Candidate(Address(raw=raw[:300]), "jsonld_blob")]
    return []


def _text_address(ctx: MergeContext) -> List[Candidate]:
    out = []
    texts = [p.text_snippet for p in ctx.secondary_pages] + [p.footer_text for p in ctx.pages]
    if ctx.home:
        texts.append(ctx.home.text_snippet)
    for text in texts:
        m = CITY_REGION_POSTAL_PATTERN.search(text or "")
        if m:
            city = " ".join(m.group(1).split()[-3:])
            out.append(Candidate(Address(city=city, region=m.group(2), postal=m.group(3)), "page_text"))
    return out


ADDRESS_EXTRACTORS = [_structured_address, _text_address]


def merge_address(ctx: MergeContext) -> Tuple[Evidence, List[DataQualityWarning]]:
    address = resolve(ADDRESS_EXTRACTORS, ctx).primary
    warnings = []
    if not isinstance(address, Present):
        warnings.append(warn(WARN_ADDRESS_MISSING, "No business address found in structured data or page text"))
    elif address.source == "jsonld_blob":
        warnings.append(warn(WARN_ADDRESS_BLOB, f"Address kept verbatim: {address.value.raw[:120]}"))
    elif address.source == "page_text":
        warnings.append(warn(WARN_ADDRESS_PARTIAL_FROM_TEXT, "Address city/region taken from page text"))
    elif not address.value.street:
        warnings.append(warn(WARN_ADDRESS_PARTIAL_MISSING_STREET, "Structured address has no street"))
    return address, warnings


# =============================================================================
# HOURS
# =============================================================================

def _structured_hours(ctx: MergeContext) -> List[Candidate]:
    raw = ctx.structured.opening_hours
    parsed = parse_opening_hours(raw)
    if parsed is None:
        return []
    if isinstance(raw, str) or (isinstance(raw, list) and raw and all(isinstance(v, str) for v in raw)):
        source = "jsonld_openingHours"
    else:
        source = "jsonld_openingHoursSpecification"
    return [Candidate(parsed, source)]


def _text_hours(ctx: MergeContext) -> List[Candidate]:
    texts = []
    for p in ctx.pages:
        texts.extend([p.header_text, p.footer_text, p.text_snippet])
    for text in texts:
        parsed = hours_from_text(text)
        if parsed:
            return [Candidate(parsed, "page_text")]
    return []


HOURS_EXTRACTORS = [_structured_hours, _text_hours]


def merge_hours(ctx: MergeContext) -> Tuple[Evidence, List[DataQualityWarning]]:
    hours = resolve(HOURS_EXTRACTORS, ctx).primary
    warnings = []
    if not isinstance(hours, Present):
        warnings.append(warn(WARN_HOURS_MISSING, "No opening hours found"))
    elif isinstance(hours.value, RawHours):
        logger.debug("Unparseable hours kept verbatim: %s", hours.value.text[:80])
        warnings.append(warn(WARN_HOURS_BLOB, f"Hours kept verbatim: {hours.value.text[:120]}"))
    elif hours.source == "page_text":
        warnings.append(warn(WARN_HOURS_FROM_TEXT, "Hours taken from page text"))
    return hours, warnings


# =============================================================================
# SOCIAL LINKS
# =============================================================================

def _add_link(links: Dict[str, List[SocialLink]], url: str, source: str, platform: Optional[str] = None) -> None:
    platform = platform or social_platform(url)
    if not platform:
        return
    bucket = links.setdefault(platform, [])
    if len(bucket) >= MAX_LINKS_PER_PLATFORM or any(s.url == url for s in bucket):
        return
    bucket.append(SocialLink(url, source))


def synthesize_map_link(structured: StructuredExtract, address: Evidence) -> Optional[SocialLink]:
    """Maps search URL from coordinates, else from the resolved address."""
    if structured.geo:
        lat, lng = structured.geo
        return SocialLink(GOOGLE_MAPS_SEARCH_URL + quote(f"{lat},{lng}", safe=""), "generated_geo")
    addr = value_of(address)
    if addr and addr.one_line():
        return SocialLink(GOOGLE_MAPS_SEARCH_URL + quote(addr.one_line(), safe=""), "generated_address")
    return None


def merge_social_links(ctx: MergeContext, address: Evidence) -> Dict[str, List[SocialLink]]:
    links: Dict[str, List[SocialLink]] = {}
    for url in ctx.structured.same_as:
        _add_link(links, url, "jsonld_sameAs")
    for page in ctx.pages:
        for c in page.cta_candidates:
            if c.target == "external":
                _add_link(links, c.href, ORIGIN_ANCHOR)
    if ctx.structured.has_map and urlparse(ctx.structured.has_map).scheme in ("http", "https"):
        _add_link(links, ctx.structured.has_map, "jsonld_hasMap", platform="google_maps")
    if not links.get("google_maps"):
        generated = synthesize_map_link(ctx.structured, address)
        if generated:
            links["google_maps"] = [generated]
    return links


# =============================================================================
# MERGE
# =============================================================================

def merge_contacts(
    pages: Sequence[PageRecord],
    structured: StructuredExtract,
) -> Tuple[CompanyProfile, List[DataQualityWarning]]:
    """
    Merge every contact source into one CompanyProfile.

    Args:
        pages: Crawled pages, homepage first (see content.ordered_pages).
        structured: Structured data merged across pages.

    Returns:
        (CompanyProfile, warnings)
    """
    ctx = MergeContext(pages=tuple(pages), home=find_homepage(pages), structured=structured)
    warnings: List[DataQualityWarning] = []

    phones = merge_phones(ctx)
    emails = merge_emails(ctx)
    if not phones:
        warnings.append(warn(WARN_PHONE_MISSING, "No phone number found on any crawled page"))
    if not emails:
        warnings.append(warn(WARN_EMAIL_MISSING, "No email address found on any crawled page"))

    address, address_warnings = merge_address(ctx)
    hours, hours_warnings = merge_hours(ctx)
    warnings.extend(address_warnings)
    warnings.extend(hours_warnings)

    profile = CompanyProfile(
        phones=phones,
        emails=emails,
        address=address,
        hours=hours,
        social_links=merge_social_links(ctx, address),
    )
    logger.debug(
        "Contacts merged: %d phones, %d emails, address=%s, hours=%s",
        len(phones), len(emails), address.source if address else None, hours.source if hours else None,
    )
    return profile, warnings
