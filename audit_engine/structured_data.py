"""
JSON-LD normalization.

Crawled pages carry structured-data blocks as opaque nested maps: single
objects, arrays, ``@graph`` containers, typed subtrees. This module walks
them once and pulls the handful of fields the audit needs into a flat
StructuredExtract, so downstream stages never re-check shapes.

Malformed blocks are skipped, never raised.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import PageRecord

logger = logging.getLogger(__name__)

ORGANIZATION_TYPES = {"organization", "corporation", "ngo"}
WEBSITE_TYPES = {"website"}
LOCAL_BUSINESS_TYPES = {
    "localbusiness",
    "plumber",
    "plumbingservice",
    "hvacbusiness",
    "electrician",
    "roofingcontractor",
    "generalcontractor",
    "homeandconstructionbusiness",
    "housepainter",
    "locksmith",
    "movingcompany",
    "professionalservice",
    "dentist",
    "medicalbusiness",
    "autorepair",
}

MAX_OFFER_CATALOG = 20
MAX_AREA_SERVED = 20
MAX_SAME_AS = 10
_MAX_DEPTH = 6


@dataclass
class StructuredExtract:
    organization_name: str = ""
    organization_logo: str = ""
    localbusiness_present: bool = False
    localbusiness_name: str = ""
    localbusiness_image: str = ""
    website_name: str = ""
    telephones: List[str] = field(default_factory=list)
    emails: List[str] = field(default_factory=list)
    address: Any = None                       # dict of schema.org parts, or raw string
    geo: Optional[Tuple[float, float]] = None
    has_map: str = ""
    opening_hours: Any = None                 # spec rows, a string, or a list of strings
    aggregate_rating: Optional[Dict[str, Any]] = None
    area_served: List[str] = field(default_factory=list)
    offer_catalog: List[str] = field(default_factory=list)
    same_as: List[str] = field(default_factory=list)


# =============================================================================
# NODE HELPERS
# =============================================================================

def _types(node: Dict[str, Any]) -> set:
    raw = node.get("@type")
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        return set()
    return {t.strip().lower() for t in raw if isinstance(t, str)}


def _is_local(types: set) -> bool:
    return bool(types & LOCAL_BUSINESS_TYPES) or any(t.endswith("business") for t in types)


def _text(value: Any) -> str:
    if isinstance(value, str):
        return " ".join(value.split())
    if isinstance(value, list) and value:
        return _text(value[0])
    return ""


def _image_url(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        for k in ("url", "contentUrl", "@id"):
            if isinstance(value.get(k), str) and value[k].strip():
                return value[k].strip()
    if isinstance(value, list) and value:
        return _image_url(value[0])
    return ""


def _strings(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, list):
        return [v.strip() for v in value if isinstance(v, str) and v.strip()]
    return []


def _named(value: Any) -> List[str]:
    """Names from a string, {name: ...} object, or a list of either."""
    items = value if isinstance(value, list) else [value]
    out = []
    for item in items:
        if isinstance(item, str) and item.strip():
            out.append(item.strip())
        elif isinstance(item, dict) and _text(item.get("name")):
            out.append(_text(item.get("name")))
    return out


def _catalog_names(catalog: Any, depth: int = 0) -> List[str]:
    if depth > _MAX_DEPTH:
        return []
    if isinstance(catalog, list):
        names = []
        for c in catalog:
            names.extend(_catalog_names(c, depth + 1))
        return names
    if not isinstance(catalog, dict):
        return []
    names = []
    for item in catalog.get("itemListElement") or []:
        if not isinstance(item, dict):
            continue
        offered = item.get("itemOffered")
        if isinstance(offered, dict) and _text(offered.get("name")):
            names.append(_text(offered.get("name")))
        elif item.get("itemListElement"):
            names.extend(_catalog_names(item, depth + 1))
        elif _text(item.get("name")):
            names.append(_text(item.get("name")))
    return names


def _geo(value: Any) -> Optional[Tuple[float, float]]:
    if not isinstance(value, dict):
        return None
    try:
        lat = float(value.get("latitude"))
        lng = float(value.get("longitude"))
    except (TypeError, ValueError):
        return None
    return (lat, lng)


def _address(value: Any) -> Any:
    if isinstance(value, list) and value:
        value = value[0]
    if isinstance(value, str):
        return " ".join(value.split()) or None
    if not isinstance(value, dict):
        return None
    country = value.get("addressCountry")
    if isinstance(country, dict):
        country = country.get("name")
    parts = {
        "street": _text(value.get("streetAddress")),
        "city": _text(value.get("addressLocality")),
        "region": _text(value.get("addressRegion")),
        "postal": _text(value.get("postalCode")) or (str(value["postalCode"]) if isinstance(value.get("postalCode"), int) else ""),
        "country": _text(country),
    }
    return parts if any(parts.values()) else None


def iter_nodes(block: Any, depth: int = 0) -> Iterable[Dict[str, Any]]:
    """Yield every typed object in a block, expanding arrays and @graph."""
    if depth > _MAX_DEPTH:
        return
    if isinstance(block, list):
        for item in block:
            yield from iter_nodes(item, depth + 1)
        return
    if not isinstance(block, dict):
        return
    if "@type" in block:
        yield block
    graph = block.get("@graph")
    if isinstance(graph, list):
        for item in graph:
            yield from iter_nodes(item, depth + 1)


# =============================================================================
# EXTRACTION
# =============================================================================

def _fill(extract: StructuredExtract, name: str, value: Any) -> None:
    if value and not getattr(extract, name):
        setattr(extract, name, value)


def _extend(target: List[str], values: Iterable[str], cap: int) -> None:
    seen = {v.lower() for v in target}
    for v in values:
        if len(target) >= cap:
            return
        if v.lower() not in seen:
            seen.add(v.lower())
            target.append(v)


def _read_local(extract: StructuredExtract, node: Dict[str, Any]) -> None:
    meaningful = any(
        node.get(k)
        for k in ("name", "telephone", "telePhone", "address", "openingHours",
                  "openingHoursSpecification", "geo", "areaServed")
    )
    if meaningful:
        extract.localbusiness_present = True
    _fill(extract, "localbusiness_name", _text(node.get("name")))
    _fill(extract, "localbusiness_image", _image_url(node.get("image")) or _image_url(node.get("logo")))
    _fill(extract, "address", _address(node.get("address")))
    _fill(extract, "geo", _geo(node.get("geo")))
    _fill(extract, "has_map", _text(node.get("hasMap")) or _image_url(node.get("hasMap")))
    hours = node.get("openingHoursSpecification") or node.get("openingHours")
    _fill(extract, "opening_hours", hours)
    rating = node.get("aggregateRating")
    if isinstance(rating, dict) and (rating.get("ratingValue") or rating.get("reviewCount")):
        _fill(extract, "aggregate_rating", rating)
    _extend(extract.area_served, _named(node.get("areaServed")), MAX_AREA_SERVED)
    _extend(extract.offer_catalog, _catalog_names(node.get("hasOfferCatalog")), MAX_OFFER_CATALOG)


def extract_structured(blocks: Sequence[Any]) -> StructuredExtract:
    """Normalize the JSON-LD blocks of a single page."""
    extract = StructuredExtract()
    skipped = 0
    for block in blocks or ():
        if not isinstance(block, (dict, list)):
            skipped += 1
            continue
        for node in iter_nodes(block):
            types = _types(node)
            if types & ORGANIZATION_TYPES:
                _fill(extract, "organization_name", _text(node.get("name")))
                _fill(extract, "organization_logo", _image_url(node.get("logo")))
            if types & WEBSITE_TYPES:
                _fill(extract, "website_name", _text(node.get("name")))
            if _is_local(types):
                _read_local(extract, node)
            if types & (ORGANIZATION_TYPES | LOCAL_BUSINESS_TYPES) or _is_local(types):
                _extend(extract.telephones, _strings(node.get("telephone") or node.get("telePhone")), 5)
                _extend(extract.emails, _strings(node.get("email")), 5)
                _extend(extract.same_as, _strings(node.get("sameAs")), MAX_SAME_AS)
    if skipped:
        logger.debug("Skipped %d non-object JSON-LD blocks", skipped)
    return extract


def merge_extracts(extracts: Sequence[StructuredExtract]) -> StructuredExtract:
    """Merge per-page extracts; earlier extracts win, list fields are unioned."""
    merged = StructuredExtract()
    for ex in extracts:
        for name in ("organization_name", "organization_logo", "localbusiness_name",
                     "localbusiness_image", "website_name", "address", "geo", "has_map",
                     "opening_hours", "aggregate_rating"):
            _fill(merged, name, getattr(ex, name))
        merged.localbusiness_present = merged.localbusiness_present or ex.localbusiness_present
        _extend(merged.telephones, ex.telephones, 5)
        _extend(merged.emails, ex.emails, 5)
        _extend(merged.area_served, ex.area_served, MAX_AREA_SERVED)
        _extend(merged.offer_catalog, ex.offer_catalog, MAX_OFFER_CATALOG)
        _extend(merged.same_as, ex.same_as, MAX_SAME_AS)
    return merged


def merge_structured(pages: Sequence[PageRecord]) -> StructuredExtract:
    """Structured data across pages; pass pages homepage-first."""
    return merge_extracts([extract_structured(p.jsonld_blocks) for p in pages])
