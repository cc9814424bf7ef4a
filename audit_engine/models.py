"""
Input records and shared value types.

PageRecord and its children mirror what the crawler emits for one page.
They are frozen: the engine reads them, never edits them. ``from_dict``
constructors accept the crawler's loose JSON (missing keys, wrong types,
legacy key spellings) and coerce it into these shapes.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union


# =============================================================================
# COERCION HELPERS
# =============================================================================

def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _str_tuple(value: Any) -> Tuple[str, ...]:
    return tuple(s for s in (_as_str(v) for v in _as_list(value)) if s)


# =============================================================================
# PROVENANCE-TAGGED FIELDS
# =============================================================================

@dataclass(frozen=True)
class Present:
    """A resolved value together with the source tag it came from."""
    value: Any
    source: str


class _Absent:
    """No evidence was found. Falsy, compares equal only to itself."""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()

Evidence = Union[Present, _Absent]


def is_present(evidence: Evidence) -> bool:
    return isinstance(evidence, Present)


def value_of(evidence: Evidence, default: Any = None) -> Any:
    return evidence.value if isinstance(evidence, Present) else default


def source_of(evidence: Evidence) -> Optional[str]:
    return evidence.source if isinstance(evidence, Present) else None


# =============================================================================
# CRAWLER RECORDS
# =============================================================================

def _link_target(href: str) -> str:
    h = href.lower()
    if not h:
        return "none"
    if h.startswith("tel:"):
        return "tel"
    if h.startswith("mailto:"):
        return "mailto"
    if h.startswith(("http://", "https://", "//")):
        return "external"
    return "internal"


@dataclass(frozen=True)
class CtaCandidate:
    text: str = ""
    href: str = ""
    target: str = "none"          # tel | mailto | internal | external | none
    above_fold_desktop: bool = False
    above_fold_mobile: bool = False
    in_nav: bool = False
    dom_hint: str = ""            # selector / class context
    intent: Optional[str] = None  # explicit crawler tag, if any

    @property
    def above_fold(self) -> bool:
        return self.above_fold_desktop or self.above_fold_mobile

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CtaCandidate":
        href = _as_str(raw.get("href"))
        target = _as_str(raw.get("target") or raw.get("target_type")).lower()
        if target not in ("tel", "mailto", "internal", "external", "none"):
            target = _link_target(href)
        generic_fold = raw.get("above_fold") is True

        def _flag(*keys: str) -> bool:
            return any(raw.get(k) is True for k in keys)

        return cls(
            text=" ".join(_as_str(raw.get("text")).split()),
            href=href,
            target=target,
            above_fold_desktop=_flag("above_fold_desktop", "is_above_fold_desktop") or generic_fold,
            above_fold_mobile=_flag("above_fold_mobile", "is_above_fold_mobile"),
            in_nav=_flag("in_nav", "is_in_nav"),
            dom_hint=_as_str(
                raw.get("dom_hint") or raw.get("selector") or raw.get("dom_context") or raw.get("dom_debug_selector")
            ),
            intent=_as_str(raw.get("intent") or raw.get("cta_intent")).lower() or None,
        )


@dataclass(frozen=True)
class FormField:
    name: str = ""
    label: str = ""
    required: bool = False
    type_guess: str = ""

    def to_dict(self) -> Dict:
        return {
            "name": self.name or None,
            "label": self.label or None,
            "required": self.required,
            "type_guess": self.type_guess or None,
        }


@dataclass(frozen=True)
class DetectedForm:
    fields: Tuple[FormField, ...] = ()
    fields_count: int = 0
    page_url: str = ""

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], page_url: str = "") -> "DetectedForm":
        fields = tuple(
            FormField(
                name=_as_str(f.get("name")),
                label=_as_str(f.get("label")),
                required=f.get("required") is True,
                type_guess=_as_str(f.get("type_guess") or f.get("type")),
            )
            for f in _as_list(raw.get("fields"))
            if isinstance(f, dict)
        )
        count = _as_int(raw.get("fields_count"))
        return cls(
            fields=fields,
            fields_count=count if count is not None else len(fields),
            page_url=_as_str(raw.get("page_url")) or page_url,
        )


@dataclass(frozen=True)
class TrustPhrase:
    type: str
    text: str

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "TrustPhrase":
        return cls(
            type=_as_str(raw.get("type")).lower() or "other",
            text=" ".join(_as_str(raw.get("text") or raw.get("snippet")).split()),
        )


@dataclass(frozen=True)
class BrandAssetCandidate:
    url: str
    source: str = ""
    priority_score: float = 0.0
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "BrandAssetCandidate":
        return cls(
            url=_as_str(raw.get("url") or raw.get("src")),
            source=_as_str(raw.get("source")),
            priority_score=_as_float(raw.get("priority_score")),
            width=_as_int(raw.get("width")),
            height=_as_int(raw.get("height")),
        )


def _blocks_from_extracted(extracted: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Rebuild typed JSON-LD nodes from the crawler's pre-extracted summary
    ({organization, website, localbusiness, offer_catalog_services}).
    """
    blocks = []
    org = extracted.get("organization")
    if isinstance(org, dict):
        node = {"@type": "Organization", "name": org.get("name"), "logo": org.get("logo"),
                "sameAs": org.get("sameAs")}
        contact_point = org.get("contactPoint")
        if isinstance(contact_point, dict):
            node["telephone"] = contact_point.get("telephone")
        blocks.append(node)
    website = extracted.get("website")
    if isinstance(website, dict):
        blocks.append({"@type": "WebSite", "name": website.get("name")})
    local = extracted.get("localbusiness")
    if isinstance(local, dict):
        node = dict(local, **{"@type": "LocalBusiness"})
        services = _str_tuple(extracted.get("offer_catalog_services"))
        if services:
            node["hasOfferCatalog"] = {
                "@type": "OfferCatalog",
                "itemListElement": [{"@type": "Offer", "itemOffered": {"name": s}} for s in services],
            }
        blocks.append(node)
    return blocks


@dataclass(frozen=True)
class PageRecord:
    """One crawled page."""
    url: str
    normalized_url: str = ""
    page_type: Optional[str] = None
    title: str = ""
    h1: Tuple[str, ...] = ()
    h2: Tuple[str, ...] = ()
    h3: Tuple[str, ...] = ()
    h6: Tuple[str, ...] = ()
    word_count: int = 0
    jsonld_blocks: Tuple[Any, ...] = ()
    cta_candidates: Tuple[CtaCandidate, ...] = ()
    forms: Tuple[DetectedForm, ...] = ()
    trust_phrases: Tuple[TrustPhrase, ...] = ()
    brand_assets: Tuple[BrandAssetCandidate, ...] = ()
    text_snippet: str = ""
    # Optional crawler extras
    site_name: str = ""
    header_text: str = ""
    footer_text: str = ""
    content_hash: str = ""
    has_form: bool = False
    review_snippets: Tuple[str, ...] = ()
    extracted_services: Tuple[Dict[str, str], ...] = ()
    extracted_other_services: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PageRecord":
        url = _as_str(raw.get("url"))
        headings = raw.get("headings") if isinstance(raw.get("headings"), dict) else {}

        def _headings(level: str) -> Tuple[str, ...]:
            return _str_tuple(raw.get(level) if raw.get(level) is not None else headings.get(level))

        services = raw.get("services_extracted") if isinstance(raw.get("services_extracted"), dict) else {}
        featured = []
        for item in _as_list(services.get("featured")):
            if isinstance(item, dict) and _as_str(item.get("title")):
                featured.append({
                    "title": _as_str(item.get("title")),
                    "description": _as_str(item.get("description")),
                })
            elif isinstance(item, str) and item.strip():
                featured.append({"title": item.strip(), "description": ""})

        blocks = raw.get("jsonld_blocks")
        if blocks is None:
            blocks = raw.get("jsonld_raw")
        if blocks is None and isinstance(raw.get("jsonld_extracted_json"), dict):
            blocks = _blocks_from_extracted(raw["jsonld_extracted_json"])
        if isinstance(blocks, dict):
            blocks = [blocks]

        brand_assets = raw.get("brand_assets")
        if brand_assets is None:
            brand_assets = raw.get("brand_assets_json")
        if isinstance(brand_assets, dict):
            brand_assets = brand_assets.get("logo_candidates")

        def _first_list(*keys: str) -> list:
            for k in keys:
                if raw.get(k) is not None:
                    return _as_list(raw.get(k))
            return []

        word_count = _as_int(raw.get("word_count"))
        return cls(
            url=url,
            normalized_url=_as_str(raw.get("normalized_url")) or url,
            page_type=_as_str(raw.get("page_type")).lower() or None,
            title=_as_str(raw.get("title")),
            h1=_headings("h1"),
            h2=_headings("h2"),
            h3=_headings("h3"),
            h6=_headings("h6"),
            word_count=max(0, word_count or 0),
            jsonld_blocks=tuple(_as_list(blocks)),
            cta_candidates=tuple(
                CtaCandidate.from_dict(c)
                for c in _first_list("cta_candidates", "cta_candidates_json") if isinstance(c, dict)
            ),
            forms=tuple(
                DetectedForm.from_dict(f, page_url=url)
                for f in _first_list("forms", "forms_detailed_json") if isinstance(f, dict)
            ),
            trust_phrases=tuple(
                TrustPhrase.from_dict(t) for t in _as_list(raw.get("trust_phrases")) if isinstance(t, dict)
            ),
            brand_assets=tuple(
                BrandAssetCandidate.from_dict(b) for b in _as_list(brand_assets) if isinstance(b, dict)
            ),
            text_snippet=_as_str(raw.get("text_snippet")),
            site_name=_as_str(raw.get("site_name") or raw.get("og_site_name")),
            header_text=_as_str(raw.get("header_text")),
            footer_text=_as_str(raw.get("footer_text")),
            content_hash=_as_str(raw.get("content_hash")),
            has_form=raw.get("has_form") is True,
            review_snippets=_str_tuple(raw.get("review_snippets")),
            extracted_services=tuple(featured),
            extracted_other_services=_str_tuple(services.get("other_services")),
        )


# =============================================================================
# JOB + ISSUES
# =============================================================================

@dataclass(frozen=True)
class AuditJob:
    niche: str
    city: str = ""
    input_url: str = ""

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "AuditJob":
        return cls(
            niche=_as_str(raw.get("niche")),
            city=_as_str(raw.get("city")),
            input_url=_as_str(raw.get("input_url") or raw.get("url")),
        )


@dataclass(frozen=True)
class ScreenshotRefs:
    """Screenshot paths; only their availability is read."""
    above_fold: Optional[str] = None
    fullpage: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "ScreenshotRefs":
        raw = raw or {}
        return cls(
            above_fold=_as_str(raw.get("above_fold")) or None,
            fullpage=_as_str(raw.get("fullpage")) or None,
        )

    def availability(self) -> Dict[str, bool]:
        return {"above_fold": bool(self.above_fold), "fullpage": bool(self.fullpage)}


@dataclass
class Issue:
    """A detected finding, before or after backlog assembly."""
    title: str
    severity: str
    impact: str = ""
    fix: str = ""
    category: str = "general"
    source: str = "heuristic"

    def to_dict(self) -> Dict:
        return {
            "title": self.title,
            "impact": self.impact,
            "fix": self.fix,
            "severity": self.severity,
            "category": self.category,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Issue":
        fix = raw.get("fix")
        if not fix and _as_list(raw.get("fix_steps")):
            fix = _as_str(_as_list(raw.get("fix_steps"))[0])
        return cls(
            title=_as_str(raw.get("title") or raw.get("problem")),
            severity=_as_str(raw.get("severity")).lower(),
            impact=_as_str(raw.get("impact") or raw.get("why_it_matters")),
            fix=_as_str(fix),
            category=_as_str(raw.get("category")) or "general",
            source=_as_str(raw.get("source")) or "heuristic",
        )


def issues_from_dicts(raw_issues: List[Any]) -> List[Issue]:
    out = []
    for item in raw_issues or []:
        if isinstance(item, Issue):
            out.append(item)
        elif isinstance(item, dict):
            issue = Issue.from_dict(item)
            if issue.title:
                out.append(issue)
    return out
