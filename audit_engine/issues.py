"""
Rule-based issue detection.

Every rule reads evidence already in the pack, the page statistics or the
UX assessment; none guesses. Output is the raw candidate list that the
backlog deduplicates.
"""

from typing import List, Optional, Sequence

from .evidence_pack import EvidencePack
from .health import HealthMetric, STATUS_CRITICAL
from .models import Issue, value_of
from .page_stats import city_name, PageStats
from .trust import trust_categories
from .ux import UxAssessment

URGENT_NICHES = ["plumb", "hvac", "electric", "locksmith", "towing", "emergency", "roof"]

SEVERITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}
CATEGORY_ORDER = ["phone", "cta", "trust", "nap", "conversion", "friction", "contact", "clarity", "mobile", "health"]

MAX_ABOVE_FOLD_CTAS = 4
MIN_FEATURED_SERVICES = 3
MIN_TRUST_CATEGORIES = 2

SOURCE = "issue_detector"


def _is_urgent(niche: str) -> bool:
    n = (niche or "").lower()
    return any(u in n for u in URGENT_NICHES)


def _issue(title: str, severity: str, impact: str, fix: str, category: str, source: str = SOURCE) -> Issue:
    return Issue(title=title, severity=severity, impact=impact, fix=fix, category=category, source=source)


def _phone_issues(pack: EvidencePack, stats: PageStats, niche: str, city: str) -> List[Issue]:
    phone = pack.profile.primary_phone
    if not phone:
        return [_issue(
            "No phone number found for the business", "critical",
            f"High-intent {city} customers can't call immediately",
            "Add the primary business phone to the header with a click-to-call link",
            "phone",
        )]
    issues = []
    if not stats.phone_clickable:
        issues.append(_issue(
            "Phone number is not click-to-call on mobile",
            "critical" if _is_urgent(niche) else "high",
            f"Mobile users need instant tap-to-call for {niche} services in {city}",
            f"Make {phone} a tappable tel: link so mobile users can call instantly",
            "phone",
        ))
    if not stats.phone_in_header:
        issues.append(_issue(
            "Phone number not visible in website header", "high",
            f"{city} customers expect to see a phone number immediately for {niche} services",
            f"Add {phone} to the website header (top-right corner is standard)",
            "phone",
        ))
    return issues


def _cta_issues(pack: EvidencePack, ux: UxAssessment) -> List[Issue]:
    issues = []
    if pack.cta_map.primary is None:
        issues.append(_issue(
            "No clear primary call-to-action above the fold", "high",
            "Visitors who don't see one obvious next step tend to leave",
            "Add one dominant CTA above the fold (Call Now / Get a Quote)",
            "cta",
        ))
    elif pack.cta_map.above_fold_count > MAX_ABOVE_FOLD_CTAS:
        issues.append(_issue(
            "Too many CTAs above the fold causing decision paralysis", "medium",
            "Competing buttons dilute the primary action",
            f"Keep \"{pack.cta_map.primary.candidate.text}\" as the single dominant above-fold CTA",
            "cta",
        ))
    if ux.clicks_to_contact > 2:
        issues.append(_issue(
            "Too many clicks required to contact you",
            "medium" if pack.cta_map.primary else "high",
            f"It takes about {ux.clicks_to_contact} clicks to reach the business",
            "Put the phone number and a contact button in the header of every page",
            "friction",
        ))
    return issues


def _contact_issues(pack: EvidencePack) -> List[Issue]:
    issues = []
    if not pack.profile.emails:
        issues.append(_issue(
            "No email address found for the business", "high",
            "Some customers prefer email for non-urgent inquiries",
            "Add a business email to the contact page and footer",
            "contact",
        ))
    if not pack.contact_form.detected:
        issues.append(_issue(
            "No request form detected for non-phone inquiries", "medium",
            "After-hours visitors have no way to leave a request",
            "Add a short request form (name, phone, message) to the contact page",
            "conversion",
        ))
    return issues


def _trust_issues(pack: EvidencePack) -> List[Issue]:
    if len(trust_categories(pack.trust)) >= MIN_TRUST_CATEGORIES:
        return []
    return [_issue(
        "Not enough proof/trust signals above the fold", "medium",
        "Reviews, licenses and years in business reassure first-time visitors",
        "Add review counts, license/insurance badges and years in business near the top of the homepage",
        "trust",
    )]


def _nap_issues(pack: EvidencePack, city: str) -> List[Issue]:
    issues = []
    address = value_of(pack.profile.address)
    if address is None:
        issues.append(_issue(
            "Address / service location not clearly detected", "high",
            f"Search engines can't tie the business to {city}",
            "Publish the full business address (or service area) in the footer and LocalBusiness schema",
            "nap",
        ))
    elif not all((address.street, address.city, address.region, address.postal)):
        issues.append(_issue(
            "Address is incomplete for local visibility", "medium",
            "Partial addresses weaken local search relevance",
            "Add street, city, state and ZIP to the footer and LocalBusiness schema",
            "nap",
        ))
    if value_of(pack.profile.hours) is None:
        issues.append(_issue(
            "Business hours are missing or hard to find", "medium",
            "Customers can't tell whether you're open right now",
            "Add opening hours to the footer and openingHoursSpecification schema",
            "nap",
        ))
    return issues


def _service_issues(pack: EvidencePack, niche: str) -> List[Issue]:
    if len(pack.services.featured) >= MIN_FEATURED_SERVICES:
        return []
    return [_issue(
        "Services are not clearly featured or easy to find", "medium",
        f"Visitors can't quickly confirm you offer the {niche} service they need",
        "List the top services on the homepage, each linking to its own page",
        "clarity",
    )]


def _mobile_issues(ux: UxAssessment) -> List[Issue]:
    return [_issue(m.problem, "medium", "Most local searches happen on phones", m.fix, "mobile") for m in ux.mobile_issues]


def _metric_issues(metrics: Sequence[HealthMetric]) -> List[Issue]:
    return [
        _issue(
            f"{m.label} score is critical ({m.score}/100)", "medium",
            m.note, f"Prioritize {m.label.lower()} improvements", "health", source="health_snapshot",
        )
        for m in metrics if m.status == STATUS_CRITICAL
    ]


def _sort_key(issue: Issue):
    category = CATEGORY_ORDER.index(issue.category) if issue.category in CATEGORY_ORDER else len(CATEGORY_ORDER)
    return (SEVERITY_ORDER.get(issue.severity, len(SEVERITY_ORDER)), category)


def detect_issues(
    pack: EvidencePack,
    stats: PageStats,
    ux: UxAssessment,
    metrics: Optional[Sequence[HealthMetric]] = None,
) -> List[Issue]:
    """
    Detect raw issues for a job.

    Returns:
        Issues sorted by severity, then category.
    """
    niche = pack.job.niche
    city = city_name(pack.job.city) or "your area"
    issues = (
        _phone_issues(pack, stats, niche, city)
        + _cta_issues(pack, ux)
        + _contact_issues(pack)
        + _trust_issues(pack)
        + _nap_issues(pack, city)
        + _service_issues(pack, niche)
        + _mobile_issues(ux)
        + _metric_issues(metrics or [])
    )
    return sorted(issues, key=_sort_key)
