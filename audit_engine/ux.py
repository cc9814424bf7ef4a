"""
Deterministic UX assessment.

Derives the conversion-path / clarity / trust / mobile sub-scores, the
overall UX score, the contact friction level and the mobile issue list
from the Evidence Pack and page statistics. The health scorer reads these
through PageStats (see ``attach_ux``).
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .evidence_pack import EvidencePack
from .page_stats import PageStats
from .trust import trust_categories

FRICTION_LOW = "low"
FRICTION_MEDIUM = "medium"
FRICTION_HIGH = "high"

UX_WEIGHTS = {
    "conversion_path": 0.35,
    "clarity": 0.25,
    "trust": 0.25,
    "mobile": 0.15,
}
LOW_FRICTION_MIN_UX = 70
LIGHTHOUSE_POOR = 50
MAX_MOBILE_ISSUES = 3


@dataclass
class MobileIssue:
    problem: str
    fix: str


@dataclass
class UxAssessment:
    conversion_path: int
    clarity: int
    trust: int
    mobile: int
    ux_score: float
    clicks_to_contact: int
    friction_level: str
    mobile_issues: List[MobileIssue] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "conversion_path": self.conversion_path,
            "clarity": self.clarity,
            "trust": self.trust,
            "mobile": self.mobile,
            "ux_score": self.ux_score,
            "clicks_to_contact": self.clicks_to_contact,
            "friction_level": self.friction_level,
            "mobile_issues": [{"problem": m.problem, "fix": m.fix} for m in self.mobile_issues],
        }


def _clamp(value: float, min_val: float, max_val: float) -> float:
    return max(min_val, min(max_val, value))


def clicks_to_contact(pack: EvidencePack, stats: PageStats) -> int:
    """Minimum clicks a visitor needs to reach the business."""
    phones = pack.profile.phones
    if stats.phone_clickable and stats.phone_in_header:
        return 1
    if stats.phone_in_header and phones:
        return 0
    if stats.contact_page_present:
        return 1
    if pack.contact_form.detected:
        return 0
    if phones or pack.profile.emails:
        return 2
    return 3


def _conversion_path(pack: EvidencePack, stats: PageStats, clicks: int) -> int:
    score = 65
    if pack.cta_map.primary is None:
        score -= 15
    if not stats.phone_in_header and pack.profile.phones:
        score -= 10
    if clicks > 1:
        score -= 5 * min(clicks - 1, 3)
    if not pack.contact_form.detected:
        score -= 8
    return int(_clamp(score, 45, 100))


def _clarity(pack: EvidencePack) -> int:
    score = 60
    featured = len(pack.services.featured)
    if featured >= 3:
        score += 15
    elif featured >= 1:
        score += 8
    address = pack.profile.address
    if address and address.value.city:
        score += 10
    if pack.profile.phones:
        score += 5
    return int(_clamp(score, 55, 100))


def _trust(pack: EvidencePack) -> int:
    return int(min(100, 48 + 18 * len(trust_categories(pack.trust))))


def _mobile(pack: EvidencePack, stats: PageStats, clicks: int) -> int:
    score = 58
    if not stats.phone_clickable and pack.profile.phones:
        score -= 12
    if clicks > 2:
        score -= 10
    if stats.lighthouse_mobile_score is not None:
        score = round(score * 0.4 + stats.lighthouse_mobile_score * 0.6)
    return int(_clamp(score, 48, 100))


def friction_level(pack: EvidencePack, ux_score: float) -> str:
    has_primary = pack.cta_map.primary is not None
    has_form = pack.contact_form.detected
    has_contact = bool(pack.profile.phones or pack.profile.emails)
    if has_primary and has_form and has_contact and ux_score >= LOW_FRICTION_MIN_UX:
        return FRICTION_LOW
    if has_primary or has_form or has_contact:
        return FRICTION_MEDIUM
    return FRICTION_HIGH


def mobile_issues(pack: EvidencePack, stats: PageStats, clicks: int) -> List[MobileIssue]:
    issues = []
    phone = pack.profile.primary_phone
    if phone and not stats.phone_clickable:
        issues.append(MobileIssue(
            "Phone number is not tap-to-call on mobile",
            f"Make {phone} a tappable tel: link for instant mobile calling",
        ))
    if stats.lighthouse_mobile_score is not None and stats.lighthouse_mobile_score < LIGHTHOUSE_POOR:
        issues.append(MobileIssue(
            "Poor mobile performance (Lighthouse score under 50)",
            "Optimize images, reduce JavaScript, improve Core Web Vitals",
        ))
    if clicks > 2:
        issues.append(MobileIssue(
            "Too many taps required to contact on mobile",
            "Add a sticky tap-to-call button that stays visible on mobile",
        ))
    return issues[:MAX_MOBILE_ISSUES]


def assess_ux(pack: EvidencePack, stats: PageStats) -> UxAssessment:
    clicks = clicks_to_contact(pack, stats)
    conversion = _conversion_path(pack, stats, clicks)
    clarity = _clarity(pack)
    trust = _trust(pack)
    mobile = _mobile(pack, stats, clicks)
    ux_score = round(
        conversion * UX_WEIGHTS["conversion_path"]
        + clarity * UX_WEIGHTS["clarity"]
        + trust * UX_WEIGHTS["trust"]
        + mobile * UX_WEIGHTS["mobile"],
        2,
    )
    return UxAssessment(
        conversion_path=conversion,
        clarity=clarity,
        trust=trust,
        mobile=mobile,
        ux_score=ux_score,
        clicks_to_contact=clicks,
        friction_level=friction_level(pack, ux_score),
        mobile_issues=mobile_issues(pack, stats, clicks),
    )


def attach_ux(stats: PageStats, ux: Optional[UxAssessment]) -> PageStats:
    """Copy of ``stats`` carrying the UX sub-scores the health scorer reads."""
    if ux is None:
        return stats
    return dataclasses.replace(
        stats,
        mobile_score=ux.mobile,
        clarity_score=ux.clarity,
        ux_score=ux.ux_score,
        friction_level=ux.friction_level,
        mobile_issue_count=len(ux.mobile_issues),
    )
