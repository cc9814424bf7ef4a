"""
Health Scorer

Six independent 0-100 axes computed from the Evidence Pack and page
statistics:

    local_seo   weighted local factors (NAP, schema, city, area, hours, rating)
    geo         the geo-relevant subset of those factors, plus explicit penalties
    content     page coverage, word-count bands, rich pages, duplicate/thin penalties
    design      mobile/clarity sub-scores (or a baseline), minus mobile issues
    trust       trust level mapped to a score
    conversion  UX score plus a fixed base, minus a friction penalty

Calibration:
- Raw scores pass through a reality adjustment (x0.75, and -6 more when the
  raw score is 80+) to counter optimistic inputs.
- Status tiers are fixed: under 35 critical, under 65 warning, else good.
  "good" is meant to be rare.

The calibration constants below are hand-tuned product values; they are
kept as named constants so they can be revisited without touching logic.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .content import (
    ROLE_ABOUT,
    ROLE_BLOG,
    ROLE_FAQ,
    ROLE_GALLERY,
    ROLE_LOCATIONS,
    ROLE_PRICING,
    ROLE_SERVICES,
)
from .evidence_pack import EvidencePack
from .models import value_of
from .page_stats import PageStats
from .schemas import HealthSnapshotDoc

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

HEALTH_SNAPSHOT_VERSION = "health_snapshot_v2"
HEALTH_SNAPSHOT_TITLE = "Website Health Snapshot"

# Reality adjustment
REALITY_MULTIPLIER = 0.75
OPTIMISM_THRESHOLD = 80
OPTIMISM_PENALTY = 6

# Status tiers
CRITICAL_BELOW = 35
WARNING_BELOW = 65

STATUS_CRITICAL = "critical"
STATUS_WARNING = "warning"
STATUS_GOOD = "good"

STATUS_CLASSES = {
    STATUS_CRITICAL: ("text-red-600", "bg-red-500"),
    STATUS_WARNING: ("text-amber-600", "bg-amber-500"),
    STATUS_GOOD: ("text-emerald-600", "bg-emerald-500"),
}

# Local factors (name -> max points)
FACTOR_NAP = "NAP Completeness"
FACTOR_SCHEMA = "LocalBusiness Schema"
FACTOR_CITY_H1 = "City in H1"
FACTOR_CITY_MENTIONS = "City Mentions"
FACTOR_SERVICE_AREA = "Service Area"
FACTOR_HOURS = "Opening Hours"
FACTOR_REVIEWS = "Reviews/Rating"

FACTOR_WEIGHTS = {
    FACTOR_NAP: 25,
    FACTOR_SCHEMA: 25,
    FACTOR_CITY_H1: 10,
    FACTOR_CITY_MENTIONS: 15,
    FACTOR_SERVICE_AREA: 10,
    FACTOR_HOURS: 10,
    FACTOR_REVIEWS: 5,
}
TEMPLATE_FACTOR_NAMES = frozenset(FACTOR_WEIGHTS)
GEO_FACTOR_NAMES = frozenset({FACTOR_SCHEMA, FACTOR_CITY_H1, FACTOR_CITY_MENTIONS, FACTOR_SERVICE_AREA})

NAP_ISSUE_PENALTY = 25
NAP_MIN_EARNED = 8
CITY_MENTIONS_FOR_FULL_CREDIT = 5

FACTORS_TEMPLATE = "template"
FACTORS_LEGACY = "legacy"

# Geo penalties (legacy factor lists only)
GEO_FEW_MENTIONS_THRESHOLD = 3
GEO_FEW_MENTIONS_PENALTY = 18
GEO_NO_MENTIONS_PENALTY = 10
GEO_NO_SCHEMA_PENALTY = 12
GEO_NO_SERVICE_AREA_PENALTY = 10

# Content
COVERAGE_POINTS = {
    ROLE_SERVICES: 18,
    ROLE_ABOUT: 8,
    ROLE_LOCATIONS: 8,
    ROLE_FAQ: 4,
    ROLE_PRICING: 4,
    ROLE_BLOG: 4,
    ROLE_GALLERY: 4,
}
COVERAGE_CAP = 40
# (words below, points); words at or above the last bound earn the top score
HOME_WORD_BANDS = [(150, 8), (300, 11), (500, 14), (800, 17)]
HOME_WORD_TOP = 20
SERVICES_WORD_BANDS = [(150, 2), (300, 5), (600, 8), (1000, 12)]
SERVICES_WORD_TOP = 15
RICH_PAGE_BONUS_CAP = 5
DUPLICATE_MIN_PAGES = 10
DUPLICATE_PENALTY_SCALE = 24
DUPLICATE_PENALTY_CAP = 12
THIN_PENALTY_SCALE = 20
THIN_PENALTY_CAP = 10
CONTENT_PENALTY_CAP = 18

# Design
DESIGN_BASELINE = 35
DESIGN_MOBILE_WEIGHT = 0.6
DESIGN_CLARITY_WEIGHT = 0.4
MOBILE_ISSUE_PENALTY = 6
MOBILE_ISSUE_CAP = 3

# Trust
TRUST_LEVEL_SCORES = {"strong": 70, "ok": 50, "weak": 25}

# Conversion
CONVERSION_UX_WEIGHT = 0.65
CONVERSION_BASE = 25
FRICTION_PENALTIES = {"low": 0, "medium": 12, "high": 25}

AXES = [
    ("local_seo", "Local SEO"),
    ("geo", "Geo Signals"),
    ("content", "Content"),
    ("design", "Design"),
    ("trust", "Trust"),
    ("conversion", "Conversion Path"),
]


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class ScoreFactor:
    name: str
    weight: int
    earned: int


@dataclass(frozen=True)
class HealthMetric:
    key: str
    label: str
    score: int
    status: str
    note: str

    @property
    def text_class(self) -> str:
        return STATUS_CLASSES[self.status][0]

    @property
    def bar_class(self) -> str:
        return STATUS_CLASSES[self.status][1]

    def to_dict(self) -> Dict:
        return {
            "key": self.key,
            "label": self.label,
            "score": self.score,
            "status": self.status,
            "text_class": self.text_class,
            "bar_class": self.bar_class,
            "note": self.note,
        }


# =============================================================================
# SHARED TRANSFORMS
# =============================================================================

def _clamp(value: float, min_val: float = 0, max_val: float = 100) -> float:
    return max(min_val, min(max_val, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def finalize(value: float) -> int:
    """Clamp to [0, 100] and round."""
    return _round_half_up(_clamp(value))


def reality_adjust(raw: float) -> float:
    adjusted = raw * REALITY_MULTIPLIER
    if raw >= OPTIMISM_THRESHOLD:
        adjusted -= OPTIMISM_PENALTY
    return adjusted


def status_tier(score: float) -> str:
    if score < CRITICAL_BELOW:
        return STATUS_CRITICAL
    if score < WARNING_BELOW:
        return STATUS_WARNING
    return STATUS_GOOD


def _band_points(words: int, bands: List[Tuple[int, int]], top: int) -> int:
    for upper, points in bands:
        if words < upper:
            return points
    return top


# =============================================================================
# LOCAL FACTORS
# =============================================================================

def nap_score(pack: EvidencePack) -> int:
    """100 minus 25 per NAP gap (phone, address parts, hours)."""
    issues = 0
    if not pack.profile.phones:
        issues += 1
    address = value_of(pack.profile.address)
    if address is None or not all((address.street, address.city, address.region, address.postal)):
        issues += 1
    if value_of(pack.profile.hours) is None:
        issues += 1
    return max(0, 100 - NAP_ISSUE_PENALTY * issues)


def template_factors(pack: EvidencePack, stats: PageStats) -> List[ScoreFactor]:
    nap = nap_score(pack)
    mentions_earned = min(
        FACTOR_WEIGHTS[FACTOR_CITY_MENTIONS],
        _round_half_up(stats.city_mentions / CITY_MENTIONS_FOR_FULL_CREDIT * FACTOR_WEIGHTS[FACTOR_CITY_MENTIONS]),
    )
    earned = {
        FACTOR_NAP: max(NAP_MIN_EARNED, _round_half_up(nap * FACTOR_WEIGHTS[FACTOR_NAP] / 100)),
        FACTOR_SCHEMA: FACTOR_WEIGHTS[FACTOR_SCHEMA] if stats.localbusiness_schema else 0,
        FACTOR_CITY_H1: FACTOR_WEIGHTS[FACTOR_CITY_H1] if stats.city_in_h1 else 0,
        FACTOR_CITY_MENTIONS: mentions_earned,
        FACTOR_SERVICE_AREA: FACTOR_WEIGHTS[FACTOR_SERVICE_AREA] if stats.has_service_area else 0,
        FACTOR_HOURS: FACTOR_WEIGHTS[FACTOR_HOURS] if stats.hours_in_schema else 0,
        FACTOR_REVIEWS: FACTOR_WEIGHTS[FACTOR_REVIEWS] if stats.has_rating else 0,
    }
    return [ScoreFactor(name, weight, earned[name]) for name, weight in FACTOR_WEIGHTS.items()]


def _parse_external_factors(raw: List[Dict[str, Any]]) -> List[ScoreFactor]:
    factors = []
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        name = str(item.get("name") or item.get("factor") or "").strip()
        try:
            weight = int(item.get("weight", item.get("max_points", 0)) or 0)
            earned = int(item.get("earned", item.get("points", 0)) or 0)
        except (TypeError, ValueError):
            logger.warning("Skipping factor with non-numeric points: %s", name or item)
            continue
        if name and weight > 0:
            factors.append(ScoreFactor(name, weight, int(_clamp(earned, 0, weight))))
    return factors


def factor_origin(factors: List[ScoreFactor], explicit: Optional[str]) -> str:
    """
    Origin of a factor list: the explicit tag when given, otherwise a list
    made only of the template factor names is treated as template-computed.
    """
    if explicit in (FACTORS_TEMPLATE, FACTORS_LEGACY):
        return explicit
    if factors and all(f.name in TEMPLATE_FACTOR_NAMES for f in factors):
        return FACTORS_TEMPLATE
    return FACTORS_LEGACY


def resolve_factors(pack: EvidencePack, stats: PageStats) -> Tuple[List[ScoreFactor], str]:
    if stats.external_factors:
        factors = _parse_external_factors(stats.external_factors)
        if factors:
            return factors, factor_origin(factors, stats.factors_origin)
    return template_factors(pack, stats), FACTORS_TEMPLATE


def factor_ratio(factors: List[ScoreFactor]) -> int:
    total = sum(f.weight for f in factors)
    if total <= 0:
        return 0
    return _round_half_up(sum(f.earned for f in factors) / total * 100)


# =============================================================================
# AXES
# =============================================================================

def score_local_seo(pack: EvidencePack, stats: PageStats) -> HealthMetric:
    factors, _ = resolve_factors(pack, stats)
    raw = factor_ratio(factors)
    score = finalize(reality_adjust(raw))
    earned = sum(f.earned for f in factors)
    total = sum(f.weight for f in factors)
    return _metric("local_seo", score, f"{earned}/{total} local factor points earned")


def score_geo(pack: EvidencePack, stats: PageStats) -> HealthMetric:
    factors, origin = resolve_factors(pack, stats)
    geo = [f for f in factors if f.name in GEO_FACTOR_NAMES] or factors
    adjusted = reality_adjust(factor_ratio(geo))
    if origin == FACTORS_LEGACY:
        if stats.city_mentions < GEO_FEW_MENTIONS_THRESHOLD:
            adjusted -= GEO_FEW_MENTIONS_PENALTY
        if stats.city_mentions == 0:
            adjusted -= GEO_NO_MENTIONS_PENALTY
        if not stats.localbusiness_schema:
            adjusted -= GEO_NO_SCHEMA_PENALTY
        if not stats.has_service_area:
            adjusted -= GEO_NO_SERVICE_AREA_PENALTY
    note = (
        f"{stats.city_mentions} city mentions; LocalBusiness schema "
        f"{'found' if stats.localbusiness_schema else 'missing'}; service area "
        f"{'defined' if stats.has_service_area else 'not defined'}"
    )
    return _metric("geo", finalize(adjusted), note)


def content_breakdown(stats: PageStats) -> Dict[str, int]:
    roles = stats.roles
    coverage = min(COVERAGE_CAP, sum(pts for role, pts in COVERAGE_POINTS.items() if role in roles))
    home_band = _band_points(stats.home_word_count, HOME_WORD_BANDS, HOME_WORD_TOP)
    services_words = stats.services_word_count
    services_band = 0 if services_words is None else _band_points(services_words, SERVICES_WORD_BANDS, SERVICES_WORD_TOP)
    rich_bonus = min(RICH_PAGE_BONUS_CAP, stats.rich_page_count)

    duplicate = 0
    if len(stats.pages) >= DUPLICATE_MIN_PAGES:
        duplicate = min(DUPLICATE_PENALTY_CAP, _round_half_up(stats.duplicate_fraction * DUPLICATE_PENALTY_SCALE))
    thin = min(THIN_PENALTY_CAP, _round_half_up(stats.thin_fraction * THIN_PENALTY_SCALE))
    return {
        "coverage": coverage,
        "home_band": home_band,
        "services_band": services_band,
        "rich_bonus": rich_bonus,
        "duplicate_penalty": duplicate,
        "thin_penalty": thin,
        "penalty": min(CONTENT_PENALTY_CAP, duplicate + thin),
    }


def score_content(pack: EvidencePack, stats: PageStats) -> HealthMetric:
    b = content_breakdown(stats)
    raw = b["coverage"] + b["home_band"] + b["services_band"] + b["rich_bonus"] - b["penalty"]
    services_note = "services page found" if ROLE_SERVICES in stats.roles else "no services page"
    return _metric("content", finalize(raw), f"{len(stats.pages)} pages crawled; {services_note}")


def score_design(pack: EvidencePack, stats: PageStats) -> HealthMetric:
    parts = []
    if stats.mobile_score is not None:
        parts.append((reality_adjust(stats.mobile_score), DESIGN_MOBILE_WEIGHT))
    if stats.clarity_score is not None:
        parts.append((reality_adjust(stats.clarity_score), DESIGN_CLARITY_WEIGHT))
    if parts:
        weight = sum(w for _, w in parts)
        base = sum(v * w for v, w in parts) / weight
    else:
        base = DESIGN_BASELINE
    issues = min(MOBILE_ISSUE_CAP, max(0, stats.mobile_issue_count))
    score = finalize(base - issues * MOBILE_ISSUE_PENALTY)
    return _metric("design", score, f"{issues} mobile issue(s) detected")


def score_trust(pack: EvidencePack, stats: PageStats) -> HealthMetric:
    level = pack.trust_level
    score = finalize(reality_adjust(TRUST_LEVEL_SCORES.get(level, TRUST_LEVEL_SCORES["weak"])))
    return _metric("trust", score, f"Trust signals: {level} ({len(pack.trust)} found)")


def score_conversion(pack: EvidencePack, stats: PageStats) -> HealthMetric:
    ux_score = stats.ux_score if stats.ux_score is not None else 0
    friction = stats.friction_level if stats.friction_level in FRICTION_PENALTIES else "high"
    raw = ux_score * CONVERSION_UX_WEIGHT + (CONVERSION_BASE - FRICTION_PENALTIES[friction])
    primary = "primary CTA found" if pack.cta_map.primary else "no primary CTA"
    return _metric("conversion", finalize(raw), f"Contact friction {friction}; {primary}")


def _metric(key: str, score: int, note: str) -> HealthMetric:
    label = dict(AXES)[key]
    return HealthMetric(key=key, label=label, score=score, status=status_tier(score), note=note)


AXIS_SCORERS = {
    "local_seo": score_local_seo,
    "geo": score_geo,
    "content": score_content,
    "design": score_design,
    "trust": score_trust,
    "conversion": score_conversion,
}


def score(pack: EvidencePack, stats: PageStats) -> List[HealthMetric]:
    """
    Score all six axes.

    Args:
        pack: Evidence pack for the job.
        stats: Page statistics, with UX sub-scores attached (ux.attach_ux).

    Returns:
        HealthMetric per axis, in AXES order.
    """
    metrics = [AXIS_SCORERS[key](pack, stats) for key, _ in AXES]
    logger.debug("Health scores: %s", {m.key: m.score for m in metrics})
    return metrics


# =============================================================================
# SNAPSHOT
# =============================================================================

def build_health_snapshot(metrics: List[HealthMetric]) -> Dict[str, Any]:
    return {
        "version": HEALTH_SNAPSHOT_VERSION,
        "title": HEALTH_SNAPSHOT_TITLE,
        "metrics": [m.to_dict() for m in metrics],
    }


def ensure_health_snapshot(
    stored: Optional[Dict[str, Any]],
    pack: EvidencePack,
    stats: PageStats,
) -> Dict[str, Any]:
    """Reuse a stored snapshot only when it was computed by the current version and is well formed."""
    if isinstance(stored, dict) and stored.get("version") == HEALTH_SNAPSHOT_VERSION:
        try:
            HealthSnapshotDoc.model_validate(stored)
        except ValidationError as e:
            logger.warning("Recomputing malformed stored health snapshot (%d errors)", e.error_count())
        else:
            return stored
    elif isinstance(stored, dict):
        logger.info("Recomputing health snapshot (stored version %r)", stored.get("version"))
    return build_health_snapshot(score(pack, stats))


def metrics_from_snapshot(snapshot: Dict[str, Any]) -> List[HealthMetric]:
    """Rebuild HealthMetric objects from a snapshot document."""
    metrics = []
    for item in snapshot.get("metrics") or []:
        status = item.get("status")
        if status not in STATUS_CLASSES:
            status = status_tier(item.get("score") or 0)
        metrics.append(HealthMetric(
            key=item.get("key", ""),
            label=item.get("label", ""),
            score=int(item.get("score") or 0),
            status=status,
            note=item.get("note", ""),
        ))
    return metrics
