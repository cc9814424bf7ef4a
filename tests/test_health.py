"""
Unit tests for the six-axis Health Scorer.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from audit_engine.evidence_pack import EvidencePack, build_evidence_pack
from audit_engine.health import (
    HEALTH_SNAPSHOT_VERSION,
    content_breakdown,
    ensure_health_snapshot,
    finalize,
    reality_adjust,
    score,
    score_content,
    score_conversion,
    score_design,
    score_geo,
    score_local_seo,
    score_trust,
    status_tier,
)
from audit_engine.models import AuditJob, PageRecord
from audit_engine.page_stats import PageStat, PageStats, compute_page_stats
from audit_engine.trust import TrustEvidence
from audit_engine.ux import assess_ux, attach_ux


def _pack(**overrides):
    return EvidencePack(job=AuditJob("plumbing", "Miami, FL", "https://acme.com/"), **overrides)


def _stats(**overrides):
    base = {
        "pages": [PageStat("https://acme.com/", "home", 400, "h-home")],
    }
    base.update(overrides)
    return PageStats(**base)


def _records(*raws):
    return [PageRecord.from_dict(r) for r in raws]


def _geo_factors():
    return [
        {"name": "LocalBusiness Schema", "weight": 25, "earned": 25},
        {"name": "City Mentions", "weight": 15, "earned": 0},
    ]


def test_finalize_clamps_and_rounds_half_up():
    assert finalize(120) == 100
    assert finalize(-40) == 0
    assert finalize(34.5) == 35
    assert finalize(64.49) == 64


def test_reality_adjustment():
    assert reality_adjust(79) == 59.25
    assert reality_adjust(80) == 54
    assert reality_adjust(100) == 69


def test_status_tiers_are_monotonic():
    rank = {"critical": 0, "warning": 1, "good": 2}
    tiers = [rank[status_tier(s)] for s in range(0, 101)]
    assert tiers == sorted(tiers)
    assert status_tier(34) == "critical"
    assert status_tier(35) == "warning"
    assert status_tier(64) == "warning"
    assert status_tier(65) == "good"


def test_every_axis_within_bounds_for_empty_site():
    pages = _records({"url": "https://acme.com/"})
    pack = build_evidence_pack({"niche": "plumbing"}, pages)
    stats = compute_page_stats(pages, pack)
    for metric in score(pack, stats):
        assert 0 <= metric.score <= 100
        assert metric.status in ("critical", "warning", "good")


def test_extreme_inputs_stay_clamped():
    stats = _stats(
        external_factors=[{"name": "Legacy Geo", "weight": 10, "earned": 0}],
        factors_origin="legacy",
        mobile_score=0,
        clarity_score=0,
        mobile_issue_count=50,
        ux_score=0,
        friction_level="high",
    )
    for metric in score(_pack(), stats):
        assert 0 <= metric.score <= 100
    assert score_geo(_pack(), stats).score == 0
    assert score_design(_pack(), stats).score == 0


def test_local_seo_for_bare_site():
    """Only the NAP floor (8 of 100 points) is earned: 8 * 0.75 = 6."""
    metric = score_local_seo(_pack(), _stats())
    assert metric.score == 6
    assert metric.note == "8/100 local factor points earned"


def test_geo_penalties_apply_to_legacy_factors_only():
    template = score_geo(_pack(), _stats(external_factors=_geo_factors(), factors_origin="template"))
    legacy = score_geo(_pack(), _stats(external_factors=_geo_factors(), factors_origin="legacy"))
    assert template.score == 47
    assert legacy.score == 0


def test_geo_origin_heuristic_without_tag():
    untagged_template = score_geo(_pack(), _stats(external_factors=_geo_factors()))
    assert untagged_template.score == 47
    custom = [{"name": "Custom Geo Factor", "weight": 40, "earned": 25}]
    untagged_legacy = score_geo(_pack(), _stats(external_factors=custom, city_mentions=5,
                                                localbusiness_schema=True, has_service_area=True))
    assert untagged_legacy.score == 47


def test_content_breakdown_and_score():
    stats = _stats(pages=[
        PageStat("https://acme.com/", "home", 900, "a"),
        PageStat("https://acme.com/services", "services", 1200, "b"),
        PageStat("https://acme.com/about", "about", 400, "c"),
    ])
    b = content_breakdown(stats)
    assert b["coverage"] == 26
    assert b["home_band"] == 20
    assert b["services_band"] == 15
    assert b["rich_bonus"] == 2
    assert b["penalty"] == 0
    assert score_content(_pack(), stats).score == 63


def test_content_penalties_capped():
    pages = [PageStat(f"https://acme.com/p{i}", "other", 100, "same") for i in range(10)]
    b = content_breakdown(_stats(pages=pages))
    assert b["duplicate_penalty"] == 12
    assert b["thin_penalty"] == 10
    assert b["penalty"] == 18


def test_duplicate_penalty_needs_ten_pages():
    pages = [PageStat(f"https://acme.com/p{i}", "other", 400, "same") for i in range(9)]
    assert content_breakdown(_stats(pages=pages))["duplicate_penalty"] == 0


def test_design_blend_and_baseline():
    blended = score_design(_pack(), _stats(mobile_score=80, clarity_score=70, mobile_issue_count=1))
    assert blended.score == 47
    assert score_design(_pack(), _stats()).score == 35


def test_trust_levels_map_to_scores():
    strong = _pack(trust=[
        TrustEvidence("review_count", "120 reviews", "trust_phrase"),
        TrustEvidence("licensed", "Licensed & insured", "trust_phrase"),
    ])
    ok = _pack(trust=[TrustEvidence("review_count", "120 reviews", "trust_phrase")])
    assert score_trust(strong, _stats()).score == 53
    assert score_trust(ok, _stats()).score == 38
    assert score_trust(_pack(), _stats()).score == 19


def test_conversion_from_ux_and_friction():
    assert score_conversion(_pack(), _stats()).score == 0
    assert score_conversion(_pack(), _stats(ux_score=80, friction_level="low")).score == 77
    assert score_conversion(_pack(), _stats(ux_score=80, friction_level="medium")).score == 65


def test_score_is_idempotent():
    pages = _records({
        "url": "https://acme.com/",
        "h1": ["Miami Plumbers"],
        "text_snippet": "Serving Miami since 1998. Call (305) 555-0100.",
    })
    pack = build_evidence_pack({"niche": "plumbing", "city": "Miami, FL"}, pages)
    stats = compute_page_stats(pages, pack)
    stats = attach_ux(stats, assess_ux(pack, stats))
    assert score(pack, stats) == score(pack, stats)


def test_stored_snapshot_reused_only_on_version_match():
    pack, stats = _pack(), _stats()
    current = {"version": HEALTH_SNAPSHOT_VERSION, "title": "Website Health Snapshot", "metrics": []}
    assert ensure_health_snapshot(current, pack, stats) is current

    stale = {"version": "health_snapshot_v1", "title": "old", "metrics": []}
    fresh = ensure_health_snapshot(stale, pack, stats)
    assert fresh["version"] == HEALTH_SNAPSHOT_VERSION
    assert [m["key"] for m in fresh["metrics"]] == ["local_seo", "geo", "content", "design", "trust", "conversion"]
    assert fresh["metrics"][0]["text_class"] in ("text-red-600", "text-amber-600", "text-emerald-600")


def test_malformed_current_snapshot_is_recomputed():
    pack, stats = _pack(), _stats()
    broken = {
        "version": HEALTH_SNAPSHOT_VERSION,
        "title": "Website Health Snapshot",
        "metrics": ["geo", {"key": "trust", "score": "high"}],
    }
    fresh = ensure_health_snapshot(broken, pack, stats)
    assert fresh is not broken
    assert len(fresh["metrics"]) == 6
    assert all(isinstance(m["score"], int) for m in fresh["metrics"])
