"""
Unit tests for issue canonicalization, deduplication and backlog assembly.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from audit_engine.backlog import (
    build_backlog,
    canonicalize,
    dedupe,
    jaccard_similarity,
    normalize_severity,
    select_top_issues,
)
from audit_engine.models import Issue

WORDS = ["alpha", "bravo", "charlie", "delta", "echo", "foxtrot", "golf", "hotel", "india", "juliet"]


def _issue(title, severity="medium", **overrides):
    return Issue(title=title, severity=severity, **overrides)


def test_synonyms_collapse_to_same_key():
    assert canonicalize("Phone number not in header!") == "phone not in header"
    assert canonicalize("Telephone not in header") == canonicalize("Phone Number not in header")
    assert canonicalize("No call-to-action above the fold") == canonicalize("No CTAs above the fold")
    assert canonicalize("Not click to call") == canonicalize("Not tap-to-call")


def test_digit_runs_collapse():
    assert canonicalize("Only 3 reviews") == canonicalize("Only 128 reviews")
    assert canonicalize("Only 3 reviews") == "only 0 reviews"


def test_jaccard():
    assert jaccard_similarity("a b c", "c b a") == 1.0
    assert jaccard_similarity("a b", "c d") == 0.0
    assert jaccard_similarity("", "a") == 0.0


def test_severity_buckets():
    assert normalize_severity("blocker") == "critical"
    assert normalize_severity("High") == "critical"
    assert normalize_severity("warning") == "warning"
    assert normalize_severity("medium") == "warning"
    assert normalize_severity("low") == "opportunity"
    assert normalize_severity(None) == "opportunity"


def test_near_duplicates_dropped():
    base = "Missing LocalBusiness schema markup on the homepage for local search visibility"
    issues = [_issue(base), _issue(base + " now"), _issue("No email address found")]
    kept = dedupe(issues)
    assert [i.title for i in kept] == [base, "No email address found"]


def test_dedupe_is_a_fixed_point():
    issues = [
        _issue("Phone number not in header"),
        _issue("Telephone not in header"),
        _issue("Only 3 reviews"),
        _issue("Only 40 reviews"),
        _issue("No clear call-to-action above the fold"),
        _issue("No clear CTA above the fold"),
        _issue("Hours missing"),
    ]
    once = dedupe(issues)
    assert len(once) == 4
    assert dedupe(once) == once


def test_already_shown_removed_entirely():
    issues = [_issue("Telephone not in header", "high"), _issue("Hours missing", "medium")]
    backlog = build_backlog(issues, already_shown=["Phone number not in header"])
    assert backlog.critical == []
    assert [i.title for i in backlog.warnings] == ["Hours missing"]
    assert backlog.counts == {"critical": 0, "warning": 1, "opportunity": 0, "total": 1}


def test_caps_apply_after_counting():
    issues = [_issue(f"Missing {w} section", "high") for w in WORDS]
    backlog = build_backlog(issues)
    assert len(backlog.critical) == 6
    assert backlog.counts["critical"] == 10
    assert backlog.counts["total"] == 10


def test_custom_caps_and_bucketing():
    issues = [
        _issue("Missing alpha section", "critical"),
        _issue("Missing bravo section", "warning"),
        _issue("Missing charlie section", "low"),
        _issue("Missing delta section", "nice to have"),
    ]
    backlog = build_backlog(issues, caps={"opportunity": 1})
    assert [i.title for i in backlog.critical] == ["Missing alpha section"]
    assert [i.title for i in backlog.warnings] == ["Missing bravo section"]
    assert [i.title for i in backlog.opportunities] == ["Missing charlie section"]
    assert backlog.counts["opportunity"] == 2
    assert backlog.opportunities[0].severity == "opportunity"


def test_top_issues_most_severe_first():
    issues = [
        _issue("Hours missing", "medium"),
        _issue("No phone number found", "critical"),
        _issue("Phone number not in header", "high"),
        _issue("Telephone not in header", "high"),
        _issue("Add a blog", "low"),
    ]
    top = select_top_issues(issues, count=3)
    assert [i.title for i in top] == ["No phone number found", "Phone number not in header", "Hours missing"]

    backlog = build_backlog(issues, already_shown=top)
    assert backlog.counts["total"] == 1
    assert [i.title for i in backlog.opportunities] == ["Add a blog"]


def test_backlog_document_shape():
    doc = build_backlog([_issue("Hours missing", "medium", impact="Customers can't tell", fix="Add hours")]).to_dict()
    assert set(doc) == {"counts", "critical", "warnings", "opportunities"}
    assert doc["warnings"][0] == {
        "title": "Hours missing",
        "impact": "Customers can't tell",
        "fix": "Add hours",
        "severity": "warning",
        "category": "general",
        "source": "heuristic",
    }
