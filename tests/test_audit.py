"""
End-to-end tests for the audit orchestrator.
"""

import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from audit_engine.audit import run_audit
from audit_engine.health import HEALTH_SNAPSHOT_VERSION
from audit_engine.validation import MissingRequiredInputError

JOB = {"niche": "plumbing", "city": "Miami, FL", "input_url": "https://acme-plumbing.com/"}


def _pages():
    return [
        {
            "url": "https://acme-plumbing.com/",
            "title": "Acme Plumbing | Miami Plumber",
            "word_count": 520,
            "h1": ["Miami's Trusted Plumbers"],
            "h3": ["Drain Cleaning", "Water Heater Repair"],
            "text_snippet": "Acme Plumbing has served Miami since 1998. Call (305) 555-0100.",
            "trust_phrases": [{"type": "review_count", "text": "240 Google reviews"}],
        },
        {
            "url": "https://acme-plumbing.com/contact",
            "word_count": 180,
            "text_snippet": "Reach us at office@acme-plumbing.com",
        },
        {
            "url": "https://acme-plumbing.com/about",
            "word_count": 400,
            "text_snippet": "Family owned in Miami.",
        },
    ]


def _all_titles(result):
    backlog = result.backlog
    return [i.title for i in result.top_issues + backlog.critical + backlog.warnings + backlog.opportunities]


def test_missing_niche_raises():
    with pytest.raises(MissingRequiredInputError) as exc:
        run_audit({"city": "Miami, FL"}, _pages())
    assert str(exc.value) == "cannot generate without required niche field"


def test_documents_shape():
    docs = run_audit(JOB, _pages()).to_documents()
    assert set(docs) == {"evidence_pack", "health_snapshot", "backlog"}
    assert docs["health_snapshot"]["version"] == HEALTH_SNAPSHOT_VERSION
    assert len(docs["health_snapshot"]["metrics"]) == 6
    assert set(docs["backlog"]["counts"]) == {"critical", "warning", "opportunity", "total"}
    assert docs["evidence_pack"]["niche"] == "plumbing"
    assert "display_featured" in docs["evidence_pack"]["services"]


def test_audit_is_deterministic():
    first = run_audit(JOB, _pages()).to_documents()
    again = run_audit(JOB, _pages()).to_documents()
    reversed_pages = run_audit(JOB, list(reversed(_pages()))).to_documents()
    assert first == again
    assert first == reversed_pages


def test_top_issues_never_repeat_in_backlog():
    result = run_audit(JOB, _pages())
    titles = _all_titles(result)
    assert result.top_issues
    assert len(titles) == len(set(titles))


def test_already_shown_findings_are_excluded():
    shown = ["Phone number is not click-to-call on mobile"]
    result = run_audit(JOB, _pages(), already_shown=shown)
    assert shown[0] not in _all_titles(result)


def test_raw_issues_join_the_backlog():
    raw = [{"title": "Blog has not been updated in two years", "severity": "low"}]
    result = run_audit(JOB, _pages(), raw_issues=raw, top_issues_count=1)
    assert "Blog has not been updated in two years" in [i.title for i in result.backlog.opportunities]


def test_current_stored_snapshot_is_reused():
    stored = {
        "version": HEALTH_SNAPSHOT_VERSION,
        "title": "Website Health Snapshot",
        "metrics": [{
            "key": "geo",
            "label": "Geo Signals",
            "score": 12,
            "status": "critical",
            "text_class": "text-red-600",
            "bar_class": "bg-red-500",
            "note": "stored",
        }],
    }
    result = run_audit(JOB, _pages(), stored_snapshot=stored, top_issues_count=20)
    assert result.health_snapshot is stored
    assert "Geo Signals score is critical (12/100)" in _all_titles(result)


def test_malformed_page_is_warned_about_once(caplog):
    with caplog.at_level(logging.WARNING, logger="audit_engine.validation"):
        result = run_audit(JOB, _pages() + ["not a page", {"title": "No URL"}])
    page_warnings = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Page input:")]
    assert page_warnings == [
        "Page input: page[3] is str, expected object (skipped)",
        "Page input: page[4] has no url (skipped)",
    ]
    assert result.evidence_pack.to_dict()["company_name"]
