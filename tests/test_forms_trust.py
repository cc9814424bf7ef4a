"""
Unit tests for contact-form detection and trust evidence.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from audit_engine.forms import detect_contact_form
from audit_engine.models import PageRecord
from audit_engine.structured_data import StructuredExtract
from audit_engine.trust import TrustEvidence, collect_trust_evidence, trust_level


def _page(url, **overrides):
    base = {"url": url, "word_count": 300}
    base.update(overrides)
    return PageRecord.from_dict(base)


def _codes(warnings):
    return [w.code for w in warnings]


# ---------------------------------------------------------------------------
# Contact form
# ---------------------------------------------------------------------------

def test_contact_page_form_preferred():
    home_form = {"fields": [{"name": "email"}, {"name": "zip"}, {"name": "phone"}]}
    contact_form = {"fields": [{"name": "name", "required": True}, {"name": "message"}]}
    pages = [
        _page("https://acme.com/", forms=[home_form]),
        _page("https://acme.com/contact", forms=[contact_form]),
    ]
    presence, warnings = detect_contact_form(pages, "plumbing")
    assert presence.detected
    assert presence.detection_source == "dom"
    assert presence.page_url == "https://acme.com/contact"
    assert presence.fields_count == 2
    assert presence.fields[0].required is True
    assert warnings == []


def test_single_field_form_used_only_without_better():
    pages = [_page("https://acme.com/", forms=[{"fields": [{"name": "email"}]}])]
    presence, _ = detect_contact_form(pages)
    assert presence.detected
    assert presence.fields_count == 1


def test_text_cues_on_contact_page_count_with_warning():
    page = _page("https://acme.com/contact", text_snippet="Your name, email and message. Send!")
    presence, warnings = detect_contact_form([page])
    assert presence.detected
    assert presence.detection_source == "text"
    assert _codes(warnings) == ["WARN_CONTACT_FORM_DETECTED_VIA_TEXT"]


def test_has_form_flag_beats_text_cues():
    page = _page("https://acme.com/contact", has_form=True, text_snippet="name email")
    presence, _ = detect_contact_form([page])
    assert presence.detection_source == "dom_has_form"


def test_no_form_warns():
    presence, warnings = detect_contact_form([_page("https://acme.com/")])
    assert presence.detected is False
    assert presence.to_dict()["contact_form_fields"] == []
    assert _codes(warnings) == ["WARN_CONTACT_FORM_MISSING"]


# ---------------------------------------------------------------------------
# Trust
# ---------------------------------------------------------------------------

def test_trust_sources_collected_and_deduplicated():
    home = _page(
        "https://acme.com/",
        text_snippet="Family owned and serving Miami for over 25 years.",
        trust_phrases=[
            {"type": "licensed", "text": "Licensed & Insured"},
            {"type": "licensed", "text": "licensed & insured"},
        ],
        review_snippets=["They fixed our leak in an hour!"],
    )
    structured = StructuredExtract(aggregate_rating={"ratingValue": "4.9", "reviewCount": 212})
    evidence, warnings = collect_trust_evidence([home], home, structured)
    assert [e.type for e in evidence] == ["licensed", "star_rating", "years_in_business", "review_snippet"]
    assert evidence[1].snippet == "4.9 stars from 212 reviews"
    assert "25 years" in evidence[2].snippet
    assert warnings == []
    assert trust_level(evidence) == "strong"


def test_trust_without_numbers_or_license_warns():
    home = _page("https://acme.com/", trust_phrases=[{"type": "testimonial", "text": "Great service"}])
    evidence, warnings = collect_trust_evidence([home], home, StructuredExtract())
    assert _codes(warnings) == ["WARN_TRUST_HAS_NO_NUMBERS_OR_LICENSE"]
    assert trust_level(evidence) == "ok"


def test_trust_levels():
    assert trust_level([]) == "weak"
    assert trust_level([TrustEvidence("review_count", "80 reviews", "trust_phrase")]) == "ok"
    assert trust_level([
        TrustEvidence("review_count", "80 reviews", "trust_phrase"),
        TrustEvidence("years_in_business", "since 1998", "page_text"),
    ]) == "strong"
