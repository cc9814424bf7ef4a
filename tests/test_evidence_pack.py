"""
End-to-end tests for the Evidence Pack builder on realistic crawl fixtures.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from audit_engine.evidence_pack import EVIDENCE_PACK_VERSION, build_evidence_pack
from audit_engine.validation import MissingRequiredInputError

WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _empire_home():
    return {
        "url": "https://empireplumbing.com/",
        "title": "Empire Plumbing | Miami's 24/7 Plumber",
        "word_count": 650,
        "jsonld_blocks": [
            {"@type": "Organization", "name": "Empire Plumbing"},
            {
                "@type": "Plumber",
                "name": "Empire Plumbing Miami",
                "openingHoursSpecification": [{
                    "@type": "OpeningHoursSpecification",
                    "dayOfWeek": WEEK,
                    "opens": "00:00",
                    "closes": "23:59",
                }],
            },
        ],
        "cta_candidates": [
            {"text": "Home", "href": "/", "above_fold": True, "in_nav": True},
            {"text": "Call Now", "href": "tel:3055550100", "above_fold": True},
        ],
    }


def _wm_home(**overrides):
    page = {
        "url": "https://wmplumbing.com/",
        "title": "WM Plumbing & Drain",
        "word_count": 820,
        "jsonld_blocks": [{
            "@context": "https://schema.org",
            "@graph": [
                {
                    "@type": "Organization",
                    "name": "WM Plumbing & Drain",
                    "logo": {"@type": "ImageObject", "url": "https://wmplumbing.com/img/logo.png"},
                },
                {
                    "@type": "Plumber",
                    "name": "WM Plumbing & Drain",
                    "telePhone": "(305) 555-0142",
                    "openingHours": "Mo,Tu,We,Th,Fr,Sa,Su 07:00-19:00",
                    "address": {
                        "@type": "PostalAddress",
                        "streetAddress": "1200 NW 7th St",
                        "addressLocality": "Miami",
                        "addressRegion": "FL",
                        "postalCode": "33125",
                    },
                },
            ],
        }],
        "h3": ["Drain Cleaning", "Water Heater Repair", "Leak Detection"],
        "h6": [
            "Hydro-jetting and camera inspection for stubborn clogs.",
            "Tank and tankless repair, same day.",
            "Non-invasive leak location.",
        ],
        "cta_candidates": [
            {"text": "Home", "href": "/", "above_fold": True, "is_in_nav": True},
            {"text": "Call (305) 555-0142", "href": "tel:3055550142", "above_fold": True, "selector": "a.btn"},
        ],
    }
    page.update(overrides)
    return page


def _job(**overrides):
    job = {"niche": "plumbing", "city": "Miami, FL", "input_url": "https://wmplumbing.com/"}
    job.update(overrides)
    return job


def test_empire_nav_home_never_beats_call_button():
    pack = build_evidence_pack(
        {"niche": "plumbing", "city": "Miami, FL", "input_url": "https://empireplumbing.com/"},
        [_empire_home()],
    )
    doc = pack.to_dict()
    assert doc["company_name"] == "Empire Plumbing"
    assert doc["company_name_source"] == "jsonld_organization"
    assert doc["cta_map"]["primary_cta_text"] == "Call Now"
    assert doc["company_profile"]["hours"]["value"] == "24/7"


def test_wm_fixture_services_hours_logo_and_cta():
    pack = build_evidence_pack(_job(), [_wm_home()])
    doc = pack.to_dict()

    assert doc["company_name"] == "WM Plumbing & Drain"
    featured = doc["services"]["featured"]
    assert [s["title"] for s in featured] == ["Drain Cleaning", "Water Heater Repair", "Leak Detection"]
    assert {s["source"] for s in featured} == {"heading_pairs"}
    assert doc["services"]["display_featured"] == featured

    hours = doc["company_profile"]["hours"]
    assert hours["value"] == "Mon–Sun 7–19"
    assert hours["source"] == "jsonld_openingHours"

    assert doc["logo_url"] == "https://wmplumbing.com/img/logo.png"
    assert doc["logo_source"] == "jsonld_organization"

    assert doc["cta_map"]["primary_cta_source"] == "tel"
    assert doc["cta_map"]["primary_cta_text"] == "Call (305) 555-0142"

    assert doc["company_profile"]["phones"][0]["value"] == "(305) 555-0142"
    assert doc["company_profile"]["address"]["postal"] == "33125"
    codes = pack.warning_codes()
    assert "WARN_PHONE_MISSING" not in codes
    assert "WARN_HOURS_MISSING" not in codes
    assert doc["version"] == EVIDENCE_PACK_VERSION


def test_name_falls_back_to_domain():
    page = _wm_home(title="", jsonld_blocks=[])
    pack = build_evidence_pack(_job(), [page])
    assert pack.to_dict()["company_name_source"] == "domain_fallback"
    assert "WARN_NAME_FROM_DOMAIN" in pack.warning_codes()


def test_missing_niche_refuses_to_build():
    with pytest.raises(MissingRequiredInputError) as exc:
        build_evidence_pack(_job(niche=""), [_wm_home()])
    assert "cannot generate without required niche field" in str(exc.value)


def test_page_order_does_not_change_the_pack():
    pages = [
        _wm_home(),
        {
            "url": "https://wmplumbing.com/contact",
            "word_count": 220,
            "text_snippet": "Email office@wmplumbing.com or call (305) 555-0199.",
            "forms": [{"fields": [{"name": "name"}, {"name": "phone"}, {"name": "message"}]}],
        },
        {
            "url": "https://wmplumbing.com/drain-cleaning-miami/",
            "word_count": 640,
            "text_snippet": "Drain cleaning in Miami. Call (305) 555-0142.",
        },
    ]
    forward = build_evidence_pack(_job(), pages).to_dict()
    backward = build_evidence_pack(_job(), list(reversed(pages))).to_dict()
    assert forward["company_profile"] == backward["company_profile"]
    assert forward == backward


def _crawler_shaped_pages():
    """Pages as the crawler stores them: *_json columns and prefixed CTA flags."""
    all_week = [
        {"@type": "OpeningHoursSpecification", "dayOfWeek": day, "opens": "00:00:00", "closes": "23:59:00"}
        for day in WEEK
    ]
    home = {
        "url": "https://harborrooter.com/",
        "page_type": "home",
        "title": "Home | Harbor Rooter",
        "word_count": 540,
        "og_site_name": "Harbor Rooter",
        "jsonld_extracted_json": {
            "organization": {
                "name": "Harbor Rooter",
                "logo": "https://harborrooter.com/img/harbor-logo.png",
                "sameAs": [],
                "contactPoint": {},
            },
            "website": {"name": "Harbor Rooter"},
            "localbusiness": {
                "name": "Harbor Rooter",
                "address": {
                    "streetAddress": "88 Bayshore Blvd",
                    "addressLocality": "Tampa",
                    "addressRegion": "FL",
                    "postalCode": "33606",
                },
                "openingHoursSpecification": all_week,
            },
            "offer_catalog_services": [],
        },
        "cta_candidates_json": [
            {
                "text": "Home", "href": "/", "cta_intent": "other", "target_type": "internal",
                "is_in_nav": True, "is_above_fold_desktop": True, "is_above_fold_mobile": True,
                "dom_debug_selector": "a.nav",
            },
            {
                "text": "Call Now", "href": "tel:+18135550123", "cta_intent": "call", "target_type": "tel",
                "is_in_nav": False, "is_above_fold_desktop": True, "is_above_fold_mobile": True,
                "dom_debug_selector": "a.btn",
            },
        ],
        "forms_detailed_json": [],
        "brand_assets_json": {
            "logo_candidates": [{
                "url": "https://harborrooter.com/img/harbor-logo.png",
                "source": "jsonld_org_logo",
                "priority_score": 120,
                "width": 200,
                "height": 60,
            }],
        },
    }
    contact = {
        "url": "https://harborrooter.com/contact",
        "page_type": "contact",
        "title": "Contact | Harbor Rooter",
        "word_count": 150,
        "text_snippet": "Name Email Phone Message Send Leave this field blank",
        "forms_detailed_json": [],
        "brand_assets_json": {"logo_candidates": []},
    }
    return [home, contact]


def test_crawler_shaped_records_feed_the_pack():
    job = _job(city="Tampa, FL", input_url="https://harborrooter.com/")
    doc = build_evidence_pack(job, _crawler_shaped_pages()).to_dict()

    assert doc["company_name"] == "Harbor Rooter"
    assert doc["company_name_source"] == "jsonld_organization"
    assert doc["logo_url"] == "https://harborrooter.com/img/harbor-logo.png"
    assert doc["logo_source"] == "jsonld_organization"

    cta_map = doc["cta_map"]
    assert cta_map["primary_cta_text"] == "Call Now"
    home_cta = next(c for c in cta_map["cta_candidates"] if c["text"] == "Home")
    assert home_cta["in_nav"] is True
    assert home_cta["above_fold_mobile"] is True

    profile = doc["company_profile"]
    assert profile["hours"]["value"] == "24/7"
    assert profile["address"]["city"] == "Tampa"

    assert doc["contact_form"]["contact_form_detected"] is True
    assert doc["contact_form"]["page_url"] == "https://harborrooter.com/contact"
