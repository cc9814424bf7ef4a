"""
Unit tests for page-role classification and service extraction.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from audit_engine.content import (
    FEATURED_DISPLAY_CAP,
    classify_page_role,
    extract_services,
    find_homepage,
    ordered_pages,
)
from audit_engine.models import PageRecord
from audit_engine.structured_data import StructuredExtract, merge_structured


def _page(url, **overrides):
    base = {"url": url, "word_count": 400}
    base.update(overrides)
    return PageRecord.from_dict(base)


def test_trusted_crawler_label_wins():
    assert classify_page_role(_page("https://acme.com/reach-us", page_type="contact")) == "contact"


def test_roles_from_url_tokens():
    assert classify_page_role(_page("https://acme.com/")) == "home"
    assert classify_page_role(_page("https://acme.com/about-us/")) == "about"
    assert classify_page_role(_page("https://acme.com/service-areas/")) == "locations"
    assert classify_page_role(_page("https://acme.com/privacy-policy")) == "legal"
    assert classify_page_role(_page("https://acme.com/contact-us")) == "contact"


def test_services_page_needs_words_and_vocabulary():
    rich = _page("https://acme.com/drain-cleaning-miami/", word_count=450)
    thin = _page("https://acme.com/drain-cleaning-miami/", word_count=50)
    assert classify_page_role(rich, "plumbing") == "services"
    assert classify_page_role(thin, "plumbing") == "other"
    niche_only = _page("https://acme.com/sewer-jetting/", word_count=450)
    assert classify_page_role(niche_only, "plumbing") == "services"
    assert classify_page_role(niche_only, "dental") == "other"


def test_homepage_and_ordering_ignore_input_order():
    pages = [
        _page("https://acme.com/services"),
        _page("https://acme.com/contact"),
        _page("https://acme.com/"),
        _page("https://acme.com/about"),
    ]
    assert find_homepage(pages).url == "https://acme.com/"
    forward = [p.url for p in ordered_pages(pages)]
    backward = [p.url for p in ordered_pages(list(reversed(pages)))]
    assert forward == backward
    assert forward[:2] == ["https://acme.com/", "https://acme.com/contact"]


def test_homepage_tie_broken_by_url_not_input_order():
    root = _page("https://acme.com/")
    index = _page("https://acme.com/index.html")
    assert find_homepage([root, index]) is root
    assert find_homepage([index, root]) is root

    labeled_a = _page("https://acme.com/home", page_type="home")
    labeled_b = _page("https://acme.com/welcome/", page_type="homepage")
    assert find_homepage([labeled_b, labeled_a]) is labeled_a
    assert find_homepage([labeled_a, labeled_b]) is labeled_a


def test_offer_catalog_beats_headings():
    home = _page(
        "https://acme.com/",
        jsonld_blocks=[{
            "@type": "Plumber",
            "name": "Acme",
            "hasOfferCatalog": {
                "@type": "OfferCatalog",
                "itemListElement": [
                    {"@type": "Offer", "itemOffered": {"@type": "Service", "name": "Drain Cleaning"}},
                    {"@type": "Offer", "itemOffered": {"@type": "Service", "name": "Repiping"}},
                ],
            },
        }],
        h3=["Water Heater Repair"],
    )
    catalog, warnings = extract_services([home], "plumbing", merge_structured([home]))
    assert [s.title for s in catalog.featured] == ["Drain Cleaning", "Repiping"]
    assert catalog.featured[0].source == "jsonld_offer_catalog"
    assert warnings == []


def test_heading_pairs_with_descriptions():
    home = _page(
        "https://acme.com/",
        h3=["Drain Cleaning", "Water Heater Repair", "Our Team"],
        h6=["Fast, camera-guided drain service.", "Same-day repairs.", "Meet us"],
    )
    catalog, _ = extract_services([home], "plumbing", StructuredExtract())
    assert [s.title for s in catalog.featured] == ["Drain Cleaning", "Water Heater Repair"]
    assert catalog.featured[0].description == "Fast, camera-guided drain service."
    assert catalog.featured[0].source == "heading_pairs"


def test_upstream_services_and_other_services():
    home = _page(
        "https://acme.com/",
        services_extracted={
            "featured": [{"title": "Leak Detection", "description": "Find hidden leaks."}, "Sewer Repair"],
            "other_services": ["Leak Detection", "Gas Line Repair"],
        },
    )
    catalog, _ = extract_services([home], "plumbing", StructuredExtract(area_served=["Miami", "Doral"]))
    assert [s.title for s in catalog.featured] == ["Leak Detection", "Sewer Repair"]
    assert catalog.featured[0].source == "extracted_services"
    assert catalog.other_services == ["Gas Line Repair"]
    assert catalog.service_areas == ["Miami", "Doral"]


def test_missing_services_warns():
    catalog, warnings = extract_services([_page("https://acme.com/")], "plumbing", StructuredExtract())
    assert catalog.featured == []
    assert [w.code for w in warnings] == ["WARN_SERVICES_MISSING"]


def test_display_cap():
    titles = [f"{w} Repair" for w in ("Drain", "Toilet", "Faucet", "Sump", "Pipe", "Sewer", "Heater", "Gas")]
    catalog, _ = extract_services([_page("https://acme.com/", h3=titles)], "plumbing", StructuredExtract())
    assert len(catalog.featured) == len(titles)
    assert len(catalog.display_featured) == FEATURED_DISPLAY_CAP
    doc = catalog.to_dict()
    assert len(doc["featured"]) == len(titles)
    assert [s["title"] for s in doc["display_featured"]] == titles[:FEATURED_DISPLAY_CAP]
