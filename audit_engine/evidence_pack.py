"""
Evidence Pack builder.

Runs the leaf stages over the crawled pages and assembles the
provenance-tagged Evidence Pack:

    pages -> structured data -> contacts -> identity -> CTA -> services
          -> contact form -> trust -> EvidencePack

Every stage returns ``(result, warnings)``; warnings are concatenated here
in stage order and shipped as ``data_quality_warnings``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from .contacts import CompanyProfile, merge_contacts
from .content import ServiceCatalog, extract_services, find_homepage, ordered_pages
from .cta import CtaMap, build_cta_map
from .forms import ContactFormPresence, detect_contact_form
from .identity import name_candidates, resolve_logo, resolve_name
from .models import ABSENT, AuditJob, Evidence, PageRecord, Present, ScreenshotRefs, source_of, value_of
from .structured_data import StructuredExtract, merge_structured
from .trust import TrustEvidence, collect_trust_evidence, trust_level
from .validation import coerce_pages, require_niche
from .warning_codes import DataQualityWarning, WARN_NAME_FROM_DOMAIN, merge_warnings, warn

logger = logging.getLogger(__name__)

EVIDENCE_PACK_VERSION = "v2"


@dataclass
class EvidencePack:
    job: AuditJob
    company_name: Evidence = ABSENT
    logo: Evidence = ABSENT
    profile: CompanyProfile = field(default_factory=CompanyProfile)
    contact_form: ContactFormPresence = field(default_factory=ContactFormPresence)
    cta_map: CtaMap = field(default_factory=CtaMap)
    services: ServiceCatalog = field(default_factory=ServiceCatalog)
    trust: List[TrustEvidence] = field(default_factory=list)
    structured: StructuredExtract = field(default_factory=StructuredExtract)
    warnings: List[DataQualityWarning] = field(default_factory=list)
    screenshots: ScreenshotRefs = field(default_factory=ScreenshotRefs)
    version: str = EVIDENCE_PACK_VERSION

    @property
    def trust_level(self) -> str:
        return trust_level(self.trust)

    def warning_codes(self) -> List[str]:
        return [w.code for w in self.warnings]

    def to_dict(self) -> Dict[str, Any]:
        logo = value_of(self.logo)
        detected_logo = None
        if logo is not None:
            detected_logo = {
                "url": logo.url,
                "source": self.logo.source,
                "width": logo.width,
                "height": logo.height,
                "priority_score": logo.priority_score,
            }
        name = value_of(self.company_name)
        return {
            "niche": self.job.niche,
            "city": self.job.city or None,
            "input_url": self.job.input_url or None,
            "company_name": name,
            "company_name_source": source_of(self.company_name),
            "company_profile": self.profile.to_dict(name=name),
            "logo_url": logo.url if logo else None,
            "logo_source": source_of(self.logo),
            "contact_form": self.contact_form.to_dict(),
            "cta_map": self.cta_map.to_dict(),
            "services": self.services.to_dict(),
            "trust": {"evidence": [t.to_dict() for t in self.trust], "level": self.trust_level},
            "brand_assets": {"detected_logo": detected_logo},
            "data_quality_warnings": [w.to_dict() for w in self.warnings],
            "screenshots_available": self.screenshots.availability(),
            "version": self.version,
        }


def build_evidence_pack(
    job: Union[AuditJob, Dict[str, Any]],
    pages: Sequence[Union[PageRecord, Dict[str, Any]]],
    screenshots: Optional[Union[ScreenshotRefs, Dict[str, Any]]] = None,
) -> EvidencePack:
    """
    Build the Evidence Pack for one job.

    Args:
        job: Niche (required), city, input URL.
        pages: Crawled page records (dicts are coerced).
        screenshots: Screenshot references; only availability is read.

    Returns:
        EvidencePack

    Raises:
        MissingRequiredInputError: the job has no niche.
    """
    job = require_niche(job)
    records, _ = coerce_pages(pages)
    if not isinstance(screenshots, ScreenshotRefs):
        screenshots = ScreenshotRefs.from_dict(screenshots)

    ordered = ordered_pages(records, job.niche)
    home = find_homepage(ordered)
    structured = merge_structured(ordered)

    profile, contact_warnings = merge_contacts(ordered, structured)

    site_name = (home.site_name if home else "") or next((p.site_name for p in ordered if p.site_name), "")
    fallback_url = job.input_url or (home.url if home else "")
    name, name_source = resolve_name(
        name_candidates(structured, site_name, home.title if home else ""),
        fallback_url,
    )
    name_warnings = []
    if name_source in ("domain_fallback", "default"):
        name_warnings.append(warn(WARN_NAME_FROM_DOMAIN, f"Business name derived from {name_source}: {name}"))

    brand_assets = [b for p in ordered for b in p.brand_assets]
    logo, logo_warnings = resolve_logo(brand_assets, structured)

    cta_map, cta_warnings = build_cta_map(home, [p.display for p in profile.phones])
    services, service_warnings = extract_services(ordered, job.niche, structured)
    contact_form, form_warnings = detect_contact_form(ordered, job.niche)
    trust, trust_warnings = collect_trust_evidence(ordered, home, structured)

    pack = EvidencePack(
        job=job,
        company_name=Present(name, name_source),
        logo=logo,
        profile=profile,
        contact_form=contact_form,
        cta_map=cta_map,
        services=services,
        trust=trust,
        structured=structured,
        warnings=merge_warnings(
            contact_warnings, name_warnings, logo_warnings, cta_warnings,
            service_warnings, form_warnings, trust_warnings,
        ),
        screenshots=screenshots,
    )
    logger.info(
        "Evidence pack for %s: name=%s (%s), %d phones, primary CTA=%s, %d services, %d warnings",
        fallback_url or "<no url>", name, name_source, len(profile.phones),
        cta_map.primary.candidate.text if cta_map.primary else None,
        len(services.featured), len(pack.warnings),
    )
    return pack
