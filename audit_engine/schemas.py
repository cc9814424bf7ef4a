"""
Pydantic schemas for the three output documents.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Evidence Pack
# ---------------------------------------------------------------------------

class ContactValue(BaseModel):
    value: str
    normalized: str
    source: str


class AddressDoc(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    postal: Optional[str] = None
    country: Optional[str] = None
    raw: Optional[str] = None
    source: str


class HoursDoc(BaseModel):
    value: str
    source: str
    days: Optional[List[str]] = None
    opens: Optional[str] = None
    closes: Optional[str] = None
    raw: Optional[bool] = None


class SocialLinkDoc(BaseModel):
    url: str
    source: str


class CompanyProfileDoc(BaseModel):
    name: Optional[str] = None
    phones: List[ContactValue] = []
    emails: List[ContactValue] = []
    address: Optional[AddressDoc] = None
    hours: Optional[HoursDoc] = None
    social_links: Dict[str, List[SocialLinkDoc]] = {}


class FormFieldDoc(BaseModel):
    name: Optional[str] = None
    label: Optional[str] = None
    required: bool = False
    type_guess: Optional[str] = None


class ContactFormDoc(BaseModel):
    contact_form_detected: bool
    contact_form_fields_count: int
    contact_form_fields: List[FormFieldDoc] = []
    detection_source: Optional[str] = None
    page_url: Optional[str] = None


class CtaDoc(BaseModel):
    text: str
    href: Optional[str] = None
    target: str
    intent: Optional[str] = None
    above_fold: bool
    above_fold_desktop: bool
    above_fold_mobile: bool
    in_nav: bool
    score: int
    source: str
    reason: Optional[str] = None


class CtaMapDoc(BaseModel):
    primary: Optional[CtaDoc] = None
    primary_cta_text: Optional[str] = None
    primary_cta_source: Optional[str] = None
    cta_candidates: List[CtaDoc] = []


class ServiceDoc(BaseModel):
    title: str
    description: Optional[str] = None
    source_page: Optional[str] = None
    source: str


class ServicesDoc(BaseModel):
    featured: List[ServiceDoc] = []
    display_featured: List[ServiceDoc] = []
    other_services: List[str] = []
    service_areas: List[str] = []


class TrustEvidenceDoc(BaseModel):
    type: str
    snippet: str
    source: str


class TrustDoc(BaseModel):
    evidence: List[TrustEvidenceDoc] = []
    level: str


class LogoDoc(BaseModel):
    url: str
    source: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    priority_score: float = 0.0


class BrandAssetsDoc(BaseModel):
    detected_logo: Optional[LogoDoc] = None


class WarningDoc(BaseModel):
    code: str
    severity: str
    message: str


class EvidencePackDoc(BaseModel):
    """Serialized Evidence Pack."""

    niche: str
    city: Optional[str] = None
    input_url: Optional[str] = None
    company_name: Optional[str] = None
    company_name_source: Optional[str] = None
    company_profile: CompanyProfileDoc
    logo_url: Optional[str] = None
    logo_source: Optional[str] = None
    contact_form: ContactFormDoc
    cta_map: CtaMapDoc
    services: ServicesDoc
    trust: TrustDoc
    brand_assets: BrandAssetsDoc
    data_quality_warnings: List[WarningDoc] = []
    screenshots_available: Dict[str, bool] = {}
    version: str


# ---------------------------------------------------------------------------
# Health Snapshot
# ---------------------------------------------------------------------------

class HealthMetricDoc(BaseModel):
    key: str
    label: str
    score: int
    status: str
    text_class: str
    bar_class: str
    note: str


class HealthSnapshotDoc(BaseModel):
    version: str
    title: str
    metrics: List[HealthMetricDoc]


# ---------------------------------------------------------------------------
# Backlog
# ---------------------------------------------------------------------------

class IssueDoc(BaseModel):
    title: str
    impact: str = ""
    fix: str = ""
    severity: str
    category: str = "general"
    source: str = "heuristic"


class BacklogCounts(BaseModel):
    critical: int = 0
    warning: int = 0
    opportunity: int = 0
    total: int = 0


class BacklogDoc(BaseModel):
    counts: BacklogCounts
    critical: List[IssueDoc] = []
    warnings: List[IssueDoc] = []
    opportunities: List[IssueDoc] = []


def to_document(model: type, data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate ``data`` against ``model`` and return the dumped document."""
    return model.model_validate(data).model_dump()
