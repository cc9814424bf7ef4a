"""
Site Audit Evidence Engine

Turns crawled page records of a local-business website into three report
inputs: a provenance-tagged Evidence Pack, a six-axis Health Snapshot and a
deduplicated issue Backlog.

Architecture:
    structured_data: JSON-LD flattening (Organization / WebSite / LocalBusiness)
    contacts: Source Merger for phones, emails, address, hours, social links
    identity: business name and logo resolution
    cta: primary call-to-action selection
    content: page roles and service extraction
    forms / trust: contact-form presence and trust evidence
    evidence_pack: Evidence Pack assembly
    page_stats / ux: page statistics and UX sub-scores
    health: six-axis Health Scorer and snapshot versioning
    issues / backlog: issue detection, deduplication and backlog buckets
    audit: end-to-end orchestrator
"""

from .models import (
    ABSENT,
    AuditJob,
    Issue,
    PageRecord,
    Present,
    ScreenshotRefs,
    is_present,
    value_of,
)
from .validation import MissingRequiredInputError
from .warning_codes import DataQualityWarning
from .evidence_pack import EvidencePack, build_evidence_pack
from .health import HealthMetric, build_health_snapshot, ensure_health_snapshot, score
from .backlog import Backlog, build_backlog, canonicalize, dedupe, select_top_issues
from .issues import detect_issues
from .audit import AuditResult, run_audit

__all__ = [
    # models
    "ABSENT",
    "AuditJob",
    "Issue",
    "PageRecord",
    "Present",
    "ScreenshotRefs",
    "is_present",
    "value_of",
    # validation / warnings
    "MissingRequiredInputError",
    "DataQualityWarning",
    # evidence pack
    "EvidencePack",
    "build_evidence_pack",
    # health
    "HealthMetric",
    "build_health_snapshot",
    "ensure_health_snapshot",
    "score",
    # issues / backlog
    "Backlog",
    "build_backlog",
    "canonicalize",
    "dedupe",
    "detect_issues",
    "select_top_issues",
    # orchestrator
    "AuditResult",
    "run_audit",
]
