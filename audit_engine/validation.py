"""
Input validation and sanity checks.

The only hard failure is a job without a niche. Everything else (malformed
page records, odd combinations in the finished evidence pack) is surfaced
as a warning string and logged, never raised.
"""

import logging
from typing import Any, Dict, List, Sequence, Tuple, Union

from .models import AuditJob, PageRecord

logger = logging.getLogger(__name__)

MISSING_NICHE_MESSAGE = "cannot generate without required niche field"


class MissingRequiredInputError(ValueError):
    """Required job metadata is absent; the audit cannot be generated."""

    def __init__(self, field_name: str, message: str = ""):
        self.field_name = field_name
        super().__init__(message or f"cannot generate without required {field_name} field")


def require_niche(job: Union[AuditJob, Dict[str, Any], None]) -> AuditJob:
    """
    Return the job as an AuditJob, refusing to continue without a niche.

    Raises:
        MissingRequiredInputError: niche is missing or blank.
    """
    if job is None:
        raise MissingRequiredInputError("niche", MISSING_NICHE_MESSAGE)
    if isinstance(job, dict):
        job = AuditJob.from_dict(job)
    if not (job.niche or "").strip():
        raise MissingRequiredInputError("niche", MISSING_NICHE_MESSAGE)
    return job


def coerce_pages(raw_pages: Sequence[Any]) -> Tuple[List[PageRecord], List[str]]:
    """
    Turn crawler output into PageRecords.

    Returns:
        (pages, warnings). Entries that are neither dicts nor PageRecords,
        or that carry no URL, are skipped with a warning.
    """
    pages: List[PageRecord] = []
    warnings: List[str] = []
    for idx, raw in enumerate(raw_pages or []):
        if isinstance(raw, PageRecord):
            page = raw
        elif isinstance(raw, dict):
            page = PageRecord.from_dict(raw)
        else:
            warnings.append(f"page[{idx}] is {type(raw).__name__}, expected object (skipped)")
            continue
        if not page.url:
            warnings.append(f"page[{idx}] has no url (skipped)")
            continue
        pages.append(page)
    for w in warnings:
        logger.warning("Page input: %s", w)
    return pages, warnings


def check_evidence_pack(pack: Dict[str, Any]) -> List[str]:
    """
    Check a serialized evidence pack for inconsistent states.
    Returns list of warning strings (empty if none).
    """
    warnings = []
    profile = pack.get("company_profile") or {}
    cta_map = pack.get("cta_map") or {}
    primary = cta_map.get("primary")

    if primary and primary.get("intent") == "call" and not profile.get("phones"):
        if not str(primary.get("href") or "").lower().startswith("tel:"):
            warnings.append("primary CTA intent is call but no phone was resolved")
    if pack.get("logo_url") and not pack.get("logo_source"):
        warnings.append("logo_url set without logo_source")
    if pack.get("company_name") and not pack.get("company_name_source"):
        warnings.append("company_name set without company_name_source")
    form = pack.get("contact_form") or {}
    if form.get("contact_form_detected") is False and form.get("contact_form_fields_count"):
        warnings.append("contact form not detected but fields_count > 0")
    return warnings
