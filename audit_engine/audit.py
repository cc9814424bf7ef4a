"""
Audit orchestrator.

Threads one job through every stage:

    pages -> Evidence Pack -> page stats -> UX -> Health Snapshot
                                        \\-> issues -> top issues + Backlog

Pure and synchronous: the same job and pages always give the same three
documents, whatever order the pages arrive in.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .backlog import DEFAULT_TOP_ISSUES, Backlog, build_backlog, select_top_issues
from .content import ordered_pages
from .evidence_pack import EvidencePack, build_evidence_pack
from .health import ensure_health_snapshot, metrics_from_snapshot
from .issues import detect_issues
from .models import AuditJob, Issue, PageRecord, ScreenshotRefs, issues_from_dicts
from .page_stats import PageStats, compute_page_stats
from .schemas import BacklogDoc, EvidencePackDoc, HealthSnapshotDoc, to_document
from .ux import UxAssessment, assess_ux, attach_ux
from .validation import check_evidence_pack, coerce_pages, require_niche

logger = logging.getLogger(__name__)


@dataclass
class AuditResult:
    evidence_pack: EvidencePack
    page_stats: PageStats
    ux: UxAssessment
    health_snapshot: Dict[str, Any]
    top_issues: List[Issue] = field(default_factory=list)
    backlog: Backlog = field(default_factory=Backlog)

    def to_documents(self) -> Dict[str, Dict[str, Any]]:
        """The three output documents, validated through their schemas."""
        return {
            "evidence_pack": to_document(EvidencePackDoc, self.evidence_pack.to_dict()),
            "health_snapshot": to_document(HealthSnapshotDoc, self.health_snapshot),
            "backlog": to_document(BacklogDoc, self.backlog.to_dict()),
        }


def run_audit(
    job: Union[AuditJob, Dict[str, Any]],
    pages: Sequence[Union[PageRecord, Dict[str, Any]]],
    screenshots: Optional[Union[ScreenshotRefs, Dict[str, Any]]] = None,
    raw_issues: Optional[List[Any]] = None,
    already_shown: Optional[Iterable] = None,
    stored_snapshot: Optional[Dict[str, Any]] = None,
    lighthouse_mobile_score: Optional[int] = None,
    top_issues_count: int = DEFAULT_TOP_ISSUES,
    backlog_caps: Optional[Dict[str, int]] = None,
    external_factors: Optional[List[Dict[str, Any]]] = None,
    factors_origin: Optional[str] = None,
) -> AuditResult:
    """
    Run the full audit for one job.

    Args:
        job: Niche (required), city, input URL.
        pages: Crawled page records.
        screenshots: Screenshot references.
        raw_issues: Extra issue candidates from other heuristics.
        already_shown: Findings shown elsewhere in the report; excluded
            from both the top issues and the backlog.
        stored_snapshot: Previously persisted health snapshot.
        lighthouse_mobile_score: Optional upstream mobile score (0-100).
        top_issues_count: Size of the top-issues highlight.
        backlog_caps: Per-bucket caps overriding the defaults.
        external_factors: Local factor list from a stored audit.
        factors_origin: "template" or "legacy" for ``external_factors``.

    Returns:
        AuditResult

    Raises:
        MissingRequiredInputError: the job has no niche.
    """
    job = require_niche(job)
    records, _ = coerce_pages(pages)
    records = ordered_pages(records, job.niche)

    pack = build_evidence_pack(job, records, screenshots)
    for problem in check_evidence_pack(pack.to_dict()):
        logger.warning("Evidence pack check: %s", problem)

    stats = compute_page_stats(
        records, pack,
        lighthouse_mobile_score=lighthouse_mobile_score,
        external_factors=external_factors,
        factors_origin=factors_origin,
    )
    ux = assess_ux(pack, stats)
    stats = attach_ux(stats, ux)

    snapshot = ensure_health_snapshot(stored_snapshot, pack, stats)
    metrics = metrics_from_snapshot(snapshot)

    issues = detect_issues(pack, stats, ux, metrics) + issues_from_dicts(raw_issues or [])
    shown = list(already_shown or [])
    top = select_top_issues(issues, top_issues_count, shown)
    backlog = build_backlog(issues, already_shown=shown + top, caps=backlog_caps)

    logger.info(
        "Audit complete for %s (%s): %d issues, %d top, backlog %s",
        job.input_url or "<no url>", job.niche, len(issues), len(top), backlog.counts,
    )
    return AuditResult(
        evidence_pack=pack,
        page_stats=stats,
        ux=ux,
        health_snapshot=snapshot,
        top_issues=top,
        backlog=backlog,
    )
