#!/usr/bin/env python3
"""
Site Audit Runner

Builds the Evidence Pack, Health Snapshot and Backlog for one crawled site.

Input is a job JSON file:
    {
        "job": {"niche": "plumbing", "city": "Miami, FL", "input_url": "https://..."},
        "pages": [...],
        "screenshots": {"above_fold": "...", "fullpage": "..."},
        "already_shown": [...],          # optional
        "stored_snapshot": {...},        # optional
        "raw_issues": [...],             # optional
        "lighthouse_mobile_score": 72    # optional
    }

Usage:
    python scripts/run_audit.py job.json
    python scripts/run_audit.py job.json --output-dir output/acme
"""

import os
import sys
import json
import argparse
import logging

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from audit_engine import config
from audit_engine.audit import run_audit
from audit_engine.validation import MissingRequiredInputError

logger = logging.getLogger(__name__)

OUTPUT_FILES = {
    "evidence_pack": "evidence_pack.json",
    "health_snapshot": "health_snapshot.json",
    "backlog": "backlog.json",
}


def load_job(filepath: str) -> dict:
    """Load the job file."""
    with open(filepath, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{filepath}: expected a JSON object")
    return data


def save_documents(documents: dict, output_dir: str) -> list:
    """Write each document to its own file. Returns the written paths."""
    os.makedirs(output_dir, exist_ok=True)
    paths = []
    for key, filename in OUTPUT_FILES.items():
        path = os.path.join(output_dir, filename)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(documents[key], f, indent=2, ensure_ascii=False)
        paths.append(path)
    return paths


def main():
    parser = argparse.ArgumentParser(description="Run a site audit from crawled page records")
    parser.add_argument("job_file", help="Path to the job JSON file")
    parser.add_argument(
        "--output-dir",
        default=config.OUTPUT_DIR,
        help="Directory for the output documents (default: AUDIT_OUTPUT_DIR or ./output)",
    )
    parser.add_argument(
        "--top-issues",
        type=int,
        default=config.TOP_ISSUES_COUNT,
        help="Number of top issues to highlight",
    )
    parser.add_argument(
        "--log-level",
        default=config.LOG_LEVEL,
        help="Logging level (default: AUDIT_LOG_LEVEL or INFO)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        data = load_job(args.job_file)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read job file: {e}")
        sys.exit(1)

    try:
        result = run_audit(
            data.get("job"),
            data.get("pages") or [],
            screenshots=data.get("screenshots"),
            raw_issues=data.get("raw_issues"),
            already_shown=data.get("already_shown"),
            stored_snapshot=data.get("stored_snapshot"),
            lighthouse_mobile_score=data.get("lighthouse_mobile_score"),
            top_issues_count=args.top_issues,
            backlog_caps=config.backlog_caps(),
        )
    except MissingRequiredInputError as e:
        logger.error(str(e))
        sys.exit(1)

    paths = save_documents(result.to_documents(), args.output_dir)

    pack = result.evidence_pack
    logger.info("=" * 60)
    logger.info("SITE AUDIT SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Company: {pack.to_dict()['company_name']} ({pack.to_dict()['company_name_source']})")
    for metric in result.health_snapshot["metrics"]:
        logger.info(f"   {metric['label']:<16} {metric['score']:>3}  {metric['status']}")
    logger.info("Top issues:")
    for i, issue in enumerate(result.top_issues, 1):
        logger.info(f"   {i}. [{issue.severity}] {issue.title}")
    logger.info(f"Backlog counts: {result.backlog.counts}")
    for path in paths:
        logger.info(f"Wrote {path}")


if __name__ == "__main__":
    main()
