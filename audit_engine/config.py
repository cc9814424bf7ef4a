"""
Runner configuration from environment (.env at the project root).

Scoring calibration is not configurable here; it lives as constants in the
stage modules.
"""

import os
from typing import Dict

from dotenv import load_dotenv

from .backlog import BUCKET_CRITICAL, BUCKET_OPPORTUNITY, BUCKET_WARNING, DEFAULT_CAPS, DEFAULT_TOP_ISSUES

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(os.path.join(_PROJECT_ROOT, ".env"))


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        return default


LOG_LEVEL = os.getenv("AUDIT_LOG_LEVEL", "INFO").upper()
OUTPUT_DIR = os.getenv("AUDIT_OUTPUT_DIR", os.path.join(_PROJECT_ROOT, "output"))
TOP_ISSUES_COUNT = _int_env("AUDIT_TOP_ISSUES_COUNT", DEFAULT_TOP_ISSUES)


def backlog_caps() -> Dict[str, int]:
    """Per-bucket backlog caps, env overrides applied."""
    return {
        BUCKET_CRITICAL: _int_env("AUDIT_BACKLOG_CRITICAL_CAP", DEFAULT_CAPS[BUCKET_CRITICAL]),
        BUCKET_WARNING: _int_env("AUDIT_BACKLOG_WARNING_CAP", DEFAULT_CAPS[BUCKET_WARNING]),
        BUCKET_OPPORTUNITY: _int_env("AUDIT_BACKLOG_OPPORTUNITY_CAP", DEFAULT_CAPS[BUCKET_OPPORTUNITY]),
    }
