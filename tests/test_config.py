"""
Unit tests for runner configuration.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from audit_engine import config
from audit_engine.backlog import DEFAULT_CAPS


def test_backlog_caps_default(monkeypatch):
    for name in ("AUDIT_BACKLOG_CRITICAL_CAP", "AUDIT_BACKLOG_WARNING_CAP", "AUDIT_BACKLOG_OPPORTUNITY_CAP"):
        monkeypatch.delenv(name, raising=False)
    assert config.backlog_caps() == DEFAULT_CAPS


def test_backlog_caps_from_env(monkeypatch):
    monkeypatch.setenv("AUDIT_BACKLOG_CRITICAL_CAP", "3")
    monkeypatch.setenv("AUDIT_BACKLOG_WARNING_CAP", "not-a-number")
    monkeypatch.setenv("AUDIT_BACKLOG_OPPORTUNITY_CAP", "-5")
    caps = config.backlog_caps()
    assert caps["critical"] == 3
    assert caps["warning"] == DEFAULT_CAPS["warning"]
    assert caps["opportunity"] == 0
