"""
Deterministic data-quality warning registry.

Every soft gap in the evidence (missing phone, unparseable hours, ...) is
reported as a warning record carrying one of these fixed codes. Report
rendering maps codes to "could not verify" copy; the engine never invents
a value in place of a warning.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List

SEVERITY_HIGH = "high"
SEVERITY_MEDIUM = "medium"
SEVERITY_LOW = "low"

# Contact channels
WARN_PHONE_MISSING = "WARN_PHONE_MISSING"
WARN_EMAIL_MISSING = "WARN_EMAIL_MISSING"

# Address / hours
WARN_ADDRESS_MISSING = "WARN_ADDRESS_MISSING"
WARN_ADDRESS_PARTIAL_MISSING_STREET = "WARN_ADDRESS_PARTIAL_MISSING_STREET"
WARN_ADDRESS_PARTIAL_FROM_TEXT = "WARN_ADDRESS_PARTIAL_FROM_TEXT"
WARN_ADDRESS_BLOB = "WARN_ADDRESS_BLOB"
WARN_HOURS_MISSING = "WARN_HOURS_MISSING"
WARN_HOURS_BLOB = "WARN_HOURS_BLOB"
WARN_HOURS_FROM_TEXT = "WARN_HOURS_FROM_TEXT"

# Identity
WARN_NAME_FROM_DOMAIN = "WARN_NAME_FROM_DOMAIN"
WARN_LOGO_MISSING = "WARN_LOGO_MISSING"
WARN_LOGO_LOW_RES = "WARN_LOGO_LOW_RES"

# Conversion
WARN_CTA_UNCLEAR = "WARN_CTA_UNCLEAR"
WARN_PRIMARY_CTA_NOT_INTENT = "WARN_PRIMARY_CTA_NOT_INTENT"
WARN_CONTACT_FORM_MISSING = "WARN_CONTACT_FORM_MISSING"
WARN_CONTACT_FORM_DETECTED_VIA_TEXT = "WARN_CONTACT_FORM_DETECTED_VIA_TEXT"

# Content / trust
WARN_SERVICES_MISSING = "WARN_SERVICES_MISSING"
WARN_TRUST_HAS_NO_NUMBERS_OR_LICENSE = "WARN_TRUST_HAS_NO_NUMBERS_OR_LICENSE"

# Default severity per code
WARNING_SEVERITY: Dict[str, str] = {
    WARN_PHONE_MISSING: SEVERITY_HIGH,
    WARN_EMAIL_MISSING: SEVERITY_MEDIUM,
    WARN_ADDRESS_MISSING: SEVERITY_MEDIUM,
    WARN_ADDRESS_PARTIAL_MISSING_STREET: SEVERITY_MEDIUM,
    WARN_ADDRESS_PARTIAL_FROM_TEXT: SEVERITY_LOW,
    WARN_ADDRESS_BLOB: SEVERITY_LOW,
    WARN_HOURS_MISSING: SEVERITY_LOW,
    WARN_HOURS_BLOB: SEVERITY_LOW,
    WARN_HOURS_FROM_TEXT: SEVERITY_LOW,
    WARN_NAME_FROM_DOMAIN: SEVERITY_LOW,
    WARN_LOGO_MISSING: SEVERITY_LOW,
    WARN_LOGO_LOW_RES: SEVERITY_LOW,
    WARN_CTA_UNCLEAR: SEVERITY_HIGH,
    WARN_PRIMARY_CTA_NOT_INTENT: SEVERITY_HIGH,
    WARN_CONTACT_FORM_MISSING: SEVERITY_MEDIUM,
    WARN_CONTACT_FORM_DETECTED_VIA_TEXT: SEVERITY_LOW,
    WARN_SERVICES_MISSING: SEVERITY_MEDIUM,
    WARN_TRUST_HAS_NO_NUMBERS_OR_LICENSE: SEVERITY_MEDIUM,
}

ALL_WARNING_CODES = frozenset(WARNING_SEVERITY)


@dataclass(frozen=True)
class DataQualityWarning:
    """A single soft gap found while building the evidence pack."""
    code: str
    severity: str
    message: str

    def to_dict(self) -> Dict:
        return {
            "code": self.code,
            "severity": self.severity,
            "message": self.message,
        }


def warn(code: str, message: str) -> DataQualityWarning:
    """Build a warning record with the registered severity for ``code``."""
    if code not in WARNING_SEVERITY:
        raise KeyError(f"Unregistered warning code: {code}")
    return DataQualityWarning(code=code, severity=WARNING_SEVERITY[code], message=message)


def merge_warnings(*groups: Iterable[DataQualityWarning]) -> List[DataQualityWarning]:
    """Concatenate warning lists, dropping exact repeats (same code and message)."""
    seen = set()
    out: List[DataQualityWarning] = []
    for group in groups:
        for w in group or []:
            key = (w.code, w.message)
            if key in seen:
                continue
            seen.add(key)
            out.append(w)
    return out
