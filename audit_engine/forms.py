"""
Contact-form presence.

DOM-detected forms are preferred (contact page first); when the crawler
saw no usable form, a has_form flag or text cues on the contact page
still count, with a low-severity warning recording the weaker method.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .content import ROLE_CONTACT, classify_page_role
from .models import DetectedForm, FormField, PageRecord
from .warning_codes import (
    DataQualityWarning,
    WARN_CONTACT_FORM_DETECTED_VIA_TEXT,
    WARN_CONTACT_FORM_MISSING,
    warn,
)

MAX_FORM_FIELDS = 20

HONEYPOT_PATTERN = re.compile(r"leave this field blank", re.IGNORECASE)
FORM_TEXT_CUES = [
    re.compile(r"\b(your |full )?name\b", re.IGNORECASE),
    re.compile(r"\be-?mail\b", re.IGNORECASE),
    re.compile(r"\bphone\b", re.IGNORECASE),
    re.compile(r"\bmessage\b", re.IGNORECASE),
    re.compile(r"\b(send|submit)\b", re.IGNORECASE),
]


@dataclass
class ContactFormPresence:
    detected: bool = False
    fields_count: int = 0
    fields: List[FormField] = field(default_factory=list)
    detection_source: Optional[str] = None   # dom | dom_has_form | text
    page_url: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "contact_form_detected": self.detected,
            "contact_form_fields_count": self.fields_count,
            "contact_form_fields": [f.to_dict() for f in self.fields],
            "detection_source": self.detection_source,
            "page_url": self.page_url,
        }


def _has_text_cues(text: str) -> bool:
    if HONEYPOT_PATTERN.search(text or ""):
        return True
    return sum(1 for p in FORM_TEXT_CUES if p.search(text or "")) >= 2


def _pick_form(forms: Sequence[DetectedForm]) -> Optional[DetectedForm]:
    for minimum in (2, 1):
        for form in forms:
            if form.fields_count >= minimum:
                return form
    return None


def detect_contact_form(
    pages: Sequence[PageRecord],
    niche: str = "",
) -> Tuple[ContactFormPresence, List[DataQualityWarning]]:
    """
    Detect a contact form across pages.

    Returns:
        (ContactFormPresence, warnings)
    """
    contact_pages = [p for p in pages if classify_page_role(p, niche) == ROLE_CONTACT]
    others = [p for p in pages if p not in contact_pages]
    forms = [f for p in contact_pages + others for f in p.forms]

    form = _pick_form(forms)
    if form:
        fields = list(form.fields[:MAX_FORM_FIELDS])
        return ContactFormPresence(True, form.fields_count, fields, "dom", form.page_url or None), []

    for page in contact_pages:
        if page.has_form:
            return _via_fallback(page, "dom_has_form")
    for page in contact_pages:
        if _has_text_cues(page.text_snippet):
            return _via_fallback(page, "text")

    return ContactFormPresence(), [warn(WARN_CONTACT_FORM_MISSING, "No contact or request form detected")]


def _via_fallback(page: PageRecord, method: str) -> Tuple[ContactFormPresence, List[DataQualityWarning]]:
    presence = ContactFormPresence(True, 0, [], method, page.url)
    return presence, [warn(WARN_CONTACT_FORM_DETECTED_VIA_TEXT, f"Contact form inferred from {method} on {page.url}")]
