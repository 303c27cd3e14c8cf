"""
Contact submission validation.

Turns the raw JSON body into either a NormalizedPayload or an ordered list of
reasons. Never raises: anything unexpected in the body is reported as a
validation reason, not an exception.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Tuple, Union

from ..models.contact import NormalizedPayload

MAX_MESSAGE_LENGTH = 5000

SPAM_REASON = "spam detected"
CONSENT_REASON = "Privacy consent is required"
LENGTH_REASON = f"Message must be {MAX_MESSAGE_LENGTH} characters or less"

# (body key, label used in the reason)
REQUIRED_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("name", "Name"),
    ("email", "Email"),
    ("subject", "Subject"),
    ("message", "Message"),
)


@dataclass(frozen=True)
class Valid:
    payload: NormalizedPayload


@dataclass(frozen=True)
class Invalid:
    reasons: Tuple[str, ...]

    @property
    def error(self) -> str:
        """Reasons joined for display."""
        return ", ".join(self.reasons)


ValidationResult = Union[Valid, Invalid]


def to_boolean(value: Any) -> bool:
    """
    Coerce a loosely typed consent flag.

    Only boolean True and the string "true" (any case) are true.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() == "true"
    return False


def _clean_optional(value: Any) -> Optional[str]:
    """Trimmed string, or None for absent, blank or non-string values."""
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    return None


def _honeypot_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return bool(value)


def _is_present(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def validate_submission(
    body: Any,
    client_ip: str,
    header_user_agent: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ValidationResult:
    """
    Validate a contact form body.

    Rules, in order: honeypot (short-circuits), required fields, privacy
    consent, message length. A body that is not a JSON object is validated
    as if it were empty.
    """
    fields: Mapping[str, Any] = body if isinstance(body, Mapping) else {}

    if _honeypot_filled(fields.get("honeypot")):
        return Invalid(reasons=(SPAM_REASON,))

    reasons: List[str] = []

    for key, label in REQUIRED_FIELDS:
        if not _is_present(fields.get(key)):
            reasons.append(f"{label} is required")

    if to_boolean(fields.get("privacyConsent")) is not True:
        reasons.append(CONSENT_REASON)

    message = fields.get("message")
    if isinstance(message, str) and len(message) > MAX_MESSAGE_LENGTH:
        reasons.append(LENGTH_REASON)

    if reasons:
        return Invalid(reasons=tuple(reasons))

    created_at = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)

    payload = NormalizedPayload(
        name=fields["name"].strip(),
        email=fields["email"].strip(),
        subject=fields["subject"].strip(),
        message=fields["message"].strip(),
        company=_clean_optional(fields.get("company")),
        phone=_clean_optional(fields.get("phone")),
        whatsapp_consent=to_boolean(fields.get("whatsappConsent")),
        privacy_consent=True,
        ip=client_ip,
        user_agent=_clean_optional(fields.get("userAgent")) or _clean_optional(header_user_agent),
        language=_clean_optional(fields.get("language")),
        timestamp=_clean_optional(fields.get("timestamp")),
        created_at=created_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    )
    return Valid(payload=payload)
