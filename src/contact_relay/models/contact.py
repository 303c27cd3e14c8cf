"""
Contact relay data models.

- NormalizedPayload: the body forwarded to the webhook, camelCase keys,
  explicit nulls for every unset optional field
- OkResponse / ErrorResponse: the public response contract
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NormalizedPayload(BaseModel):
    """
    Validated, trimmed contact submission plus server-side metadata.

    Serialize with ``to_wire()`` so optional fields come out as null
    instead of being dropped.
    """

    # Required form fields
    name: str
    email: str
    subject: str
    message: str

    # Optional form fields
    company: Optional[str] = None
    phone: Optional[str] = None
    whatsapp_consent: bool = Field(default=False, alias="whatsappConsent")
    privacy_consent: bool = Field(alias="privacyConsent")

    # Metadata
    ip: str
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    language: Optional[str] = None
    timestamp: Optional[str] = None
    created_at: str = Field(alias="createdAt", description="ISO-8601 UTC, assigned by the relay")

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict:
        """JSON-ready dict with camelCase keys and explicit nulls."""
        return self.model_dump(by_alias=True, exclude_none=False)


class OkResponse(BaseModel):
    """Successful delivery response."""

    ok: bool = Field(default=True)


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    """

    ok: bool = Field(default=False)
    error: str = Field(description="Human-readable error message")
