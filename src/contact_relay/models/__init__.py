"""
Pydantic data models package.

Contains the forwarded payload schema and the public response models.
"""

from .contact import ErrorResponse, NormalizedPayload, OkResponse

__all__ = [
    "NormalizedPayload",
    "OkResponse",
    "ErrorResponse",
]
