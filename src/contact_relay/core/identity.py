"""
Client identity resolution.

The relay is deployed behind a trusted reverse proxy that appends to
X-Forwarded-For, so the first listed address is the original client.
"""

from typing import Optional

UNKNOWN_IDENTITY = "unknown"


def resolve_client_identity(forwarded_for: Optional[str], remote_addr: Optional[str]) -> str:
    """
    Derive the identity string used for rate limiting and payload metadata.

    Clients with no resolvable address all share the "unknown" bucket.
    """
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    if remote_addr:
        return remote_addr

    return UNKNOWN_IDENTITY
