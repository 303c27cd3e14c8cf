"""
Core business logic components.

This package contains the contact pipeline and its steps:
- Client identity resolution
- Submission validation
- Per-client rate limiting
- Credential minting
- Webhook forwarding
- Metrics collection
"""
