"""
Contact Relay - Contact form → n8n webhook

A FastAPI service that validates contact form submissions, rate limits
callers, signs a short-lived credential and forwards the payload to a
single n8n webhook.
"""

__version__ = "0.1.0"
