"""
Contact form endpoint.

Main endpoint: POST /contact
"""

import uuid
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, Request, Response

from ..core.pipeline import ContactPipeline, ContactRequest
from ..models.contact import ErrorResponse, OkResponse

logger = structlog.get_logger(__name__)

router = APIRouter()


async def get_contact_pipeline(request: Request) -> ContactPipeline:
    """Dependency assembling the pipeline from app state."""
    state = request.app.state
    return ContactPipeline(
        rate_limiter=state.rate_limiter,
        minter=state.credential_minter,
        forwarder=state.forwarder,
        metrics=getattr(state, "metrics", None),
    )


async def read_json_body(request: Request) -> Any:
    """Parsed JSON body, or None when the body is missing or malformed."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return await request.json()
    except ValueError:
        logger.info("Contact body is not valid JSON", size_bytes=len(raw))
        return None


@router.post(
    "/contact",
    response_model=OkResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid submission"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Delivery or server error"},
    },
    summary="Submit contact form",
    description="""
    Validate a contact form submission and relay it to the n8n webhook.

    **Pipeline:**
    1. Rate limiting per client IP (3 requests per 60 seconds)
    2. Spam (honeypot), required field, consent and length checks
    3. Short-lived HS256 credential for the webhook
    4. Single delivery attempt to the webhook
    """,
)
async def submit_contact(
    request: Request,
    response: Response,
    pipeline: ContactPipeline = Depends(get_contact_pipeline),
) -> Dict[str, bool]:
    """
    Relay a contact submission.
    """
    request_id = str(uuid.uuid4())
    body = await read_json_body(request)

    result = await pipeline.process(
        ContactRequest(
            body=body,
            forwarded_for=request.headers.get("x-forwarded-for"),
            remote_addr=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
            request_id=request_id,
        )
    )

    response.headers.update(result.headers)
    return {"ok": True}
