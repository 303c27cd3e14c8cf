"""
Contact submission pipeline.

Orchestrates, per request:
1. Client identity resolution
2. Admission control (rate limiting)
3. Submission validation
4. Credential minting
5. Webhook delivery

Each failing step is raised as a ContactRelayException carrying the public
response. This is the only place an unexpected fault is caught and turned
into the generic server error.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import structlog

from .credentials import CredentialMinter
from .exceptions import (
    ContactRelayException,
    DownstreamError,
    InternalServerError,
    RateLimitExceededError,
    SubmissionInvalidError,
)
from .forwarder import Delivered, DownstreamRejected, WebhookForwarder
from .identity import resolve_client_identity
from .metrics import MetricsCollector
from .rate_limiter import Denied, FixedWindowRateLimiter
from .validator import Invalid, validate_submission
from ..models.contact import NormalizedPayload

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ContactRequest:
    """The parts of an inbound HTTP request the pipeline needs."""
    body: Any
    forwarded_for: Optional[str] = None
    remote_addr: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None


@dataclass(frozen=True)
class ContactResult:
    """A delivered submission."""
    payload: NormalizedPayload
    headers: Dict[str, str] = field(default_factory=dict)


class ContactPipeline:
    """
    Validate → authorize → forward pipeline for contact submissions.
    """

    def __init__(
        self,
        rate_limiter: FixedWindowRateLimiter,
        minter: CredentialMinter,
        forwarder: WebhookForwarder,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.minter = minter
        self.forwarder = forwarder
        self.metrics = metrics

    async def process(self, request: ContactRequest) -> ContactResult:
        """
        Run one submission through the pipeline.

        Raises:
            RateLimitExceededError: identity is over its quota (429)
            SubmissionInvalidError: body failed validation (400)
            DownstreamError: webhook rejected or was unreachable (500)
            InternalServerError: any other fault (500)
        """
        identity = resolve_client_identity(request.forwarded_for, request.remote_addr)
        log = logger.bind(request_id=request.request_id, client_ip=identity)
        headers: Dict[str, str] = {}

        try:
            decision = await self.rate_limiter.check(identity)
            headers = decision.headers()
            if isinstance(decision, Denied):
                self._record("rate_limited")
                raise RateLimitExceededError(retry_after=decision.retry_after, headers=headers)

            result = validate_submission(
                request.body,
                client_ip=identity,
                header_user_agent=request.user_agent,
            )
            if isinstance(result, Invalid):
                log.info("Contact submission rejected", reasons=list(result.reasons))
                self._record("invalid")
                if self.metrics:
                    self.metrics.record_validation_failure(result.reasons)
                raise SubmissionInvalidError(result.reasons, headers=headers)

            credential = self.minter.mint()

            started = time.perf_counter()
            outcome = await self.forwarder.forward(result.payload, credential)
            elapsed = time.perf_counter() - started

            if isinstance(outcome, Delivered):
                self._record_webhook("delivered", elapsed)
                self._record("delivered")
                log.info("Contact submission delivered", status=outcome.status)
                return ContactResult(payload=result.payload, headers=headers)

            if isinstance(outcome, DownstreamRejected):
                self._record_webhook("rejected", elapsed)
                cause = f"status {outcome.status}"
            else:
                self._record_webhook("transport_failure", elapsed)
                cause = outcome.cause

            log.error("Contact submission not delivered", cause=cause)
            self._record("downstream_error")
            raise DownstreamError(cause=cause, headers=headers)

        except ContactRelayException:
            raise
        except Exception as e:
            log.error(
                "Unexpected error in contact pipeline",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            self._record("server_error")
            raise InternalServerError(headers=headers) from e

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_submission(outcome)

    def _record_webhook(self, outcome: str, duration_seconds: float) -> None:
        if self.metrics:
            self.metrics.record_webhook_request(outcome, duration_seconds)
