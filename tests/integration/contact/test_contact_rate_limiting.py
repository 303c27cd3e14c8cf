"""
Integration tests for rate limiting through the API endpoints.
"""

from typing import Any, Dict, List

from fastapi.testclient import TestClient

from src.contact_relay.core.credentials import Credential
from src.contact_relay.core.forwarder import Delivered, ForwardOutcome, WebhookForwarder
from src.contact_relay.models.contact import NormalizedPayload

TOO_MANY = {"ok": False, "error": "Too many requests, please try again later"}


class AcceptingForwarder(WebhookForwarder):
    def __init__(self) -> None:
        super().__init__(url="http://webhook.invalid/contact")
        self.delivered = 0

    async def forward(self, payload: NormalizedPayload, credential: Credential) -> ForwardOutcome:
        self.delivered += 1
        return Delivered(status=200)


def post_as(client: TestClient, ip: str, body: Dict[str, Any]):
    return client.post("/contact", json=body, headers={"X-Forwarded-For": ip})


def make_rapid_requests(client: TestClient, ip: str, body: Dict[str, Any], count: int) -> List[int]:
    """Make multiple rapid requests and return status codes."""
    return [post_as(client, ip, body).status_code for _ in range(count)]


class TestContactRateLimiting:

    def test_fourth_request_is_rejected(self, test_client: TestClient, valid_submission: Dict[str, Any]) -> None:
        forwarder = AcceptingForwarder()
        test_client.app.state.forwarder = forwarder

        assert make_rapid_requests(test_client, "198.51.100.4", valid_submission, 3) == [200, 200, 200]

        response = post_as(test_client, "198.51.100.4", valid_submission)
        assert response.status_code == 429
        assert response.json() == TOO_MANY
        assert forwarder.delivered == 3

    def test_denied_request_never_reaches_validator(self, test_client: TestClient) -> None:
        statuses = make_rapid_requests(test_client, "198.51.100.4", {}, 3)
        assert statuses == [400, 400, 400]

        # Would be a 400 with reasons if validation ran
        response = post_as(test_client, "198.51.100.4", {})
        assert response.status_code == 429
        assert response.json() == TOO_MANY

    def test_retry_after_header(self, test_client: TestClient, valid_submission: Dict[str, Any]) -> None:
        test_client.app.state.forwarder = AcceptingForwarder()
        make_rapid_requests(test_client, "198.51.100.4", valid_submission, 3)

        response = post_as(test_client, "198.51.100.4", valid_submission)

        assert response.status_code == 429
        retry_after = int(response.headers["Retry-After"])
        assert 0 < retry_after <= 60
        assert response.headers["RateLimit-Remaining"] == "0"

    def test_per_identity_isolation(self, test_client: TestClient, valid_submission: Dict[str, Any]) -> None:
        test_client.app.state.forwarder = AcceptingForwarder()
        make_rapid_requests(test_client, "198.51.100.1", valid_submission, 4)

        assert post_as(test_client, "198.51.100.2", valid_submission).status_code == 200
        assert post_as(test_client, "198.51.100.1", valid_submission).status_code == 429

    def test_identity_uses_first_forwarded_address(
        self, test_client: TestClient, valid_submission: Dict[str, Any]
    ) -> None:
        test_client.app.state.forwarder = AcceptingForwarder()
        for proxy in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
            assert post_as(test_client, f"198.51.100.9, {proxy}", valid_submission).status_code == 200

        assert post_as(test_client, "198.51.100.9", valid_submission).status_code == 429

    def test_requests_without_forwarded_header_share_connection_identity(
        self, test_client: TestClient, valid_submission: Dict[str, Any]
    ) -> None:
        test_client.app.state.forwarder = AcceptingForwarder()
        statuses = [test_client.post("/contact", json=valid_submission).status_code for _ in range(4)]
        assert statuses == [200, 200, 200, 429]

    def test_health_is_not_rate_limited(self, test_client: TestClient) -> None:
        make_rapid_requests(test_client, "198.51.100.4", {}, 4)

        for _ in range(10):
            response = test_client.get("/health", headers={"X-Forwarded-For": "198.51.100.4"})
            assert response.status_code == 200
            assert response.json() == {"ok": True}

    def test_each_app_has_its_own_limiter(
        self, test_client: TestClient, test_settings, valid_submission: Dict[str, Any]
    ) -> None:
        from src.contact_relay.main import create_app

        make_rapid_requests(test_client, "198.51.100.4", {}, 4)

        other = create_app(test_settings)
        with TestClient(other) as other_client:
            assert post_as(other_client, "198.51.100.4", {}).status_code == 400
