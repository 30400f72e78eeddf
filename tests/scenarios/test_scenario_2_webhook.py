"""Scenario 2: Webhook Trust and Dispatch

This module tests the webhook route end to end:
- A matching secret runs the invalidation callback (200)
- A mismatching secret is rejected before the callback (401)
- A secret sent to a deployment without one is rejected (400)
- A failing callback is reported as a server error (500)
- Each outcome is decided independently for every call
"""

import pytest
from fastapi.testclient import TestClient


def test_trusted_webhook_clears_cache(make_client, make_runtime, page_cache) -> None:
    """Test that a trusted webhook runs the callback.

    Verifies:
    - Status 200 with the dispatched outcome
    - The external page cache was cleared exactly by the callback
    """
    client = make_client(make_runtime())

    response = client.post("/api/webhook", json={"secret": "abc", "type": "api-update"})

    assert response.status_code == 200
    assert response.json() == {"outcome": "dispatched"}
    assert page_cache == {}


def test_wrong_secret_rejected(make_client, make_runtime, page_cache) -> None:
    """Test that a mismatching secret never reaches the callback.

    Verifies:
    - Status 401
    - The page cache is untouched
    """
    client = make_client(make_runtime())

    response = client.post("/api/webhook", json={"secret": "nope"})

    assert response.status_code == 401
    assert response.json() == {"outcome": "secret_mismatch"}
    assert "/home" in page_cache


def test_missing_secret_rejected_when_configured(make_client, make_runtime, page_cache) -> None:
    """Test that omitting the secret counts as a mismatch."""
    client = make_client(make_runtime())

    assert client.post("/api/webhook", json={"type": "api-update"}).status_code == 401
    assert client.post("/api/webhook", content=b"not json").status_code == 401
    assert page_cache


def test_secret_without_configuration(make_client, make_runtime, page_cache) -> None:
    """Test that a secret sent to an open deployment is a client error.

    Verifies:
    - Status 400 with the secret_not_configured outcome
    - The callback is not run
    """
    client = make_client(make_runtime(webhook_secret=None))

    response = client.post("/api/webhook", json={"secret": "X"})

    assert response.status_code == 400
    assert response.json() == {"outcome": "secret_not_configured"}
    assert page_cache


def test_open_deployment_accepts_secretless_calls(make_client, make_runtime, page_cache) -> None:
    client = make_client(make_runtime(webhook_secret=None))

    assert client.post("/api/webhook", json={}).status_code == 200
    assert page_cache == {}


@pytest.mark.parametrize("asynchronous", [False, True])
def test_failing_callback(make_client, make_runtime, asynchronous: bool) -> None:
    """Test that callback failures become a 500 response.

    Verifies:
    - Status 500 with the dispatch_failed outcome
    - The error message is reported
    - The next call is evaluated independently
    """
    attempts = []

    def purge():
        attempts.append(1)
        raise RuntimeError("purge backend down")

    async def purge_async():
        purge()

    client = make_client(make_runtime(webhook_callback=purge_async if asynchronous else purge))

    response = client.post("/api/webhook", json={"secret": "abc"})

    assert response.status_code == 500
    assert response.json()["outcome"] == "dispatch_failed"
    assert "purge backend down" in response.json()["error"]

    assert client.post("/api/webhook", json={"secret": "wrong"}).status_code == 401
    assert attempts == [1]


def test_mount_path_applies_to_webhook(make_client, make_runtime, page_cache) -> None:
    client: TestClient = make_client(make_runtime(mount_path="/cms"))

    assert client.post("/cms/webhook", json={"secret": "abc"}).status_code == 200
    assert page_cache == {}
