"""Unit tests for the connection routes."""

import pytest
from dishka.integrations.fastapi import FastapiProvider
from fastapi.testclient import TestClient

from faragent.interface.api.app import create_app
from tests.conftest import make_address, make_signature
from tests.di import build_test_container


@pytest.fixture
def client():
    app = create_app(build_test_container(None, FastapiProvider()))
    with TestClient(app) as client:
        yield client


def farcaster_headers(client: TestClient, fid: int = 1234) -> dict:
    attempt_id = client.post("/link/farcaster/sign-in").json()["attempt_id"]
    result = client.post(
        f"/link/farcaster/sign-in/{attempt_id}/callback",
        json={"payload": {"fid": fid, "username": "alice"}},
    ).json()["result"]
    return {"Authorization": f"Bearer {result['access_token']}"}


class TestConnectionRoutes:
    """Tests for /connections."""

    def test_requires_session(self, client):
        response = client.get("/connections")

        assert response.status_code == 401

    def test_lists_farcaster(self, client):
        """A Farcaster account shows up with no wallet."""
        headers = farcaster_headers(client)

        body = client.get("/connections", headers=headers).json()

        assert body["connection"]["farcaster_fid"] == 1234
        assert body["connection"]["wallet_address"] is None

    def test_provision_signer(self, client):
        """The signer endpoint returns an approval URL and stores the signer."""
        headers = farcaster_headers(client)

        response = client.post("/connections/signer", headers=headers)
        connections = client.get("/connections", headers=headers).json()

        assert response.status_code == 200
        assert response.json()["approval_url"]
        assert connections["connection"]["has_signer"] is True

    def test_provision_signer_without_farcaster(self, client):
        """Wallet-only accounts cannot get a signer."""
        challenge = client.post(
            "/link/wallet/challenge", json={"address": make_address(1)}
        ).json()
        wallet = client.post(
            "/link/wallet",
            json={
                "address": challenge["address"],
                "message": challenge["message"],
                "signature": make_signature(1),
            },
        ).json()

        response = client.post(
            "/connections/signer",
            headers={"Authorization": f"Bearer {wallet['access_token']}"},
        )

        assert response.status_code == 400
