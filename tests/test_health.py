"""
tests/test_health.py -- Integration tests for GET /health and the error envelope.

Covers:
  - 200 with status and version, no authentication required
  - Unrouted paths fall through to the static mount and return a JSON 404
"""

from __future__ import annotations

from auth.gate import AccessPolicy


def test_health_returns_200(api_client):
    client, _ = api_client
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data


def test_health_not_gated_even_when_reads_are(gateway):
    client, _ = gateway(AccessPolicy(require_auth_on_read=True, require_auth_on_write=True))
    assert client.get("/health").status_code == 200


def test_unknown_path_is_json_404(api_client):
    client, _ = api_client
    resp = client.get("/definitely-not-here.txt")
    assert resp.status_code == 404
    assert "message" in resp.json()
