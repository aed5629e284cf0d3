"""Tests for the JSON error envelope."""

import importlib
import warnings

from playsphere.core import exceptions


def test_validation_errors_use_message_envelope(client, auth_token) -> None:
    response = client.post("/api/v1/groups/", json={}, headers=auth_token)

    assert response.status_code == 422
    body = response.json()
    assert body["message"] == "Invalid request"
    assert body["errors"][0]["loc"] == ["body", "name"]


def test_module_imports_without_deprecation_warnings() -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        importlib.reload(exceptions)


def test_storage_errors_render_their_status(client, auth_token) -> None:
    response = client.get("/api/v1/groups/424242", headers=auth_token)

    assert response.status_code == 404
    assert response.json() == {"message": "Group not found"}
