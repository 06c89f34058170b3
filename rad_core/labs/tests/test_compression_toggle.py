import pytest

from rad_core.common.security import secret_matches

pytestmark = pytest.mark.django_db

URL = "/api/labs/compression/toggle"
KEY = "test-compression-key"


def test_toggle_with_valid_key_in_body(anon_client, lab):
    res = anon_client.post(URL, {"labId": str(lab.id), "enable": True, "apiKey": KEY}, format="json")
    assert res.status_code == 200, res.content
    assert res.json()["data"]["enableCompression"] is True

    lab.refresh_from_db()
    assert lab.compression_enabled is True
    assert lab.settings["compressionUpdatedBy"] == "api-key"


def test_toggle_with_key_header(anon_client, lab):
    lab.settings = {**lab.settings, "enableCompression": True}
    lab.save(update_fields=["settings"])

    res = anon_client.post(URL, {"labId": str(lab.id), "enable": False}, format="json", HTTP_X_API_KEY=KEY)
    assert res.status_code == 200
    lab.refresh_from_db()
    assert lab.compression_enabled is False


def test_wrong_key_is_401(anon_client, lab):
    res = anon_client.post(URL, {"labId": str(lab.id), "enable": True, "apiKey": "nope"}, format="json")
    assert res.status_code == 401
    assert res.json()["code"] == "invalid_api_key"

    lab.refresh_from_db()
    assert lab.compression_enabled is False


def test_unknown_lab_is_404(anon_client):
    res = anon_client.post(
        URL, {"labId": "00000000-0000-0000-0000-000000000000", "enable": True, "apiKey": KEY}, format="json"
    )
    assert res.status_code == 404


def test_unset_key_disables_endpoint(anon_client, lab, settings):
    settings.RAD_AUTH = {**settings.RAD_AUTH, "LAB_COMPRESSION_API_KEY": ""}
    res = anon_client.post(URL, {"labId": str(lab.id), "enable": True, "apiKey": ""}, format="json")
    assert res.status_code == 401


def test_secret_matches():
    assert secret_matches("abc", "abc")
    assert not secret_matches("abc", "abd")
    assert not secret_matches("", "")
    assert not secret_matches("abc", None)
