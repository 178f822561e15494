# backend/tests/services/test_bridge.py
import httpx
import pytest

from docflow.config import BridgeConfig
from docflow.errors import BridgeError, BridgeMalformedResponse, BridgeNotConfigured
from docflow.services.bridge import BridgeClient

from conftest import BRIDGE_CONFIG


def test_invoke_sends_action_and_secret(fake_bridge):
    file_id = fake_bridge.client().invoke("copy", {"templateId": "tmpl-9", "name": "Edit copy"})

    assert file_id == "drive-file-1"
    body = fake_bridge.requests[0]
    assert body["action"] == "copy"
    assert body["secret"] == "bridge-secret"
    assert body["templateId"] == "tmpl-9"


def test_folder_id_forwarded_for_upload_only(fake_bridge):
    config = BridgeConfig(url=BRIDGE_CONFIG.url, secret=BRIDGE_CONFIG.secret, folder_id="folder-7")
    client = fake_bridge.client(config)

    client.invoke("upload", {"fileName": "a.docx", "contentBase64": "AA=="})
    client.invoke("export", {"fileId": "drive-file-1"})

    assert fake_bridge.requests[0]["folderId"] == "folder-7"
    assert "folderId" not in fake_bridge.requests[1]


@pytest.mark.parametrize("config", [
    BridgeConfig(url=None, secret="s"),
    BridgeConfig(url="https://bridge.test/exec", secret=None),
])
def test_unconfigured_bridge_raises(config, fake_bridge):
    client = fake_bridge.client(config)
    assert not client.is_configured

    with pytest.raises(BridgeNotConfigured) as exc:
        client.invoke("upload", {})

    assert exc.value.message == "Google Bridge not configured in environment"
    assert fake_bridge.requests == []


def test_bridge_error_field_is_surfaced(fake_bridge):
    fake_bridge.responses["upload"] = {"error": "quota exceeded"}

    with pytest.raises(BridgeError) as exc:
        fake_bridge.client().invoke("upload", {})

    assert exc.value.message == "Bridge Error: quota exceeded"


def test_missing_result_field_is_malformed(fake_bridge):
    fake_bridge.responses["export"] = {"status": "ok"}

    with pytest.raises(BridgeMalformedResponse):
        fake_bridge.client().invoke("export", {"fileId": "x"})


def test_non_json_body_is_bridge_error(fake_bridge):
    fake_bridge.responses["copy"] = httpx.Response(502, text="<html>Bad gateway</html>")

    with pytest.raises(BridgeError) as exc:
        fake_bridge.client().invoke("copy", {})

    assert "502" in exc.value.message


def test_timeout_is_bridge_error(fake_bridge):
    fake_bridge.responses["export"] = httpx.ReadTimeout("read timed out")

    with pytest.raises(BridgeError) as exc:
        fake_bridge.client().invoke("export", {"fileId": "x"})

    assert exc.value.message == "Bridge Error: request timed out"


def test_transport_failure_is_bridge_error(fake_bridge):
    fake_bridge.responses["upload"] = httpx.ConnectError("connection refused")

    with pytest.raises(BridgeError) as exc:
        fake_bridge.client().invoke("upload", {})

    assert exc.value.message == "Bridge Error: connection refused"


def test_client_is_built_from_explicit_config():
    client = BridgeClient(BRIDGE_CONFIG)
    assert client.is_configured
    assert client.config.timeout_seconds == 5
