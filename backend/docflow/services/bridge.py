# backend/docflow/services/bridge.py
import time
from typing import Any, Dict, Literal, Optional

import httpx

from ..config import BridgeConfig, settings
from ..errors import BridgeError, BridgeMalformedResponse, BridgeNotConfigured
from ..utils.logging import bridge_logger

BridgeAction = Literal["upload", "copy", "export"]

# Field each action must return on success
RESULT_FIELDS: Dict[str, str] = {
    "upload": "id",
    "copy": "id",
    "export": "base64",
}


class BridgeClient:
    """Thin client for the document-conversion bridge endpoint.

    Every request is a single POST carrying the shared secret and an action
    discriminator. The bridge answers with a JSON object holding either the
    action's result field or an ``error`` message. Requests are bounded by the
    configured timeout and never retried.
    """

    def __init__(self, config: BridgeConfig, transport: Optional[httpx.BaseTransport] = None):
        self.config = config
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def invoke(self, action: BridgeAction, payload: Dict[str, Any]) -> str:
        """Send one action to the bridge and return its result field"""
        if not self.config.is_configured:
            bridge_logger.error("Bridge invoked without configuration", extra={"action": action})
            raise BridgeNotConfigured()

        body = {"action": action, "secret": self.config.secret, **payload}
        if self.config.folder_id and action in ("upload", "copy"):
            body.setdefault("folderId", self.config.folder_id)

        start_time = time.time()
        try:
            with httpx.Client(timeout=self.config.timeout_seconds, transport=self._transport) as client:
                response = client.post(self.config.url, json=body)
        except httpx.TimeoutException as e:
            bridge_logger.error("Bridge request timed out", extra={
                "action": action,
                "timeout_seconds": self.config.timeout_seconds
            })
            raise BridgeError("request timed out") from e
        except httpx.HTTPError as e:
            bridge_logger.error("Bridge request failed", extra={"action": action, "error": str(e)})
            raise BridgeError(str(e)) from e

        try:
            result = response.json()
        except ValueError as e:
            bridge_logger.error("Bridge returned a non-JSON body", extra={
                "action": action,
                "status_code": response.status_code
            })
            raise BridgeError(f"non-JSON response (HTTP {response.status_code})") from e

        if not isinstance(result, dict):
            raise BridgeError(f"unexpected response (HTTP {response.status_code})")

        if result.get("error"):
            bridge_logger.warning("Bridge reported an error", extra={
                "action": action,
                "bridge_error": result["error"]
            })
            raise BridgeError(str(result["error"]))

        field = RESULT_FIELDS[action]
        value = result.get(field)
        if not value:
            bridge_logger.warning("Bridge response missing result field", extra={
                "action": action,
                "field": field,
                "keys": sorted(result.keys())
            })
            raise BridgeMalformedResponse(f"Bridge response for '{action}' is missing '{field}'")

        bridge_logger.info("Bridge call completed", extra={
            "action": action,
            "status_code": response.status_code,
            "execution_time_ms": round((time.time() - start_time) * 1000, 2)
        })
        return value


def get_bridge_client() -> BridgeClient:
    return BridgeClient(settings.bridge)
