"""REST RemoteStore over ``urllib.request``.

Speaks the classic ``/classes/<ClassName>[/<objectId>]`` + ``/batch`` REST
shape. Every request goes through ``_send`` so tests can stub the wire.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any
from urllib.parse import urlsplit

from record_store import NetworkError, RecordSyncError, ServerError, SyncConfig
from record_store.codec import encode_fields, parse_date
from record_store.log import sync_log

from .remote import FetchResult, RemoteStore, SaveRequest, SaveResult

_RESERVED = ("objectId", "createdAt", "updatedAt", "ACL")


class HttpRemoteStore(RemoteStore):
    def __init__(self, config: SyncConfig | None = None) -> None:
        self.config = config or SyncConfig()
        self.base_url = self.config.server_url.rstrip("/")
        self._base_path = urlsplit(self.base_url).path

    # ---------------------------------------------------------------------
    # Low-level transport
    # ---------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Parse-Application-Id": self.config.application_id,
            "X-Parse-REST-API-Key": self.config.api_key,
        }

    def _send(self, method: str, path: str, body: Any = None) -> Any:
        """Perform one HTTP request and return the decoded JSON response."""
        url = f"{self.base_url}{path}"
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(url, data=data, headers=self._headers(), method=method)
        try:
            with urllib.request.urlopen(req, timeout=self.config.request_timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            raise _server_error(e.code, e.read()) from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            sync_log(f"HTTP {method} {path} failed: {e}")
            raise NetworkError(f"{method} {path}: {e}") from e
        try:
            return json.loads(raw) if raw else {}
        except json.JSONDecodeError as e:
            raise ServerError(f"Malformed response from {method} {path}") from e

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------

    def _class_path(self, class_name: str, object_id: str | None = None) -> str:
        path = f"/classes/{class_name}"
        return f"{path}/{object_id}" if object_id else path

    def _save_body(self, data: dict[str, Any], deleted_keys: list[str], acl: Any) -> dict[str, Any]:
        body = dict(data)
        body.update(encode_fields({}, deleted_keys))
        if acl is not None:
            body["ACL"] = acl.to_dict() if hasattr(acl, "to_dict") else acl
        return body

    def _save_result(self, object_id: str | None, response: dict[str, Any]) -> SaveResult:
        oid = response.get("objectId") or object_id
        if not oid:
            raise ServerError("Save response carried no objectId")
        return SaveResult(
            object_id=oid,
            created_at=parse_date(response.get("createdAt")),
            updated_at=parse_date(response.get("updatedAt") or response.get("createdAt")),
        )

    # ---------------------------------------------------------------------
    # RemoteStore
    # ---------------------------------------------------------------------

    def create_or_update(
        self,
        class_name: str,
        object_id: str | None,
        data: dict[str, Any],
        deleted_keys: list[str],
        acl: Any,
    ) -> SaveResult:
        method = "PUT" if object_id else "POST"
        response = self._send(
            method, self._class_path(class_name, object_id), self._save_body(data, deleted_keys, acl)
        )
        return self._save_result(object_id, response)

    def delete(self, class_name: str, object_id: str) -> None:
        self._send("DELETE", self._class_path(class_name, object_id))

    def fetch(self, class_name: str, object_id: str) -> FetchResult:
        response = self._send("GET", self._class_path(class_name, object_id))
        return FetchResult(
            data={k: v for k, v in response.items() if k not in _RESERVED},
            created_at=parse_date(response.get("createdAt")),
            updated_at=parse_date(response.get("updatedAt")),
            acl=response.get("ACL"),
        )

    def batch_create_or_update(
        self, requests: list[SaveRequest]
    ) -> list[SaveResult | RecordSyncError]:
        if not requests:
            return []
        body = {
            "requests": [
                {
                    "method": "PUT" if r.object_id else "POST",
                    "path": self._base_path + self._class_path(r.class_name, r.object_id),
                    "body": self._save_body(r.data, r.deleted_keys, r.acl),
                }
                for r in requests
            ]
        }
        response = self._send("POST", "/batch", body)
        if not isinstance(response, list) or len(response) != len(requests):
            raise ServerError("Batch response does not match request count")
        results: list[SaveResult | RecordSyncError] = []
        for req, item in zip(requests, response):
            if "error" in item:
                err = item["error"]
                results.append(ServerError(err.get("error", "batch item failed"), code=err.get("code")))
            else:
                results.append(self._save_result(req.object_id, item.get("success", {})))
        return results


def _server_error(status: int, raw: bytes) -> ServerError:
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    message = payload.get("error") or f"HTTP {status}"
    return ServerError(message, code=payload.get("code", status))
