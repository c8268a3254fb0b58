"""Upstream response translation into outbound JSON responses."""

import json
from typing import Any

import httpx

from core.exceptions import INVALID_JSON_MESSAGE, InvalidUpstreamBody
from core.headers import HeaderPolicy
from core.request_types import ProxyResponse

# Statuses that must not carry a body on the wire
NO_BODY_STATUSES = frozenset({204, 304})


class ResponseTranslator:
    """Turn upstream responses and proxy failures into JSON responses."""

    def __init__(self, header_policy: HeaderPolicy) -> None:
        self._headers = header_policy

    def translate(self, raw: httpx.Response) -> ProxyResponse:
        """Re-serialize the upstream JSON body, keeping the upstream status.

        A body that cannot be parsed is replaced by the invalid-JSON sentinel
        payload; the status code is still the upstream's.
        """
        headers = self._headers.filter_outbound(raw.headers)

        if raw.status_code in NO_BODY_STATUSES:
            headers.pop("content-type", None)
            return ProxyResponse(
                status=raw.status_code,
                headers=self._with_cors(headers),
            )

        try:
            parsed = self._parse(raw)
        except InvalidUpstreamBody as e:
            return ProxyResponse(
                status=raw.status_code,
                headers=self._json_headers(headers),
                body=self._dump({"ok": False, "message": str(e)}),
                invalid_body=True,
            )

        return ProxyResponse(
            status=raw.status_code,
            headers=self._json_headers(headers),
            body=self._dump(parsed),
            parsed_json=parsed,
        )

    def error(self, status: int, message: str, **details: Any) -> ProxyResponse:
        """Build a synthesized error response."""
        return self.json(status, {"ok": False, "message": message, **details})

    def json(self, status: int, payload: Any) -> ProxyResponse:
        """Build a JSON response produced by the proxy itself."""
        return ProxyResponse(
            status=status,
            headers=self._json_headers({}),
            body=self._dump(payload),
            parsed_json=payload,
        )

    def _parse(self, raw: httpx.Response) -> Any:
        try:
            return json.loads(raw.content, parse_constant=_reject_constant)
        except ValueError as e:
            raise InvalidUpstreamBody(raw.status_code, INVALID_JSON_MESSAGE) from e

    def _json_headers(self, headers: dict[str, str]) -> dict[str, str]:
        headers = dict(headers)
        headers["content-type"] = "application/json"
        return self._with_cors(headers)

    def _with_cors(self, headers: dict[str, str]) -> dict[str, str]:
        headers.update(self._headers.cors_headers())
        return headers

    @staticmethod
    def _dump(value: Any) -> bytes:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _reject_constant(name: str) -> Any:
    """NaN and Infinity are not JSON."""
    raise ValueError(f"Invalid JSON constant: {name}")
