from __future__ import annotations

from dataclasses import dataclass
from typing import Any

FROZEN_REASON_CODES: frozenset[str] = frozenset(
    {
        "network_unavailable",
        "network_invalid",
        "destination_catalog_unavailable",
        "destination_unknown",
        "mode_unsupported",
        "origin_missing",
        "routing_policy_invalid",
    }
)

# HTTP status used when a reason code crosses the API boundary.
REASON_CODE_HTTP_STATUS: dict[str, int] = {
    "network_unavailable": 503,
    "network_invalid": 503,
    "destination_catalog_unavailable": 503,
    "routing_policy_invalid": 503,
    "destination_unknown": 404,
    "mode_unsupported": 422,
    "origin_missing": 422,
}


@dataclass
class CampusDataError(ValueError):
    reason_code: str
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


def normalize_reason_code(reason_code: str, *, default: str = "network_unavailable") -> str:
    code = str(reason_code or "").strip()
    if code in FROZEN_REASON_CODES:
        return code
    return default


def http_status_for(reason_code: str) -> int:
    return REASON_CODE_HTTP_STATUS.get(normalize_reason_code(reason_code), 503)
