"""HTTP client for the wedding timeline API."""

import logging
from collections.abc import Sequence

import httpx

from weddingday.config import get_settings
from weddingday.exceptions import (
    ConfigurationError,
    ConflictError,
    PermissionDeniedError,
    ResourceNotFoundError,
    TimelineTransportError,
    ValidationError,
    VersionConflictError,
    WeddingDayError,
)
from weddingday.schemas.envelope import ErrorLocation
from weddingday.schemas.patch import PatchOp, PublishRequest
from weddingday.schemas.timeline import TimelineSnapshot

logger = logging.getLogger(__name__)

_ERRORS_BY_STATUS: dict[int, type[WeddingDayError]] = {
    400: ValidationError,
    403: PermissionDeniedError,
    404: ResourceNotFoundError,
    409: ConflictError,
    422: ValidationError,
}

_CONFIGURATION_CODES = {"CONFIGURATION_ERROR", "INVALID_TIMEZONE", "INVALID_WEDDING_DATE"}


def error_from_response(resp: httpx.Response, base_version: int | None = None) -> WeddingDayError:
    """Rebuild the server's structured error as a local exception."""
    try:
        body = resp.json()
    except ValueError:
        body = {}
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        error = {"code": "INTERNAL_ERROR", "message": resp.text or resp.reason_phrase}

    if resp.status_code == 409 and error.get("code") == "VERSION_CONFLICT":
        snapshot = TimelineSnapshot.model_validate(body) if "version" in body else None
        current_version = body.get("currentVersion", snapshot.version if snapshot else -1)
        return VersionConflictError(
            base_version if base_version is not None else -1, current_version, snapshot
        )

    location = ErrorLocation.model_validate(error["location"]) if error.get("location") else None
    if resp.status_code >= 500:
        cls = ConfigurationError if error.get("code") in _CONFIGURATION_CODES else TimelineTransportError
    else:
        cls = _ERRORS_BY_STATUS.get(resp.status_code, WeddingDayError)
    return cls(
        error.get("message"),
        code=error.get("code"),
        status_code=resp.status_code,
        location=location,
        suggested_fix=error.get("suggestedFix"),
    )


class HttpTimelineClient:
    """Timeline transport over HTTP.

    Maps a 409 response to VersionConflictError carrying the server's
    snapshot, other error bodies to the matching WeddingDayError family, and
    network failures to TimelineTransportError.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        user_id: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = base_url or settings.api_base_url
        self.user_id = user_id
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        if self.user_id:
            return {"X-User-Id": self.user_id}
        return {}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _send(
        self, method: str, url: str, *, json: dict | None = None, base_version: int | None = None
    ) -> dict:
        try:
            async with self._client() as client:
                resp = await client.request(method, url, json=json)
        except httpx.TransportError as e:
            logger.warning(f"Timeline request {method} {url} failed: {e}")
            raise TimelineTransportError(f"Could not reach timeline service: {e}") from e

        if resp.is_error:
            raise error_from_response(resp, base_version)
        return resp.json()

    async def fetch_timeline(self, wedding_id: str) -> TimelineSnapshot:
        """Get the canonical timeline snapshot."""
        data = await self._send("GET", f"/api/weddings/{wedding_id}/timeline")
        return TimelineSnapshot.model_validate(data)

    async def publish(
        self, wedding_id: str, base_version: int, patch_ops: Sequence[PatchOp]
    ) -> TimelineSnapshot:
        """Publish a draft; raises VersionConflictError if base_version is stale."""
        request = PublishRequest(base_version=base_version, patch_ops=list(patch_ops))
        data = await self._send(
            "PUT",
            f"/api/weddings/{wedding_id}/timeline",
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
            base_version=base_version,
        )
        return TimelineSnapshot.model_validate(data)
