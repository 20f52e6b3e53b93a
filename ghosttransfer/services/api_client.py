"""HTTP client for the GhostTransfer media and file-share API."""

import logging

import httpx

from ghosttransfer.config import settings
from ghosttransfer.models.share import ShareRequest, ShareResult

logger = logging.getLogger(__name__)

UPLOAD_FILE_PATH = "/api/media/upload-file/"
GENERATE_URL_PATH = "/api/file-share/generate-url/"


class ApiError(Exception):
    """A failed API call.

    ``field_errors`` carries the JSON object body of an error response (for
    example ``{"password": ["Too short."]}``), or None for transport errors
    and bodies that are not JSON objects.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        field_errors: dict | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.field_errors = field_errors


async def _log_request(request: httpx.Request) -> None:
    logger.info("API Request: %s %s", request.method, request.url.path)


async def _log_response(response: httpx.Response) -> None:
    logger.info("API Response: %s %s", response.status_code, response.request.url.path)


def _error_from_response(resp: httpx.Response) -> ApiError:
    field_errors = None
    try:
        body = resp.json()
        if isinstance(body, dict):
            field_errors = body
    except ValueError:
        pass
    return ApiError(
        f"Request failed with status code {resp.status_code}",
        status_code=resp.status_code,
        field_errors=field_errors,
    )


class GhostTransferClient:
    """Async client. Use as ``async with GhostTransferClient() as client:``."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        public: bool | None = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.public = settings.upload_public if public is None else public
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.request_timeout if timeout is None else timeout,
            transport=transport,
            event_hooks={"request": [_log_request], "response": [_log_response]},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def _post(self, path: str, **kwargs) -> dict:
        try:
            resp = await self.client.post(path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("API Request Error: %s %s", path, exc)
            raise ApiError(str(exc) or exc.__class__.__name__) from exc

        if resp.is_error:
            logger.error("API Response Error: %s %s", resp.status_code, path)
            raise _error_from_response(resp)
        try:
            data = resp.json()
        except ValueError as exc:
            raise ApiError("Invalid JSON in response", status_code=resp.status_code) from exc
        if not isinstance(data, dict):
            raise ApiError("Unexpected response body", status_code=resp.status_code)
        return data

    async def upload_file(
        self,
        filename: str,
        content: bytes,
        content_type: str | None = None,
        public: bool | None = None,
    ) -> dict:
        """Upload a single file. The response carries the stored file ``url``."""
        if public is None:
            public = self.public
        file_tuple = (filename, content, content_type or "application/octet-stream")
        return await self._post(
            UPLOAD_FILE_PATH,
            data={"public": "true" if public else "false"},
            files={"file": file_tuple},
        )

    async def generate_share_url(self, request: ShareRequest) -> ShareResult:
        """Create the share link for already uploaded files and/or a message."""
        payload = request.to_payload()
        logger.info(
            "Generating share URL: %d file(s), message=%s, password=%s, max_views=%s, "
            "expires_at=%s, allowed_ip=%s, timezone=%s",
            len(request.files),
            request.message is not None,
            request.password is not None,
            request.max_views,
            request.expires_at,
            request.allowed_ip,
            request.timezone,
        )
        data = await self._post(GENERATE_URL_PATH, json=payload)
        try:
            return ShareResult.model_validate(data)
        except ValueError as exc:
            raise ApiError("Share response is missing an id") from exc

    async def close(self) -> None:
        await self.client.aclose()
