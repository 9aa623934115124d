"""HTTP client for the FokusHub platform REST API.

Every platform call goes through ApiClient, which attaches the bearer token,
encodes the body, and turns non-2xx responses into ApiError carrying whatever
fields the platform returned.
"""

import json
from enum import Enum
from http import HTTPStatus
from typing import Any, Iterable, Optional

import requests

from fokushub.config import get_settings
from fokushub.logging_config import get_logger
from fokushub.services.token_store import StaticTokenStore, TokenStore, mask_token

logger = get_logger(__name__)


class ApiError(Exception):
    """Raised when the platform answers with a non-2xx status.

    Attributes:
        status: HTTP status code
        message: Platform message, or "<status>: <reason>" when it sent none
        payload: Every field of the platform's error body
    """

    def __init__(self, status: int, message: str, payload: Optional[dict] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.payload = dict(payload or {})

    def __getattr__(self, name: str) -> Any:
        # Platform error fields read like attributes, e.g. exc.code
        payload = self.__dict__.get("payload", {})
        if name in payload:
            return payload[name]
        raise AttributeError(name)


class UnsafePathError(ApiError):
    """Raised before sending a request whose path could leave the platform host."""

    def __init__(self, path: str):
        message = f"Refusing to call unsafe path: {path!r}"
        super().__init__(int(HTTPStatus.BAD_REQUEST), message, {"message": message})
        self.path = path


class ApiConnectionError(Exception):
    """Raised when the platform cannot be reached or does not answer in time."""

    def __init__(self, message: str, status: int = HTTPStatus.BAD_GATEWAY):
        super().__init__(message)
        self.message = message
        self.status = int(status)


class UnauthorizedBehavior(str, Enum):
    """What a query does when the platform answers 401."""
    THROW = "throw"
    RETURN_NULL = "return_null"


def is_unauthorized_error(error: Exception) -> bool:
    """Check whether an error came from a 401 response."""
    return isinstance(error, ApiError) and error.status == HTTPStatus.UNAUTHORIZED


def is_safe_path(path: str) -> bool:
    """Check that a path stays on the platform host once joined to the base URL."""
    if not path.startswith("/"):
        return False
    return not any(marker in path for marker in ("@", "//", "://", "\\"))


def _error_payload(response: requests.Response) -> dict:
    """Extract the error body: JSON object, else raw text, else status text."""
    try:
        text = response.text
    except (requests.exceptions.RequestException, UnicodeDecodeError):
        return {"message": response.reason}

    try:
        parsed = json.loads(text)
    except ValueError:
        return {"message": text}

    if isinstance(parsed, dict):
        return parsed
    return {"message": text}


class ApiClient:
    """Client for the platform REST API.

    Usage:
        client = ApiClient("https://fokushub.example", TokenStore("~/.fokushub/token.json"))
        categories = client.get("/api/questionnaire/categories")
    """

    def __init__(
        self,
        base_url: str,
        token_store,
        timeout: float = 20.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Platform base URL without trailing slash
            token_store: Object with get() returning the bearer token or None
            timeout: Seconds before a request is abandoned
            session: requests session to reuse (a new one by default)
        """
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        token = self.token_store.get()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def request(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        data: Optional[dict] = None,
        files: Optional[dict] = None,
        on_401: UnauthorizedBehavior = UnauthorizedBehavior.THROW,
    ) -> Any:
        """Send a request to the platform and decode the answer.

        Args:
            method: HTTP method
            path: Path starting with "/"
            json_body: JSON body; Content-Type is only sent when one is given
            data: Form fields for multipart requests
            files: Files for multipart requests
            on_401: Whether a 401 raises or yields None

        Returns:
            Decoded JSON, raw text for non-JSON bodies, or None for empty bodies

        Raises:
            ApiError: On a non-2xx response
            UnsafePathError: If the path could leave the platform host
            ApiConnectionError: On timeout or connection failure
        """
        if not is_safe_path(path):
            logger.warning(f"Rejected request to unsafe path {path!r}")
            raise UnsafePathError(path)

        url = f"{self.base_url}{path}"
        headers = self._headers()

        logger.debug(
            f"API request {method} {url} "
            f"(token: {mask_token(self.token_store.get())})"
        )

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                json=json_body,
                data=data,
                files=files,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.error(f"Request to {url} timed out after {self.timeout} seconds")
            raise ApiConnectionError("Request timed out", HTTPStatus.GATEWAY_TIMEOUT)
        except requests.exceptions.ConnectionError:
            logger.error(f"Failed to connect to API at {url}")
            raise ApiConnectionError("Failed to connect to API", HTTPStatus.BAD_GATEWAY)

        logger.debug(f"API response {response.status_code} {response.reason} from {url}")

        if on_401 == UnauthorizedBehavior.RETURN_NULL and response.status_code == HTTPStatus.UNAUTHORIZED:
            return None

        if not response.ok:
            payload = _error_payload(response)
            message = payload.get("message") or f"{response.status_code}: {response.reason}"
            logger.warning(f"API error {response.status_code} for {method} {url}: {message}")
            raise ApiError(response.status_code, str(message), payload)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def get(self, path: str, on_401: UnauthorizedBehavior = UnauthorizedBehavior.THROW) -> Any:
        return self.request("GET", path, on_401=on_401)

    def post(self, path: str, body: Any = None) -> Any:
        return self.request("POST", path, json_body=body)

    def put(self, path: str, body: Any = None) -> Any:
        return self.request("PUT", path, json_body=body)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def query(
        self,
        key: Iterable[Any],
        on_401: UnauthorizedBehavior = UnauthorizedBehavior.THROW,
    ) -> Any:
        """GET the resource named by a query key.

        The key's parts are joined with "/", so ("/api/questionnaire/questions", 3)
        reads /api/questionnaire/questions/3.
        """
        path = "/".join(str(part) for part in key)
        return self.get(path, on_401=on_401)

    def upload(
        self,
        path: str,
        file_name: str,
        content: bytes,
        content_type: str,
        fields: Optional[dict] = None,
    ) -> Any:
        """POST a single file as multipart form data under the "file" field."""
        return self.request(
            "POST",
            path,
            data=fields or {},
            files={"file": (file_name, content, content_type)},
        )

    def submit_form(self, path: str, fields: dict) -> Any:
        """POST plain fields as multipart form data."""
        files = {name: (None, str(value)) for name, value in fields.items()}
        return self.request("POST", path, files=files)


def build_api_client(token: Optional[str] = None) -> ApiClient:
    """Create an ApiClient from application settings.

    Args:
        token: Bearer token supplied by the caller; when omitted the
            persisted token store is used

    Returns:
        Configured ApiClient
    """
    settings = get_settings()
    if token:
        store = StaticTokenStore(token)
    else:
        store = TokenStore(settings.token_file)
    return ApiClient(settings.api_base_url, store, timeout=settings.api_timeout_seconds)
