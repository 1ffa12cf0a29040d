import httpx
import structlog
from typing import Any, Dict, Mapping, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError as ModelValidationError
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..exceptions import (
    AuthError,
    RateLimitError,
    RemoteError,
    WalletError,
)

# Generic type for Pydantic models
T = TypeVar("T", bound=BaseModel)

ErrorMap = Mapping[int, Type[WalletError]]

logger = structlog.get_logger(__name__)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying request after transport failure",
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


class BaseApiClient:
    """
    Async HTTP client for the wallet service.

    Features:
    - One pooled httpx.AsyncClient, created on first use.
    - Bearer token attached to authenticated calls.
    - Bounded retries for idempotent reads on transport failures only.
    - Every failure mapped onto the wallet exception taxonomy.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        read_attempts: int = 2,
        retry_backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.read_attempts = max(1, read_attempts)
        self.retry_backoff = retry_backoff
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._token: Optional[str] = None

    async def __aenter__(self):
        await self._get_client()
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "User-Agent": "bcwallet-core",
                    "Accept": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def clear_token(self) -> None:
        self._token = None

    @property
    def has_token(self) -> bool:
        return self._token is not None

    def _headers(self, authenticated: bool) -> Dict[str, str]:
        if not authenticated:
            return {}
        if not self._token:
            raise AuthError("Not signed in")
        return {"Authorization": f"Bearer {self._token}"}

    @staticmethod
    def _error_message(response: httpx.Response, default: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict):
            return body.get("error") or body.get("message") or default
        return default

    def _map_status(self, response: httpx.Response, error_map: Optional[ErrorMap]) -> WalletError:
        """Map an error response to a wallet exception, server message intact."""
        status = response.status_code
        message = self._error_message(response, f"HTTP {status} error")
        details = response.text

        if error_map and status in error_map:
            return error_map[status](message, status_code=status, details=details)
        if status in (401, 403):
            return AuthError(message, status_code=status, details=details)
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            return RateLimitError(
                message,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                status_code=status,
                details=details,
            )
        return RemoteError(message, status_code=status, details=details)

    @staticmethod
    def _map_transport_error(exc: httpx.TransportError) -> RemoteError:
        if isinstance(exc, httpx.TimeoutException):
            return RemoteError("Request timed out")
        return RemoteError(f"Failed to reach wallet service: {exc}")

    async def _send(self, method: str, path: str, attempts: int, **kwargs) -> httpx.Response:
        client = await self._get_client()
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self.retry_backoff, max=4),
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                return await client.request(method, path, **kwargs)
        raise RemoteError("Request was not attempted")

    async def _request(
        self,
        method: str,
        path: str,
        response_model: Optional[Type[T]] = None,
        *,
        authenticated: bool = True,
        error_map: Optional[ErrorMap] = None,
        **kwargs: Any,
    ) -> Any:
        """Execute one logical request and decode the JSON body."""
        attempts = self.read_attempts if method == "GET" else 1
        headers = self._headers(authenticated)
        try:
            response = await self._send(method, path, attempts, headers=headers, **kwargs)
        except httpx.TransportError as exc:
            logger.warning("Wallet service unreachable", method=method, path=path, error=str(exc))
            raise self._map_transport_error(exc) from exc

        if response.is_error:
            error = self._map_status(response, error_map)
            logger.info(
                "Wallet service rejected request",
                method=method,
                path=path,
                status_code=response.status_code,
                error_type=type(error).__name__,
            )
            raise error

        if response.status_code == 204:
            return None

        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteError(
                "Unexpected response from wallet service",
                status_code=response.status_code,
                details=response.text,
            ) from exc

        if response_model is None:
            return body
        try:
            return response_model.model_validate(body)
        except ModelValidationError as exc:
            logger.warning("Malformed wallet service payload", path=path, model=response_model.__name__)
            raise RemoteError(
                "Unexpected response from wallet service",
                status_code=response.status_code,
                details=str(exc),
            ) from exc

    async def get(self, path: str, response_model: Optional[Type[T]] = None, **kwargs: Any) -> Any:
        return await self._request("GET", path, response_model, **kwargs)

    async def post(self, path: str, response_model: Optional[Type[T]] = None, **kwargs: Any) -> Any:
        return await self._request("POST", path, response_model, **kwargs)

    async def put(self, path: str, response_model: Optional[Type[T]] = None, **kwargs: Any) -> Any:
        return await self._request("PUT", path, response_model, **kwargs)
