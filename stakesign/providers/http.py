"""HTTP provider implementation for stakesign."""

import asyncio
import json
import logging
import re
from typing import Any, Optional, Union

import aiohttp
from aiohttp import ClientTimeout, ClientSession, ClientResponse

from ..constants import (
    DEFAULT_TIMEOUT,
    MAX_RETRIES,
    RETRY_DELAY,
    USER_AGENT,
)
from ..exceptions import (
    ProviderError,
    NetworkError,
    APIError,
    RateLimitError,
    SigningKeyMismatch,
    StatusCheckFailed,
    SubmissionError,
    TimeoutError,
)
from ..network import NetworkContext
from ..providers.base import BaseProvider
from ..types.common import TxId
from ..utils.validation import is_valid_tx_hash, validate_tx_hash

__all__ = ["HTTPProvider"]

logger = logging.getLogger(__name__)

# Ledger rejections that mean the wrong keys signed
_WITNESS_FAILURE = re.compile(
    r"MissingVKeyWitness|InvalidWitness|missing[\w ]{0,30}witness|invalid[\w ]{0,30}witness",
    re.IGNORECASE,
)


class HTTPProvider(BaseProvider):
    """
    HTTP provider base for Cardano relays and APIs.

    GET requests are retried with exponential backoff. POST requests are sent
    exactly once; a submission is never repeated on the caller's behalf.
    """

    # Header carrying ``api_key``, set by subclasses
    auth_header: Optional[str] = None

    def __init__(
        self,
        network: Union[NetworkContext, str],
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[ClientSession] = None,
        proxy: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
        api_key: Optional[str] = None,
        max_retries: int = MAX_RETRIES,
    ) -> None:
        """
        Initialize HTTP provider.

        Args:
            network: Network context or name
            endpoint: Base URL of the API
            timeout: Request timeout in seconds
            session: Existing aiohttp session to use
            proxy: Proxy URL for requests
            headers: Additional headers for requests
            api_key: API key for authenticated endpoints
            max_retries: Attempts per GET request
        """
        super().__init__(network)

        self.endpoint = endpoint.rstrip("/")
        self.timeout = ClientTimeout(total=timeout)
        self.proxy = proxy
        self.max_retries = max(1, max_retries)

        # Setup headers
        self.headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
            **(headers or {}),
        }

        if api_key and self.auth_header:
            self.headers[self.auth_header] = api_key

        # Session management
        self._session = session
        self._owns_session = session is None
        self._connected = False

    async def connect(self) -> None:
        """Initialize HTTP session."""
        if self._session is None:
            connector = aiohttp.TCPConnector(
                limit=100,
                limit_per_host=10,
            )
            self._session = ClientSession(
                connector=connector,
                timeout=self.timeout,
                headers=self.headers,
            )

        self._connected = True
        self._logger.info(f"Connected to {self.endpoint}")

    async def disconnect(self) -> None:
        """Close HTTP session."""
        if self._session and self._owns_session:
            await self._session.close()
            self._session = None

        self._connected = False
        self._logger.info("Disconnected from provider")

    @property
    def is_connected(self) -> bool:
        """Check if provider is connected."""
        return (
            self._connected
            and self._session is not None
            and not self._session.closed
        )

    def _url(self, method: str) -> str:
        if not method.startswith("/"):
            method = f"/{method}"
        return f"{self.endpoint}{method}"

    async def request(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        raw_response: bool = False,
        **kwargs: Any
    ) -> Any:
        """
        Make GET request to API.

        Args:
            method: API endpoint path
            params: Query parameters
            raw_response: Return raw response without parsing
            **kwargs: Additional request arguments

        Returns:
            Parsed JSON response or raw text

        Raises:
            APIError: On a 4xx response (not retried)
            RateLimitError: If still rate limited after all attempts
            TimeoutError: If the last attempt timed out
            NetworkError: If the last attempt failed otherwise
        """
        if not self.is_connected:
            await self.connect()

        url = self._url(method)

        for attempt in range(self.max_retries):
            try:
                response = await self._make_request("GET", url, params=params, **kwargs)

                if raw_response:
                    return await response.text()

                return await self._parse_response(response)

            except (RateLimitError, TimeoutError):
                if attempt == self.max_retries - 1:
                    raise

            except NetworkError:
                if attempt == self.max_retries - 1:
                    raise

            # Exponential backoff
            delay = RETRY_DELAY * (2 ** attempt)
            self._logger.debug(f"Retrying GET {url} in {delay}s")
            await asyncio.sleep(delay)

    async def post(
        self,
        method: str,
        data: Union[str, bytes, dict[str, Any]],
        content_type: str = "application/json",
        **kwargs: Any
    ) -> Any:
        """
        Make a single POST request to API.

        Args:
            method: API endpoint path
            data: Request body data
            content_type: Content type header
            **kwargs: Additional request arguments

        Returns:
            Parsed response data

        Raises:
            ProviderError: If request fails
        """
        if not self.is_connected:
            await self.connect()

        if content_type == "application/json" and isinstance(data, dict):
            data = json.dumps(data)

        response = await self._make_request(
            "POST",
            self._url(method),
            data=data,
            headers={"Content-Type": content_type},
            **kwargs
        )
        return await self._parse_response(response)

    async def _make_request(
        self,
        http_method: str,
        url: str,
        **kwargs: Any
    ) -> ClientResponse:
        """Make actual HTTP request."""
        headers = {**self.headers, **kwargs.pop("headers", {})}

        try:
            self._logger.debug(f"Request: {http_method} {url}")

            async with self._session.request(
                http_method,
                url,
                headers=headers,
                proxy=self.proxy,
                **kwargs
            ) as response:
                self._logger.debug(f"Response: {response.status}")

                if response.status == 429:
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        "Rate limit exceeded",
                        retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                        data=await response.text(),
                    )

                if response.status >= 500:
                    text = await response.text()
                    raise NetworkError(
                        f"Server error {response.status}: {text}",
                        code=response.status,
                        data=text,
                    )

                if response.status >= 400:
                    text = await response.text()
                    raise APIError(
                        f"Client error {response.status}: {text}",
                        code=response.status,
                        data=text,
                    )

                # Need to return response with content read
                await response.read()
                return response

        except asyncio.TimeoutError as e:
            raise TimeoutError(f"{http_method} {url} timed out after {self.timeout.total}s") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Network error: {e}") from e

    async def _parse_response(self, response: ClientResponse) -> Any:
        """Parse response based on content type."""
        content_type = response.headers.get("Content-Type", "")
        text = await response.text()

        if "application/json" in content_type:
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                raise ProviderError(f"Invalid JSON response: {e}") from e

        return text.strip()

    async def _submit(
        self,
        method: str,
        data: Union[bytes, dict[str, Any]],
        content_type: str
    ) -> Any:
        """POST a signed transaction, mapping HTTP failures to SubmissionError."""
        try:
            return await self.post(method, data, content_type=content_type)
        except TimeoutError:
            raise
        except (APIError, NetworkError) as e:
            if e.code is None:
                raise
            body = e.data if isinstance(e.data, str) else str(e.data or "")
            error_class = SigningKeyMismatch if _WITNESS_FAILURE.search(body) else SubmissionError
            self._logger.error(f"Submission rejected with status {e.code}")
            raise error_class(e.code, body) from e

    async def _fetch_status(self, method: str, tx_id: str) -> Optional[Any]:
        """
        GET a status document.

        Returns:
            Parsed response, or None when the relay answers 404

        Raises:
            StatusCheckFailed: On any other failure except timeouts
        """
        try:
            return await self.request(method)
        except TimeoutError:
            raise
        except APIError as e:
            if e.code == 404:
                self._logger.debug(f"Transaction {tx_id} not found yet")
                return None
            raise StatusCheckFailed(tx_id, e.message, code=e.code) from e
        except ProviderError as e:
            raise StatusCheckFailed(tx_id, e.message, code=e.code) from e

    @staticmethod
    def _normalize_tx_id(value: Any) -> TxId:
        """Validate a transaction id returned by a relay."""
        if not isinstance(value, str) or not is_valid_tx_hash(value.strip().strip('"')):
            raise ProviderError(f"Relay returned an invalid transaction id: {value!r}")
        return validate_tx_hash(value.strip().strip('"'))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(network={self.network}, endpoint={self.endpoint})"
