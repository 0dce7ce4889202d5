"""
Live Rate Provider

Fetches the latest rate for a currency pair from an HTTP(S) quote source.

The source answers GET {api_base_url}/{FROM} with a JSON document whose
`rates` object maps target currency codes to decimal rates, e.g.

    {"base": "USD", "date": "2024-05-01", "rates": {"RUB": 91.7, "EUR": 0.93}}

Only the `rates` map is read; every other field is ignored.

DESIGN DECISION: The provider raises. Deciding what to do about a failure
(fall back, flag the dashboard) belongs to the converter, which is the only
caller.

`timeout` bounds the whole fetch, retries and waits included, so a dead
source costs at most `timeout` seconds before the fallback is used.
"""

import asyncio
import json
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)

from fintrack.config import get_settings
from fintrack.models.rates import CurrencyPair
from fintrack.services.rates.exceptions import NetworkError, ParseError


class RateProvider:
    """
    HTTP client for the external exchange rate source.

    Transport failures are retried a bounded number of times.
    Malformed answers are not retried: asking again will not fix them.

    Pass `client` to share one connection pool across every fetch; the
    caller that created it closes it. Without one, each fetch opens and
    closes its own client.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_wait: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings().rates
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.timeout_seconds
        self.max_attempts = max_attempts or settings.max_attempts
        self.retry_wait = retry_wait if retry_wait is not None else settings.retry_wait_seconds
        self._transport = transport
        self._client = client

    async def fetch(self, pair: CurrencyPair) -> Decimal:
        """
        Fetch the live rate for `pair`.

        Raises:
            NetworkError: On timeout, transport failure or HTTP error status
            ParseError: If the response is not a usable rate
        """
        try:
            return await asyncio.wait_for(self._fetch_with_client(pair), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise NetworkError(
                pair.key, f"Rate source timeout after {self.timeout}s"
            ) from e

    async def _fetch_with_client(self, pair: CurrencyPair) -> Decimal:
        if self._client is not None:
            return await self._fetch_with_retries(self._client, pair)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await self._fetch_with_retries(client, pair)

    async def _fetch_with_retries(self, client: httpx.AsyncClient, pair: CurrencyPair) -> Decimal:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts) | stop_after_delay(self.timeout),
            wait=wait_exponential(multiplier=self.retry_wait, max=self.retry_wait * 4),
            retry=retry_if_exception_type(NetworkError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._fetch_once(client, pair)

    async def _fetch_once(self, client: httpx.AsyncClient, pair: CurrencyPair) -> Decimal:
        url = f"{self.base_url}/{pair.from_currency}"
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise NetworkError(
                pair.key, f"Rate source timeout after {self.timeout}s"
            ) from e
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                pair.key, f"Rate source error: {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(pair.key, f"Rate source unreachable: {e}") from e

        return self.parse_rate(pair, response.content)

    @staticmethod
    def parse_rate(pair: CurrencyPair, body: bytes) -> Decimal:
        """
        Extract the rate for `pair.to_currency` from a response body.

        Numbers are parsed straight to Decimal so no float rounding
        sneaks into the rate.
        """
        try:
            data = json.loads(body, parse_float=Decimal, parse_int=Decimal)
        except (ValueError, UnicodeDecodeError) as e:
            raise ParseError(pair.key, f"Rate source returned invalid JSON: {e}") from e

        rates = data.get("rates") if isinstance(data, dict) else None
        if not isinstance(rates, dict):
            raise ParseError(pair.key, "Rate source response has no 'rates' map")

        if pair.to_currency not in rates:
            raise ParseError(
                pair.key, f"Rate source has no rate for {pair.to_currency}"
            )

        raw = rates[pair.to_currency]
        if isinstance(raw, bool) or raw is None:
            raise ParseError(pair.key, f"Invalid rate value: {raw!r}")
        try:
            rate = raw if isinstance(raw, Decimal) else Decimal(str(raw))
        except (InvalidOperation, ValueError) as e:
            raise ParseError(pair.key, f"Invalid rate value: {raw!r}") from e

        if not rate.is_finite() or rate <= 0:
            raise ParseError(pair.key, f"Rate must be positive, got {rate}")
        return rate
