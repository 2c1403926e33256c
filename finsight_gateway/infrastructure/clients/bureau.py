"""Credit bureau HTTP client"""

import httpx
from dataclasses import dataclass
from typing import Any, Dict
from finsight_gateway.config import Settings, settings
from finsight_gateway.domain.models import BureauScore
from finsight_gateway.domain.exceptions import (
    ConfigurationError,
    TransientBureauError,
    PermanentBureauError,
)
from finsight_gateway.infrastructure.observability.metrics import (
    bureau_latency_histogram,
    bureau_failure_counter,
)


@dataclass(frozen=True)
class BureauClientConfig:
    """Everything the bureau call path needs, resolved once at construction"""

    api_url: str
    api_key: str
    timeout_ms: int = 10_000
    max_retries: int = 3
    backoff_base: float = 2.0
    cache_hours: int = 24

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "BureauClientConfig":
        source = source or settings
        return cls(
            api_url=source.bureau_api_url,
            api_key=source.bureau_api_key,
            timeout_ms=source.bureau_timeout_ms,
            max_retries=source.bureau_max_retries,
            backoff_base=source.bureau_backoff_base,
            cache_hours=source.bureau_cache_hours,
        )

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: endpoint URL or API key missing
        """
        if not self.api_url:
            raise ConfigurationError("BUREAU_API_URL environment variable is not configured")
        if not self.api_key:
            raise ConfigurationError("BUREAU_API_KEY environment variable is not configured")


def classify_status_error(response: httpx.Response) -> Exception:
    """
    Map a non-2xx bureau response onto the retry taxonomy.

    - 429 and 5xx: transient
    - any other 4xx: permanent, carrying the bureau's message
    """
    status = response.status_code
    if status == 429 or status >= 500:
        return TransientBureauError(f"Bureau API error: {status}", status_code=status)

    try:
        body = response.json()
        message = body.get("message") if isinstance(body, dict) else None
    except ValueError:
        message = None
    return PermanentBureauError(
        f"Bureau API error: {status} - {message or 'Unknown error'}",
        status_code=status,
    )


def parse_score(data: Dict[str, Any]) -> BureauScore:
    return BureauScore(
        score=int(data["score"]),
        risk_band=str(data["risk_band"]),
        enquiries_6m=int(data["enquiries_6m"]),
        defaults=int(data["defaults"]),
        open_loans=int(data["open_loans"]),
        trade_lines=int(data["trade_lines"]),
    )


class BureauClient:
    """Client for the external credit scoring endpoint - one attempt per call, no retries"""

    def __init__(self, config: BureauClientConfig | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config or BureauClientConfig.from_settings()
        self.timeout = self.config.timeout_ms / 1000
        self._transport = transport

    async def fetch_score(self) -> BureauScore:
        """
        POST an empty JSON body to the bureau and parse the score payload.

        Raises:
            TransientBureauError: network failure, timeout, 5xx or 429
            PermanentBureauError: other 4xx, or a response missing score fields
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                with bureau_latency_histogram.time():
                    response = await client.post(
                        self.config.api_url,
                        json={},
                        headers={"X-API-KEY": self.config.api_key},
                    )
            except httpx.TimeoutException as e:
                bureau_failure_counter.labels(kind="transient").inc()
                raise TransientBureauError(f"Bureau API timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                bureau_failure_counter.labels(kind="transient").inc()
                raise TransientBureauError(f"Bureau API unreachable: {e}") from e

            if response.is_error:
                error = classify_status_error(response)
                kind = "transient" if isinstance(error, TransientBureauError) else "permanent"
                bureau_failure_counter.labels(kind=kind).inc()
                raise error

            try:
                return parse_score(response.json())
            except (KeyError, ValueError, TypeError) as e:
                bureau_failure_counter.labels(kind="permanent").inc()
                raise PermanentBureauError(f"Invalid score data from bureau: {e}") from e
