"""Async client for the Firecrawl HTTP API."""
import asyncio
import json
import time
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings, settings
from ..errors import UpstreamError, UpstreamTimeoutError
from ..models import AgentRequest, CrawlRequest, ExtractRequest, MapRequest, ScrapeRequest
from ..utils.logger import get_logger

logger = get_logger("firecrawl")

# Job states after which polling stops
COMPLETED_STATUSES = {"completed"}
FAILED_STATUSES = {"failed", "cancelled"}


def describe_error_body(body: Any) -> str:
    """Turn an upstream error body into a message without dropping detail.

    The first of ``error``, ``message`` or ``detail`` leads the message; any
    other fields except ``success`` and ``status`` follow it as JSON.
    """
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                rest = {k: v for k, v in body.items() if k not in (key, "success", "status")}
                if rest:
                    return f"{value} {json.dumps(rest, default=str)}"
                return value
    if isinstance(body, (dict, list)):
        return json.dumps(body, default=str)
    return str(body)


class FirecrawlClient:
    """Thin wrapper around the Firecrawl v2 API.

    Crawl, extract and agent calls start an upstream job and then poll it
    until it completes. Polling waits for completion; it never retries a
    failed call.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.firecrawl.dev",
        timeout: float = 60.0,
        poll_interval: float = 2.0,
        agent_timeout: float = 300.0,
        job_timeout: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            api_key: Firecrawl API key
            base_url: API root
            timeout: Per-request timeout in seconds
            poll_interval: Seconds between job status checks
            agent_timeout: Overall deadline for agent jobs in seconds
            job_timeout: Overall deadline for crawl and extract jobs in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.agent_timeout = agent_timeout
        self.job_timeout = job_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "FirecrawlClient":
        config = config or settings
        return cls(
            api_key=config.firecrawl_api_key,
            base_url=config.firecrawl_api_url,
            timeout=config.request_timeout,
            poll_interval=config.agent_poll_interval,
            agent_timeout=config.agent_timeout,
            job_timeout=config.job_timeout,
        )

    async def __aenter__(self):
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Send one request and return the decoded JSON body.

        Raises:
            UpstreamTimeoutError: When the request exceeds the per-request timeout
            UpstreamError: On transport errors, HTTP errors, non-JSON bodies
                and bodies reporting ``success: false``
        """
        if not self._client:
            raise RuntimeError("FirecrawlClient must be used as an async context manager")
        if not self.api_key:
            raise UpstreamError("Firecrawl API key is not configured")

        try:
            response = await self._client.request(method, path, json=payload)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(
                f"Request to {path} hit the {self.timeout:g}s timeout ({type(e).__name__})",
                elapsed=self.timeout,
            )
        except httpx.RequestError as e:
            raise UpstreamError(f"Request to {path} failed: {str(e)}")

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            detail = describe_error_body(body) if body is not None else response.reason_phrase
            raise UpstreamError(f"HTTP {response.status_code}: {detail}")
        if not isinstance(body, dict):
            raise UpstreamError(f"Unexpected response from {path}: {response.text[:200]}")
        if body.get("success") is False:
            raise UpstreamError(describe_error_body(body))

        return body

    async def _wait_for_job(
        self, kind: str, job_id: str, deadline: float, started: Optional[float] = None
    ) -> Dict[str, Any]:
        """Poll ``/v2/{kind}/{job_id}`` until it completes, fails or times out.

        ``deadline`` counts from ``started`` (a ``time.monotonic`` value),
        which defaults to now.
        """
        if started is None:
            started = time.monotonic()

        while True:
            status_body = await self._request("GET", f"/v2/{kind}/{job_id}")
            status = str(status_body.get("status", "")).lower()
            elapsed = time.monotonic() - started

            if status in COMPLETED_STATUSES:
                logger.info(f"Firecrawl {kind} job {job_id} completed in {elapsed:.1f}s")
                return status_body
            if status in FAILED_STATUSES:
                raise UpstreamError(
                    f"Firecrawl {kind} job {status}: {describe_error_body(status_body)}"
                )

            if elapsed + self.poll_interval > deadline:
                raise UpstreamTimeoutError(
                    f"Firecrawl {kind} job {job_id} timeout: not finished after {deadline:g}s "
                    f"(last status: {status or 'unknown'})",
                    elapsed=elapsed,
                )

            logger.debug(f"Firecrawl {kind} job {job_id} is {status or 'pending'} ({elapsed:.0f}s)")
            await asyncio.sleep(self.poll_interval)

    async def _collect_pages(self, status_body: Dict[str, Any]) -> Dict[str, Any]:
        """Follow ``next`` links of a paginated crawl result."""
        pages: List[Any] = list(status_body.get("data") or [])
        next_url = status_body.get("next")
        while next_url:
            page = await self._request("GET", next_url)
            pages.extend(page.get("data") or [])
            next_url = page.get("next")
        result = dict(status_body)
        result["data"] = pages
        result.pop("next", None)
        return result

    async def _start_job(self, kind: str, payload: Dict[str, Any]) -> str:
        body = await self._request("POST", f"/v2/{kind}", payload)
        job_id = body.get("id")
        if not job_id:
            raise UpstreamError(f"Firecrawl {kind} response did not include a job id")
        logger.info(f"Started Firecrawl {kind} job {job_id}")
        return str(job_id)

    async def _run_job(self, kind: str, payload: Dict[str, Any], deadline: float) -> Dict[str, Any]:
        """Start a job and wait for it, with ``deadline`` bounding both steps."""
        started = time.monotonic()

        async def start_and_wait() -> Dict[str, Any]:
            job_id = await self._start_job(kind, payload)
            return await self._wait_for_job(kind, job_id, deadline, started=started)

        try:
            return await asyncio.wait_for(start_and_wait(), timeout=deadline)
        except asyncio.TimeoutError:
            elapsed = time.monotonic() - started
            raise UpstreamTimeoutError(
                f"Firecrawl {kind} job timeout: not finished after {deadline:g}s",
                elapsed=elapsed,
            )

    async def scrape(self, request: ScrapeRequest) -> Dict[str, Any]:
        payload = {
            "url": request.url,
            "formats": [fmt.value for fmt in request.formats],
        }
        return await self._request("POST", "/v2/scrape", payload)

    async def crawl(self, request: CrawlRequest) -> Dict[str, Any]:
        status_body = await self._run_job(
            "crawl", {"url": request.url, "limit": request.limit}, self.job_timeout
        )
        return await self._collect_pages(status_body)

    async def map(self, request: MapRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"url": request.url, "limit": request.limit}
        if request.search:
            payload["search"] = request.search
        return await self._request("POST", "/v2/map", payload)

    async def extract(self, request: ExtractRequest) -> Dict[str, Any]:
        return await self._run_job(
            "extract", {"urls": request.urls, "prompt": request.prompt}, self.job_timeout
        )

    async def agent(self, request: AgentRequest) -> Dict[str, Any]:
        """Run the research agent and wait for its result.

        Raises:
            UpstreamTimeoutError: If the agent has not finished within agent_timeout,
                counting the start request and every poll
            UpstreamError: For any other failure
        """
        payload: Dict[str, Any] = {"prompt": request.prompt}
        if request.urls:
            payload["urls"] = request.urls
        return await self._run_job("agent", payload, self.agent_timeout)
