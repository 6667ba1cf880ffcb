"""Validate tool requests, call the upstream adapter and shape the envelope."""
import json
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from ..errors import (
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
    ValidationKind,
)
from ..models import (
    AgentRequest,
    CrawlRequest,
    ExtractRequest,
    MapRequest,
    ScrapeRequest,
    ToolName,
    ToolResult,
)
from ..utils.logger import get_logger
from .output_extractor import extract_credits, extract_output

logger = get_logger("proxy")

MIN_AGENT_PROMPT_LENGTH = 10

# Tools whose upstream document is merged into the envelope's data as-is
DOCUMENT_TOOLS = {ToolName.SCRAPE, ToolName.CRAWL, ToolName.MAP}


def normalize_urls(value: Union[str, List[str], None]) -> List[str]:
    """Accept a bare URL or a list of URLs; drop empty and blank entries."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    return [url.strip() for url in value if isinstance(url, str) and url.strip()]


def _require_url(url: Optional[str]) -> str:
    url = (url or "").strip()
    if not url:
        raise ValidationError("A URL is required", kind=ValidationKind.MISSING_FIELD, field="url")
    return url


def validate_scrape(request: ScrapeRequest) -> ScrapeRequest:
    if not request.formats:
        raise ValidationError(
            "At least one format is required", kind=ValidationKind.MISSING_FIELD, field="formats"
        )
    return request.model_copy(update={"url": _require_url(request.url)})


def validate_crawl(request: CrawlRequest) -> CrawlRequest:
    return request.model_copy(update={"url": _require_url(request.url)})


def validate_map(request: MapRequest) -> MapRequest:
    search = (request.search or "").strip() or None
    return request.model_copy(update={"url": _require_url(request.url), "search": search})


def validate_extract(request: ExtractRequest) -> ExtractRequest:
    urls = normalize_urls(request.urls)
    if not urls:
        raise ValidationError(
            "At least one URL is required", kind=ValidationKind.MISSING_FIELD, field="urls"
        )
    prompt = (request.prompt or "").strip()
    if not prompt:
        raise ValidationError(
            "A prompt describing what to extract is required",
            kind=ValidationKind.MISSING_FIELD,
            field="prompt",
        )
    return request.model_copy(update={"urls": urls, "prompt": prompt})


def validate_agent(request: AgentRequest) -> AgentRequest:
    prompt = (request.prompt or "").strip()
    if not prompt:
        raise ValidationError(
            "A prompt describing what you want to find is required",
            kind=ValidationKind.MISSING_FIELD,
            field="prompt",
        )
    if len(prompt) < MIN_AGENT_PROMPT_LENGTH:
        raise ValidationError(
            f"The prompt must be at least {MIN_AGENT_PROMPT_LENGTH} characters long",
            kind=ValidationKind.TOO_SHORT,
            field="prompt",
        )
    return request.model_copy(update={"prompt": prompt, "urls": normalize_urls(request.urls)})


def describe_failure(exc: BaseException, tool: ToolName) -> str:
    """Describe an exception without losing structured payloads."""
    if exc.args and isinstance(exc.args[0], (dict, list)):
        return json.dumps(exc.args[0], default=str)
    message = str(exc)
    return message or f"{tool.value.capitalize()} request failed ({type(exc).__name__})"


def build_success_data(tool: ToolName, body: Dict[str, Any], duration: float) -> Dict[str, Any]:
    """Shape an upstream body into the envelope's data field."""
    document: Any = body
    if tool == ToolName.SCRAPE and isinstance(body.get("data"), dict):
        document = body["data"]

    data: Dict[str, Any] = {}
    if tool in DOCUMENT_TOOLS and isinstance(document, dict):
        data.update({key: value for key, value in document.items() if key != "success"})

    data["output"] = extract_output(document)
    data["raw"] = body
    data["duration"] = duration
    data["creditsUsed"] = extract_credits(body)
    return data


async def run_tool(
    tool: ToolName,
    username: str,
    call: Callable[[], Awaitable[Dict[str, Any]]],
) -> Tuple[int, ToolResult]:
    """Invoke an upstream call and wrap the outcome.

    Never raises for upstream failures: they come back as a failed envelope
    with status 500.

    Args:
        tool: Which tool is being proxied
        username: Session subject, for logging
        call: Zero-argument coroutine factory performing the upstream call

    Returns:
        Tuple of (http_status, envelope)
    """
    logger.info(f"[{tool.value}] request from '{username}'")
    started = time.perf_counter()

    try:
        body = await call()
    except UpstreamTimeoutError as e:
        duration = round(time.perf_counter() - started, 3)
        logger.error(f"[{tool.value}] timeout after {duration:.1f}s: {e.message}")
        return 500, ToolResult(
            success=False,
            error=f"Request timeout after {duration:.1f}s: {e.message}",
            duration=duration,
        )
    except UpstreamError as e:
        duration = round(time.perf_counter() - started, 3)
        logger.error(f"[{tool.value}] upstream error after {duration:.1f}s: {e.message}")
        return 500, ToolResult(success=False, error=e.message, duration=duration)
    except Exception as e:
        duration = round(time.perf_counter() - started, 3)
        logger.error(
            f"[{tool.value}] unexpected error after {duration:.1f}s: {e}", exc_info=True
        )
        return 500, ToolResult(
            success=False, error=describe_failure(e, tool), duration=duration
        )

    duration = round(time.perf_counter() - started, 3)
    data = build_success_data(tool, body, duration)
    logger.info(f"[{tool.value}] completed in {duration:.1f}s")
    return 200, ToolResult(
        success=True, data=data, duration=duration, credits_used=data["creditsUsed"]
    )
