"""Tool proxy endpoints: scrape, crawl, map, extract and agent."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..dependencies import get_upstream, require_session
from ..models import (
    AgentRequest,
    CrawlRequest,
    ExtractRequest,
    MapRequest,
    ScrapeRequest,
    ToolName,
    ToolResult,
    UserSession,
)
from ..services import FirecrawlClient
from ..services.tool_proxy import (
    run_tool,
    validate_agent,
    validate_crawl,
    validate_extract,
    validate_map,
    validate_scrape,
)

router = APIRouter(prefix="/api", tags=["tools"])

_RESPONSES = {
    400: {"description": "Missing or invalid fields"},
    401: {"description": "No valid session"},
    500: {"description": "Upstream failure, returned as a failed envelope"},
}


def _respond(status_code: int, result: ToolResult) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=result.to_response())


@router.post("/scrape", responses=_RESPONSES)
async def scrape(
    body: ScrapeRequest,
    session: UserSession = Depends(require_session),
    upstream: FirecrawlClient = Depends(get_upstream),
) -> JSONResponse:
    """Scrape a single page as markdown, HTML or links."""
    request = validate_scrape(body)
    return _respond(*await run_tool(ToolName.SCRAPE, session.subject, lambda: upstream.scrape(request)))


@router.post("/crawl", responses=_RESPONSES)
async def crawl(
    body: CrawlRequest,
    session: UserSession = Depends(require_session),
    upstream: FirecrawlClient = Depends(get_upstream),
) -> JSONResponse:
    """Crawl a site up to ``limit`` pages."""
    request = validate_crawl(body)
    return _respond(*await run_tool(ToolName.CRAWL, session.subject, lambda: upstream.crawl(request)))


@router.post("/map", responses=_RESPONSES)
async def map_site(
    body: MapRequest,
    session: UserSession = Depends(require_session),
    upstream: FirecrawlClient = Depends(get_upstream),
) -> JSONResponse:
    """List the URLs of a site, optionally filtered by a search term."""
    request = validate_map(body)
    return _respond(*await run_tool(ToolName.MAP, session.subject, lambda: upstream.map(request)))


@router.post("/extract", responses=_RESPONSES)
async def extract(
    body: ExtractRequest,
    session: UserSession = Depends(require_session),
    upstream: FirecrawlClient = Depends(get_upstream),
) -> JSONResponse:
    """Extract structured data from one or more URLs."""
    request = validate_extract(body)
    return _respond(*await run_tool(ToolName.EXTRACT, session.subject, lambda: upstream.extract(request)))


@router.post("/agent", responses=_RESPONSES)
async def agent(
    body: AgentRequest,
    session: UserSession = Depends(require_session),
    upstream: FirecrawlClient = Depends(get_upstream),
) -> JSONResponse:
    """Run the research agent. May take up to the configured agent timeout."""
    request = validate_agent(body)
    return _respond(*await run_tool(ToolName.AGENT, session.subject, lambda: upstream.agent(request)))
