"""Request and envelope models for the tool proxy endpoints."""
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class ToolName(str, Enum):
    """Tools proxied to the Firecrawl API."""

    SCRAPE = "scrape"
    CRAWL = "crawl"
    MAP = "map"
    EXTRACT = "extract"
    AGENT = "agent"


class ScrapeFormat(str, Enum):
    """Output formats accepted by the scrape endpoint."""

    MARKDOWN = "markdown"
    HTML = "html"
    RAW_HTML = "rawHtml"
    LINKS = "links"
    SCREENSHOT = "screenshot"
    SUMMARY = "summary"


UrlList = Union[str, List[str], None]


class ScrapeRequest(BaseModel):
    """Request model for scraping a single page."""

    url: Optional[str] = Field(None, description="URL to scrape")
    formats: List[ScrapeFormat] = Field(
        default_factory=lambda: [ScrapeFormat.MARKDOWN],
        description="Formats to return",
    )

    class Config:
        json_schema_extra = {
            "example": {"url": "https://example.com", "formats": ["markdown"]}
        }


class CrawlRequest(BaseModel):
    """Request model for crawling a site."""

    url: Optional[str] = Field(None, description="Start URL of the crawl")
    limit: int = Field(default=10, ge=1, le=1000, description="Maximum pages to crawl")

    class Config:
        json_schema_extra = {"example": {"url": "https://example.com", "limit": 10}}


class MapRequest(BaseModel):
    """Request model for mapping the URLs of a site."""

    url: Optional[str] = Field(None, description="Site to map")
    search: Optional[str] = Field(None, description="Only return URLs matching this term")
    limit: int = Field(default=100, ge=1, le=5000, description="Maximum URLs to return")

    class Config:
        json_schema_extra = {
            "example": {"url": "https://example.com", "search": "docs", "limit": 100}
        }


class ExtractRequest(BaseModel):
    """Request model for structured extraction from one or more URLs."""

    urls: UrlList = Field(None, description="URL or list of URLs")
    prompt: Optional[str] = Field(None, description="What to extract")

    class Config:
        json_schema_extra = {
            "example": {
                "urls": ["https://example.com/pricing"],
                "prompt": "Extract all plan names and monthly prices",
            }
        }


class AgentRequest(BaseModel):
    """Request model for the autonomous research agent."""

    prompt: Optional[str] = Field(None, description="What the agent should find")
    urls: UrlList = Field(None, description="Optional URLs to start from")

    class Config:
        json_schema_extra = {
            "example": {
                "prompt": "Find the founding year and headquarters of Firecrawl",
                "urls": [],
            }
        }


class ToolResult(BaseModel):
    """Uniform envelope returned by every tool endpoint."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    duration: Optional[float] = Field(None, description="Seconds spent upstream")
    credits_used: Optional[int] = Field(None, alias="creditsUsed")

    class Config:
        populate_by_name = True

    def to_response(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, dropping unset top-level fields."""
        payload = self.model_dump(by_alias=True)
        return {key: value for key, value in payload.items() if value is not None}
