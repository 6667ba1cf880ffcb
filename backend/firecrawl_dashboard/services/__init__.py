"""Services for the application."""
from .credential_store import CredentialStore, parse_credentials
from .authenticator import SessionAuthenticator
from .firecrawl_client import FirecrawlClient
from .output_extractor import extract_credits, extract_output
from .tool_proxy import normalize_urls, run_tool
from .result_renderer import export_result, render_markdown, render_raw
from .dashboard_client import DashboardClient, DashboardClientError

__all__ = [
    "CredentialStore",
    "parse_credentials",
    "SessionAuthenticator",
    "FirecrawlClient",
    "extract_credits",
    "extract_output",
    "normalize_urls",
    "run_tool",
    "export_result",
    "render_markdown",
    "render_raw",
    "DashboardClient",
    "DashboardClientError",
]
