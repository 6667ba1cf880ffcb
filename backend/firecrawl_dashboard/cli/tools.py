"""CLI for running dashboard tools against a running API."""
import asyncio
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..config import settings
from ..services import DashboardClient, DashboardClientError, export_result, render_markdown, render_raw
from ..services.result_renderer import render_summary

app = typer.Typer(help="Run Firecrawl tools through the dashboard API.")
console = Console()

ApiUrl = typer.Option(settings.api_url, "--api-url", help="Dashboard API base URL")
Username = typer.Option(..., "--username", "-u", envvar="DASHBOARD_USERNAME", help="Dashboard user")
Password = typer.Option(
    ..., "--password", "-p", envvar="DASHBOARD_PASSWORD", prompt=True, hide_input=True
)
Raw = typer.Option(False, "--raw", help="Print the raw JSON envelope")
Export = typer.Option(None, "--export", help="Also export the rendered result as a PDF into this directory")


async def _signed_in(api_url: str, username: str, password: str) -> DashboardClient:
    client = DashboardClient(api_url=api_url)
    await client.login(username, password)
    return client


def _show(envelope: Dict[str, Any], raw: bool, export: Optional[str], title: str) -> None:
    style = "green" if envelope.get("success") else "red"
    if raw:
        console.print(Syntax(render_raw(envelope), "json", word_wrap=True))
    else:
        console.print(Panel(Markdown(render_markdown(envelope)), title=title, border_style=style))
    console.print(f"[{style}]{render_summary(envelope)}[/{style}]")

    if export:
        path = export_result(envelope, export, title=title)
        console.print(f"[cyan]Exported to[/cyan] {path}")


def _run(
    tool: str,
    payload: Dict[str, Any],
    api_url: str,
    username: str,
    password: str,
    raw: bool,
    export: Optional[str],
) -> None:
    async def run() -> Dict[str, Any]:
        client = await _signed_in(api_url, username, password)
        with console.status(f"[cyan]Running {tool}..."):
            return await client.run_tool(tool, payload)

    try:
        envelope = asyncio.run(run())
    except DashboardClientError as e:
        console.print(f"[red]Error ({e.status_code}): {e.message}[/red]")
        raise typer.Exit(1)

    _show(envelope, raw, export, title=tool.capitalize())
    if not envelope.get("success"):
        raise typer.Exit(1)


@app.command()
def scrape(
    url: str = typer.Argument(..., help="URL to scrape"),
    formats: List[str] = typer.Option(["markdown"], "--format", "-f", help="Output format(s)"),
    api_url: str = ApiUrl,
    username: str = Username,
    password: str = Password,
    raw: bool = Raw,
    export: Optional[str] = Export,
):
    """Scrape a single page."""
    _run("scrape", {"url": url, "formats": formats}, api_url, username, password, raw, export)


@app.command()
def crawl(
    url: str = typer.Argument(..., help="Start URL"),
    limit: int = typer.Option(10, help="Maximum pages"),
    api_url: str = ApiUrl,
    username: str = Username,
    password: str = Password,
    raw: bool = Raw,
    export: Optional[str] = Export,
):
    """Crawl a site."""
    _run("crawl", {"url": url, "limit": limit}, api_url, username, password, raw, export)


@app.command("map")
def map_site(
    url: str = typer.Argument(..., help="Site to map"),
    search: Optional[str] = typer.Option(None, help="Filter URLs by this term"),
    limit: int = typer.Option(100, help="Maximum URLs"),
    api_url: str = ApiUrl,
    username: str = Username,
    password: str = Password,
    raw: bool = Raw,
    export: Optional[str] = Export,
):
    """List the URLs of a site."""
    payload = {"url": url, "search": search, "limit": limit}
    _run("map", payload, api_url, username, password, raw, export)


@app.command()
def extract(
    prompt: str = typer.Argument(..., help="What to extract"),
    urls: List[str] = typer.Option(..., "--url", help="URL to extract from (repeatable)"),
    api_url: str = ApiUrl,
    username: str = Username,
    password: str = Password,
    raw: bool = Raw,
    export: Optional[str] = Export,
):
    """Extract structured data from pages."""
    _run("extract", {"urls": urls, "prompt": prompt}, api_url, username, password, raw, export)


@app.command()
def agent(
    prompt: str = typer.Argument(..., help="What the agent should find"),
    urls: Optional[List[str]] = typer.Option(None, "--url", help="Optional start URL (repeatable)"),
    api_url: str = ApiUrl,
    username: str = Username,
    password: str = Password,
    raw: bool = Raw,
    export: Optional[str] = Export,
):
    """
    Run the research agent. This can take several minutes.

    Examples:

        firecrawl-dashboard agent "Find the pricing tiers of firecrawl.dev" -u admin
    """
    _run("agent", {"prompt": prompt, "urls": urls or None}, api_url, username, password, raw, export)


@app.command()
def users(
    api_url: str = ApiUrl,
    username: str = Username,
    password: str = Password,
):
    """List dashboard users (admin only)."""

    async def run() -> List[Dict[str, Any]]:
        client = await _signed_in(api_url, username, password)
        return await client.list_users()

    try:
        user_list = asyncio.run(run())
    except DashboardClientError as e:
        console.print(f"[red]Error ({e.status_code}): {e.message}[/red]")
        raise typer.Exit(1)

    table = Table(title="Users")
    table.add_column("Username", style="cyan bold")
    table.add_column("Created", style="white")
    for user in user_list:
        table.add_row(user["username"], str(user.get("created_at", "")))
    console.print(table)
    console.print("[yellow]Changes made at runtime are lost when the server restarts.[/yellow]")


if __name__ == "__main__":
    app()
