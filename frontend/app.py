"""Gradio frontend for the Firecrawl dashboard. Talks to the API over HTTP."""
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import gradio as gr
from dotenv import load_dotenv

# Add backend to path for direct imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

load_dotenv()

from firecrawl_dashboard.config import settings
from firecrawl_dashboard.services import (
    DashboardClient,
    DashboardClientError,
    export_result,
    render_markdown,
    render_raw,
)
from firecrawl_dashboard.services.result_renderer import render_summary
from firecrawl_dashboard.services.tool_proxy import MIN_AGENT_PROMPT_LENGTH

custom_css = """
.gradio-container {
    background-color: #0f172a !important;
    color: #F7F7FA !important;
    padding-left: max(0px, calc((100% - 960px) / 2)) !important;
    padding-right: max(0px, calc((100% - 960px) / 2)) !important;
}
.result-box {
    max-height: 600px;
    overflow-y: auto;
}
.status-success { color: #4ade80; font-weight: 600; }
.status-error { color: #f87171; font-weight: 600; }
"""

TOOL_DESCRIPTIONS = {
    "agent": "The agent searches the web on its own. Describe what you want to know; URLs are optional.",
    "scrape": "Extracts the full content of a single page as markdown, HTML or a list of links.",
    "crawl": "Follows links through a site and collects content from sub-pages up to the limit.",
    "map": "Lists the URLs of a site, optionally filtered by a search term.",
    "extract": "Pulls structured data out of one or more pages according to a prompt.",
}

LOGIN_FAILED = "Invalid username or password."


def _client(token: Optional[str]) -> DashboardClient:
    return DashboardClient(api_url=settings.api_url, token=token)


def _status_html(envelope: Dict[str, Any]) -> str:
    css_class = "status-success" if envelope.get("success") else "status-error"
    return f'<span class="{css_class}">{render_summary(envelope)}</span>'


def _split_lines(value: Optional[str]) -> List[str]:
    return [line.strip() for line in (value or "").splitlines() if line.strip()]


async def login(username: str, password: str) -> Tuple:
    """Sign in and reveal the dashboard."""
    client = _client(None)
    try:
        await client.login(username, password)
        me = await client.me()
    except DashboardClientError as e:
        return (
            None,
            gr.update(visible=True),
            gr.update(visible=False),
            gr.update(visible=False),
            e.message if e.status_code == 0 else LOGIN_FAILED,
            "",
        )

    return (
        client.token,
        gr.update(visible=False),
        gr.update(visible=True),
        gr.update(visible=me["is_admin"]),
        "",
        f"Signed in as **{me['username']}**",
    )


def logout() -> Tuple:
    """Forget the token and show the login form again."""
    return (
        None,
        None,
        gr.update(visible=True),
        gr.update(visible=False),
        gr.update(visible=False),
        "",
        "",
        "",
        "",
    )


async def run_tool(token: Optional[str], tool: str, payload: Dict[str, Any]) -> Tuple:
    """Call a tool endpoint and render the envelope."""
    if not token:
        envelope = {"success": False, "error": "Your session has ended. Please sign in again."}
    else:
        try:
            envelope = await _client(token).run_tool(tool, payload)
        except DashboardClientError as e:
            envelope = {"success": False, "error": e.message}
        except Exception as e:
            envelope = {"success": False, "error": f"Request failed: {e}"}

    return envelope, render_markdown(envelope), render_raw(envelope), _status_html(envelope)


async def run_agent(token, prompt: str, urls: str) -> Tuple:
    if len((prompt or "").strip()) < MIN_AGENT_PROMPT_LENGTH:
        envelope = {
            "success": False,
            "error": f"The prompt must be at least {MIN_AGENT_PROMPT_LENGTH} characters long",
        }
        return envelope, render_markdown(envelope), render_raw(envelope), _status_html(envelope)
    return await run_tool(token, "agent", {"prompt": prompt, "urls": _split_lines(urls) or None})


async def run_scrape(token, url: str, fmt: str) -> Tuple:
    return await run_tool(token, "scrape", {"url": url, "formats": [fmt]})


async def run_crawl(token, url: str, limit: float) -> Tuple:
    return await run_tool(token, "crawl", {"url": url, "limit": int(limit)})


async def run_map(token, url: str, search: str, limit: float) -> Tuple:
    return await run_tool(token, "map", {"url": url, "search": search or None, "limit": int(limit)})


async def run_extract(token, urls: str, prompt: str) -> Tuple:
    return await run_tool(token, "extract", {"urls": _split_lines(urls), "prompt": prompt})


def switch_view(mode: str) -> Tuple:
    """Toggle between the formatted and raw JSON views."""
    return gr.update(visible=mode == "formatted"), gr.update(visible=mode == "raw")


def export_pdf(envelope: Optional[Dict[str, Any]]) -> Optional[str]:
    """Write the current result to a PDF offered for download."""
    if not envelope:
        return None
    directory = settings.export_dir or tempfile.gettempdir()
    return str(export_result(envelope, directory, title="Firecrawl Result"))


def _user_rows(users: List[Dict[str, Any]]) -> List[List[str]]:
    return [[user["username"], str(user.get("created_at", ""))] for user in users]


async def refresh_users(token) -> Tuple:
    try:
        users = await _client(token).list_users()
    except DashboardClientError as e:
        return [], f"Error: {e.message}"
    return _user_rows(users), "User changes are kept in memory only and are lost on restart."


async def add_user(token, username: str, password: str) -> Tuple:
    try:
        body = await _client(token).add_user(username, password)
    except DashboardClientError as e:
        rows, _ = await refresh_users(token)
        return rows, f"Error: {e.message}", username, password
    return _user_rows(body["users"]), body.get("message", "User created"), "", ""


async def delete_user(token, username: str) -> Tuple:
    try:
        body = await _client(token).delete_user(username)
    except DashboardClientError as e:
        rows, _ = await refresh_users(token)
        return rows, f"Error: {e.message}"
    return _user_rows(body["users"]), body.get("message", "User deleted")


# Build Gradio interface
with gr.Blocks(title="Firecrawl Dashboard") as demo:
    gr.HTML(f"<style>{custom_css}</style>")
    gr.HTML("<h1>Firecrawl <span style='color: #f97316;'>Dashboard</span></h1>")

    # State
    token_state = gr.State(None)
    envelope_state = gr.State(None)

    with gr.Group(visible=True) as login_group:
        username_input = gr.Textbox(label="Username")
        password_input = gr.Textbox(label="Password", type="password")
        login_btn = gr.Button("Sign in", variant="primary")
        login_error = gr.Markdown("")

    with gr.Column(visible=False) as dashboard:
        with gr.Row():
            whoami = gr.Markdown("")
            logout_btn = gr.Button("Sign out", scale=0)

        with gr.Tabs():
            with gr.Tab("Agent"):
                gr.Markdown(TOOL_DESCRIPTIONS["agent"])
                agent_prompt = gr.Textbox(label="What do you want to find?", lines=4)
                agent_urls = gr.Textbox(label="URLs (optional, one per line)", lines=3)
                agent_btn = gr.Button("Run agent", variant="primary")

            with gr.Tab("Scrape"):
                gr.Markdown(TOOL_DESCRIPTIONS["scrape"])
                scrape_url = gr.Textbox(label="URL", placeholder="https://example.com")
                scrape_format = gr.Dropdown(
                    choices=["markdown", "html", "links", "summary"], value="markdown", label="Format"
                )
                scrape_btn = gr.Button("Scrape", variant="primary")

            with gr.Tab("Crawl"):
                gr.Markdown(TOOL_DESCRIPTIONS["crawl"])
                crawl_url = gr.Textbox(label="Start URL", placeholder="https://example.com")
                crawl_limit = gr.Number(label="Page limit", value=10, precision=0, minimum=1, maximum=1000)
                crawl_btn = gr.Button("Crawl", variant="primary")

            with gr.Tab("Map"):
                gr.Markdown(TOOL_DESCRIPTIONS["map"])
                map_url = gr.Textbox(label="URL", placeholder="https://example.com")
                map_search = gr.Textbox(label="Search term (optional)")
                map_limit = gr.Number(label="URL limit", value=100, precision=0, minimum=1, maximum=5000)
                map_btn = gr.Button("Map", variant="primary")

            with gr.Tab("Extract"):
                gr.Markdown(TOOL_DESCRIPTIONS["extract"])
                extract_urls = gr.Textbox(label="URLs (one per line)", lines=3)
                extract_prompt = gr.Textbox(label="What should be extracted?", lines=3)
                extract_btn = gr.Button("Extract", variant="primary")

            with gr.Tab("Users", visible=False) as users_tab:
                users_table = gr.Dataframe(headers=["Username", "Created"], interactive=False)
                users_message = gr.Markdown("")
                with gr.Row():
                    new_username = gr.Textbox(label="New username")
                    new_password = gr.Textbox(label="New password", type="password")
                    add_user_btn = gr.Button("Add user")
                with gr.Row():
                    delete_username = gr.Textbox(label="Username to delete")
                    delete_user_btn = gr.Button("Delete user", variant="stop")
                refresh_users_btn = gr.Button("Refresh")

        with gr.Group():
            with gr.Row():
                status_badge = gr.HTML("")
                view_mode = gr.Radio(choices=["formatted", "raw"], value="formatted", label="View")
                export_btn = gr.Button("Export PDF", scale=0)
            result_markdown = gr.Markdown("", elem_classes="result-box")
            result_raw = gr.Code("", language="json", visible=False)
            export_file = gr.File(label="Download", interactive=False)

    result_outputs = [envelope_state, result_markdown, result_raw, status_badge]

    login_btn.click(
        fn=login,
        inputs=[username_input, password_input],
        outputs=[token_state, login_group, dashboard, users_tab, login_error, whoami],
    ).then(fn=refresh_users, inputs=[token_state], outputs=[users_table, users_message])

    logout_btn.click(
        fn=logout,
        outputs=[
            token_state,
            envelope_state,
            login_group,
            dashboard,
            users_tab,
            whoami,
            result_markdown,
            result_raw,
            status_badge,
        ],
    )

    agent_btn.click(fn=run_agent, inputs=[token_state, agent_prompt, agent_urls], outputs=result_outputs)
    scrape_btn.click(fn=run_scrape, inputs=[token_state, scrape_url, scrape_format], outputs=result_outputs)
    crawl_btn.click(fn=run_crawl, inputs=[token_state, crawl_url, crawl_limit], outputs=result_outputs)
    map_btn.click(fn=run_map, inputs=[token_state, map_url, map_search, map_limit], outputs=result_outputs)
    extract_btn.click(
        fn=run_extract, inputs=[token_state, extract_urls, extract_prompt], outputs=result_outputs
    )

    view_mode.change(fn=switch_view, inputs=[view_mode], outputs=[result_markdown, result_raw])
    export_btn.click(fn=export_pdf, inputs=[envelope_state], outputs=[export_file])

    refresh_users_btn.click(fn=refresh_users, inputs=[token_state], outputs=[users_table, users_message])
    add_user_btn.click(
        fn=add_user,
        inputs=[token_state, new_username, new_password],
        outputs=[users_table, users_message, new_username, new_password],
    )
    delete_user_btn.click(
        fn=delete_user, inputs=[token_state, delete_username], outputs=[users_table, users_message]
    )


if __name__ == "__main__":
    print(f"[STARTUP] Dashboard API: {settings.api_url}")
    demo.queue()
    demo.launch(
        server_port=int(os.getenv("GRADIO_SERVER_PORT", 7860)),
        server_name="0.0.0.0",
        share=False,
    )
