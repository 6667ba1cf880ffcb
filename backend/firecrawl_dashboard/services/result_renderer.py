"""Render tool envelopes as markdown for display and export them as PDF."""
import json
import re
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from fpdf import FPDF
from fpdf.enums import XPos, YPos

# Envelope keys that are bookkeeping rather than content
_META_KEYS = {"raw", "duration", "creditsUsed"}


def _fenced_json(value: Any) -> str:
    return "```json\n" + json.dumps(value, indent=2, ensure_ascii=False, default=str) + "\n```"


def _render_links(links: list) -> str:
    lines = []
    for link in links:
        if isinstance(link, str):
            lines.append(f"- {link}")
        elif isinstance(link, dict) and link.get("url"):
            title = link.get("title")
            lines.append(f"- [{title}]({link['url']})" if title else f"- {link['url']}")
        else:
            lines.append(f"- {json.dumps(link, default=str)}")
    return "## Found URLs\n\n" + "\n".join(lines)


def render_markdown(envelope: Optional[Dict[str, Any]]) -> str:
    """Turn a tool envelope into displayable markdown.

    Precedence: agent text output, page markdown, crawled pages, mapped
    links, then the remaining data as fenced JSON.
    """
    if not envelope:
        return ""

    if not envelope.get("success"):
        return f"### Error\n\n{envelope.get('error') or 'Request failed'}"

    data = envelope.get("data")
    if data is None:
        return ""
    if not isinstance(data, dict):
        return str(data)

    output = data.get("output")
    if isinstance(output, str) and output:
        return output

    if isinstance(data.get("markdown"), str) and data["markdown"]:
        return data["markdown"]

    pages = data.get("data")
    if isinstance(pages, list):
        return "\n\n---\n\n".join(
            f"## Page {i}\n\n{(page or {}).get('markdown') or 'No content'}"
            if isinstance(page, dict)
            else f"## Page {i}\n\n{page}"
            for i, page in enumerate(pages, 1)
        )

    links = data.get("links")
    if isinstance(links, list):
        return _render_links(links)

    if output is not None:
        return _fenced_json(output)
    return _fenced_json({key: value for key, value in data.items() if key not in _META_KEYS})


def render_raw(envelope: Optional[Dict[str, Any]]) -> str:
    """Pretty-print an envelope as JSON."""
    return json.dumps(envelope or {}, indent=2, ensure_ascii=False, default=str)


def render_summary(envelope: Optional[Dict[str, Any]]) -> str:
    """One-line status badge text: outcome, duration and credits."""
    if not envelope:
        return ""
    parts = ["Success" if envelope.get("success") else "Error"]
    if envelope.get("duration") is not None:
        parts.append(f"{envelope['duration']:.1f}s")
    if envelope.get("creditsUsed") is not None:
        parts.append(f"{envelope['creditsUsed']} credits")
    return " · ".join(parts)


# Font size per markdown heading level
_HEADING_SIZES = {1: 18, 2: 15, 3: 13}
_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")


def _pdf_text(text: str) -> str:
    # The built-in PDF fonts only cover latin-1
    return text.encode("latin-1", "replace").decode("latin-1")


def _pdf_line(pdf: FPDF, height: float, text: str) -> None:
    pdf.multi_cell(0, height, _pdf_text(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def build_pdf(markdown: str, title: Optional[str] = None) -> FPDF:
    """Lay out rendered markdown on A4 pages.

    Headings, fenced code, horizontal rules and paragraphs are styled;
    other markdown syntax is printed as written.
    """
    pdf = FPDF(format="A4")
    pdf.set_auto_page_break(auto=True, margin=15)
    if title:
        pdf.set_title(title)
    pdf.add_page()

    in_code = False
    for line in markdown.splitlines():
        if line.startswith("```"):
            in_code = not in_code
            continue
        if in_code:
            pdf.set_font("Courier", size=8)
            _pdf_line(pdf, 4, line or " ")
            continue

        stripped = line.strip()
        if not stripped:
            pdf.ln(3)
            continue
        if stripped == "---":
            y = pdf.get_y() + 2
            pdf.line(pdf.l_margin, y, pdf.w - pdf.r_margin, y)
            pdf.ln(5)
            continue

        heading = _HEADING.match(stripped)
        if heading:
            size = _HEADING_SIZES.get(len(heading.group(1)), 11)
            pdf.set_font("Helvetica", style="B", size=size)
            _pdf_line(pdf, size * 0.5, heading.group(2))
            pdf.ln(1)
        else:
            pdf.set_font("Helvetica", size=10)
            _pdf_line(pdf, 5, line)

    return pdf


def export_result(
    envelope: Dict[str, Any],
    directory: Union[str, Path],
    title: Optional[str] = None,
) -> Path:
    """Write the rendered result to ``firecrawl-result-<ms>.pdf``.

    Args:
        envelope: Tool envelope
        directory: Target directory, created if missing
        title: Optional heading placed above the content

    Returns:
        Path of the written file
    """
    directory = Path(directory).expanduser()
    directory.mkdir(parents=True, exist_ok=True)

    content = render_markdown(envelope)
    if title:
        content = f"# {title}\n\n{content}"

    path = directory / f"firecrawl-result-{int(time.time() * 1000)}.pdf"
    build_pdf(content, title=title).output(str(path))
    return path
