"""Markdown-lite inline renderer for free-text portfolio fields.

Pipeline (order matters):
1. Drop the AI-provenance marker span, keeping its text
2. Flatten block-level tags (h1-h6, p, div) a generator may have injected
3. Escape whatever raw HTML is left
4. Bold, italic, link, inline code
5. Newlines to <br> (last, so earlier patterns still see raw newlines)
"""

import re

from markupsafe import Markup, escape


# Upstream editors wrap AI-added text in this span to colour it
AI_MARKER_PATTERN = re.compile(
    r'<span\s+style\s*=\s*"\s*color\s*:\s*orange\s*;?\s*"\s*>(.*?)</span>',
    re.IGNORECASE | re.DOTALL,
)

_HEADING_PATTERN = re.compile(r"<h[1-6][^>]*>(.*?)</h[1-6]>", re.IGNORECASE | re.DOTALL)
_PARAGRAPH_PATTERN = re.compile(r"<p(?:\s[^>]*)?>(.*?)</p>", re.IGNORECASE | re.DOTALL)
_DIV_PATTERN = re.compile(r"<div[^>]*>(.*?)</div>", re.IGNORECASE | re.DOTALL)
_EXCESS_NEWLINES = re.compile(r"\n{3,}")

_BOLD_STARS = re.compile(r"\*\*(.+?)\*\*")
_BOLD_UNDERSCORES = re.compile(r"(?<!\w)__(.+?)__(?!\w)")
_ITALIC_STAR = re.compile(r"\*(.+?)\*")
_ITALIC_UNDERSCORE = re.compile(r"(?<!\w)_(.+?)_(?!\w)")
_LINK = re.compile(r"\[(.+?)\]\((.+?)\)")
_CODE = re.compile(r"`(.+?)`")

_SAFE_HREF = re.compile(r"^(?:https?:|mailto:|/|#|\.{0,2}/)|^[^:]*$", re.IGNORECASE)

LINK_STYLE = "color: var(--accent-color); text-decoration: underline;"
CODE_STYLE = (
    "background: var(--border-color); padding: 2px 6px; border-radius: 4px; "
    "font-family: monospace; font-size: 0.9em;"
)


def strip_provenance_markers(html: str) -> str:
    """Reduce every AI-provenance marker span to its bare text content.

    Example:
        >>> strip_provenance_markers('a <span style="color:orange">b</span> c')
        'a b c'
    """
    if not html:
        return ""
    return AI_MARKER_PATTERN.sub(r"\1", html)


def strip_block_tags(text: str) -> str:
    """Replace h1-h6/p/div elements with their text and collapse blank runs.

    Each pass unwraps the innermost level, so nested tags are peeled until
    nothing changes.
    """
    previous = None
    while text != previous:
        previous = text
        text = _HEADING_PATTERN.sub(r"\1\n\n", text)
        text = _PARAGRAPH_PATTERN.sub(r"\1\n\n", text)
        text = _DIV_PATTERN.sub(r"\1\n", text)
    return _EXCESS_NEWLINES.sub("\n\n", text)


def _render_link(match: re.Match) -> str:
    label, href = match.group(1), match.group(2).strip()
    # href is already escaped; unescape only the check, not the output
    if not _SAFE_HREF.match(Markup(href).unescape()):
        return label
    return f'<a href="{href}" target="_blank" style="{LINK_STYLE}">{label}</a>'


def render_markdown_lite(text: str | None) -> Markup:
    """Render markdown-lite text to safe inline HTML.

    Args:
        text: Raw field text (may contain markers and stray block tags)

    Returns:
        Markup safe to interpolate into a template

    Example:
        >>> str(render_markdown_lite("**bold** and *italic*"))
        '<strong>bold</strong> and <em>italic</em>'
    """
    if not text:
        return Markup("")

    processed = strip_provenance_markers(text)
    processed = strip_block_tags(processed)
    processed = str(escape(processed))

    processed = _BOLD_STARS.sub(r"<strong>\1</strong>", processed)
    processed = _BOLD_UNDERSCORES.sub(r"<strong>\1</strong>", processed)
    processed = _ITALIC_STAR.sub(r"<em>\1</em>", processed)
    processed = _ITALIC_UNDERSCORE.sub(r"<em>\1</em>", processed)
    processed = _LINK.sub(_render_link, processed)
    processed = _CODE.sub(rf'<code style="{CODE_STYLE}">\1</code>', processed)

    processed = processed.replace("\r\n", "\n").replace("\n", "<br>")

    return Markup(processed)
