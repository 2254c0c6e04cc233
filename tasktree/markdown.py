"""Minimal markdown-to-HTML rendering for wiki pages.

Best effort, line oriented: fenced code blocks, ``- `` lists, ``#``..``###``
headings and paragraphs. No nested lists, no tables, no ordered lists.
"""

from __future__ import annotations

import re

_FENCE_RE = re.compile(r"```([\s\S]*?)```")
_PLACEHOLDER_RE = re.compile(r"\{\{CODEBLOCK_(\d+)\}\}")
_PLACEHOLDER_LINE_RE = re.compile(r"^\{\{CODEBLOCK_\d+\}\}$")
_LIST_ITEM_RE = re.compile(r"^\s*-\s+")
_HEADINGS = (
    (re.compile(r"^###\s+"), "h3"),
    (re.compile(r"^##\s+"), "h2"),
    (re.compile(r"^#\s+"), "h1"),
)

_LINK_SCHEMES = ("http", "https", "mailto")
_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")


def _link(m: re.Match[str]) -> str:
    text, href = m.group(1), m.group(2).strip()
    # browsers drop control chars and spaces when reading a scheme
    scheme = _SCHEME_RE.match(re.sub(r"[\x00-\x20]", "", href))
    if scheme and scheme.group(1).lower() not in _LINK_SCHEMES:
        return text
    return f'<a href="{href}" target="_blank" rel="noreferrer">{text}</a>'


_INLINE_RULES = (
    (re.compile(r"`([^`]+)`"), r"<code>\1</code>"),
    (re.compile(r"\*\*([^*]+)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"\*([^*]+)\*"), r"<em>\1</em>"),
    (re.compile(r"\[([^\]]+)\]\(([^)]+)\)"), _link),
)


def escape_html(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def render_inline(text: str) -> str:
    for pattern, repl in _INLINE_RULES:
        text = pattern.sub(repl, text)
    return text


def render_markdown(markdown: str) -> str:
    escaped = escape_html(markdown)

    code_blocks: list[str] = []

    def _extract(m: re.Match[str]) -> str:
        token = f"{{{{CODEBLOCK_{len(code_blocks)}}}}}"
        code_blocks.append(f"<pre><code>{m.group(1)}</code></pre>")
        return token

    with_blocks = _FENCE_RE.sub(_extract, escaped)

    html: list[str] = []
    in_list = False
    for line in with_blocks.split("\n"):
        trimmed = line.strip()
        if _PLACEHOLDER_LINE_RE.match(trimmed):
            if in_list:
                html.append("</ul>")
                in_list = False
            html.append(trimmed)
            continue

        if _LIST_ITEM_RE.match(line):
            if not in_list:
                html.append("<ul>")
                in_list = True
            html.append(f"<li>{render_inline(_LIST_ITEM_RE.sub('', line, count=1))}</li>")
            continue

        if in_list:
            html.append("</ul>")
            in_list = False

        for pattern, tag in _HEADINGS:
            if pattern.match(line):
                html.append(f"<{tag}>{render_inline(pattern.sub('', line, count=1))}</{tag}>")
                break
        else:
            if not trimmed:
                html.append("<br />")
            else:
                html.append(f"<p>{render_inline(line)}</p>")

    if in_list:
        html.append("</ul>")

    def _reinject(m: re.Match[str]) -> str:
        index = int(m.group(1))
        return code_blocks[index] if index < len(code_blocks) else ""

    return _PLACEHOLDER_RE.sub(_reinject, "\n".join(html))
