# notiondocs/render.py
from __future__ import annotations

import html
from itertools import groupby
from typing import Iterable, Sequence

from notiondocs.datatypes import Block, LinkableTerms, RichText

_CURLY_QUOTES = str.maketrans({"‘": "'", "’": "'", "“": '"', "”": '"'})

# Innermost tag first: <u><s><em><strong><code>text</code></strong></em></s></u>
_FORMAT_TAGS = (
    ("code", "code"),
    ("bold", "strong"),
    ("italic", "em"),
    ("strikethrough", "s"),
    ("underline", "u"),
)

_LIST_TAGS = {
    "bulleted_list_item": "ul",
    "numbered_list_item": "ol",
    "to_do": "ul",
}

_HEADING_TAGS = {
    # page headings sit below the "###" headings of the partials
    "heading_1": "h4",
    "heading_2": "h5",
    "heading_3": "h6",
}

_CONTAINER_TAGS = {
    "paragraph": "p",
    "quote": "blockquote",
    "callout": "blockquote",
    "toggle": "p",
}


def strip_curly_quotes(text: str) -> str:
    """
    Replace typographic quotes with straight ones.
    """
    return text.translate(_CURLY_QUOTES)


def plain_text(spans: Iterable[RichText]) -> str:
    """
    Render spans as bare text: no formatting, no links, no escaping.
    """
    return strip_curly_quotes("".join(span.text for span in spans))


def _apply_formatting(span: RichText, text: str) -> str:
    """
    Wrap text in the tags of the span's annotations.
    Surrounding whitespace is kept outside the tags.
    """
    core = text.strip()
    if not core:
        return text
    lead = text[: len(text) - len(text.lstrip())]
    trail = text[len(text.rstrip()) :]

    for flag, tag in _FORMAT_TAGS:
        if getattr(span.annotations, flag):
            core = f"<{tag}>{core}</{tag}>"
    return f"{lead}{core}{trail}"


def render_rich_text(span: RichText, linkable_terms: LinkableTerms) -> str:
    """
    Render one span to HTML.

    A reference to another page becomes a link to its glossary anchor when
    the page is a linkable (valid) term, and plain text otherwise. Spans with
    an external href become ordinary links.
    """
    text = html.escape(strip_curly_quotes(span.text), quote=False)
    rendered = _apply_formatting(span, text)
    if not text.strip():
        return rendered

    href = None
    if span.page_id is not None:
        term = linkable_terms.get(span.page_id)
        if term is not None and term.valid:
            href = term.href
    elif span.href:
        href = span.href

    if href is None:
        return rendered
    return f'<a href="{html.escape(href)}">{rendered}</a>'


def render_rich_texts(spans: Iterable[RichText], linkable_terms: LinkableTerms) -> str:
    return "".join(render_rich_text(span, linkable_terms) for span in spans)


def _render_list(
    tag: str, items: Sequence[Block], linkable_terms: LinkableTerms
) -> str:
    lines = [f"<{tag}>"]
    for item in items:
        body = render_rich_texts(item.rich_text, linkable_terms)
        if item.type == "to_do":
            body = ("☑ " if item.checked else "☐ ") + body
        if item.children:
            body += "\n" + render_blocks(item.children, linkable_terms)
        lines.append(f"<li>{body}</li>")
    lines.append(f"</{tag}>")
    return "\n".join(lines)


def _render_block(block: Block, linkable_terms: LinkableTerms) -> str:
    body = render_rich_texts(block.rich_text, linkable_terms)

    if block.type == "divider":
        out = "<hr />"
    elif block.type == "code":
        # code is shown verbatim, annotations do not apply
        code = html.escape(plain_text(block.rich_text), quote=False)
        lang = f' class="language-{html.escape(block.language)}"' if block.language else ""
        out = f"<pre><code{lang}>{code}</code></pre>"
    elif block.type in _HEADING_TAGS:
        tag = _HEADING_TAGS[block.type]
        out = f"<{tag}>{body}</{tag}>"
    elif block.rich_text:
        tag = _CONTAINER_TAGS.get(block.type, "p")
        out = f"<{tag}>{body}</{tag}>"
    else:
        # nothing renderable (image, embed, empty paragraph, ...)
        out = ""

    if block.children:
        nested = render_blocks(block.children, linkable_terms)
        out = f"{out}\n{nested}" if out else nested
    return out


def render_blocks(blocks: Sequence[Block], linkable_terms: LinkableTerms) -> str:
    """
    Render page body blocks to HTML, one block per line.
    Consecutive list items of the same kind are grouped into a single list.
    """
    parts: list[str] = []
    for list_tag, group in groupby(blocks, key=lambda b: _LIST_TAGS.get(b.type)):
        items = list(group)
        if list_tag is not None:
            # a bulleted list directly followed by a to-do list stays split
            for _, run in groupby(items, key=lambda b: b.type):
                parts.append(_render_list(list_tag, list(run), linkable_terms))
            continue
        for block in items:
            rendered = _render_block(block, linkable_terms)
            if rendered:
                parts.append(rendered)
    return "\n".join(parts)
