# notiondocs/compose.py
from __future__ import annotations

import html
import unicodedata
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from notiondocs import config
from notiondocs.datatypes import FAQ, Definition, LinkableTerms
from notiondocs.render import (
    render_blocks,
    render_rich_texts,
    strip_curly_quotes,
)
from notiondocs.terms import format_glossary_term_key, format_term_text

GLOSSARY_CONTAINER_OPEN = '<div class="hidden-glossary">\n\n'
GLOSSARY_CONTAINER_CLOSE = "\n</div>\n"
FAQ_DISPLAYED_ON = "dao-glossary"


@dataclass(frozen=True, slots=True)
class RenderedDefinition:
    term: str
    definition: str
    key: str


def sort_key(term: str) -> str:
    """
    Case- and accent-insensitive collation key.
    Independent of the host locale, so output is the same on every machine.
    """
    decomposed = unicodedata.normalize("NFKD", term)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def render_definition(
    definition: Definition, linkable_terms: LinkableTerms
) -> RenderedDefinition:
    """
    Render a definition to its heading text, body and anchor key.
    The term text and key come from the link table when the definition is in it.
    """
    cached = linkable_terms.get(definition.page_id)
    if cached is not None:
        term, key = cached.text, cached.anchor
    else:
        term = format_term_text(definition.term)
        key = format_glossary_term_key(definition.term)

    return RenderedDefinition(
        term=term,
        definition=render_rich_texts(definition.definition, linkable_terms),
        key=key,
    )


def publishable(
    definitions: Iterable[Definition], linkable_terms: LinkableTerms
) -> list[Definition]:
    """
    Definitions whose link table entry is valid, in their original order.
    """
    out: list[Definition] = []
    for definition in definitions:
        term = linkable_terms.get(definition.page_id)
        if term is not None and term.valid:
            out.append(definition)
    return out


def format_definitions(
    definitions: Iterable[Definition], linkable_terms: LinkableTerms
) -> str:
    """
    Render the glossary partial: one "### term {#key}" entry per valid
    definition, sorted by term (stable for equal terms), in a hidden container.
    """
    rendered = [
        render_definition(definition, linkable_terms)
        for definition in publishable(definitions, linkable_terms)
    ]
    rendered.sort(key=lambda item: sort_key(item.term))

    entries = "".join(
        f"### {item.term} {{#{item.key}}}\n{item.definition}\n\n" for item in rendered
    )
    return f"{GLOSSARY_CONTAINER_OPEN}{entries}{GLOSSARY_CONTAINER_CLOSE}"


def organize_faq(questions: Iterable[FAQ]) -> dict[str, list[FAQ]]:
    """
    Group questions by section, sections in first-seen order,
    questions within a section by ascending order (stable).
    Questions without a section are filed under DEFAULT_FAQ_SECTION.
    """
    sections: dict[str, list[FAQ]] = {}
    for question in questions:
        section = question.section.strip() or config.DEFAULT_FAQ_SECTION
        sections.setdefault(section, []).append(question)
    for entries in sections.values():
        entries.sort(key=lambda faq: faq.order)
    return sections


def render_faq(faq: FAQ, linkable_terms: LinkableTerms) -> str:
    if faq.blocks:
        answer = render_blocks(faq.blocks, linkable_terms)
    else:
        answer = render_rich_texts(faq.answer, linkable_terms)
    question = html.escape(strip_curly_quotes(faq.question), quote=False)

    return (
        f"<dt data-displayed-on='{FAQ_DISPLAYED_ON}'>{question}</dt>\n"
        f"<dd data-displayed-on='{FAQ_DISPLAYED_ON}'>{answer}</dd>\n"
    )


def render_faqs(faqs: Sequence[FAQ], linkable_terms: LinkableTerms) -> str:
    body = "".join(render_faq(faq, linkable_terms) for faq in faqs)
    return f'<dl class="definition-list">\n{body}</dl>\n'


def render_sections(
    sections: Mapping[str, Sequence[FAQ]], linkable_terms: LinkableTerms
) -> str:
    """
    Render the FAQ partial: a "### section" heading and a definition list
    per section, in the mapping's order.
    """
    parts = [
        f"### {strip_curly_quotes(section)}\n\n{render_faqs(faqs, linkable_terms)}"
        for section, faqs in sections.items()
    ]
    return "\n".join(parts)
