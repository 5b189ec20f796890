# notiondocs/terms.py
from __future__ import annotations

import re
from collections import defaultdict
from types import MappingProxyType
from typing import AbstractSet, Iterable, Mapping

from notiondocs import config
from notiondocs.datatypes import (
    Definition,
    DefinitionValidity,
    LinkableTerm,
    LinkableTerms,
    Project,
    RichText,
)
from notiondocs.render import plain_text

# Anything but ASCII letters, digits, whitespace, "$", "-" and parentheses
_TERM_DISALLOWED_RE = re.compile(r"[^A-Za-z0-9\s$()\-]")
_WS_RE = re.compile(r"\s+")


def format_term_text(term: Iterable[RichText]) -> str:
    """
    Displayed form of a glossary term: its plain text with every character
    that cannot appear in a heading anchor removed.
    """
    return _TERM_DISALLOWED_RE.sub("", plain_text(term)).strip()


def format_glossary_term_key(term: Iterable[RichText]) -> str:
    """
    Anchor key of a glossary term, e.g. "Voting Power ($VOTE)" -> "voting-power-($vote)".

    Pure function of the term text. Distinct terms that differ only in case
    or in removed characters get the same key.
    """
    return _WS_RE.sub("-", format_term_text(term).lower())


def classify_definition(
    definition: Definition,
    project: Project,
    publish_statuses: AbstractSet[str] = config.DEFAULT_PUBLISH_STATUSES,
) -> DefinitionValidity:
    """
    Decide whether a definition may be published in the project's glossary.
    Rules are checked in order and the first failing one is reported.
    """
    if not format_term_text(definition.term):
        return DefinitionValidity.MISSING_TERM
    if not plain_text(definition.definition).strip():
        return DefinitionValidity.MISSING_DEFINITION
    if project.page_id not in definition.project_ids:
        return DefinitionValidity.WRONG_PROJECT
    if definition.status is None or definition.status not in publish_statuses:
        return DefinitionValidity.NOT_PUBLISHED
    return DefinitionValidity.VALID


def build_linkable_terms(
    definitions: Iterable[Definition],
    project: Project,
    *,
    page: str = config.DEFAULT_GLOSSARY_PAGE,
    publish_statuses: AbstractSet[str] = config.DEFAULT_PUBLISH_STATUSES,
) -> LinkableTerms:
    """
    Build the read-only page_id -> LinkableTerm table.
    Each term is rendered and classified exactly once here; renderers
    only read the returned mapping.
    """
    table: dict[str, LinkableTerm] = {}
    for definition in definitions:
        table[definition.page_id] = LinkableTerm(
            text=format_term_text(definition.term),
            anchor=format_glossary_term_key(definition.term),
            page=page,
            validity=classify_definition(definition, project, publish_statuses),
            source_url=definition.url,
        )
    return MappingProxyType(table)


def find_anchor_collisions(
    linkable_terms: LinkableTerms, *, valid_only: bool = True
) -> Mapping[str, tuple[str, ...]]:
    """
    Anchors shared by more than one page, as anchor -> page ids in table order.
    Colliding anchors are left as they are: every link to them lands on the
    first heading with that id.
    """
    by_anchor: dict[str, list[str]] = defaultdict(list)
    for page_id, term in linkable_terms.items():
        if valid_only and not term.valid:
            continue
        by_anchor[term.anchor].append(page_id)
    return {
        anchor: tuple(page_ids)
        for anchor, page_ids in sorted(by_anchor.items())
        if len(page_ids) > 1
    }
