# notiondocs/datatypes.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional


@dataclass(frozen=True, slots=True)
class Annotations:
    """
    Inline formatting flags of a rich text span (Notion "annotations").
    """

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    code: bool = False
    color: str = "default"


PLAIN = Annotations()


@dataclass(frozen=True, slots=True)
class RichText:
    """
    A single formatted text span.
    page_id is set when the span references another Notion page,
    either through a page mention or a link to a notion.so URL.
    """

    text: str
    annotations: Annotations = PLAIN
    href: Optional[str] = None
    page_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Block:
    """
    A content block from a page body (paragraph, list item, heading, ...).
    """

    id: str
    type: str
    rich_text: tuple[RichText, ...] = ()
    children: tuple[Block, ...] = ()
    checked: Optional[bool] = None  # to_do blocks only
    language: Optional[str] = None  # code blocks only


@dataclass(frozen=True, slots=True)
class Project:
    page_id: str
    name: str


@dataclass(frozen=True, slots=True)
class Definition:
    """
    A glossary definition page.
    """

    page_id: str
    term: tuple[RichText, ...]
    definition: tuple[RichText, ...]
    url: str
    project_ids: tuple[str, ...] = ()
    status: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FAQ:
    """
    A question/answer page. If blocks is empty, the answer property
    is rendered instead of the page body.
    """

    page_id: str
    section: str
    order: float
    question: str
    answer: tuple[RichText, ...]
    blocks: tuple[Block, ...] = ()
    url: str = ""


class DefinitionValidity(Enum):
    """
    Outcome of classifying a definition for publication.
    Only VALID definitions are published and linked to.
    """

    VALID = "valid"
    MISSING_TERM = "missing term"
    MISSING_DEFINITION = "missing definition"
    WRONG_PROJECT = "not in project"
    NOT_PUBLISHED = "not published"


@dataclass(frozen=True, slots=True)
class LinkableTerm:
    """
    Public rendering metadata of a definition, used to resolve
    references between pages.
    """

    text: str
    anchor: str
    page: str
    validity: DefinitionValidity
    source_url: str = field(default="", compare=False)

    @property
    def valid(self) -> bool:
        return self.validity is DefinitionValidity.VALID

    @property
    def href(self) -> str:
        return f"{self.page}#{self.anchor}"


# page_id -> LinkableTerm, read-only once built
LinkableTerms = Mapping[str, LinkableTerm]
