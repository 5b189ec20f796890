# notiondocs/pipeline.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import AbstractSet, Mapping, Optional

from notiondocs import config
from notiondocs.compose import format_definitions, organize_faq, render_sections
from notiondocs.datatypes import FAQ, Definition, DefinitionValidity, Project
from notiondocs.notion_api import NotionClient
from notiondocs.settings import Settings
from notiondocs.terms import build_linkable_terms, find_anchor_collisions

logger = logging.getLogger(__name__)


class Stage(Enum):
    FETCH = "fetch"
    BUILD_LINK_TABLE = "build link table"
    CLASSIFY = "classify"
    RENDER = "render"
    PERSIST = "persist"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class UpdateOptions:
    """
    What to publish and where to write it.
    """

    project_name: str = config.DEFAULT_PROJECT_NAME
    glossary_path: Path = Path(config.DEFAULT_GLOSSARY_PARTIAL)
    faq_path: Path = Path(config.DEFAULT_FAQ_PARTIAL)
    glossary_page: str = config.DEFAULT_GLOSSARY_PAGE
    publish_statuses: AbstractSet[str] = config.DEFAULT_PUBLISH_STATUSES


@dataclass(frozen=True, slots=True)
class RunResult:
    """
    Outcome of one update run.
    On failure, failed_stage and error tell where and why it stopped;
    written lists the files that were already on disk at that point.
    """

    stage: Stage
    failed_stage: Optional[Stage] = None
    error: Optional[BaseException] = None
    written: tuple[Path, ...] = ()
    glossary_count: int = 0
    faq_count: int = 0
    excluded: Mapping[str, DefinitionValidity] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.stage is Stage.DONE


@dataclass(frozen=True, slots=True)
class FetchedContent:
    project: Project
    faqs: tuple[FAQ, ...]
    definitions: tuple[Definition, ...]


def fetch_content(
    client: NotionClient, settings: Settings, project_name: str
) -> FetchedContent:
    """
    Fetch the project, then its FAQ entries, then its definitions.
    """
    project = client.lookup_project(project_name, settings.projects_database_id)
    logger.info("Project %r (%s)", project.name, project.page_id)
    faqs = client.lookup_project_faq(project, settings.faq_database_id)
    definitions = client.lookup_project_definitions(
        project, settings.definitions_database_id
    )
    logger.info("Fetched %d FAQ entries and %d definitions", len(faqs), len(definitions))
    return FetchedContent(project=project, faqs=tuple(faqs), definitions=tuple(definitions))


def write_partial(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="\n") as fp:
        fp.write(content)
    logger.info("Wrote %s (%d bytes)", path, len(content.encode("utf-8")))
    return path


def run_update(
    client: NotionClient,
    settings: Settings,
    options: UpdateOptions = UpdateOptions(),
) -> RunResult:
    """
    Fetch -> build link table -> classify -> render -> write both partials.

    Never raises: the first error stops the run and is returned in the
    RunResult together with the stage it happened in. A partial written
    before the failure is left on disk.
    """
    stage = Stage.FETCH
    written: list[Path] = []
    excluded: dict[str, DefinitionValidity] = {}
    glossary_count = faq_count = 0

    try:
        content = fetch_content(client, settings, options.project_name)

        stage = Stage.BUILD_LINK_TABLE
        linkable_terms = build_linkable_terms(
            content.definitions,
            content.project,
            page=options.glossary_page,
            publish_statuses=options.publish_statuses,
        )
        for anchor, page_ids in find_anchor_collisions(linkable_terms).items():
            logger.warning(
                "Anchor #%s is shared by %d definitions: %s",
                anchor,
                len(page_ids),
                ", ".join(page_ids),
            )

        stage = Stage.CLASSIFY
        for page_id, term in linkable_terms.items():
            if not term.valid:
                excluded[page_id] = term.validity
                logger.warning(
                    "Skipping %r (%s): %s",
                    term.text or page_id,
                    term.source_url or page_id,
                    term.validity.value,
                )
        glossary_count = len(linkable_terms) - len(excluded)
        faq_count = len(content.faqs)

        stage = Stage.RENDER
        glossary = format_definitions(content.definitions, linkable_terms)
        faq = render_sections(organize_faq(content.faqs), linkable_terms)

        stage = Stage.PERSIST
        written.append(write_partial(options.glossary_path, glossary))
        written.append(write_partial(options.faq_path, faq))
    except Exception as exc:
        logger.exception("Update failed during %s", stage.value)
        return RunResult(
            stage=Stage.FAILED,
            failed_stage=stage,
            error=exc,
            written=tuple(written),
            excluded=excluded,
        )

    logger.info(
        "Published %d definitions and %d FAQ entries", glossary_count, faq_count
    )
    return RunResult(
        stage=Stage.DONE,
        written=tuple(written),
        glossary_count=glossary_count,
        faq_count=faq_count,
        excluded=excluded,
    )
