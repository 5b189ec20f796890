# notiondocs/cli/generic.py
from __future__ import annotations

from pathlib import Path

import typer
from rich import print
from rich.console import Console
from rich.panel import Panel

from notiondocs import config
from notiondocs.log import setup_logging
from notiondocs.notion_api import NotionClient
from notiondocs.pipeline import UpdateOptions, run_update
from notiondocs.settings import Settings, load_settings
from notiondocs.utils import ensure_notion_settings

app = typer.Typer(add_completion=False, no_args_is_help=True)


def make_client(settings: Settings) -> NotionClient:
    """
    Build a NotionClient from configured settings (exits if incomplete).
    """
    ensure_notion_settings(settings)
    return NotionClient(settings.notion_token)


@app.command()
def update(
    project: str = typer.Option(
        config.DEFAULT_PROJECT_NAME, help="Title of the project page in Notion"
    ),
    glossary_out: Path = typer.Option(
        Path(config.DEFAULT_GLOSSARY_PARTIAL), help="Glossary partial to write"
    ),
    faq_out: Path = typer.Option(
        Path(config.DEFAULT_FAQ_PARTIAL), help="FAQ partial to write"
    ),
    glossary_page: str = typer.Option(
        config.DEFAULT_GLOSSARY_PAGE, help="Page that glossary links point to"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """
    Fetch glossary definitions and FAQ entries and write both partials.
    """
    setup_logging(verbose)
    settings = load_settings()
    client = make_client(settings)

    options = UpdateOptions(
        project_name=project,
        glossary_path=glossary_out,
        faq_path=faq_out,
        glossary_page=glossary_page,
    )
    result = run_update(client, settings, options)

    if not result.ok:
        stage = result.failed_stage.value if result.failed_stage else "unknown stage"
        Console(stderr=True).print(
            f"{type(result.error).__name__}: {result.error} (during {stage})",
            markup=False,
        )
        raise typer.Exit(code=1)

    print(
        Panel.fit(
            f"[bold green]Published {result.glossary_count} definitions and "
            f"{result.faq_count} FAQ entries[/bold green]\n"
            + "\n".join(str(path) for path in result.written)
        )
    )
    if result.excluded:
        print(
            f"[dim]{len(result.excluded)} definitions skipped, "
            "see[/dim] [bold]show definitions[/bold] [dim]for details.[/dim]"
        )
