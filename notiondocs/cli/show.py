# notiondocs/cli/show.py
from __future__ import annotations

import json

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from notiondocs import config
from notiondocs.cli.generic import make_client
from notiondocs.compose import organize_faq
from notiondocs.errors import NotionDocsError
from notiondocs.log import setup_logging
from notiondocs.pipeline import FetchedContent, fetch_content
from notiondocs.render import plain_text
from notiondocs.settings import load_settings
from notiondocs.terms import build_linkable_terms, find_anchor_collisions

show_app = typer.Typer(add_completion=False, no_args_is_help=True)


def _fetch(project: str, verbose: bool) -> FetchedContent:
    setup_logging(verbose)
    settings = load_settings()
    client = make_client(settings)
    try:
        return fetch_content(client, settings, project)
    except NotionDocsError as exc:
        Console(stderr=True).print(
            Panel.fit(f"[bold red]{type(exc).__name__}:[/bold red] {escape(str(exc))}")
        )
        raise typer.Exit(code=1)


@show_app.command("definitions")
def show_definitions(
    project: str = typer.Option(
        config.DEFAULT_PROJECT_NAME, help="Title of the project page in Notion"
    ),
    json_out: bool = typer.Option(False, "--json", help="Emit JSON instead of table"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """
    List every definition of the project with its anchor key and validity.
    """
    content = _fetch(project, verbose)
    terms = build_linkable_terms(content.definitions, content.project)
    collisions = find_anchor_collisions(terms)
    colliding = {page_id for page_ids in collisions.values() for page_id in page_ids}

    if json_out:
        rows = [
            {
                "page_id": page_id,
                "term": term.text,
                "anchor": term.anchor,
                "validity": term.validity.value,
                "url": term.source_url,
                "anchor_collision": page_id in colliding,
            }
            for page_id, term in terms.items()
        ]
        typer.echo(json.dumps(rows, indent=2, ensure_ascii=False))
        return

    table = Table(title=f"Definitions of {content.project.name!r}")
    table.add_column("#", justify="right", style="bold")
    table.add_column("Term")
    table.add_column("Anchor")
    table.add_column("Validity")
    table.add_column("URL")

    for i, (page_id, term) in enumerate(terms.items(), start=1):
        anchor = escape(term.anchor)
        if page_id in colliding:
            anchor = f"[bold yellow]{anchor}[/bold yellow]"
        validity = (
            "[green]valid[/green]" if term.valid else f"[red]{term.validity.value}[/red]"
        )
        table.add_row(str(i), escape(term.text), anchor, validity, term.source_url)

    if not terms:
        table.caption = "[bold yellow]No definitions found.[/bold yellow]"
    print(table)

    if collisions:
        print(
            Panel.fit(
                "[bold yellow]Anchor collisions[/bold yellow]\n"
                + "\n".join(
                    f"#{escape(anchor)}: {len(page_ids)} definitions"
                    for anchor, page_ids in collisions.items()
                )
            )
        )


@show_app.command("faq")
def show_faq(
    project: str = typer.Option(
        config.DEFAULT_PROJECT_NAME, help="Title of the project page in Notion"
    ),
    json_out: bool = typer.Option(False, "--json", help="Emit JSON instead of table"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """
    List FAQ entries grouped and ordered as they will be published.
    """
    content = _fetch(project, verbose)
    sections = organize_faq(content.faqs)

    if json_out:
        data = {
            section: [
                {
                    "page_id": faq.page_id,
                    "order": faq.order,
                    "question": faq.question,
                    "source": "blocks" if faq.blocks else "answer",
                }
                for faq in faqs
            ]
            for section, faqs in sections.items()
        }
        typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    table = Table(title=f"FAQ of {content.project.name!r}")
    table.add_column("Section", style="bold")
    table.add_column("Order", justify="right")
    table.add_column("Question")
    table.add_column("Answer")

    for section, faqs in sections.items():
        for faq in faqs:
            answer = (
                f"[dim]{len(faq.blocks)} blocks[/dim]"
                if faq.blocks
                else escape(plain_text(faq.answer).replace("\n", " ")[:80])
            )
            table.add_row(escape(section), str(faq.order), escape(faq.question), answer)

    if not sections:
        table.caption = "[bold yellow]No FAQ entries found.[/bold yellow]"
    print(table)
