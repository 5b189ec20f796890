# notiondocs/utils.py
from __future__ import annotations

import typer
from rich.console import Console

from notiondocs.settings import Settings


def ensure_notion_settings(settings: Settings) -> None:
    """
    Checks that the Notion token and every database id are configured,
    and exits if any is missing. Nothing can be fetched without them.
    """
    missing = settings.missing()
    if missing:
        Console(stderr=True).print(
            "Please set the following environment variables (or add them to .env): "
            + ", ".join(missing),
            markup=False,
        )
        raise typer.Exit(code=3)
