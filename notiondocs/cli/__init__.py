# notiondocs/cli/__init__.py
from __future__ import annotations
from notiondocs.cli.generic import app
from notiondocs.cli.show import show_app

app.add_typer(show_app, name="show", help="Inspect fetched Notion content")

# Expose the main app only
__all__ = ["app"]
