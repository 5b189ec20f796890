# notiondocs/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from notiondocs import config


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Credentials and database ids for the Notion workspace.
    """

    notion_token: str = ""
    projects_database_id: str = ""
    faq_database_id: str = ""
    definitions_database_id: str = ""

    def missing(self) -> list[str]:
        """
        Names of the environment variables whose value is still empty.
        """
        env_names = {
            "notion_token": config.ENV_NOTION_TOKEN,
            "projects_database_id": config.ENV_PROJECTS_DB,
            "faq_database_id": config.ENV_FAQ_DB,
            "definitions_database_id": config.ENV_DEFINITIONS_DB,
        }
        return [env_names[f.name] for f in fields(self) if not getattr(self, f.name)]


def load_settings(env_path: Optional[Path] = None, **overrides: str) -> Settings:
    """
    Build Settings from a .env file, the environment and keyword overrides.

    Resolution order (later wins):
      1. .env file (``env_path`` or ./.env), never overriding real env vars
      2. Environment variables (NOTION_TOKEN, NOTION_*_DB)
      3. Explicit keyword arguments
    """
    load_dotenv(env_path or Path.cwd() / ".env", override=False)

    settings = Settings(
        notion_token=os.environ.get(config.ENV_NOTION_TOKEN, "").strip(),
        projects_database_id=os.environ.get(config.ENV_PROJECTS_DB, "").strip(),
        faq_database_id=os.environ.get(config.ENV_FAQ_DB, "").strip(),
        definitions_database_id=os.environ.get(config.ENV_DEFINITIONS_DB, "").strip(),
    )
    if overrides:
        settings = replace(settings, **overrides)
    return settings
