# notiondocs/config.py
from __future__ import annotations

# Notion REST API configuration
DEFAULT_API_URL = "https://api.notion.com/v1"
DEFAULT_NOTION_VERSION = "2022-06-28"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PAGE_SIZE = 100  # Notion caps page_size at 100

# Environment variables read by settings.load_settings()
ENV_NOTION_TOKEN = "NOTION_TOKEN"
ENV_PROJECTS_DB = "NOTION_PROJECTS_DB"
ENV_FAQ_DB = "NOTION_FAQ_DB"
ENV_DEFINITIONS_DB = "NOTION_DEFINITIONS_DB"

# Database property names
PROJECT_NAME_PROPERTY = "Name"
FAQ_QUESTION_PROPERTY = "Question"
FAQ_ANSWER_PROPERTY = "Answer"
FAQ_SECTION_PROPERTY = "Section"
FAQ_ORDER_PROPERTY = "Order"
FAQ_PROJECT_PROPERTY = "Project"
DEFINITION_TERM_PROPERTY = "Term"
DEFINITION_BODY_PROPERTY = "Definition"
DEFINITION_PROJECTS_PROPERTY = "Projects"
DEFINITION_STATUS_PROPERTY = "Status"

# Publishing configuration
DEFAULT_PROJECT_NAME = "Governance docs"
DEFAULT_FAQ_SECTION = "General"
DEFAULT_PUBLISH_STATUSES = frozenset({"Published"})

# Output configuration (paths are relative to the working directory)
DEFAULT_GLOSSARY_PAGE = "../dao-glossary.md"
DEFAULT_GLOSSARY_PARTIAL = "../docs/partials/_glossary-partial.md"
DEFAULT_FAQ_PARTIAL = "../docs/partials/_faq-partial.md"
