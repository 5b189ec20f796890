# notiondocs/errors.py
from __future__ import annotations
from typing import Optional


class NotionDocsError(Exception):
    """
    Base class for errors raised by notiondocs.
    """


class NotionAPIError(NotionDocsError):
    """
    A request to the Notion API failed (network, auth, not found, ...).
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code

    def __str__(self) -> str:
        message = super().__str__()
        if self.status is None:
            return message
        return f"[{self.status} {self.code or 'error'}] {message}"


class NotionSchemaError(NotionDocsError):
    """
    A Notion record does not have the shape this tool expects.
    """

    def __init__(self, page_id: str, prop: str, reason: str) -> None:
        super().__init__(f"page {page_id}: property {prop!r} {reason}")
        self.page_id = page_id
        self.prop = prop


class ProjectNotFoundError(NotionDocsError):
    def __init__(self, name: str) -> None:
        super().__init__(f"No project named {name!r}")
        self.name = name
