# notiondocs/notion_api.py
from __future__ import annotations

import logging
import re
from typing import Any, Iterator, Optional
from urllib.parse import urlparse

import requests

from notiondocs import config
from notiondocs.datatypes import (
    FAQ,
    PLAIN,
    Annotations,
    Block,
    Definition,
    Project,
    RichText,
)
from notiondocs.errors import NotionAPIError, NotionSchemaError, ProjectNotFoundError

logger = logging.getLogger(__name__)

_HEX_ID_RE = re.compile(r"([0-9a-f]{32})$")
_NOTION_HOSTS = ("notion.so", "notion.site")

# Block types whose children are separate pages, not part of this body
_OPAQUE_BLOCK_TYPES = frozenset({"child_page", "child_database"})


def normalize_page_id(page_id: str) -> str:
    """
    Normalize a Notion id to the dashed lowercase UUID form.
    Ids that are not 32 hex digits are returned lowercased and stripped.
    """
    compact = page_id.strip().replace("-", "").lower()
    if len(compact) != 32 or not _HEX_ID_RE.match(compact):
        return page_id.strip().lower()
    return "-".join(
        (compact[:8], compact[8:12], compact[12:16], compact[16:20], compact[20:])
    )


def is_notion_url(url: Optional[str]) -> bool:
    """
    True for notion.so / notion.site URLs and relative workspace links.
    """
    if not url:
        return False
    host = (urlparse(url).hostname or "").lower()
    if not host:
        return url.startswith("/")
    return any(host == h or host.endswith("." + h) for h in _NOTION_HOSTS)


def page_id_from_url(url: Optional[str]) -> Optional[str]:
    """
    Extract the page id from a Notion page URL.
    Handles absolute notion.so / notion.site URLs and the relative
    "/<id>" form the API uses for links between workspace pages.
    Returns None for any other URL.
    """
    if not is_notion_url(url):
        return None

    parsed = urlparse(url)
    last_segment = parsed.path.rstrip("/").rsplit("/", 1)[-1]
    match = _HEX_ID_RE.search(last_segment.replace("-", "").lower())
    if not match:
        return None
    return normalize_page_id(match.group(1))


# NOTE:
# Record parsing. Everything coming from the API is validated here, so the
# rest of the package only ever sees the typed records from datatypes.


def parse_annotations(obj: Optional[dict[str, Any]]) -> Annotations:
    if not obj:
        return PLAIN
    return Annotations(
        bold=bool(obj.get("bold")),
        italic=bool(obj.get("italic")),
        strikethrough=bool(obj.get("strikethrough")),
        underline=bool(obj.get("underline")),
        code=bool(obj.get("code")),
        color=str(obj.get("color") or "default"),
    )


def parse_rich_text(obj: dict[str, Any]) -> RichText:
    """
    Convert a Notion rich text object into a RichText span.
    Page mentions and links to Notion pages carry the referenced page id.
    """
    kind = obj.get("type")
    text = obj.get("plain_text")
    href = obj.get("href") or None
    page_id: Optional[str] = None

    if kind == "text":
        content = obj.get("text") or {}
        if text is None:
            text = content.get("content")
        link = content.get("link") or {}
        href = link.get("url") or href
        page_id = page_id_from_url(href)
    elif kind == "mention":
        mention = obj.get("mention") or {}
        if mention.get("type") == "page":
            raw_id = (mention.get("page") or {}).get("id")
            page_id = normalize_page_id(raw_id) if raw_id else None
    elif kind == "equation" and text is None:
        text = (obj.get("equation") or {}).get("expression")

    if page_id is not None or is_notion_url(href):
        # internal references are resolved against the glossary, never linked raw
        href = None

    return RichText(
        text=str(text or ""),
        annotations=parse_annotations(obj.get("annotations")),
        href=href,
        page_id=page_id,
    )


def parse_rich_texts(items: Optional[list[dict[str, Any]]]) -> tuple[RichText, ...]:
    return tuple(parse_rich_text(item) for item in items or [])


def parse_block(obj: dict[str, Any], children: tuple[Block, ...] = ()) -> Block:
    """
    Convert a Notion block object into a Block.
    Block types without rich text (divider, image, ...) get an empty span list.
    """
    kind = str(obj.get("type") or "unsupported")
    payload = obj.get(kind)
    if not isinstance(payload, dict):
        payload = {}

    return Block(
        id=normalize_page_id(str(obj.get("id") or "")),
        type=kind,
        rich_text=parse_rich_texts(payload.get("rich_text")),
        children=children,
        checked=payload.get("checked") if kind == "to_do" else None,
        language=payload.get("language") if kind == "code" else None,
    )


def _page_id(page: dict[str, Any]) -> str:
    raw = page.get("id")
    if not isinstance(raw, str) or not raw:
        raise NotionSchemaError("<unknown>", "id", "is missing")
    return normalize_page_id(raw)


def _property(page: dict[str, Any], name: str, *types: str) -> dict[str, Any]:
    """
    Look up a page property and check its type.
    """
    page_id = str(page.get("id") or "<unknown>")
    props = page.get("properties")
    if not isinstance(props, dict) or name not in props:
        raise NotionSchemaError(page_id, name, "is missing")
    prop = props[name]
    if not isinstance(prop, dict) or prop.get("type") not in types:
        found = prop.get("type") if isinstance(prop, dict) else type(prop).__name__
        raise NotionSchemaError(
            page_id, name, f"has type {found!r}, expected one of {list(types)}"
        )
    return prop


def _rich_text_property(page: dict[str, Any], name: str) -> tuple[RichText, ...]:
    prop = _property(page, name, "title", "rich_text")
    return parse_rich_texts(prop.get(prop["type"]))


def _plain_property(page: dict[str, Any], name: str) -> str:
    """
    Text value of a title, rich_text, select or status property.
    """
    prop = _property(page, name, "title", "rich_text", "select", "status")
    kind = prop["type"]
    if kind in ("select", "status"):
        option = prop.get(kind) or {}
        return str(option.get("name") or "")
    return "".join(span.text for span in parse_rich_texts(prop.get(kind)))


def _relation_ids(page: dict[str, Any], name: str) -> tuple[str, ...]:
    prop = _property(page, name, "relation")
    return tuple(
        normalize_page_id(item["id"])
        for item in prop.get("relation") or []
        if isinstance(item, dict) and item.get("id")
    )


def parse_project(page: dict[str, Any]) -> Project:
    return Project(
        page_id=_page_id(page),
        name=_plain_property(page, config.PROJECT_NAME_PROPERTY),
    )


def parse_definition(page: dict[str, Any]) -> Definition:
    """
    Convert a page of the definitions database into a Definition.
    The Status property is optional; an absent status means "not published".
    """
    props = page.get("properties") or {}
    status: Optional[str] = None
    if config.DEFINITION_STATUS_PROPERTY in props:
        status = _plain_property(page, config.DEFINITION_STATUS_PROPERTY) or None

    return Definition(
        page_id=_page_id(page),
        term=_rich_text_property(page, config.DEFINITION_TERM_PROPERTY),
        definition=_rich_text_property(page, config.DEFINITION_BODY_PROPERTY),
        url=str(page.get("url") or ""),
        project_ids=_relation_ids(page, config.DEFINITION_PROJECTS_PROPERTY),
        status=status,
    )


def parse_faq(page: dict[str, Any], blocks: tuple[Block, ...] = ()) -> FAQ:
    """
    Convert a page of the FAQ database (plus its body blocks) into a FAQ.
    """
    page_id = _page_id(page)
    order_prop = _property(page, config.FAQ_ORDER_PROPERTY, "number")
    order = order_prop.get("number")
    if not isinstance(order, (int, float)) or isinstance(order, bool):
        raise NotionSchemaError(page_id, config.FAQ_ORDER_PROPERTY, "is empty")

    return FAQ(
        page_id=page_id,
        section=_plain_property(page, config.FAQ_SECTION_PROPERTY),
        order=order,
        question=_plain_property(page, config.FAQ_QUESTION_PROPERTY),
        answer=_rich_text_property(page, config.FAQ_ANSWER_PROPERTY),
        blocks=blocks,
        url=str(page.get("url") or ""),
    )


class NotionClient:
    """
    Thin, typed wrapper around the Notion REST API.
    All calls are sequential and blocking; failures raise NotionAPIError.
    """

    def __init__(
        self,
        token: str,
        *,
        session: Optional[requests.Session] = None,
        base_url: str = config.DEFAULT_API_URL,
        notion_version: str = config.DEFAULT_NOTION_VERSION,
        timeout: float = config.DEFAULT_TIMEOUT,
        page_size: int = config.DEFAULT_PAGE_SIZE,
    ) -> None:
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Notion-Version": notion_version,
                "Accept": "application/json",
            }
        )
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        # clamp page size to the API limit
        self._page_size = max(1, min(config.DEFAULT_PAGE_SIZE, page_size))

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}/{path.lstrip('/')}"
        logger.debug("%s %s", method, url)
        try:
            resp = self._session.request(
                method, url, json=json, params=params, timeout=self._timeout
            )
        except requests.RequestException as exc:
            raise NotionAPIError(f"{method} {url} failed: {exc}") from exc

        if resp.status_code >= 400:
            code: Optional[str] = None
            message = resp.text or resp.reason or "request failed"
            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                code = body.get("code")
                message = body.get("message") or message
            raise NotionAPIError(message, status=resp.status_code, code=code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise NotionAPIError(f"{method} {url} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise NotionAPIError(f"{method} {url} returned unexpected payload")
        return data

    def _paginate(
        self,
        method: str,
        path: str,
        *,
        body: Optional[dict[str, Any]] = None,
    ) -> Iterator[dict[str, Any]]:
        """
        Follow has_more / next_cursor until every result has been yielded.
        POST endpoints take the cursor in the body, GET endpoints in the query.
        """
        cursor: Optional[str] = None
        while True:
            page_args: dict[str, Any] = {"page_size": self._page_size}
            if cursor:
                page_args["start_cursor"] = cursor

            if method == "POST":
                data = self._request(method, path, json={**(body or {}), **page_args})
            else:
                data = self._request(method, path, params=page_args)

            results = data.get("results") or []
            logger.debug("%s: %d results (cursor=%s)", path, len(results), cursor)
            yield from results

            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                return

    def query_database(
        self,
        database_id: str,
        *,
        filter: Optional[dict[str, Any]] = None,
        sorts: Optional[list[dict[str, Any]]] = None,
    ) -> list[dict[str, Any]]:
        """
        Return every page of a database matching the optional filter.
        """
        body: dict[str, Any] = {}
        if filter:
            body["filter"] = filter
        if sorts:
            body["sorts"] = sorts
        return list(self._paginate("POST", f"databases/{database_id}/query", body=body))

    def list_block_children(self, block_id: str) -> tuple[Block, ...]:
        """
        Return the body of a page (or block) with nested children resolved.
        """
        blocks: list[Block] = []
        for obj in self._paginate("GET", f"blocks/{block_id}/children"):
            children: tuple[Block, ...] = ()
            if obj.get("has_children") and obj.get("type") not in _OPAQUE_BLOCK_TYPES:
                children = self.list_block_children(str(obj["id"]))
            blocks.append(parse_block(obj, children))
        return tuple(blocks)

    def lookup_project(self, name: str, database_id: str) -> Project:
        """
        Find a project page by exact title.
        """
        pages = self.query_database(
            database_id,
            filter={"property": config.PROJECT_NAME_PROPERTY, "title": {"equals": name}},
        )
        if not pages:
            raise ProjectNotFoundError(name)
        if len(pages) > 1:
            logger.warning("%d projects named %r, using the first", len(pages), name)
        return parse_project(pages[0])

    def lookup_project_faq(self, project: Project, database_id: str) -> list[FAQ]:
        """
        List the FAQ entries of a project, including each page body.
        """
        pages = self.query_database(
            database_id,
            filter={
                "property": config.FAQ_PROJECT_PROPERTY,
                "relation": {"contains": project.page_id},
            },
        )
        faqs: list[FAQ] = []
        for page in pages:
            blocks = self.list_block_children(_page_id(page))
            faqs.append(parse_faq(page, blocks))
        return faqs

    def lookup_project_definitions(
        self, project: Project, database_id: str
    ) -> list[Definition]:
        """
        List the glossary definitions related to a project.
        """
        pages = self.query_database(
            database_id,
            filter={
                "property": config.DEFINITION_PROJECTS_PROPERTY,
                "relation": {"contains": project.page_id},
            },
        )
        return [parse_definition(page) for page in pages]
