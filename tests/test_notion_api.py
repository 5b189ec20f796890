from __future__ import annotations

import pytest
import requests

from notiondocs.compose import organize_faq
from notiondocs.datatypes import Annotations
from notiondocs.errors import NotionAPIError, NotionSchemaError, ProjectNotFoundError
from notiondocs.notion_api import (
    NotionClient,
    is_notion_url,
    normalize_page_id,
    page_id_from_url,
    parse_block,
    parse_definition,
    parse_faq,
    parse_rich_text,
)
from tests.notion_fakes import (
    PROJECT,
    PROJECT_ID,
    FakeSession,
    block,
    definition_page,
    faq_page,
    listing,
    mention,
    page,
    page_id,
    project_page,
    rt,
    select_prop,
    title_prop,
)

COMPACT_ID = "0123456789abcdef0123456789abcdef"
DASHED_ID = "01234567-89ab-cdef-0123-456789abcdef"


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(session: FakeSession) -> NotionClient:
    return NotionClient("secret_token", session=session, page_size=2)  # type: ignore[arg-type]


def test_normalize_page_id():
    assert normalize_page_id(COMPACT_ID) == DASHED_ID
    assert normalize_page_id(DASHED_ID.upper()) == DASHED_ID
    assert normalize_page_id(" not-an-id ") == "not-an-id"


@pytest.mark.parametrize(
    "url, expected",
    [
        (f"https://www.notion.so/Quorum-{COMPACT_ID}", DASHED_ID),
        (f"https://acme.notion.site/{COMPACT_ID}?pvs=4", DASHED_ID),
        (f"/{COMPACT_ID}", DASHED_ID),
        (f"https://www.notion.so/workspace/{DASHED_ID}#heading", DASHED_ID),
        (f"https://example.org/{COMPACT_ID}", None),
        ("https://www.notion.so/about", None),
        ("mailto:dao@example.org", None),
        (None, None),
    ],
)
def test_page_id_from_url(url, expected):
    assert page_id_from_url(url) == expected


def test_parse_text_span():
    span = parse_rich_text(rt("vote", bold=True, italic=True))
    assert span.text == "vote"
    assert span.annotations == Annotations(bold=True, italic=True)
    assert span.href is None
    assert span.page_id is None


def test_parse_external_link():
    span = parse_rich_text(rt("forum", link="https://forum.example.org"))
    assert span.href == "https://forum.example.org"
    assert span.page_id is None


def test_parse_internal_link_references_page():
    span = parse_rich_text(rt("quorum", link=f"/{COMPACT_ID}"))
    assert span.page_id == DASHED_ID
    assert span.href is None


def test_parse_notion_link_without_page_id_is_plain_text():
    span = parse_rich_text(rt("pricing", link="https://www.notion.so/pricing"))
    assert span.text == "pricing"
    assert span.href is None
    assert span.page_id is None


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.notion.so/pricing", True),
        ("https://acme.notion.site/", True),
        ("/workspace-page", True),
        ("https://notion.so.example.org/x", False),
        ("https://forum.example.org", False),
        ("", False),
    ],
)
def test_is_notion_url(url, expected):
    assert is_notion_url(url) is expected


def test_parse_page_mention():
    span = parse_rich_text(mention("Quorum", COMPACT_ID))
    assert span.text == "Quorum"
    assert span.page_id == DASHED_ID
    assert span.href is None


def test_parse_user_mention_is_plain_text():
    span = parse_rich_text(
        {"type": "mention", "mention": {"type": "user", "user": {}}, "plain_text": "@Ana"}
    )
    assert (span.text, span.page_id, span.href) == ("@Ana", None, None)


def test_parse_equation_and_unknown_types_never_fail():
    equation = parse_rich_text({"type": "equation", "equation": {"expression": "x^2"}})
    assert equation.text == "x^2"
    assert parse_rich_text({}).text == ""


def test_parse_block_variants():
    todo = parse_block(block("b1", "to_do", rt("ship it"), checked=True))
    assert (todo.type, todo.checked, todo.rich_text[0].text) == ("to_do", True, "ship it")

    code = parse_block(block("b2", "code", rt("print()"), language="python"))
    assert code.language == "python"

    divider = parse_block({"id": "b3", "type": "divider", "divider": {}})
    assert divider.rich_text == ()


def test_parse_definition():
    raw = definition_page(page_id(1), "Quorum", "Minimum votes.", status="Published")
    definition = parse_definition(raw)

    assert definition.page_id == page_id(1)
    assert definition.term[0].text == "Quorum"
    assert definition.definition[0].text == "Minimum votes."
    assert definition.project_ids == (PROJECT_ID,)
    assert definition.status == "Published"
    assert definition.url == raw["url"]


def test_parse_definition_empty_status_is_none():
    raw = definition_page(page_id(1), "Quorum", "Minimum votes.", status=None)
    assert parse_definition(raw).status is None

    del raw["properties"]["Status"]
    assert parse_definition(raw).status is None


def test_parse_definition_missing_property():
    raw = definition_page(page_id(1), "Quorum", "Minimum votes.")
    del raw["properties"]["Definition"]

    with pytest.raises(NotionSchemaError) as excinfo:
        parse_definition(raw)
    assert excinfo.value.prop == "Definition"
    assert page_id(1) in str(excinfo.value)


def test_parse_definition_wrong_property_type():
    raw = definition_page(page_id(1), "Quorum", "Minimum votes.")
    raw["properties"]["Projects"] = select_prop("Governance docs")

    with pytest.raises(NotionSchemaError, match="expected one of"):
        parse_definition(raw)


def test_parse_faq():
    faq = parse_faq(faq_page(page_id(1), "Who can vote?", "Voting", 2.0, "Holders."))
    assert (faq.section, faq.order, faq.question) == ("Voting", 2, "Who can vote?")
    assert faq.answer[0].text == "Holders."
    assert faq.blocks == ()


def test_parse_faq_keeps_decimal_order():
    second = parse_faq(faq_page(page_id(1), "Second?", "Voting", 1.5))
    first = parse_faq(faq_page(page_id(2), "First?", "Voting", 1.2))

    assert (second.order, first.order) == (1.5, 1.2)
    assert [faq.question for faq in organize_faq([second, first])["Voting"]] == [
        "First?",
        "Second?",
    ]


def test_parse_faq_with_text_section():
    raw = faq_page(page_id(1), "Q?", "ignored", 1)
    raw["properties"]["Section"] = title_prop(rt("Rewards"))
    assert parse_faq(raw).section == "Rewards"


def test_parse_faq_without_order_fails():
    with pytest.raises(NotionSchemaError, match="Order"):
        parse_faq(faq_page(page_id(1), "Q?", "Voting", None))


def test_client_sets_headers(session: FakeSession, client: NotionClient):
    assert session.headers["Authorization"] == "Bearer secret_token"
    assert session.headers["Notion-Version"] == "2022-06-28"


def test_query_database_follows_pagination(session: FakeSession, client: NotionClient):
    first = [page(page_id(1), {}), page(page_id(2), {})]
    second = [page(page_id(3), {})]
    session.add("POST", "databases/db/query", listing(first, next_cursor="cursor-2"))
    session.add("POST", "databases/db/query", listing(second))

    pages = client.query_database("db", filter={"property": "X", "number": {"equals": 1}})

    assert [p["id"] for p in pages] == [page_id(1), page_id(2), page_id(3)]
    assert [call["json"].get("start_cursor") for call in session.calls] == [None, "cursor-2"]
    assert all(call["json"]["page_size"] == 2 for call in session.calls)
    assert all(call["json"]["filter"]["property"] == "X" for call in session.calls)


def test_http_error_is_wrapped(session: FakeSession, client: NotionClient):
    session.add(
        "POST",
        "databases/db/query",
        {"object": "error", "code": "unauthorized", "message": "API token is invalid."},
        status_code=401,
    )

    with pytest.raises(NotionAPIError) as excinfo:
        client.query_database("db")

    assert excinfo.value.status == 401
    assert excinfo.value.code == "unauthorized"
    assert str(excinfo.value) == "[401 unauthorized] API token is invalid."


def test_transport_error_is_wrapped(client: NotionClient, session: FakeSession):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    session.request = boom  # type: ignore[method-assign]

    with pytest.raises(NotionAPIError, match="connection refused") as excinfo:
        client.query_database("db")
    assert excinfo.value.status is None
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_lookup_project(session: FakeSession, client: NotionClient):
    session.add("POST", "databases/projects/query", listing([project_page()]))

    project = client.lookup_project("Governance docs", "projects")

    assert project == PROJECT
    assert session.calls[0]["json"]["filter"] == {
        "property": "Name",
        "title": {"equals": "Governance docs"},
    }


def test_lookup_project_not_found(session: FakeSession, client: NotionClient):
    session.add("POST", "databases/projects/query", listing([]))

    with pytest.raises(ProjectNotFoundError, match="Governance docs"):
        client.lookup_project("Governance docs", "projects")


def test_list_block_children_recurses(session: FakeSession, client: NotionClient):
    session.add(
        "GET",
        "blocks/parent/children",
        listing(
            [
                block("11111111-0000-0000-0000-000000000001", "bulleted_list_item", rt("one"), has_children=True),
                block("11111111-0000-0000-0000-000000000002", "child_page", has_children=True),
            ]
        ),
    )
    session.add(
        "GET",
        "blocks/11111111-0000-0000-0000-000000000001/children",
        listing([block("11111111-0000-0000-0000-000000000003", "paragraph", rt("nested"))]),
    )

    blocks = client.list_block_children("parent")

    assert [b.type for b in blocks] == ["bulleted_list_item", "child_page"]
    assert blocks[0].children[0].rich_text[0].text == "nested"
    assert blocks[1].children == ()
    assert session.calls[0]["params"] == {"page_size": 2}
    assert len(session.calls) == 2


def test_lookup_project_faq_includes_page_body(session: FakeSession, client: NotionClient):
    session.add(
        "POST",
        "databases/faq/query",
        listing([faq_page(page_id(1), "Who can vote?", "Voting", 1, "Holders.")]),
    )
    session.add(
        "GET",
        f"blocks/{page_id(1)}/children",
        listing([block("b1", "paragraph", rt("Any token holder."))]),
    )

    faqs = client.lookup_project_faq(PROJECT, "faq")

    assert len(faqs) == 1
    assert faqs[0].blocks[0].rich_text[0].text == "Any token holder."
    assert session.calls[0]["json"]["filter"] == {
        "property": "Project",
        "relation": {"contains": PROJECT_ID},
    }


def test_lookup_project_definitions(session: FakeSession, client: NotionClient):
    session.add(
        "POST",
        "databases/defs/query",
        listing(
            [
                definition_page(page_id(1), "Quorum", "Minimum votes."),
                definition_page(page_id(2), "Veto", "Blocks a proposal.", status="Draft"),
            ]
        ),
    )

    definitions = client.lookup_project_definitions(PROJECT, "defs")

    assert [d.page_id for d in definitions] == [page_id(1), page_id(2)]
    assert definitions[1].status == "Draft"
    assert session.calls[0]["json"]["filter"] == {
        "property": "Projects",
        "relation": {"contains": PROJECT_ID},
    }
