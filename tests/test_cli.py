from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from notiondocs.cli import app
from notiondocs.cli import generic as generic_cli
from notiondocs.errors import NotionAPIError
from tests.notion_fakes import FakeNotion, make_definition, make_faq

runner = CliRunner()


@pytest.fixture
def configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTION_TOKEN", "secret")
    monkeypatch.setenv("NOTION_PROJECTS_DB", "projects-db")
    monkeypatch.setenv("NOTION_FAQ_DB", "faq-db")
    monkeypatch.setenv("NOTION_DEFINITIONS_DB", "definitions-db")


def use_notion(monkeypatch: pytest.MonkeyPatch, notion: FakeNotion) -> list[str]:
    tokens: list[str] = []

    def factory(token: str) -> FakeNotion:
        tokens.append(token)
        return notion

    monkeypatch.setattr(generic_cli, "NotionClient", factory)
    return tokens


@pytest.fixture
def notion() -> FakeNotion:
    return FakeNotion(
        faqs=[make_faq(1, "Voting", 1, "Who can vote?")],
        definitions=[
            make_definition(1, "Quorum"),
            make_definition(2, "quorum"),
            make_definition(3, "Veto", status="Draft"),
        ],
    )


class TestRootApp:
    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "update" in result.stdout
        assert "show" in result.stdout

    def test_show_help(self):
        result = runner.invoke(app, ["show", "--help"])
        assert result.exit_code == 0
        assert "definitions" in result.stdout
        assert "faq" in result.stdout


class TestUpdate:
    def test_writes_partials(
        self, configured, notion: FakeNotion, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ):
        tokens = use_notion(monkeypatch, notion)
        glossary = tmp_path / "glossary.md"
        faq = tmp_path / "faq.md"

        result = runner.invoke(
            app, ["update", "--glossary-out", str(glossary), "--faq-out", str(faq)]
        )

        assert result.exit_code == 0, result.stderr
        assert tokens == ["secret"]
        assert "{#quorum}" in glossary.read_text(encoding="utf-8")
        assert "Who can vote?" in faq.read_text(encoding="utf-8")
        assert "Published 2 definitions" in result.stdout

    def test_fetch_failure_exits_non_zero(
        self, configured, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ):
        error = NotionAPIError("API token is invalid.", status=401, code="unauthorized")
        use_notion(monkeypatch, FakeNotion(error=error))

        result = runner.invoke(
            app,
            [
                "update",
                "--glossary-out",
                str(tmp_path / "glossary.md"),
                "--faq-out",
                str(tmp_path / "faq.md"),
            ],
        )

        assert result.exit_code == 1
        assert "NotionAPIError" in result.stderr
        assert "API token is invalid." in result.stderr
        assert not (tmp_path / "glossary.md").exists()

    def test_missing_settings_exit_3(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.setattr(os, "environ", {})
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["update"])

        assert result.exit_code == 3
        assert "NOTION_TOKEN" in result.stderr


class TestShow:
    def test_definitions_json(
        self, configured, notion: FakeNotion, monkeypatch: pytest.MonkeyPatch
    ):
        use_notion(monkeypatch, notion)

        result = runner.invoke(app, ["show", "definitions", "--json"])

        assert result.exit_code == 0, result.stderr
        rows = json.loads(result.stdout)
        assert [row["term"] for row in rows] == ["Quorum", "quorum", "Veto"]
        assert [row["validity"] for row in rows] == ["valid", "valid", "not published"]
        assert [row["anchor_collision"] for row in rows] == [True, True, False]

    def test_definitions_table(
        self, configured, notion: FakeNotion, monkeypatch: pytest.MonkeyPatch
    ):
        use_notion(monkeypatch, notion)

        result = runner.invoke(app, ["show", "definitions"])

        assert result.exit_code == 0, result.stderr
        assert "Anchor collisions" in result.stdout
        assert "#quorum: 2 definitions" in result.stdout

    def test_faq_json(self, configured, monkeypatch: pytest.MonkeyPatch):
        use_notion(
            monkeypatch,
            FakeNotion(
                faqs=[
                    make_faq(1, "Voting", 2, "How long is a vote?"),
                    make_faq(2, "Voting", 1, "Who can vote?"),
                    make_faq(3, "Rewards", 5, "When are rewards paid?"),
                ]
            ),
        )

        result = runner.invoke(app, ["show", "faq", "--json"])

        assert result.exit_code == 0, result.stderr
        data = json.loads(result.stdout)
        assert list(data) == ["Voting", "Rewards"]
        assert [entry["order"] for entry in data["Voting"]] == [1, 2]

    def test_fetch_failure(self, configured, monkeypatch: pytest.MonkeyPatch):
        use_notion(monkeypatch, FakeNotion(error=NotionAPIError("boom")))

        result = runner.invoke(app, ["show", "faq"])

        assert result.exit_code == 1
        assert "boom" in result.stderr
        assert "boom" not in result.stdout
