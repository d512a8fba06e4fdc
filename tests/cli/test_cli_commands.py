"""CLI command tests using Click CliRunner.

Strategy: patch get_components at each command module's import point so the
commands run a real engine over a temp JSON store.
"""

import json
from contextlib import ExitStack
from unittest.mock import MagicMock, patch

import click
import pytest
from click.testing import CliRunner

from cli.commands.lists import parse_step
from cli.config_models import ResolverConfig
from cli.main import cli
from operations.engine import ResolutionEngine
from shared_types import StepAction


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def components(json_store, tmp_path):
    return {
        "config_model": MagicMock(),
        "store": json_store,
        "engine": ResolutionEngine(json_store),
        "context_file": tmp_path / "pending.json",
    }


@pytest.fixture(autouse=True)
def patched(components):
    with ExitStack() as stack:
        for module in ("tasks", "lists", "session"):
            stack.enter_context(
                patch(f"cli.commands.{module}.get_components", return_value=components)
            )
        stack.enter_context(patch("cli.main.load_config_model", return_value=ResolverConfig()))
        stack.enter_context(patch("cli.main.setup_logging"))
        yield components


class TestTaskCommands:
    def test_complete_auto_resolves(self, runner, json_store):
        result = runner.invoke(cli, ["complete", "completed", "review", "of", "client", "portfolios"])
        assert result.exit_code == 0, result.output
        assert 'Marked "Review client portfolios"' in result.output
        assert json_store.get("work", "w1").completed

    def test_not_found_exits_nonzero(self, runner):
        result = runner.invoke(cli, ["delete", "water", "the", "plants"])
        assert result.exit_code == 1
        assert "Could not find any task" in result.output

    def test_add_list(self, runner, json_store):
        result = runner.invoke(cli, ["add", "Packing", "List", "-i", "Socks", "-i", "Charger"])
        assert result.exit_code == 0, result.output
        assert "Created Packing List with 2 items" in result.output
        assert any(r.text == "Packing List" for r in json_store.records("personal"))

    def test_edit(self, runner, json_store):
        result = runner.invoke(cli, ["edit", "CFA", "study", "session", "--to", "CFA mock exam"])
        assert result.exit_code == 0, result.output
        assert json_store.get("work", "w2").text == "CFA mock exam"

    def test_list_by_kind(self, runner):
        result = runner.invoke(cli, ["list", "-k", "work"])
        assert result.exit_code == 0
        assert "Review client portfolios" in result.output
        assert "Grocery List" not in result.output

    def test_status(self, runner):
        result = runner.invoke(cli, ["status"])
        assert result.exit_code == 0
        assert "personal" in result.output

    def test_capabilities(self, runner):
        result = runner.invoke(cli, ["capabilities"])
        assert result.exit_code == 0
        assert "calendar" in result.output


class TestSessionCommands:
    def test_clarify_then_reply(self, runner, components, json_store):
        asked = runner.invoke(cli, ["complete", "meeting"])
        assert asked.exit_code == 0, asked.output
        assert "Reply with a letter" in asked.output
        saved = json.loads(components["context_file"].read_text())
        assert saved["kind"] == "clarification"

        answered = runner.invoke(cli, ["reply", "B"])
        assert answered.exit_code == 0, answered.output
        assert "Client meeting prep" in answered.output
        assert not components["context_file"].exists()
        assert json_store.get("personal", "p1").completed

    def test_invalid_reply_keeps_question(self, runner, components):
        runner.invoke(cli, ["complete", "meeting"])
        result = runner.invoke(cli, ["reply", "Z"])
        assert "Please choose from A-C." in result.output
        assert components["context_file"].exists()

    def test_reply_without_question(self, runner):
        result = runner.invoke(cli, ["reply", "yes"])
        assert result.exit_code == 1
        assert "Nothing is waiting" in result.output

    def test_pending_show_and_clear(self, runner, components):
        runner.invoke(cli, ["complete", "meeting"])
        shown = runner.invoke(cli, ["pending", "show"])
        assert "Team meeting at 3pm" in shown.output

        cleared = runner.invoke(cli, ["pending", "clear"])
        assert "cleared" in cleared.output
        assert not components["context_file"].exists()


class TestListCommands:
    def test_modify_runs_steps_in_order(self, runner, json_store):
        result = runner.invoke(cli, ["modify", "grocery list", "remove:Greek yogurt", "add:Apples"])
        assert result.exit_code == 0, result.output
        assert [i.text for i in json_store.get("personal", "p3").sub_items] == [
            "Milk", "Bread", "Eggs", "Apples",
        ]

    def test_modify_rejects_unknown_step(self, runner):
        result = runner.invoke(cli, ["modify", "grocery list", "frobnicate:Milk"])
        assert result.exit_code == 2
        assert "is not a step" in result.output

    def test_item_toggle(self, runner, json_store):
        result = runner.invoke(cli, ["item", "toggle", "grocery", "milk"])
        assert result.exit_code == 0, result.output
        assert json_store.get("personal", "p3").sub_items[1].completed

    def test_show(self, runner):
        result = runner.invoke(cli, ["show", "grocery", "list"])
        assert result.exit_code == 0
        assert "Greek yogurt" in result.output


class TestParseStep:
    def test_edit_step(self):
        step = parse_step("edit:Bread=>Sourdough bread")
        assert step.action == StepAction.EDIT
        assert step.target_text == "Bread"
        assert step.payload == "Sourdough bread"

    def test_verbs_are_case_insensitive(self):
        assert parse_step("Remove: Milk").action == StepAction.REMOVE_ITEM
        assert parse_step("Remove: Milk").target_text == "Milk"

    @pytest.mark.parametrize("raw", ["Milk", "add:", "edit:Bread"])
    def test_bad_steps(self, raw):
        with pytest.raises(click.BadParameter):
            parse_step(raw)
