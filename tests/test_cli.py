"""Tests for the module-upgrade CLI.

Database collaborators are patched at ``module_upgrade.cli``; definitions
and db.toml live in ``tmp_path``.
"""

import inspect
import json
import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import module_upgrade.cli as cli
from module_upgrade.cli import build_parser, cmd_database, cmd_profiles, main
from module_upgrade.definitions.discovery import JsonDefinitionDiscovery
from module_upgrade.schema.models import SchemaSnapshot
from module_upgrade.schema.naming import prefixed_naming
from module_upgrade.schema.snapshot import build_target

CLI_INIT_PY = Path(__file__).parent.parent / "src" / "module_upgrade" / "cli" / "__init__.py"

DB_TOML = textwrap.dedent(
    """
    [profiles.local]
    url = "postgresql://shop@localhost:5432/shop"
    description = "Local shop"

    [profiles.staging]
    url = "postgresql://shop@staging:5432/shop"

    [migration]
    table_prefix = "ps_"
    """
)

FOO = {
    "table": "foo",
    "primary": "id_foo",
    "fields": {"name": {"type": "string", "required": True}},
}


class FakeIntrospector:
    def __init__(self, snapshot=None, error=None):
        self.snapshot = snapshot or SchemaSnapshot()
        self.error = error

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def introspect(self):
        if self.error:
            raise self.error
        return self.snapshot


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    (tmp_path / "db.toml").write_text(DB_TOML)
    module_dir = tmp_path / "definitions" / "blog"
    module_dir.mkdir(parents=True)
    (module_dir / "foo.json").write_text(json.dumps(FOO))
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DB_PROFILE", raising=False)
    return tmp_path


@pytest.fixture
def client():
    client = MagicMock()
    client.execute = AsyncMock()
    client.close = AsyncMock()
    return client


def _run_database(argv, client, introspector=None, answer="y"):
    args = build_parser().parse_args(argv)
    with (
        patch("module_upgrade.cli.get_adapter", return_value=client),
        patch(
            "module_upgrade.cli.get_introspector",
            return_value=introspector or FakeIntrospector(),
        ),
        patch.object(cli.console, "input", return_value=answer) as mock_input,
    ):
        code = cmd_database(args)
    return code, mock_input


# ------------------------------------------------------------------
# Parser
# ------------------------------------------------------------------


class TestParser:
    def test_database_arguments(self):
        args = build_parser().parse_args(
            ["database", "blog", "--force", "--dry-run", "--definitions", "d", "--profile", "p"]
        )
        assert args.module == "blog"
        assert args.force is True
        assert args.dry_run is True
        assert args.definitions == "d"
        assert args.profile == "p"
        assert args.func is cmd_database

    def test_database_requires_module(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["database"])
        assert exc_info.value.code == 2

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_main_dispatches_with_env_prefix(self):
        with patch("module_upgrade.cli.cmd_profiles", return_value=0) as mock_profiles:
            assert main(["--env-prefix", "SHOP_", "profiles"]) == 0
        assert mock_profiles.call_args[0][0].env_prefix == "SHOP_"

    def test_commands_wrap_async_with_asyncio_run(self):
        source = inspect.getsource(cmd_database)
        assert "asyncio.run(" in source
        assert inspect.iscoroutinefunction(cli._async_database)

    def test_prog_name(self):
        assert 'prog="module-upgrade"' in CLI_INIT_PY.read_text()


# ------------------------------------------------------------------
# profiles
# ------------------------------------------------------------------


class TestProfilesCommand:
    def test_lists_profiles(self, workspace, monkeypatch, capsys):
        monkeypatch.setenv("DB_PROFILE", "staging")

        assert cmd_profiles(build_parser().parse_args(["profiles"])) == 0

        out = capsys.readouterr().out
        assert "local" in out
        assert "Local shop" in out
        assert "active profile" in out

    def test_missing_db_toml(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        assert cmd_profiles(build_parser().parse_args(["profiles"])) == 1
        assert "Database config not found" in capsys.readouterr().out


# ------------------------------------------------------------------
# database
# ------------------------------------------------------------------


class TestDatabaseCommand:
    def test_applies_after_confirmation(self, workspace, client, capsys):
        code, mock_input = _run_database(["database", "blog", "--profile", "local"], client)

        assert code == 0
        mock_input.assert_called_once()
        assert "Do you want to apply this on the database?" in mock_input.call_args[0][0]
        statement = client.execute.await_args_list[0].args[0]
        assert statement.startswith("CREATE TABLE IF NOT EXISTS public.ps_foo ")
        client.close.assert_awaited_once()
        out = capsys.readouterr().out
        assert "Executing without deletes or drops" in out
        assert "Done" in out

    def test_declined(self, workspace, client, capsys):
        code, _ = _run_database(["database", "blog", "--profile", "local"], client, answer="n")

        assert code == 0
        client.execute.assert_not_awaited()
        assert "Aborted" in capsys.readouterr().out

    def test_force_skips_prompt(self, workspace, client):
        code, mock_input = _run_database(
            ["database", "blog", "--profile", "local", "--force"], client
        )

        assert code == 0
        mock_input.assert_not_called()
        client.execute.assert_awaited_once()

    def test_dry_run(self, workspace, client, capsys):
        code, mock_input = _run_database(
            ["database", "blog", "--profile", "local", "--dry-run"], client
        )

        assert code == 0
        mock_input.assert_not_called()
        client.execute.assert_not_awaited()
        assert "DRY RUN" in capsys.readouterr().out

    def test_no_differences(self, workspace, client, capsys):
        definitions = JsonDefinitionDiscovery(workspace / "definitions").discover("blog")
        target, _ = build_target(definitions, naming=prefixed_naming("ps_"))

        code, mock_input = _run_database(
            ["database", "blog", "--profile", "local"], client, FakeIntrospector(target)
        )

        assert code == 0
        mock_input.assert_not_called()
        assert "No differences detected" in capsys.readouterr().out

    def test_profile_from_env_prefix(self, workspace, client, monkeypatch):
        monkeypatch.setenv("SHOP_DB_PROFILE", "staging")
        code, _ = _run_database(["--env-prefix", "SHOP_", "database", "blog", "--force"], client)
        assert code == 0

    def test_missing_profile(self, workspace, client, capsys):
        code, _ = _run_database(["database", "blog"], client)

        assert code == 1
        assert "No database profile configured" in capsys.readouterr().out

    def test_missing_module(self, workspace, client, capsys):
        code, _ = _run_database(["database", "shop", "--profile", "local"], client)

        assert code == 1
        assert "Module definitions not found" in capsys.readouterr().out
        client.close.assert_awaited_once()

    def test_definitions_option(self, workspace, client, tmp_path):
        other = tmp_path / "elsewhere" / "blog"
        other.mkdir(parents=True)

        code, _ = _run_database(
            ["database", "blog", "--profile", "local", "--definitions", str(other.parent)],
            client,
        )

        assert code == 0
        client.execute.assert_not_awaited()

    def test_snapshot_unavailable(self, workspace, client, capsys):
        introspector = FakeIntrospector(error=RuntimeError("relation lock timeout"))

        code, _ = _run_database(["database", "blog", "--profile", "local"], client, introspector)

        assert code == 1
        assert "Could not capture current schema" in capsys.readouterr().out
        client.execute.assert_not_awaited()

    def test_failed_statement_exit_code(self, workspace, client, capsys):
        client.execute.side_effect = Exception("permission denied for schema public")

        code, _ = _run_database(["database", "blog", "--profile", "local", "--force"], client)

        assert code == 1
        assert "1 of 1 statements failed" in capsys.readouterr().out

    def test_translation_failures_are_listed(self, workspace, client, capsys):
        bad = {"table": "bad", "primary": "id_bad", "fields": {"x": {"type": "nothing"}}}
        (workspace / "definitions" / "blog" / "bad.json").write_text(json.dumps(bad))

        code, _ = _run_database(["database", "blog", "--profile", "local", "--force"], client)

        out = capsys.readouterr().out
        assert code == 0
        assert "could not be read" in out
        assert "bad.json" in out

    def test_malformed_entry_is_listed(self, workspace, client, capsys):
        tag = {"table": "tag", "primary": "id_tag", "fields": {"label": {"size": "big"}}}
        (workspace / "definitions" / "blog" / "tag.json").write_text(json.dumps(tag))

        code, _ = _run_database(["database", "blog", "--profile", "local", "--force"], client)

        out = capsys.readouterr().out
        assert code == 0
        assert "tag.json" in out
        statements = [call.args[0] for call in client.execute.await_args_list]
        assert any("ps_foo" in statement for statement in statements)

    def test_unreadable_file_is_listed(self, workspace, client, capsys):
        (workspace / "definitions" / "blog" / "broken.json").write_text("{not json")

        code, _ = _run_database(["database", "blog", "--profile", "local", "--force"], client)

        out = capsys.readouterr().out
        assert code == 0
        assert "1 definition file(s) skipped" in out
        assert "broken.json" in out
