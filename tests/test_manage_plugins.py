"""Tests for the manage_plugins CLI."""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

import manage_plugins
from brains_core.constants import BUNDLED_PLUGINS_DIR, PROJECT_ROOT

SOURCE = "def register(context):\n    return None\n"


def make_plugin(root, plugin_id, dependencies=(), with_source=True):
    plugin_dir = root / plugin_id
    plugin_dir.mkdir(parents=True)
    manifest = {"id": plugin_id, "name": plugin_id.title(), "dependencies": list(dependencies)}
    (plugin_dir / "plugin.json").write_text(json.dumps(manifest), encoding="utf-8")
    if with_source:
        (plugin_dir / "plugin.py").write_text(SOURCE, encoding="utf-8")


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "runtime.json"
    path.write_text(
        json.dumps({
            "permissions": {"anchors": ["cli:admin"], "rules": [{"pattern": "matrix:*", "level": "trusted"}]},
            "plugins": {"alpha": {"greeting": "hi"}},
        }),
        encoding="utf-8",
    )
    return path


class TestCommands:
    """Tests for each subcommand."""

    def test_list(self, tmp_path, capsys):
        make_plugin(tmp_path, "alpha")
        make_plugin(tmp_path, "beta", dependencies=["alpha"])

        manage_plugins.main(["--plugin-dir", str(tmp_path), "list"])

        out = capsys.readouterr().out
        assert "alpha" in out
        assert "beta" in out
        assert "alpha" in out.splitlines()[-1]

    def test_list_empty(self, tmp_path, capsys):
        manage_plugins.main(["--plugin-dir", str(tmp_path), "list"])
        assert "No plugins found." in capsys.readouterr().out

    def test_info(self, tmp_path, config_file, capsys):
        make_plugin(tmp_path / "plugins", "alpha")

        manage_plugins.main(
            ["--config", str(config_file), "--plugin-dir", str(tmp_path / "plugins"), "info", "alpha"]
        )

        out = capsys.readouterr().out
        assert "Plugin: alpha" in out
        assert "plugin:register" in out
        assert '"greeting": "hi"' in out

    def test_info_unknown(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            manage_plugins.main(["--plugin-dir", str(tmp_path), "info", "ghost"])
        assert exc_info.value.code == 1
        assert "not found" in capsys.readouterr().out

    def test_level(self, config_file, capsys):
        manage_plugins.main(["--config", str(config_file), "level", "cli", "admin"])
        manage_plugins.main(["--config", str(config_file), "level", "matrix", "@bob:example.org"])
        manage_plugins.main(["--config", str(config_file), "level", "cli", "guest"])

        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "cli:admin -> anchor",
            "matrix:@bob:example.org -> trusted",
            "cli:guest -> public",
        ]

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            manage_plugins.main([])
        assert exc_info.value.code == 1


class TestDoctor:
    """Tests for the doctor health check."""

    def test_bundled_plugins_pass(self, config_file, capsys):
        manage_plugins.main(["--config", str(config_file), "--plugin-dir", str(BUNDLED_PLUGINS_DIR), "doctor"])
        assert "All checks passed. 2 plugin(s) found." in capsys.readouterr().out

    def test_reports_problems(self, tmp_path, capsys):
        plugins = tmp_path / "plugins"
        make_plugin(plugins, "alpha", dependencies=["ghost"])
        make_plugin(plugins, "beta", with_source=False)
        bad_config = tmp_path / "bad.json"
        bad_config.write_text(json.dumps({"hook_timeout": "soon"}), encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            manage_plugins.main(["--config", str(bad_config), "--plugin-dir", str(plugins), "doctor"])

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "Found 3 issue(s):" in out
        assert "hook_timeout" in out
        assert "entry point file missing" in out
        assert "'ghost'" in out

    def test_reports_cycle(self, tmp_path, config_file, capsys):
        make_plugin(tmp_path, "alpha", dependencies=["beta"])
        make_plugin(tmp_path, "beta", dependencies=["alpha"])

        with pytest.raises(SystemExit):
            manage_plugins.main(["--config", str(config_file), "--plugin-dir", str(tmp_path), "doctor"])

        assert "Circular dependency" in capsys.readouterr().out

    def test_reports_invalid_env_timeout(self, config_file, monkeypatch, capsys):
        monkeypatch.setenv("PLUGIN_HOOK_TIMEOUT", "soon")

        with pytest.raises(SystemExit):
            manage_plugins.main(["--config", str(config_file), "--plugin-dir", str(BUNDLED_PLUGINS_DIR), "doctor"])

        assert "PLUGIN_HOOK_TIMEOUT" in capsys.readouterr().out


def clean_env(project_root):
    env = {
        key: value for key, value in os.environ.items()
        if key not in ("BRAINS_CONFIG_FILE", "BRAINS_PLUGIN_PATHS", "PLUGIN_HOOK_TIMEOUT")
    }
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(project_root), env.get("PYTHONPATH")]))
    return env


class TestDotenv:
    """Tests for settings loaded from a .env file in the working directory."""

    def test_cli_reads_config_path_from_dotenv(self, tmp_path, config_file):
        (tmp_path / ".env").write_text(f"BRAINS_CONFIG_FILE={config_file}\n", encoding="utf-8")

        result = subprocess.run(
            [sys.executable, str(PROJECT_ROOT / "manage_plugins.py"), "level", "cli", "admin"],
            cwd=tmp_path,
            env=clean_env(PROJECT_ROOT),
            capture_output=True,
            text=True,
        )

        assert result.returncode == 0, result.stderr
        assert result.stdout.strip() == "cli:admin -> anchor"

    def test_server_constants_read_dotenv(self, tmp_path):
        (tmp_path / ".env").write_text(
            "PLUGIN_HOOK_TIMEOUT=5\nBRAINS_CONFIG_FILE=/tmp/from-dotenv.json\n", encoding="utf-8"
        )
        script = (
            "import brains_core.app\n"
            "from brains_core import constants\n"
            "print(constants.PLUGIN_HOOK_TIMEOUT, constants.RUNTIME_CONFIG_FILE)\n"
        )

        result = subprocess.run(
            [sys.executable, "-c", script],
            cwd=tmp_path,
            env=clean_env(PROJECT_ROOT),
            capture_output=True,
            text=True,
        )

        assert result.returncode == 0, result.stderr
        assert result.stdout.split() == ["5.0", str(Path("/tmp/from-dotenv.json"))]
