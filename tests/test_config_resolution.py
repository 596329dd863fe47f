"""Tests for config file resolution, env loading and root resolution."""

import os

import pytest
import yaml

from reqcraft import config as cfg


@pytest.fixture
def tmp_project(tmp_path, monkeypatch):
    """Create a temporary working directory and cd into it."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write_config(path, base_url="http://localhost:3000", templates_dir=None, **extra):
    """Helper to write a config YAML file."""
    defaults = {"base_url": base_url}
    if templates_dir is not None:
        defaults["templates_dir"] = templates_dir
    defaults.update(extra)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump({"defaults": defaults}))


# ── resolve_config_path ─────────────────────────────────────────────────


class TestResolveConfigPath:
    def test_explicit_flag_takes_priority(self, tmp_project, global_reqcraft_dir):
        """Explicit -c flag should win over everything else."""
        explicit = tmp_project / "custom" / "my.yaml"
        _write_config(explicit)
        _write_config(tmp_project / ".reqcraft.yaml", base_url="cwd")
        _write_config(global_reqcraft_dir / "config.yaml", base_url="global")

        result = cfg.resolve_config_path(str(explicit))
        assert result == explicit.resolve()

    def test_explicit_flag_nonexistent_returns_none(self, tmp_project, global_reqcraft_dir):
        _write_config(global_reqcraft_dir / "config.yaml", base_url="global")
        assert cfg.resolve_config_path("/nonexistent/config.yaml") is None

    def test_cwd_config_found(self, tmp_project, global_reqcraft_dir):
        _write_config(tmp_project / ".reqcraft.yaml")
        _write_config(global_reqcraft_dir / "config.yaml", base_url="global")

        result = cfg.resolve_config_path(None)
        assert result == (tmp_project / ".reqcraft.yaml").resolve()

    @pytest.mark.parametrize("name", [".reqcraft.yml", "reqcraft.yaml", "reqcraft.yml"])
    def test_cwd_variants(self, tmp_project, global_reqcraft_dir, name):
        _write_config(tmp_project / name)
        assert cfg.resolve_config_path(None) == (tmp_project / name).resolve()

    def test_cwd_config_priority_order(self, tmp_project, global_reqcraft_dir):
        """First CWD candidate wins: .reqcraft.yaml before reqcraft.yaml."""
        _write_config(tmp_project / ".reqcraft.yaml", base_url="dotted")
        _write_config(tmp_project / "reqcraft.yaml", base_url="undotted")

        assert cfg.resolve_config_path(None).name == ".reqcraft.yaml"

    def test_global_config_fallback(self, tmp_project, global_reqcraft_dir):
        _write_config(global_reqcraft_dir / "config.yaml", base_url="global")

        result = cfg.resolve_config_path(None)
        assert result == (global_reqcraft_dir / "config.yaml").resolve()

    def test_no_config_anywhere(self, tmp_project, global_reqcraft_dir):
        assert cfg.resolve_config_path(None) is None

    def test_resolve_path_first_existing(self, tmp_path):
        present = tmp_path / "b.yaml"
        present.write_text("")
        assert cfg.resolve_path([tmp_path / "a.yaml", present]) == present.resolve()
        assert cfg.resolve_path([tmp_path / "a.yaml"]) is None


# ── load_config ──────────────────────────────────────────────────────────


class TestLoadConfig:
    def test_none_path_returns_defaults(self):
        config = cfg.load_config(None)
        assert config["defaults"] == {}
        assert config["_config_dir"] is None

    def test_nonexistent_path_returns_defaults(self):
        config = cfg.load_config("/nonexistent/path.yaml")
        assert config["defaults"] == {}
        assert config["_config_dir"] is None

    def test_valid_config_loads_defaults(self, tmp_path):
        cfg_path = tmp_path / "config.yaml"
        _write_config(cfg_path, base_url="http://test:8080", editor="nano", timeout=5)
        config = cfg.load_config(cfg_path)
        assert config["defaults"]["base_url"] == "http://test:8080"
        assert config["defaults"]["editor"] == "nano"
        assert config["defaults"]["timeout"] == 5

    def test_config_dir_is_set(self, tmp_path):
        cfg_path = tmp_path / "subdir" / "config.yaml"
        _write_config(cfg_path)
        config = cfg.load_config(cfg_path)
        assert config["_config_dir"] == (tmp_path / "subdir").resolve()

    def test_empty_yaml_returns_empty_defaults(self, tmp_path):
        cfg_path = tmp_path / "empty.yaml"
        cfg_path.write_text("")
        config = cfg.load_config(cfg_path)
        assert config["defaults"] == {}
        assert config["_config_dir"] == tmp_path.resolve()

    def test_null_defaults_section(self, tmp_path):
        cfg_path = tmp_path / "config.yaml"
        cfg_path.write_text("defaults:\n")
        assert cfg.load_config(cfg_path)["defaults"] == {}


# ── load_env / resolve_value ─────────────────────────────────────────────


class TestEnv:
    def test_no_env_file_is_os_environ(self, monkeypatch):
        monkeypatch.setenv("REQCRAFT_TEST_VAR", "from-os")
        env = cfg.load_env(None)
        assert env["REQCRAFT_TEST_VAR"] == "from-os"

    def test_env_file_relative_to_config_dir(self, tmp_path):
        (tmp_path / "conf").mkdir()
        (tmp_path / "conf" / ".env").write_text("API_TOKEN=secret\n")
        env = cfg.load_env(".env", tmp_path / "conf")
        assert env["API_TOKEN"] == "secret"

    def test_env_file_overrides_os(self, tmp_path, monkeypatch):
        monkeypatch.setenv("API_TOKEN", "os")
        (tmp_path / ".env").write_text("API_TOKEN=file\n")
        assert cfg.load_env(".env", tmp_path)["API_TOKEN"] == "file"

    def test_missing_env_file_ignored(self, tmp_path):
        env = cfg.load_env("nope.env", tmp_path)
        assert env == dict(os.environ)

    def test_resolve_value_forms(self):
        env = {"HOST": "api.local", "PORT": "8080"}
        assert cfg.resolve_value("http://$HOST:${PORT}/v1", env) == "http://api.local:8080/v1"

    def test_resolve_value_unknown_left_alone(self, monkeypatch):
        monkeypatch.delenv("REQCRAFT_UNSET", raising=False)
        assert cfg.resolve_value("${REQCRAFT_UNSET}", {}) == "${REQCRAFT_UNSET}"

    def test_resolve_value_non_string(self):
        assert cfg.resolve_value(30, {}) == 30
        assert cfg.resolve_value(None, {}) is None

    def test_default_headers_resolved(self):
        config = {"defaults": {"headers": {"Authorization": "Bearer $TOKEN", "X-N": 1}}}
        headers = cfg.default_headers(config, {"TOKEN": "abc"})
        assert headers == {"Authorization": "Bearer abc", "X-N": "1"}

    def test_default_headers_missing(self):
        assert cfg.default_headers({"defaults": {}}, {}) == {}


# ── resolve_root ─────────────────────────────────────────────────────────


class TestResolveRoot:
    def test_cli_flag_wins(self, tmp_project, global_reqcraft_dir):
        config = {"defaults": {"templates_dir": "from-config"}, "_config_dir": tmp_project}
        env = {cfg.ROOT_ENV_VAR: str(tmp_project / "from-env")}
        assert cfg.resolve_root("flag", config, env) == (tmp_project / "flag").resolve()

    def test_env_var_beats_config(self, tmp_project, global_reqcraft_dir):
        config = {"defaults": {"templates_dir": "from-config"}, "_config_dir": tmp_project}
        env = {cfg.ROOT_ENV_VAR: str(tmp_project / "from-env")}
        assert cfg.resolve_root(None, config, env) == (tmp_project / "from-env").resolve()

    def test_config_relative_to_config_dir(self, tmp_project, global_reqcraft_dir):
        conf_dir = tmp_project / "conf"
        config = {"defaults": {"templates_dir": "tpl"}, "_config_dir": conf_dir}
        assert cfg.resolve_root(None, config, {}) == (conf_dir / "tpl").resolve()

    def test_config_value_expands_env(self, tmp_project, global_reqcraft_dir):
        config = {"defaults": {"templates_dir": "${BASE}/tpl"}, "_config_dir": tmp_project}
        env = {"BASE": str(tmp_project / "base")}
        assert cfg.resolve_root(None, config, env) == (tmp_project / "base" / "tpl").resolve()

    def test_global_default(self, tmp_project, global_reqcraft_dir):
        config = {"defaults": {}, "_config_dir": None}
        assert cfg.resolve_root(None, config, {}) == global_reqcraft_dir / "templates"


class TestResolveTimeout:
    def test_first_truthy_wins(self):
        assert cfg.resolve_timeout(None, 10) == 10
        assert cfg.resolve_timeout(5, 10) == 5

    def test_default(self):
        assert cfg.resolve_timeout(None, None) == cfg.DEFAULT_TIMEOUT == 30
