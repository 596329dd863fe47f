"""reqcraft config - config file loading, env loading, root resolution."""

import os
import re
from pathlib import Path

import yaml
from dotenv import dotenv_values

GLOBAL_DIR = Path.home() / ".config" / "reqcraft"
GLOBAL_CONFIG = GLOBAL_DIR / "config.yaml"
GLOBAL_TEMPLATES_DIR = GLOBAL_DIR / "templates"

ROOT_ENV_VAR = "REQCRAFT_ROOT"
DEFAULT_TIMEOUT = 30

CWD_CONFIG_CANDIDATES = [
    ".reqcraft.yaml",
    ".reqcraft.yml",
    "reqcraft.yaml",
    "reqcraft.yml",
]


def resolve_path(candidates: list[Path]) -> Path | None:
    """Return the first existing path from candidates, else None."""
    for p in candidates:
        if p.exists():
            return p.resolve()
    return None


def resolve_config_path(config_file: str | None) -> Path | None:
    """Find the config file to use.

    Resolution order:
      1. Explicit -c flag (no fallthrough if missing)
      2. .reqcraft.yaml (variants) in CWD
      3. ~/.config/reqcraft/config.yaml
    """
    if config_file:
        return resolve_path([Path(config_file)])
    return resolve_path([Path(c) for c in CWD_CONFIG_CANDIDATES] + [GLOBAL_CONFIG])


def load_config(config_path: str | Path | None) -> dict:
    """Load YAML config file. Returns empty defaults if not found.

    Stores '_config_dir' in the returned dict so templates_dir can be
    resolved relative to the config file.
    """
    if config_path is None:
        return {"defaults": {}, "_config_dir": None}
    path = Path(config_path)
    if not path.exists():
        return {"defaults": {}, "_config_dir": None}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return {
        "defaults": data.get("defaults") or {},
        "_config_dir": path.resolve().parent,
    }


def load_env(env_file: str | None, base_dir: str | Path | None = None) -> dict[str, str]:
    """Load .env file on top of os.environ.

    A relative env_file is looked up next to the config file when
    base_dir is given, otherwise in CWD.
    """
    env = dict(os.environ)
    if env_file:
        dotenv_path = Path(env_file)
        if not dotenv_path.is_absolute():
            dotenv_path = Path(base_dir or ".") / dotenv_path
        if dotenv_path.exists():
            dotenv_vars = dotenv_values(str(dotenv_path))
            env.update({k: v for k, v in dotenv_vars.items() if v is not None})
    return env


def resolve_value(value, env: dict[str, str]):
    """Resolve $VAR and ${VAR} references in a string value.

    Unknown references are left as they are.
    """
    if not isinstance(value, str):
        return value

    def _replace(m: re.Match) -> str:
        var_name = m.group(1) or m.group(2)
        return env.get(var_name, os.environ.get(var_name, m.group(0)))

    return re.sub(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)", _replace, value)


def resolve_root(
    cli_root: str | None,
    config: dict,
    env: dict[str, str] | None = None,
) -> Path:
    """Pick the templates root directory.

    Resolution order:
      1. --root CLI flag (relative to CWD)
      2. $REQCRAFT_ROOT
      3. templates_dir from config (relative to config file)
      4. ~/.config/reqcraft/templates/
    """
    env = env if env is not None else dict(os.environ)
    if cli_root:
        return Path(cli_root).expanduser().resolve()
    if env.get(ROOT_ENV_VAR):
        return Path(env[ROOT_ENV_VAR]).expanduser().resolve()
    config_value = resolve_value(config.get("defaults", {}).get("templates_dir"), env)
    if config_value:
        p = Path(config_value).expanduser()
        config_dir = config.get("_config_dir")
        if not p.is_absolute() and config_dir:
            p = Path(config_dir) / p
        return p.resolve()
    return GLOBAL_TEMPLATES_DIR


def default_headers(config: dict, env: dict[str, str]) -> dict[str, str]:
    """Headers from config defaults, with $VAR references resolved."""
    headers = config.get("defaults", {}).get("headers") or {}
    return {str(k): str(resolve_value(v, env)) for k, v in headers.items()}


def resolve_timeout(*sources, default: int = DEFAULT_TIMEOUT) -> int:
    """Return the first truthy timeout from sources, or default."""
    for t in sources:
        if t:
            return int(t)
    return default
