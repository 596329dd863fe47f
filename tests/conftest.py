"""Shared fixtures for reqcraft tests."""

import json

import pytest
from click.testing import CliRunner

from reqcraft import cli, config
from reqcraft.executor import RequestResult
from reqcraft.prompts import CREATE_NEW
from reqcraft.workspace import Workspace


class FakeEditor:
    """Editor collaborator that replays scripted responses.

    A response is the edited text, None to simulate an abort, or a
    callable applied to the initial text. With no responses left the
    text comes back unchanged.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[tuple[str, str]] = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def edit(self, initial_text, extension=".json"):
        self.calls.append((initial_text, extension))
        if not self.responses:
            return initial_text
        response = self.responses.pop(0)
        if callable(response):
            return response(initial_text)
        return response


class FakeSelector:
    """Selector collaborator with scripted answers."""

    def __init__(self):
        self.choices: list = []
        self.confirms: list[bool] = []
        self.texts: list[str] = []
        self.prompts: list[tuple[str, list[str]]] = []

    def choose_one(self, prompt, options, allow_create=False):
        self.prompts.append((prompt, list(options)))
        choice = self.choices.pop(0)
        if choice == CREATE_NEW:
            return CREATE_NEW
        if isinstance(choice, str):
            return options.index(choice)
        return choice

    def confirm(self, prompt):
        return self.confirms.pop(0) if self.confirms else False

    def free_text(self, prompt):
        return self.texts.pop(0)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def editor():
    return FakeEditor()


@pytest.fixture
def selector():
    return FakeSelector()


@pytest.fixture
def workspace(tmp_path, editor):
    """Stores over an isolated root under tmp_path."""
    return Workspace.open(tmp_path / "root", editor)


@pytest.fixture
def global_reqcraft_dir(tmp_path, monkeypatch):
    """Override the global ~/.config/reqcraft directory to a temp location."""
    fake_global = tmp_path / "fake_home" / ".config" / "reqcraft"
    fake_global.mkdir(parents=True)
    monkeypatch.setattr(config, "GLOBAL_DIR", fake_global)
    monkeypatch.setattr(config, "GLOBAL_CONFIG", fake_global / "config.yaml")
    monkeypatch.setattr(config, "GLOBAL_TEMPLATES_DIR", fake_global / "templates")
    monkeypatch.delenv(config.ROOT_ENV_VAR, raising=False)
    return fake_global


@pytest.fixture
def cli_root(tmp_path, monkeypatch, global_reqcraft_dir, editor, selector):
    """CWD in tmp_path, fake prompts wired into the CLI, root = global default."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "Editor", lambda *args, **kwargs: editor)
    monkeypatch.setattr(cli, "Selector", lambda: selector)
    return global_reqcraft_dir / "templates"


def make_request_result(
    status_code=200,
    body=None,
    headers=None,
    elapsed_ms=42.0,
    error=None,
    raw_text="",
):
    """Factory for mock RequestResult objects."""
    r = RequestResult()
    r.status_code = status_code
    r.headers = headers or {}
    r.body = body
    r.elapsed_ms = elapsed_ms
    r.error = error
    r.raw_text = raw_text or (
        json.dumps(body) if isinstance(body, dict | list) else str(body or "")
    )
    return r


def write_template(root, project, name, **fields):
    """Write a template document straight to disk."""
    doc = {"url": "http://localhost/health", "method": "GET", "headers": {}, "body": None}
    doc.update(fields)
    path = root / project / f"{name}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    (root / project / "variables").mkdir(exist_ok=True)
    path.write_text(json.dumps(doc))
    return path
