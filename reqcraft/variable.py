"""reqcraft variables - named placeholder value sets stored per project."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from reqcraft import templating
from reqcraft.errors import (
    AlreadyExistsError,
    EditAbortedError,
    InvalidVariableValueError,
    MalformedDocumentError,
    NotFoundError,
)
from reqcraft.paths import DOCUMENT_EXT, PathResolver, name_from_path, validate_name
from reqcraft.storage import dump_json, read_text, write_json

logger = logging.getLogger(__name__)

SCALAR_TYPES = (str, int, float, bool)


class Variable:
    """A variable document: placeholder name -> scalar value."""

    def __init__(self, name: str, project: str, path: Path, contents: dict | None = None):
        self.name = name
        self.project = project
        self.path = path
        self.contents: dict[str, Any] = dict(contents or {})

    def __repr__(self) -> str:
        return f"Variable({self.project}/{self.name}, {len(self.contents)} keys)"


def validate_contents(variable: str, contents: Any) -> dict[str, Any]:
    """Check a variable document and return it.

    The document must be a JSON object whose values are strings,
    numbers or booleans.
    """
    if not isinstance(contents, dict):
        raise MalformedDocumentError("variable", variable, "document must be a JSON object")
    for key, value in contents.items():
        if not isinstance(key, str):
            raise MalformedDocumentError("variable", variable, f"key {key!r} is not a string")
        if value is None or not isinstance(value, SCALAR_TYPES):
            raise InvalidVariableValueError(variable, key, value)
    return contents


class VariableStore:
    """CRUD over variable files in root/{project}/variables/."""

    def __init__(self, paths: PathResolver, editor=None):
        self.paths = paths
        self.editor = editor

    def create(self, project: str, name: str, contents: dict | None = None) -> Variable:
        validate_name(name, "variable")
        path = self.paths.variable_file(project, name)
        if path.exists():
            raise AlreadyExistsError("variable", name, f"project '{project}'")
        contents = validate_contents(name, dict(contents or {}))
        path.parent.mkdir(parents=True, exist_ok=True)
        write_json(path, contents)
        logger.debug("created variable %s/%s", project, name)
        return Variable(name, project, path, contents)

    def load(self, project: str, name: str) -> Variable:
        path = self.paths.variable_file(project, name)
        if not path.is_file():
            raise NotFoundError("variable", name)
        return self._read(project, path)

    def list(self, project: str) -> list[Variable]:
        """All variables of a project, in directory listing order."""
        directory = self.paths.variables_dir(project)
        if not directory.is_dir():
            return []
        variables = []
        for entry in os.scandir(directory):
            if not entry.is_file() or entry.name.startswith("."):
                continue
            if not entry.name.endswith(DOCUMENT_EXT):
                continue
            variables.append(self._read(project, Path(entry.path)))
        return variables

    def save(self, variable: Variable) -> Variable:
        validate_contents(variable.name, variable.contents)
        write_json(variable.path, variable.contents)
        return variable

    def set_value(self, variable: Variable, key: str, value: Any) -> Variable:
        """Set one key. An invalid value leaves memory and disk untouched."""
        if value is None or not isinstance(value, SCALAR_TYPES):
            raise InvalidVariableValueError(variable.name, key, value)
        variable.contents[key] = value
        return self.save(variable)

    def edit(self, variable: Variable, editor=None) -> Variable:
        """Let the user edit the variable document, then save it.

        Nothing changes on abort, parse failure or an invalid value.
        """
        editor = editor or self.editor
        edited = editor.edit(dump_json(variable.contents, pretty=True), DOCUMENT_EXT)
        if edited is None:
            raise EditAbortedError("variable", variable.name)
        try:
            contents = json.loads(edited)
        except json.JSONDecodeError as e:
            raise MalformedDocumentError("variable", variable.name, str(e)) from e
        variable.contents = validate_contents(variable.name, contents)
        return self.save(variable)

    def update_from_text(self, variable: Variable, text: str) -> list[str]:
        """Add an empty value for every input placeholder in text the variable lacks.

        Existing keys are never overwritten or removed. Returns the added
        names; the file is only rewritten when something was added.
        """
        added = []
        for name in templating.unique(templating.extract(text, templating.INPUT_PLACEHOLDER)):
            if name not in variable.contents:
                variable.contents[name] = ""
                added.append(name)
        if added:
            self.save(variable)
            logger.debug("registered %s in variable %s/%s", added, variable.project, variable.name)
        return added

    def delete(self, variable: Variable) -> None:
        try:
            variable.path.unlink()
        except FileNotFoundError as e:
            raise NotFoundError("variable", variable.name) from e
        logger.debug("deleted variable %s/%s", variable.project, variable.name)

    def _read(self, project: str, path: Path) -> Variable:
        name = name_from_path(path)
        try:
            contents = json.loads(read_text(path))
        except json.JSONDecodeError as e:
            raise MalformedDocumentError("variable", name, str(e)) from e
        return Variable(name, project, path, validate_contents(name, contents))
