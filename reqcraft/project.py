"""reqcraft projects - directories grouping templates and variables."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from reqcraft import templating
from reqcraft.errors import (
    AlreadyExistsError,
    NoSelectionError,
    NotFoundError,
    OutOfBoundsError,
)
from reqcraft.paths import PathResolver, validate_name
from reqcraft.variable import Variable, VariableStore

logger = logging.getLogger(__name__)

# Created when placeholders need registering in a project with no variables.
DEFAULT_VARIABLE = "default"


class Project:
    """A project directory plus its lazily loaded variables.

    `selected_variable` is process-local state and is never persisted.
    """

    def __init__(self, name: str, path: Path):
        self.name = name
        self.path = path
        self.selected_variable: int | None = None
        self.deleted = False
        self._variables: list[Variable] | None = None

    @property
    def loaded(self) -> bool:
        return self._variables is not None

    def __repr__(self) -> str:
        return f"Project({self.name!r})"


class ProjectStore:
    def __init__(self, paths: PathResolver, variables: VariableStore):
        self.paths = paths
        self.variable_store = variables

    # ── Projects ─────────────────────────────────────────────────────────

    def exists(self, name: str) -> bool:
        return self.paths.project_dir(name).is_dir()

    def create(self, name: str) -> Project:
        path = self.paths.project_dir(name)
        if path.exists():
            raise AlreadyExistsError("project", name)
        self.paths.root.mkdir(parents=True, exist_ok=True)
        path.mkdir()
        self.paths.variables_dir(name).mkdir()
        logger.debug("created project %s at %s", name, path)
        return Project(name, path)

    def get(self, name: str) -> Project:
        path = self.paths.project_dir(name)
        if not path.is_dir():
            raise NotFoundError("project", name)
        return Project(name, path)

    def list(self) -> list[Project]:
        """One Project per subdirectory of the root, in directory listing order."""
        if not self.paths.root.is_dir():
            return []
        return [
            Project(entry.name, Path(entry.path))
            for entry in os.scandir(self.paths.root)
            if entry.is_dir() and not entry.name.startswith(".")
        ]

    def rename(self, project: Project, new_name: str) -> Project:
        self.ensure_live(project)
        new_path = self.paths.project_dir(new_name)
        if new_path.exists():
            raise AlreadyExistsError("project", new_name)
        old_name = project.name
        project.path.rename(new_path)
        project.name = new_name
        project.path = new_path
        for variable in project._variables or []:
            variable.project = new_name
            variable.path = self.paths.variable_file(new_name, variable.name)
        logger.debug("renamed project %s -> %s", old_name, new_name)
        return project

    def delete(self, project: Project) -> None:
        """Remove the project directory recursively; `project` is dead afterwards."""
        self.ensure_live(project)
        shutil.rmtree(project.path)
        project.deleted = True
        project._variables = None
        project.selected_variable = None
        logger.debug("deleted project %s", project.name)

    # ── Variables ────────────────────────────────────────────────────────

    def variables(self, project: Project) -> list[Variable]:
        self.ensure_live(project)
        if project._variables is None:
            project._variables = self.variable_store.list(project.name)
        return project._variables

    def refresh(self, project: Project) -> list[Variable]:
        """Drop cached variables and selection, then reload from disk."""
        project._variables = None
        project.selected_variable = None
        return self.variables(project)

    def create_variable(self, project: Project, name: str, contents: dict | None = None) -> Variable:
        variables = self.variables(project)
        variable = self.variable_store.create(project.name, name, contents)
        variables.append(variable)
        project.selected_variable = len(variables) - 1
        return variable

    def select_variable(self, project: Project, name_or_index: str | int) -> Variable:
        variables = self.variables(project)
        if isinstance(name_or_index, bool):
            raise TypeError("variable selector must be a name or an index, not a bool")
        if isinstance(name_or_index, int):
            if not 0 <= name_or_index < len(variables):
                raise OutOfBoundsError("variable", name_or_index, len(variables))
            project.selected_variable = name_or_index
            return variables[name_or_index]
        validate_name(name_or_index, "variable")
        for index, variable in enumerate(variables):
            if variable.name == name_or_index:
                project.selected_variable = index
                return variable
        raise NotFoundError("variable", name_or_index)

    def current_variable(self, project: Project) -> Variable:
        variables = self.variables(project)
        index = project.selected_variable
        if index is None:
            raise NoSelectionError(project.name)
        if index >= len(variables):
            raise OutOfBoundsError("variable", index, len(variables))
        return variables[index]

    def update_variables_from_template(self, project: Project, template_json: str) -> list[str]:
        return self._register(project, template_json)

    def update_variables_from_response(self, project: Project, response_body: str) -> list[str]:
        return self._register(project, response_body)

    def _register(self, project: Project, text: str) -> list[str]:
        """Add missing input placeholders in text to every project variable.

        Returns the names added to at least one variable.
        """
        names = templating.extract(text, templating.INPUT_PLACEHOLDER)
        if not names:
            return []
        variables = self.variables(project)
        if not variables:
            self.create_variable(project, DEFAULT_VARIABLE)
        added: list[str] = []
        for variable in variables:
            for name in self.variable_store.update_from_text(variable, text):
                if name not in added:
                    added.append(name)
        return added

    def ensure_live(self, project: Project) -> None:
        if project.deleted or not project.path.is_dir():
            raise NotFoundError("project", project.name)
