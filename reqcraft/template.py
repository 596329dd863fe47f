"""reqcraft templates - stored HTTP request definitions inside a project."""

from __future__ import annotations

import json
import logging
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import Any

from reqcraft import templating
from reqcraft.errors import (
    AlreadyExistsError,
    EditAbortedError,
    MalformedDocumentError,
    NoSelectionError,
    NotFoundError,
)
from reqcraft.paths import DOCUMENT_EXT, PathResolver, name_from_path
from reqcraft.project import Project, ProjectStore
from reqcraft.storage import dump_json, read_text, write_json

logger = logging.getLogger(__name__)


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def has_body(self) -> bool:
        return self in (Method.POST, Method.PUT, Method.PATCH)


class TemplateRequest:
    """The request document stored in a template file."""

    def __init__(
        self,
        url: str = "",
        method: Method = Method.GET,
        headers: dict[str, str] | None = None,
        body: Any = None,
    ):
        self.url = url
        self.method = Method(method)
        self.headers: dict[str, str] = dict(headers or {})
        self.body = body

    def normalize(self) -> "TemplateRequest":
        """An empty-object body means no body."""
        if isinstance(self.body, dict) and not self.body:
            self.body = None
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "method": self.method.value,
            "headers": self.headers,
            "body": self.body,
        }

    @classmethod
    def from_dict(cls, data: Any, name: str = "") -> "TemplateRequest":
        """Build a request from a parsed document.

        Requires url (string) and method; headers and body are optional.
        """
        if not isinstance(data, dict):
            raise MalformedDocumentError("template", name, "document must be a JSON object")
        url = data.get("url")
        if not isinstance(url, str):
            raise MalformedDocumentError("template", name, "'url' must be a string")
        method = data.get("method")
        try:
            method = Method(str(method).upper())
        except ValueError:
            allowed = ", ".join(m.value for m in Method)
            raise MalformedDocumentError(
                "template", name, f"'method' must be one of {allowed}, got {method!r}"
            ) from None
        headers = data.get("headers")
        if headers is None:
            headers = {}
        if not isinstance(headers, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in headers.items()
        ):
            raise MalformedDocumentError(
                "template", name, "'headers' must be an object of string values"
            )
        return cls(url=url, method=method, headers=headers, body=data.get("body"))

    @classmethod
    def from_json(cls, text: str, name: str = "") -> "TemplateRequest":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedDocumentError("template", name, str(e)) from e
        return cls.from_dict(data, name)

    def __eq__(self, other) -> bool:
        return isinstance(other, TemplateRequest) and self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"TemplateRequest({self.method.value} {self.url!r})"


class Template:
    """A template file. `project` is a plain reference, not ownership."""

    def __init__(self, name: str, project: Project, request: TemplateRequest | None = None):
        self.name = name
        self.project = project
        self.request = request or TemplateRequest()
        self.deleted = False

    @property
    def path(self) -> Path:
        return self.project.path / f"{self.name}{DOCUMENT_EXT}"

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Template({self.project.name}/{self.name})"


class TemplateStore:
    def __init__(self, paths: PathResolver, projects: ProjectStore, editor=None):
        self.paths = paths
        self.projects = projects
        self.editor = editor

    def create(self, project: Project, name: str, edit: bool = True) -> Template:
        """Write a default request document, then open it in the editor.

        Aborting the edit raises EditAbortedError and leaves the default
        document in place.
        """
        self.projects.ensure_live(project)
        path = self.paths.template_file(project.name, name)
        if path.exists():
            raise AlreadyExistsError("template", name, f"project '{project.name}'")
        template = Template(name, project)
        write_json(path, template.request.to_dict())
        logger.debug("created template %s/%s", project.name, name)
        if edit:
            self.edit(template)
            self.save(template)
        return template

    def load(self, project: Project, name: str) -> Template:
        path = self.paths.template_file(project.name, name)
        if not path.is_file():
            raise NotFoundError("template", name)
        return Template(name, project, TemplateRequest.from_json(read_text(path), name))

    def list(self, project: Project) -> list[str]:
        """Template names, one per .json file in the project directory."""
        self.projects.ensure_live(project)
        return [
            name_from_path(Path(entry.name))
            for entry in os.scandir(project.path)
            if entry.is_file()
            and not entry.name.startswith(".")
            and entry.name.endswith(DOCUMENT_EXT)
        ]

    def save(self, template: Template) -> Template:
        """Write the request document, then register its placeholders.

        Registration runs after the write and is not transactional with
        it; a later save retries it.
        """
        self._require(template)
        template.request.normalize()
        text = write_json(template.path, template.request.to_dict())
        added = self.projects.update_variables_from_template(template.project, text)
        if added:
            logger.info(
                "registered variables %s for project %s", ", ".join(added), template.project.name
            )
        return template

    def edit(self, template: Template, editor=None) -> Template:
        """Round-trip the request through the editor.

        The in-memory request is only replaced once the edited text parses.
        """
        editor = editor or self.editor
        current = dump_json(template.request.to_dict(), pretty=True)
        edited = editor.edit(current, DOCUMENT_EXT)
        if edited is None:
            raise EditAbortedError("template", template.name)
        template.request = TemplateRequest.from_json(edited, template.name).normalize()
        return template

    def rename(self, template: Template, new_name: str) -> Template:
        self._require(template)
        new_path = self.paths.template_file(template.project.name, new_name)
        if new_path.exists():
            raise AlreadyExistsError("template", new_name, f"project '{template.project.name}'")
        old_name = template.name
        template.path.rename(new_path)
        template.name = new_name
        logger.debug("renamed template %s -> %s", old_name, new_name)
        return template

    def relocate(
        self,
        template: Template,
        target_project: Project,
        new_name: str | None = None,
    ) -> Template:
        """Move a template into another project, optionally renaming it."""
        self._require(template)
        self.projects.ensure_live(target_project)
        new_name = new_name or template.name
        new_path = self.paths.template_file(target_project.name, new_name)
        if new_path.exists():
            raise AlreadyExistsError("template", new_name, f"project '{target_project.name}'")
        old = f"{template.project.name}/{template.name}"
        # shutil.move copies then deletes when a plain rename crosses devices
        shutil.move(str(template.path), str(new_path))
        template.project = target_project
        template.name = new_name
        logger.debug("moved template %s -> %s/%s", old, target_project.name, new_name)
        return template

    def delete(self, template: Template) -> None:
        self._require(template)
        template.path.unlink()
        template.deleted = True
        logger.debug("deleted template %s/%s", template.project.name, template.name)

    def request_with_variables(
        self,
        template: Template,
        review: bool = True,
        editor=None,
    ) -> TemplateRequest:
        """Resolve placeholders with the project's selected variable.

        With review, the substituted document goes through the editor once
        more before it is parsed into the dispatch-ready request.
        """
        project = template.project
        text = dump_json(template.request.to_dict(), pretty=True)
        if project.selected_variable is None:
            if templating.extract(text, templating.INPUT_PLACEHOLDER):
                raise NoSelectionError(project.name, f"run template '{template.name}'")
            contents, variable_name = None, ""
        else:
            variable = self.projects.current_variable(project)
            contents, variable_name = variable.contents, variable.name
        text = templating.substitute(
            text,
            contents,
            encode=templating.to_json_fragment,
            variable_name=variable_name,
        )
        if review:
            editor = editor or self.editor
            text = editor.edit(text, DOCUMENT_EXT)
            if text is None:
                raise EditAbortedError("template", template.name)
        return TemplateRequest.from_json(text, template.name).normalize()

    def _require(self, template: Template) -> None:
        if template.deleted:
            raise NotFoundError("template", template.name)
        self.projects.ensure_live(template.project)
