"""reqcraft paths - name validation and on-disk layout under the root.

    root/
      {project}/
        {template}.json
        variables/
          {variable}.json
"""

from pathlib import Path

from reqcraft.errors import InvalidNameError

DOCUMENT_EXT = ".json"
VARIABLES_DIR_NAME = "variables"

_FORBIDDEN_CHARS = ("/", "\\", "\0")


def validate_name(name: str, kind: str) -> str:
    """Reject names that are empty or could escape their directory."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidNameError(kind, name, "name cannot be empty")
    for ch in _FORBIDDEN_CHARS:
        if ch in name:
            raise InvalidNameError(kind, name, "name cannot contain path separators")
    if name in (".", ".."):
        raise InvalidNameError(kind, name, "name cannot be a relative path")
    if name.startswith("."):
        raise InvalidNameError(kind, name, "name cannot start with '.'")
    return name


class PathResolver:
    """Maps project/template/variable names to paths under one root."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def project_dir(self, project: str) -> Path:
        return self.root / validate_name(project, "project")

    def variables_dir(self, project: str) -> Path:
        return self.project_dir(project) / VARIABLES_DIR_NAME

    def template_file(self, project: str, template: str) -> Path:
        return self.project_dir(project) / f"{validate_name(template, 'template')}{DOCUMENT_EXT}"

    def variable_file(self, project: str, variable: str) -> Path:
        return self.variables_dir(project) / f"{validate_name(variable, 'variable')}{DOCUMENT_EXT}"


def name_from_path(path: Path) -> str:
    """Entity name for a document file: the base name without extension."""
    return path.stem
