"""reqcraft workspace - the stores wired over one root directory."""

from pathlib import Path

from reqcraft.paths import PathResolver
from reqcraft.project import ProjectStore
from reqcraft.template import TemplateStore
from reqcraft.variable import VariableStore


class Workspace:
    def __init__(self, root: Path | str, editor=None):
        self.paths = PathResolver(root)
        self.editor = editor
        self.variables = VariableStore(self.paths, editor)
        self.projects = ProjectStore(self.paths, self.variables)
        self.templates = TemplateStore(self.paths, self.projects, editor)

    @property
    def root(self) -> Path:
        return self.paths.root

    @classmethod
    def open(cls, root: Path | str, editor=None) -> "Workspace":
        """Create the root directory if needed and return the workspace."""
        ws = cls(root, editor)
        ws.paths.root.mkdir(parents=True, exist_ok=True)
        return ws
