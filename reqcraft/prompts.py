"""reqcraft prompts - interactive editor and selection collaborators.

The storage core only ever calls `Editor.edit`; the selector is used by
the CLI to let users pick projects, templates and variables.
"""

import click

CREATE_NEW = "create-new"
CREATE_LABEL = "+ Create new"


class Editor:
    """Opens text in the user's editor via click.edit."""

    def __init__(self, editor: str | None = None):
        self.editor = editor

    def edit(self, initial_text: str, extension: str = ".json") -> str | None:
        """Return the edited text, or None if the user quit without saving."""
        return click.edit(
            initial_text,
            editor=self.editor,
            extension=extension,
            require_save=True,
        )


class Selector:
    """Numbered-menu prompts on the terminal."""

    def choose_one(self, prompt: str, options: list[str], allow_create: bool = False):
        """Return the chosen index, or CREATE_NEW when the create entry is picked."""
        entries = list(options)
        if allow_create:
            entries.append(CREATE_LABEL)
        if not entries:
            raise click.ClickException(f"{prompt}: nothing to choose from")
        click.echo(f"{prompt}:", err=True)
        for i, label in enumerate(entries):
            click.echo(f"  [{i}] {label}", err=True)
        index = click.prompt(
            "Select",
            type=click.IntRange(0, len(entries) - 1),
            default=0,
            err=True,
        )
        if allow_create and index == len(options):
            return CREATE_NEW
        return index

    def confirm(self, prompt: str) -> bool:
        return click.confirm(prompt, default=False, err=True)

    def free_text(self, prompt: str) -> str:
        return click.prompt(prompt, type=str, err=True).strip()
