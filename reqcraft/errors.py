"""reqcraft errors - one exception per failure kind of the storage core.

Every error carries the entity kind ("project", "template", "variable")
and its name so the CLI can render a one-line message.
"""


class ReqcraftError(Exception):
    """Base class for all reqcraft core errors."""

    def __init__(self, message: str, kind: str = "", name: str = ""):
        super().__init__(message)
        self.kind = kind
        self.name = name


class NotFoundError(ReqcraftError):
    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind.capitalize()} '{name}' not found", kind, name)


class OutOfBoundsError(NotFoundError):
    def __init__(self, kind: str, index: int, size: int):
        ReqcraftError.__init__(
            self,
            f"{kind.capitalize()} index {index} out of range (0..{size - 1})"
            if size
            else f"{kind.capitalize()} index {index} out of range (none available)",
            kind,
            str(index),
        )
        self.index = index
        self.size = size


class AlreadyExistsError(ReqcraftError):
    def __init__(self, kind: str, name: str, where: str = ""):
        suffix = f" in {where}" if where else ""
        super().__init__(f"{kind.capitalize()} '{name}' already exists{suffix}", kind, name)


class MalformedDocumentError(ReqcraftError):
    def __init__(self, kind: str, name: str, detail: str):
        super().__init__(f"Malformed {kind} '{name}': {detail}", kind, name)
        self.detail = detail


class InvalidNameError(ReqcraftError):
    def __init__(self, kind: str, name: str, reason: str):
        super().__init__(f"Invalid {kind} name {name!r}: {reason}", kind, name)
        self.reason = reason


class UnresolvedPlaceholderError(ReqcraftError):
    def __init__(self, placeholder: str, variable: str = ""):
        where = f" in variable '{variable}'" if variable else ""
        super().__init__(
            f"No value for placeholder '{{{{{placeholder}}}}}'{where}",
            "variable",
            variable,
        )
        self.placeholder = placeholder


class InvalidVariableValueError(ReqcraftError):
    def __init__(self, variable: str, key: str, value):
        type_name = {type(None): "null", dict: "an object", list: "an array"}.get(
            type(value),
            type(value).__name__,
        )
        super().__init__(
            f"Variable '{variable}': value of '{key}' cannot be {type_name}",
            "variable",
            variable,
        )
        self.key = key


class NoSelectionError(ReqcraftError):
    def __init__(self, project: str, operation: str = ""):
        what = f" ({operation})" if operation else ""
        super().__init__(
            f"No variable selected for project '{project}'{what}",
            "project",
            project,
        )


class EditAbortedError(ReqcraftError):
    def __init__(self, kind: str, name: str):
        super().__init__(f"Edit of {kind} '{name}' aborted", kind, name)
