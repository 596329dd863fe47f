"""reqcraft templating - {{placeholder}} extraction and substitution.

Two placeholder kinds:
- {{name}}      input placeholder, resolved from a project variable
- {{gen:name}}  generated placeholder, resolved from GENERATORS

Identifiers are [A-Za-z0-9_-]+. Generated placeholders are never
registered as variables.
"""

import json
import re
import time
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from reqcraft.errors import UnresolvedPlaceholderError

GENERATED_PREFIX = "gen:"

INPUT_PLACEHOLDER = re.compile(r"\{\{([A-Za-z0-9_-]+)\}\}")
GENERATED_PLACEHOLDER = re.compile(r"\{\{(gen:[A-Za-z0-9_-]+)\}\}")
ANY_PLACEHOLDER = re.compile(r"\{\{((?:gen:)?[A-Za-z0-9_-]+)\}\}")

GENERATORS: dict[str, Callable[[], str]] = {
    "uuid": lambda: str(uuid.uuid4()),
    "timestamp": lambda: str(int(time.time())),
}


def extract(text: str, pattern: re.Pattern = INPUT_PLACEHOLDER) -> list[str]:
    """Return placeholder identifiers in order of appearance.

    Duplicates are kept; callers that need unique names dedupe
    themselves. Generated identifiers keep their "gen:" prefix.
    """
    if not text:
        return []
    return pattern.findall(text)


def unique(names: list[str]) -> list[str]:
    """Dedupe while keeping first-appearance order."""
    return list(dict.fromkeys(names))


def to_text(value: Any) -> str:
    """JSON text form of a scalar: strings raw, numbers and booleans as JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def to_json_fragment(value: Any) -> str:
    """Like to_text, but strings are escaped for use inside a JSON string literal."""
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)[1:-1]
    return json.dumps(value)


def generate(identifier: str) -> str:
    name = identifier[len(GENERATED_PREFIX):]
    generator = GENERATORS.get(name)
    if generator is None:
        raise UnresolvedPlaceholderError(identifier)
    return generator()


def resolve(
    identifier: str,
    variables: Mapping[str, Any] | None,
    variable_name: str = "",
) -> Any:
    if identifier.startswith(GENERATED_PREFIX):
        return generate(identifier)
    if variables is None or identifier not in variables:
        raise UnresolvedPlaceholderError(identifier, variable_name)
    return variables[identifier]


def substitute(
    text: str,
    variables: Mapping[str, Any] | None = None,
    encode: Callable[[Any], str] = to_text,
    variable_name: str = "",
) -> str:
    """Replace every {{name}} / {{gen:name}} in text.

    Each distinct placeholder is resolved once per call, so repeated
    occurrences get the same value (one uuid per {{gen:uuid}} name).
    Replacement is a single regex pass: values are never re-scanned.
    Raises UnresolvedPlaceholderError for an input placeholder missing
    from variables or an unknown generator.
    """
    names = unique(extract(text, ANY_PLACEHOLDER))
    if not names:
        return text
    values = {name: encode(resolve(name, variables, variable_name)) for name in names}
    return ANY_PLACEHOLDER.sub(lambda m: values[m.group(1)], text)
