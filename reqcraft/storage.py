"""reqcraft storage - JSON document read/write helpers.

Writes go to a temp file in the target directory and are moved into
place with os.replace(), so a reader never sees a half-written document.
"""

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _target_mode(path: Path) -> int:
    """Mode of the file being replaced, or the umask default for a new one."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_text_atomic(path: Path, content: str) -> None:
    """Write text to path via temp-file-then-rename.

    mkstemp creates the temp file as 0600; it gets the mode of the file
    it replaces before the rename.
    """
    mode = _target_mode(path)
    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    logger.debug("wrote %s (%d bytes)", path, len(content))


def dump_json(data: Any, pretty: bool = False) -> str:
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False)
    return json.dumps(data, ensure_ascii=False)


def write_json(path: Path, data: Any) -> str:
    """Serialize data and write it atomically. Returns the written text."""
    text = dump_json(data, pretty=True)
    write_text_atomic(path, text + "\n")
    return text


def read_text(path: Path) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()
