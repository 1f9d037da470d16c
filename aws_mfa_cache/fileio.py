"""Owner-only file persistence helpers."""

import json
import logging
import os
import tempfile
from typing import Any

logger = logging.getLogger(__name__)


PRIVATE_DIR_MODE = 0o700
PRIVATE_FILE_MODE = 0o600


def ensure_private_directory(directory: str) -> None:
    """
    Create ``directory`` if needed and restrict it to the owning user.

    Raises:
        OSError: If the directory cannot be created
    """
    os.makedirs(directory, mode=PRIVATE_DIR_MODE, exist_ok=True)
    try:
        os.chmod(directory, PRIVATE_DIR_MODE)
    except OSError as e:
        # Not fatal: the directory may be owned by someone else (e.g. a mount)
        logger.debug(f"Could not restrict permissions on {directory}: {e}")


def write_private_file(path: str, content: str) -> None:
    """
    Atomically replace ``path`` with ``content``, readable by the owner only.

    The text is written to a temporary file in the same directory and moved
    into place, so readers see either the old or the new file, never a
    partial one.

    Raises:
        OSError: If the file cannot be written
    """
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".part")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
        os.chmod(tmp_path, PRIVATE_FILE_MODE)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_private_json(path: str, data: Any) -> None:
    """Serialize ``data`` as indented JSON into an owner-only directory and file."""
    ensure_private_directory(os.path.dirname(os.path.abspath(path)))
    write_private_file(path, json.dumps(data, indent=2) + "\n")
