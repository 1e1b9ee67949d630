"""Save a rendered `FileBlob` as a local download."""

from __future__ import annotations

import logging
from pathlib import Path

from sheltermap.core.env import resolve_project_path
from sheltermap.core.errors import SaveError
from sheltermap.domain.models import FileBlob

logger = logging.getLogger(__name__)


def save_download(blob: FileBlob, directory: str | Path) -> Path:
    """Write `blob` to `directory/blob.filename` and return the path.

    Writes via a temporary file + atomic replace, so repeated calls simply replace the
    previous download. A failed write leaves neither the temp file nor a partial target.

    Raises:
        SaveError: If the directory cannot be created or the file cannot be written.
    """
    out_dir = resolve_project_path(directory)
    path = out_dir / blob.filename
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        tmp.write_bytes(blob.data)
        tmp.replace(path)
    except OSError as e:
        try:
            tmp.unlink(missing_ok=True)
        except OSError:
            logger.debug("Could not remove temp file %s", tmp)
        raise SaveError(f"Failed to write {path}: {e}") from e
    logger.info("Saved %s (%s, %d bytes)", path, blob.media_type, len(blob.data))
    return path
