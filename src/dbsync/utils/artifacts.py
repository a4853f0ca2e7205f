"""Helpers for dump artifacts (a single file or a directory of chunk files)."""

import logging
import os
import shutil
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def artifact_size(path: PathLike) -> int:
    """
    Total size of an artifact in bytes.

    Files report their own size, directories the sum of all files below them.
    A missing path counts as 0 (the tool may not have created it yet).
    """
    path = Path(path)
    try:
        if path.is_file():
            return path.stat().st_size
        if path.is_dir():
            total = 0
            for root, _dirs, files in os.walk(path):
                for name in files:
                    try:
                        total += os.path.getsize(os.path.join(root, name))
                    except OSError:
                        # chunk files come and go while the tool is running
                        continue
            return total
    except OSError:
        return 0
    return 0


def remove_artifact(path: PathLike) -> bool:
    """
    Remove an artifact, logging instead of raising on failure.

    Returns:
        True if the artifact is gone afterwards.
    """
    path = Path(path)
    try:
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
        return True
    except OSError as e:
        logger.warning(f"Failed to clean up dump artifact {path}: {e}")
        return False
