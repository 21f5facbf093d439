"""
Reading of task definition and AppSpec documents.

Both documents may be written as YAML or JSON. JSON is tried first, since
PyYAML rejects tab indentation that JSON allows; anything else goes to
safe_load. Callers never see which format the file used.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Union

import aiofiles  # type: ignore
import yaml

from ecs_deployer.errors import DocumentReadError

logger = logging.getLogger(__name__)


def resolve_path(path: Union[str, Path], workspace: Union[str, Path]) -> Path:
    """
    Resolve an input path against the workspace root.

    Absolute paths are used as-is, anything else is joined to the workspace.

    Args:
        path: Path as given in the inputs
        workspace: Root directory of the run

    Returns:
        Resolved path
    """
    path_str = str(path)
    if os.path.isabs(path_str):
        return Path(path_str)
    return Path(workspace) / path_str


def parse_document(contents: str, source: str = "<string>") -> Any:
    """
    Decode a YAML or JSON document.

    Args:
        contents: Document text
        source: Name used in error messages

    Returns:
        The decoded document

    Raises:
        DocumentReadError: If the text is neither valid YAML nor JSON
    """
    try:
        return json.loads(contents)
    except json.JSONDecodeError:
        pass

    try:
        return yaml.safe_load(contents)
    except yaml.YAMLError as e:
        raise DocumentReadError(source, f"not valid YAML or JSON: {e}") from e


async def read_document(path: Union[str, Path], workspace: Union[str, Path]) -> Any:
    """
    Read and decode a document located relative to the workspace.

    Args:
        path: Absolute path, or path relative to the workspace
        workspace: Root directory of the run

    Returns:
        The decoded document

    Raises:
        DocumentReadError: If the file is missing, unreadable or malformed
    """
    resolved = resolve_path(path, workspace)
    logger.debug(f"Reading {resolved}")

    try:
        async with aiofiles.open(resolved, mode="r", encoding="utf-8") as f:
            contents = await f.read()
    except FileNotFoundError as e:
        raise DocumentReadError(str(resolved), "file not found") from e
    except UnicodeDecodeError as e:
        raise DocumentReadError(str(resolved), "file is not UTF-8 encoded") from e
    except OSError as e:
        raise DocumentReadError(str(resolved), e.strerror or str(e)) from e

    return parse_document(contents, str(resolved))
