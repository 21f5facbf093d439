"""
CodeDeploy AppSpec handling.

The AppSpec names the task definition the blue/green deployment should
shift traffic to. Its TaskDefinition value in the file is a placeholder that
is replaced in memory with the freshly registered ARN; the file on disk is
never touched.

AppSpec files are written in PascalCase or camelCase, so keys are matched
case-insensitively.
"""

import copy
import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from ecs_deployer.documents import read_document
from ecs_deployer.errors import AppSpecError

logger = logging.getLogger(__name__)


def find_key(mapping: Dict[str, Any], key: str) -> Optional[str]:
    """
    Find the actual spelling of a key, ignoring case.

    Args:
        mapping: Mapping to search
        key: Key to look for

    Returns:
        The key as spelled in the mapping, or None
    """
    wanted = key.lower()
    for candidate in mapping:
        if isinstance(candidate, str) and candidate.lower() == wanted:
            return candidate
    return None


def find_value(mapping: Dict[str, Any], key: str) -> Any:
    """Get a value by case-insensitive key, None when absent."""
    actual = find_key(mapping, key)
    return mapping[actual] if actual is not None else None


def _target_properties(appspec: Any) -> Tuple[Dict[str, Any], str]:
    if not isinstance(appspec, dict):
        raise AppSpecError("AppSpec file must contain a mapping")

    resources = find_value(appspec, "Resources")
    if not isinstance(resources, list) or not resources:
        raise AppSpecError("AppSpec file has no Resources list")

    first = resources[0]
    target = find_value(first, "TargetService") if isinstance(first, dict) else None
    if not isinstance(target, dict):
        raise AppSpecError("AppSpec Resources[0] has no TargetService")

    properties = find_value(target, "Properties")
    if not isinstance(properties, dict):
        raise AppSpecError("AppSpec TargetService has no Properties")

    key = find_key(properties, "TaskDefinition") or "TaskDefinition"
    return properties, key


def substitute_task_definition(appspec: Any, task_definition_arn: str) -> Dict[str, Any]:
    """
    Point the AppSpec at a task definition.

    Args:
        appspec: Parsed AppSpec document
        task_definition_arn: ARN of the registered task definition

    Returns:
        A copy of the AppSpec with Resources[0].TargetService.Properties.TaskDefinition
        replaced

    Raises:
        AppSpecError: If the document lacks the TargetService properties
    """
    updated = copy.deepcopy(appspec)
    properties, key = _target_properties(updated)
    placeholder = properties.get(key)
    properties[key] = task_definition_arn
    logger.debug(f"Replaced AppSpec TaskDefinition {placeholder!r} with {task_definition_arn}")
    return updated


def appspec_revision(appspec: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the CodeDeploy revision for an AppSpec.

    Args:
        appspec: AppSpec document with the task definition substituted

    Returns:
        Revision in the shape CreateDeployment expects
    """
    content = json.dumps(appspec)
    sha256 = hashlib.sha256(content.encode("utf-8")).hexdigest()
    return {
        "revisionType": "AppSpecContent",
        "appSpecContent": {"content": content, "sha256": sha256},
    }


async def read_appspec(path: str, workspace: Union[str, Path]) -> Dict[str, Any]:
    """
    Read an AppSpec file in YAML or JSON.

    Args:
        path: Absolute path, or path relative to the workspace
        workspace: Root directory of the run

    Returns:
        The parsed AppSpec, validated to carry a TargetService

    Raises:
        DocumentReadError: If the file cannot be read or decoded
        AppSpecError: If the document lacks the TargetService properties
    """
    appspec = await read_document(path, workspace)
    _target_properties(appspec)
    return appspec
