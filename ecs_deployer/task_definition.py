"""
Task definition sanitizer.

Turns the output of DescribeTaskDefinition (or a hand written file based on
it) into the minimal payload RegisterTaskDefinition accepts. The describe
response carries read-only fields and empty placeholders for unset optional
blocks, and ECS rejects both when they are sent back.

Pure functions, no I/O.
"""

import logging
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)

# Returned by DescribeTaskDefinition but rejected by RegisterTaskDefinition
IGNORED_TASK_DEFINITION_ATTRIBUTES = (
    "compatibilities",
    "taskDefinitionArn",
    "requiresAttributes",
    "revision",
    "status",
    "registeredAt",
    "deregisteredAt",
    "registeredBy",
)

# Entries of this list keep empty strings; "" and unset differ for App Mesh
PROXY_PROPERTIES_PATH = ("proxyConfiguration", "properties")

Path = Tuple[str, ...]


def clean(descriptor: Any) -> Any:
    """
    Remove empty values and read-only attributes from a task definition.

    Keys whose value is None, an empty list, an empty string or a mapping
    that cleans down to nothing are dropped, recursively. List elements that
    clean down to an empty mapping or an empty string are dropped too.
    Entries of proxyConfiguration.properties keep their empty strings.

    Anything that is not a mapping or list is returned unchanged.

    Args:
        descriptor: Parsed task definition document

    Returns:
        Cleaned copy of the task definition
    """
    if not isinstance(descriptor, dict):
        return _clean_value(descriptor, ())

    cleaned = _clean_mapping(descriptor, ())
    return remove_ignored_attributes(cleaned)


def remove_ignored_attributes(task_def: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop top-level attributes ECS assigns itself.

    Args:
        task_def: Task definition mapping

    Returns:
        Copy without the read-only attributes
    """
    result = dict(task_def)
    for attribute in IGNORED_TASK_DEFINITION_ATTRIBUTES:
        if attribute in result:
            logger.warning(
                f"Ignoring property '{attribute}' in the task definition file. It is returned "
                "by DescribeTaskDefinition but is not valid when registering a task definition, "
                "and can be removed from the file."
            )
            del result[attribute]
    return result


def maintain_valid_objects(task_def: Dict[str, Any]) -> Dict[str, Any]:
    """
    Restore keys RegisterTaskDefinition requires after cleaning.

    Every proxyConfiguration.properties entry must carry both "name" and
    "value". A container environment entry that still has a name is an
    environment variable set to the empty string, so its "value" comes back
    as "".

    Args:
        task_def: Cleaned task definition mapping

    Returns:
        The same mapping, normalized in place
    """
    proxy = task_def.get("proxyConfiguration")
    if isinstance(proxy, dict) and isinstance(proxy.get("properties"), list):
        for prop in proxy["properties"]:
            if isinstance(prop, dict):
                prop.setdefault("name", "")
                prop.setdefault("value", "")

    for container in task_def.get("containerDefinitions") or []:
        if not isinstance(container, dict):
            continue
        for variable in container.get("environment") or []:
            if isinstance(variable, dict) and "name" in variable:
                variable.setdefault("value", "")

    return task_def


def prepare_task_definition(descriptor: Any) -> Any:
    """
    Produce the RegisterTaskDefinition payload for a parsed document.

    Args:
        descriptor: Parsed task definition document

    Returns:
        Register-ready task definition
    """
    cleaned = clean(descriptor)
    if isinstance(cleaned, dict):
        maintain_valid_objects(cleaned)
    return cleaned


def _is_empty(value: Any, keep_empty_strings: bool) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == "" and not keep_empty_strings
    if isinstance(value, (dict, list)):
        return len(value) == 0
    return False


def _clean_value(value: Any, path: Path) -> Any:
    if isinstance(value, dict):
        return _clean_mapping(value, path)
    if isinstance(value, list):
        return _clean_list(value, path)
    return value


def _clean_mapping(mapping: Dict[str, Any], path: Path) -> Dict[str, Any]:
    keep_empty_strings = path == PROXY_PROPERTIES_PATH
    cleaned: Dict[str, Any] = {}
    for key, value in mapping.items():
        value = _clean_value(value, path + (key,))
        if _is_empty(value, keep_empty_strings):
            continue
        cleaned[key] = value
    return cleaned


def _clean_list(items: List[Any], path: Path) -> List[Any]:
    # Elements of a list share the list's path
    in_proxy_properties = path == PROXY_PROPERTIES_PATH
    cleaned: List[Any] = []
    for item in items:
        item = _clean_value(item, path)
        # None and empty nested lists are placeholders too, wherever they sit
        if item is None:
            continue
        if isinstance(item, dict) and not item and not in_proxy_properties:
            continue
        if isinstance(item, str) and item == "" and not in_proxy_properties:
            continue
        if isinstance(item, list) and not item:
            continue
        cleaned.append(item)
    return cleaned
