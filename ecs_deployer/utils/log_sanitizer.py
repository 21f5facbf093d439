"""
Log sanitization utilities to prevent log injection through user inputs.
"""

import re
from typing import Any

SENSITIVE_ENVIRONMENT_MARKERS = ("SECRET", "TOKEN", "PASSWORD", "KEY", "CREDENTIAL")


def sanitize_for_log(value: Any, max_length: int = 100) -> str:
    """
    Sanitize a value for safe logging.

    Removes control characters and newlines that could be used to forge
    log lines or GitHub workflow commands.

    Args:
        value: The value to sanitize
        max_length: Maximum length of the output (default 100)

    Returns:
        Sanitized string safe for logging
    """
    str_value = str(value)

    sanitized = re.sub(r"[\x00-\x1f\x7f-\x9f\r\n\t]", "", str_value)

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."

    return sanitized


def sanitize_resource_name(name: str) -> str:
    """
    Sanitize an ECS/CodeDeploy resource name or ARN for logging.

    Resource names only contain alphanumerics, hyphens, underscores and,
    for ARNs, colons, slashes and periods.

    Args:
        name: The resource name to sanitize

    Returns:
        Sanitized resource name
    """
    sanitized = re.sub(r"[^a-zA-Z0-9_\-:/.]", "", name)
    return sanitized[:255]


def redact_task_definition(task_def: Any) -> Any:
    """
    Return a copy of a task definition with likely secrets masked.

    Environment entries whose name looks sensitive get their value replaced,
    so the document can be dumped to debug logs.

    Args:
        task_def: Task definition mapping

    Returns:
        Redacted copy of the task definition
    """
    if isinstance(task_def, dict):
        redacted = {}
        for key, value in task_def.items():
            if key == "environment" and isinstance(value, list):
                redacted[key] = [_redact_environment_entry(entry) for entry in value]
            else:
                redacted[key] = redact_task_definition(value)
        return redacted
    if isinstance(task_def, list):
        return [redact_task_definition(item) for item in task_def]
    return task_def


def _redact_environment_entry(entry: Any) -> Any:
    if not isinstance(entry, dict):
        return entry
    name = str(entry.get("name", "")).upper()
    if entry.get("value") and any(marker in name for marker in SENSITIVE_ENVIRONMENT_MARKERS):
        return {**entry, "value": "***"}
    return dict(entry)
