"""ECS task deployer - register task definitions and roll them out to ECS services."""

__version__ = "1.0.0"

from .task_definition import clean, prepare_task_definition  # noqa: E402

__all__ = ["clean", "prepare_task_definition"]
