"""Configuration models for deployment runs."""

from ecs_deployer.config.settings import (
    DEFAULT_CLUSTER,
    MAX_WAIT_MINUTES,
    DeployConfig,
    DeployInputs,
    LoggingConfig,
    WaitPolicy,
    get_input,
)

__all__ = [
    "DEFAULT_CLUSTER",
    "MAX_WAIT_MINUTES",
    "DeployConfig",
    "DeployInputs",
    "LoggingConfig",
    "WaitPolicy",
    "get_input",
]
