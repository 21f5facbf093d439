"""
Pydantic models for deployment runs.
"""

from ecs_deployer.models.deployment import (
    DeploymentControllerType,
    DeploymentEvent,
    DeploymentResult,
    OrchestratorState,
    ServiceTarget,
)

__all__ = [
    "DeploymentControllerType",
    "DeploymentEvent",
    "DeploymentResult",
    "OrchestratorState",
    "ServiceTarget",
]
