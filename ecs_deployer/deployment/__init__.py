"""
Deployment orchestration.

Usage:
    from ecs_deployer.deployment import DeploymentOrchestrator

    orchestrator = DeploymentOrchestrator(config, ecs, codedeploy, reporter)
    result = await orchestrator.run()
"""

from ecs_deployer.deployment.orchestrator import (
    DeploymentOrchestrator,
    codedeploy_wait_minutes,
)
from ecs_deployer.deployment.polling import wait_until

__all__ = [
    "DeploymentOrchestrator",
    "codedeploy_wait_minutes",
    "wait_until",
]
