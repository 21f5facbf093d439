"""
Entry point for running one deployment programmatically.
"""

import logging
from typing import Optional, Tuple

from ecs_deployer.aws_client import CodeDeployClient, EcsClient
from ecs_deployer.config.settings import DeployConfig
from ecs_deployer.deployment import DeploymentOrchestrator
from ecs_deployer.models import DeploymentResult, OrchestratorState
from ecs_deployer.reporting import ActionReporter

logger = logging.getLogger(__name__)


async def deploy(
    config: DeployConfig,
    ecs: Optional[EcsClient] = None,
    codedeploy: Optional[CodeDeployClient] = None,
    reporter: Optional[ActionReporter] = None,
) -> Tuple[DeploymentResult, ActionReporter]:
    """
    Run a deployment with the given configuration.

    Args:
        config: Run configuration
        ecs: ECS client, created from the configured region when None
        codedeploy: CodeDeploy client, created from the configured region when None
        reporter: Output channel, writing to config.output_file when None

    Returns:
        Tuple of (result, reporter)
    """
    reporter = reporter or ActionReporter(output_file=config.output_file)

    try:
        ecs = ecs or EcsClient(region=config.region)
        codedeploy = codedeploy or CodeDeployClient(region=config.region)
    except Exception as e:
        # botocore raises here when no region can be resolved
        reporter.set_failed(f"Failed to create AWS clients: {e}")
        return DeploymentResult(state=OrchestratorState.FAILED, error=str(e)), reporter

    orchestrator = DeploymentOrchestrator(config, ecs, codedeploy, reporter)
    result = await orchestrator.run()

    if result.succeeded:
        logger.info(f"Deployment finished: {result.task_definition_arn}")
    else:
        logger.error(f"Deployment failed: {result.error}")

    return result, reporter
