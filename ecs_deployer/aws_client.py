"""
Thin async wrappers around the boto3 ECS and CodeDeploy clients.

boto3 is synchronous; each call runs in a worker thread so the orchestrator
can stay a coroutine. Errors from botocore propagate unchanged, the
orchestrator decides how to report them.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config

from ecs_deployer import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"ecs-task-deployer/{__version__}"


def _client_config() -> Config:
    return Config(user_agent_extra=USER_AGENT)


class EcsClient:
    """Client for the ECS operations a deployment needs."""

    def __init__(self, region: Optional[str] = None, client: Optional[Any] = None):
        """
        Initialize the ECS client.

        Args:
            region: AWS region, boto3's default resolution when None
            client: Preconfigured boto3 ECS client (used by tests)
        """
        self._client = client or boto3.client("ecs", region_name=region, config=_client_config())

    @property
    def region(self) -> str:
        return str(self._client.meta.region_name)

    async def register_task_definition(self, task_definition: Dict[str, Any]) -> Dict[str, Any]:
        """
        Register a new task definition revision.

        Args:
            task_definition: Register-ready task definition

        Returns:
            The registered task definition as returned by ECS
        """
        response = await asyncio.to_thread(
            self._client.register_task_definition, **task_definition
        )
        return dict(response["taskDefinition"])

    async def describe_service(self, cluster: str, service: str) -> Dict[str, Any]:
        """
        Describe a single service.

        Args:
            cluster: Cluster name or ARN
            service: Service name or ARN

        Returns:
            Raw DescribeServices response with its "services" and "failures"
        """
        response = await asyncio.to_thread(
            self._client.describe_services, cluster=cluster, services=[service]
        )
        return dict(response)

    async def update_service(
        self,
        cluster: str,
        service: str,
        task_definition_arn: str,
        force_new_deployment: bool = False,
    ) -> Dict[str, Any]:
        """
        Point a service at a new task definition.

        Args:
            cluster: Cluster name or ARN
            service: Service name or ARN
            task_definition_arn: Task definition to deploy
            force_new_deployment: Start a new deployment even if nothing changed

        Returns:
            The updated service
        """
        response = await asyncio.to_thread(
            self._client.update_service,
            cluster=cluster,
            service=service,
            taskDefinition=task_definition_arn,
            forceNewDeployment=force_new_deployment,
        )
        return dict(response.get("service") or {})


class CodeDeployClient:
    """Client for the CodeDeploy operations of a blue/green handoff."""

    def __init__(self, region: Optional[str] = None, client: Optional[Any] = None):
        """
        Initialize the CodeDeploy client.

        Args:
            region: AWS region, boto3's default resolution when None
            client: Preconfigured boto3 CodeDeploy client (used by tests)
        """
        self._client = client or boto3.client(
            "codedeploy", region_name=region, config=_client_config()
        )

    @property
    def region(self) -> str:
        return str(self._client.meta.region_name)

    async def get_deployment_group(self, application: str, group: str) -> Dict[str, Any]:
        """Fetch a deployment group's configuration."""
        response = await asyncio.to_thread(
            self._client.get_deployment_group,
            applicationName=application,
            deploymentGroupName=group,
        )
        return dict(response["deploymentGroupInfo"])

    async def create_deployment(
        self,
        application: str,
        group: str,
        revision: Dict[str, Any],
        description: Optional[str] = None,
    ) -> str:
        """
        Start a deployment.

        Args:
            application: CodeDeploy application name
            group: Deployment group name
            revision: AppSpecContent revision
            description: Optional deployment description

        Returns:
            The new deployment id
        """
        params: Dict[str, Any] = {
            "applicationName": application,
            "deploymentGroupName": group,
            "revision": revision,
        }
        if description:
            params["description"] = description

        response = await asyncio.to_thread(self._client.create_deployment, **params)
        return str(response["deploymentId"])

    async def get_deployment(self, deployment_id: str) -> Dict[str, Any]:
        """Fetch a deployment's current state."""
        response = await asyncio.to_thread(self._client.get_deployment, deploymentId=deployment_id)
        return dict(response["deploymentInfo"])
