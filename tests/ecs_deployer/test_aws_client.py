"""
Tests for the boto3 client wrappers, using botocore's Stubber.
"""

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from ecs_deployer.aws_client import CodeDeployClient, EcsClient

TASK_DEFINITION = {
    "family": "task-def-family",
    "containerDefinitions": [{"name": "web", "image": "nginx:latest"}],
}


def _boto_client(service: str):
    return boto3.client(
        service,
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def ecs_stub():
    """EcsClient backed by a stubbed boto3 client."""
    client = _boto_client("ecs")
    with Stubber(client) as stubber:
        yield EcsClient(client=client), stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def codedeploy_stub():
    """CodeDeployClient backed by a stubbed boto3 client."""
    client = _boto_client("codedeploy")
    with Stubber(client) as stubber:
        yield CodeDeployClient(client=client), stubber
        stubber.assert_no_pending_responses()


class TestEcsClient:
    """Test the ECS wrapper."""

    def test_region(self, ecs_stub):
        ecs, _ = ecs_stub
        assert ecs.region == "us-east-1"

    @pytest.mark.asyncio
    async def test_register_task_definition(self, ecs_stub):
        ecs, stubber = ecs_stub
        stubber.add_response(
            "register_task_definition",
            {"taskDefinition": {"taskDefinitionArn": "task:def:arn", "family": "task-def-family"}},
            TASK_DEFINITION,
        )

        registered = await ecs.register_task_definition(TASK_DEFINITION)

        assert registered["taskDefinitionArn"] == "task:def:arn"

    @pytest.mark.asyncio
    async def test_register_task_definition_error(self, ecs_stub):
        ecs, stubber = ecs_stub
        stubber.add_client_error(
            "register_task_definition",
            service_error_code="ClientException",
            service_message="Could not parse",
        )

        with pytest.raises(ClientError, match="Could not parse"):
            await ecs.register_task_definition(TASK_DEFINITION)

    @pytest.mark.asyncio
    async def test_describe_service(self, ecs_stub):
        ecs, stubber = ecs_stub
        stubber.add_response(
            "describe_services",
            {"services": [{"serviceName": "service-456", "status": "ACTIVE"}], "failures": []},
            {"cluster": "cluster-789", "services": ["service-456"]},
        )

        response = await ecs.describe_service("cluster-789", "service-456")

        assert response["services"][0]["status"] == "ACTIVE"
        assert response["failures"] == []

    @pytest.mark.asyncio
    async def test_update_service(self, ecs_stub):
        ecs, stubber = ecs_stub
        stubber.add_response(
            "update_service",
            {"service": {"serviceName": "service-456", "taskDefinition": "task:def:arn"}},
            {
                "cluster": "cluster-789",
                "service": "service-456",
                "taskDefinition": "task:def:arn",
                "forceNewDeployment": True,
            },
        )

        service = await ecs.update_service(
            "cluster-789", "service-456", "task:def:arn", force_new_deployment=True
        )

        assert service["taskDefinition"] == "task:def:arn"


class TestCodeDeployClient:
    """Test the CodeDeploy wrapper."""

    @pytest.mark.asyncio
    async def test_get_deployment_group(self, codedeploy_stub):
        codedeploy, stubber = codedeploy_stub
        stubber.add_response(
            "get_deployment_group",
            {
                "deploymentGroupInfo": {
                    "deploymentGroupName": "DgpECS-cluster-789-service-456",
                    "blueGreenDeploymentConfiguration": {
                        "deploymentReadyOption": {"waitTimeInMinutes": 10}
                    },
                }
            },
            {
                "applicationName": "AppECS-cluster-789-service-456",
                "deploymentGroupName": "DgpECS-cluster-789-service-456",
            },
        )

        info = await codedeploy.get_deployment_group(
            "AppECS-cluster-789-service-456", "DgpECS-cluster-789-service-456"
        )

        assert info["blueGreenDeploymentConfiguration"]["deploymentReadyOption"] == {
            "waitTimeInMinutes": 10
        }

    @pytest.mark.asyncio
    async def test_create_deployment_with_description(self, codedeploy_stub):
        codedeploy, stubber = codedeploy_stub
        revision = {
            "revisionType": "AppSpecContent",
            "appSpecContent": {"content": "{}", "sha256": "abc"},
        }
        stubber.add_response(
            "create_deployment",
            {"deploymentId": "d-123"},
            {
                "applicationName": "app",
                "deploymentGroupName": "group",
                "revision": revision,
                "description": "release 42",
            },
        )

        deployment_id = await codedeploy.create_deployment(
            "app", "group", revision, description="release 42"
        )

        assert deployment_id == "d-123"

    @pytest.mark.asyncio
    async def test_create_deployment_without_description(self, codedeploy_stub):
        codedeploy, stubber = codedeploy_stub
        revision = {
            "revisionType": "AppSpecContent",
            "appSpecContent": {"content": "{}", "sha256": "abc"},
        }
        stubber.add_response(
            "create_deployment",
            {"deploymentId": "d-456"},
            {"applicationName": "app", "deploymentGroupName": "group", "revision": revision},
        )

        assert await codedeploy.create_deployment("app", "group", revision) == "d-456"

    @pytest.mark.asyncio
    async def test_get_deployment(self, codedeploy_stub):
        codedeploy, stubber = codedeploy_stub
        stubber.add_response(
            "get_deployment",
            {"deploymentInfo": {"deploymentId": "d-123", "status": "InProgress"}},
            {"deploymentId": "d-123"},
        )

        info = await codedeploy.get_deployment("d-123")

        assert info["status"] == "InProgress"
