"""
Pytest configuration and fixtures for the ECS task deployer tests.
"""

import io
import json
from unittest.mock import AsyncMock, Mock

import pytest

from ecs_deployer.config.settings import DeployConfig, DeployInputs
from ecs_deployer.reporting import ActionReporter

APPSPEC_YAML = """
Resources:
- TargetService:
    Type: AWS::ECS::Service
    Properties:
      TaskDefinition: helloworld
      LoadBalancerInfo:
        ContainerName: web
        ContainerPort: 80
"""


def pytest_configure(config):
    """Keep boto3 away from real credentials and regions."""
    import os

    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def workspace(tmp_path):
    """Workspace holding a minimal task definition and a YAML AppSpec."""
    (tmp_path / "task-definition.json").write_text(json.dumps({"family": "task-def-family"}))
    (tmp_path / "appspec.yaml").write_text(APPSPEC_YAML)
    return tmp_path


@pytest.fixture
def make_config(workspace):
    """Factory for run configurations rooted at the test workspace."""

    def _make(**inputs):
        values = {"task-definition": "task-definition.json"}
        values.update(inputs)
        return DeployConfig(inputs=DeployInputs.from_mapping(values), workspace=workspace)

    return _make


@pytest.fixture
def reporter():
    """Reporter writing workflow commands to an in-memory stream."""
    return ActionReporter(stream=io.StringIO())


@pytest.fixture
def mock_ecs():
    """ECS client whose calls succeed with an ACTIVE rolling-update service."""
    ecs = Mock()
    ecs.region = "fake-region"
    ecs.register_task_definition = AsyncMock(
        return_value={"taskDefinitionArn": "task:def:arn", "family": "task-def-family"}
    )
    ecs.describe_service = AsyncMock(
        return_value={
            "failures": [],
            "services": [
                {
                    "status": "ACTIVE",
                    "serviceName": "service-456",
                    "clusterArn": "arn:aws:ecs:fake-region:123456789012:cluster/cluster-789",
                    "deployments": [{"status": "PRIMARY"}],
                    "runningCount": 2,
                    "desiredCount": 2,
                }
            ],
        }
    )
    ecs.update_service = AsyncMock(return_value={})
    return ecs


@pytest.fixture
def mock_codedeploy():
    """CodeDeploy client whose deployments succeed immediately."""
    codedeploy = Mock()
    codedeploy.region = "fake-region"
    codedeploy.get_deployment_group = AsyncMock(
        return_value={
            "blueGreenDeploymentConfiguration": {
                "deploymentReadyOption": {"waitTimeInMinutes": 10},
                "terminateBlueInstancesOnDeploymentSuccess": {
                    "terminationWaitTimeInMinutes": 30
                },
            }
        }
    )
    codedeploy.create_deployment = AsyncMock(return_value="deployment-1")
    codedeploy.get_deployment = AsyncMock(return_value={"status": "Succeeded"})
    return codedeploy


@pytest.fixture
def code_deploy_service():
    """DescribeServices response for a service using the CodeDeploy controller."""
    return {
        "failures": [],
        "services": [
            {
                "status": "ACTIVE",
                "serviceName": "service-456",
                "clusterArn": "arn:aws:ecs:fake-region:123456789012:cluster/cluster-789",
                "deploymentController": {"type": "CODE_DEPLOY"},
            }
        ],
    }
