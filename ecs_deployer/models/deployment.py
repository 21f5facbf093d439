"""
Deployment-related data models.

These models describe the target service, the state machine of a run, the
events recorded along the way and the result handed back to the caller.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class DeploymentControllerType(str, Enum):
    """
    How a service rolls out new task definitions.

    Only two behaviors exist: ECS performs a rolling update itself, or
    CodeDeploy runs a blue/green deployment. Any other controller type, and
    a missing one, is treated as a rolling update.
    """

    ECS = "ECS"
    CODE_DEPLOY = "CODE_DEPLOY"

    @classmethod
    def from_service(cls, service: Dict[str, Any]) -> "DeploymentControllerType":
        """Read the controller type from a DescribeServices service entry."""
        controller = service.get("deploymentController") or {}
        if controller.get("type") == cls.CODE_DEPLOY.value:
            return cls.CODE_DEPLOY
        return cls.ECS


class OrchestratorState(str, Enum):
    """States of a single deployment run."""

    IDLE = "idle"
    REGISTERING = "registering"
    REGISTERED = "registered"
    UPDATING_SERVICE = "updating_service"
    CREATING_CONTROLLER_DEPLOYMENT = "creating_controller_deployment"
    WAITING = "waiting"
    DONE = "done"
    FAILED = "failed"


class ServiceTarget(BaseModel):
    """The live service a new task definition is rolled out to."""

    cluster: str = Field(..., description="Cluster name as given in the inputs")
    service: str = Field(..., description="Service name as given in the inputs")
    controller: DeploymentControllerType = Field(
        default=DeploymentControllerType.ECS, description="Deployment controller of the service"
    )
    service_name: Optional[str] = Field(None, description="Service name reported by ECS")
    cluster_arn: Optional[str] = Field(None, description="Cluster ARN reported by ECS")

    @property
    def cluster_name(self) -> str:
        """Cluster name, preferring the one in the reported cluster ARN."""
        if self.cluster_arn and "/" in self.cluster_arn:
            return self.cluster_arn.rsplit("/", 1)[1]
        return self.cluster

    @property
    def live_service_name(self) -> str:
        return self.service_name or self.service


class DeploymentEvent(BaseModel):
    """A single step in a run's timeline."""

    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="ISO 8601 timestamp when event occurred",
    )
    event_type: str = Field(..., description="State entered, e.g. 'registered' or 'failed'")
    message: str = Field(..., description="Human-readable event description")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional structured data")


class DeploymentResult(BaseModel):
    """Outcome of one deployment run."""

    state: OrchestratorState = Field(..., description="Final state of the run")
    path: Optional[Literal["register_only", "service_update", "codedeploy"]] = Field(
        None, description="Which update path the run took"
    )
    task_definition_arn: Optional[str] = Field(None, description="Registered task definition")
    cluster: Optional[str] = None
    service: Optional[str] = None
    codedeploy_deployment_id: Optional[str] = None
    waited: bool = Field(default=False, description="Whether the run waited for the rollout")
    error: Optional[str] = Field(None, description="Failure message when the run failed")
    events: List[DeploymentEvent] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == OrchestratorState.DONE

    def summary(self) -> Dict[str, Any]:
        """Flat view used for CLI output."""
        return {
            "state": self.state.value,
            "path": self.path,
            "task_definition_arn": self.task_definition_arn,
            "cluster": self.cluster,
            "service": self.service,
            "codedeploy_deployment_id": self.codedeploy_deployment_id,
            "waited": self.waited,
            "error": self.error,
        }
