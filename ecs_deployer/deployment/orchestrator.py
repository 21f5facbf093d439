"""
Deployment orchestrator.

Registers the task definition, then either updates the service directly or
hands the rollout to CodeDeploy, depending on the service's deployment
controller. Each step runs strictly after the previous one. Any failing
collaborator call is reported once (registration twice) and ends the run;
nothing is retried or rolled back here.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from ecs_deployer.appspec import appspec_revision, read_appspec, substitute_task_definition
from ecs_deployer.aws_client import CodeDeployClient, EcsClient
from ecs_deployer.config.settings import MAX_WAIT_MINUTES, DeployConfig
from ecs_deployer.deployment.polling import DEFAULT_POLL_INTERVAL, wait_until
from ecs_deployer.documents import read_document
from ecs_deployer.errors import (
    DeployError,
    DeploymentSubmissionError,
    DocumentReadError,
    RegistrationError,
    ServiceLookupError,
    WaitFailedError,
)
from ecs_deployer.logging_config import LogContext, log_deployment_operation
from ecs_deployer.models import (
    DeploymentControllerType,
    DeploymentEvent,
    DeploymentResult,
    OrchestratorState,
    ServiceTarget,
)
from ecs_deployer.reporting import ActionReporter
from ecs_deployer.task_definition import prepare_task_definition
from ecs_deployer.utils.log_sanitizer import (
    redact_task_definition,
    sanitize_for_log,
    sanitize_resource_name,
)

logger = logging.getLogger(__name__)

TASK_DEFINITION_ARN_OUTPUT = "task-definition-arn"
CODEDEPLOY_DEPLOYMENT_ID_OUTPUT = "codedeploy-deployment-id"

# States of a service that can never become stable again
INACTIVE_SERVICE_STATUSES = ("DRAINING", "INACTIVE")
FAILED_CODEDEPLOY_STATUSES = ("Failed", "Stopped")


class DeploymentOrchestrator:
    """
    Runs one deployment from task definition file to settled service.

    The orchestrator is single use: create one per run.
    """

    def __init__(
        self,
        config: DeployConfig,
        ecs: EcsClient,
        codedeploy: CodeDeployClient,
        reporter: ActionReporter,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            config: Run configuration
            ecs: ECS client
            codedeploy: CodeDeploy client
            reporter: Output and failure channel
            poll_interval: Seconds between wait attempts
        """
        self.config = config
        self.inputs = config.inputs
        self.ecs = ecs
        self.codedeploy = codedeploy
        self.reporter = reporter
        self.poll_interval = poll_interval

        self.state = OrchestratorState.IDLE
        self.events: List[DeploymentEvent] = []
        self.result = DeploymentResult(state=self.state)

    def _transition(
        self, state: OrchestratorState, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        logger.debug(f"{self.state.value} -> {state.value}: {message}")
        self.state = state
        self.events.append(DeploymentEvent(event_type=state.value, message=message, details=details))

    def _fail(self, error: DeployError) -> None:
        message = str(error)
        self.reporter.set_failed(message)
        self.result.error = message
        self._transition(
            OrchestratorState.FAILED, message, {"error_type": type(error).__name__}
        )

    async def run(self) -> DeploymentResult:
        """
        Execute the deployment.

        Returns:
            The result; its state is DONE or FAILED. Failures have already
            been reported through the reporter.
        """
        cluster = self.inputs.cluster
        service = self.inputs.service

        with LogContext(logger, cluster=cluster, service=service or ""):
            try:
                task_definition = await self.load_task_definition()
                arn = await self.register(task_definition)
                self.result.task_definition_arn = arn
                self.reporter.set_output(TASK_DEFINITION_ARN_OUTPUT, arn)

                target = await self.resolve_target(service, cluster)
                if target is None:
                    self.result.path = "register_only"
                    logger.info("No service given, task definition registered only")
                elif target.controller == DeploymentControllerType.CODE_DEPLOY:
                    self.result.path = "codedeploy"
                    await self.create_controller_deployment(target, arn)
                else:
                    self.result.path = "service_update"
                    await self.update_service(target, arn)

                self._transition(OrchestratorState.DONE, "Deployment run finished")
            except DeployError as e:
                self._fail(e)

        self.result.state = self.state
        self.result.events = list(self.events)
        return self.result

    async def load_task_definition(self) -> Dict[str, Any]:
        """
        Read the task definition file and clean it for registration.

        Raises:
            DocumentReadError: If the file is unreadable or not a mapping
        """
        path = self.inputs.task_definition
        raw = await read_document(path, self.config.workspace)
        if not isinstance(raw, dict):
            raise DocumentReadError(path, "task definition must be a mapping")
        return prepare_task_definition(raw)

    async def register(self, task_definition: Dict[str, Any]) -> str:
        """
        Register the task definition.

        A failure is reported with context here, and the caller reports the
        bare error message a second time when the run fails.

        Args:
            task_definition: Cleaned task definition

        Returns:
            ARN of the new revision

        Raises:
            RegistrationError: If ECS rejects the registration
        """
        self._transition(OrchestratorState.REGISTERING, "Registering task definition")
        try:
            registered = await self.ecs.register_task_definition(task_definition)
            arn = str(registered["taskDefinitionArn"])
        except Exception as e:
            self.reporter.set_failed(f"Failed to register task definition in ECS: {e}")
            logger.debug("Task definition contents:")
            logger.debug(json.dumps(redact_task_definition(task_definition), indent=4))
            log_deployment_operation("register", False, error=str(e))
            raise RegistrationError(str(e)) from e

        self._transition(OrchestratorState.REGISTERED, "Task definition registered", {"arn": arn})
        log_deployment_operation("register", True, {"task_definition_arn": arn})
        return arn

    async def resolve_target(
        self, service: Optional[str], cluster: str
    ) -> Optional[ServiceTarget]:
        """
        Look up the service to deploy to.

        Args:
            service: Service name, None for register-only runs
            cluster: Cluster name

        Returns:
            The target, or None when no service was given

        Raises:
            ServiceLookupError: If the service cannot be described or is not ACTIVE
        """
        if not service:
            return None

        self.result.cluster = cluster
        self.result.service = service

        try:
            response = await self.ecs.describe_service(cluster, service)
        except Exception as e:
            logger.error(f"Failed to describe service {sanitize_for_log(service)}: {e}")
            raise ServiceLookupError(str(e)) from e

        failures = response.get("failures") or []
        if failures:
            failure = failures[0]
            raise ServiceLookupError(f"{failure.get('arn')} is {failure.get('reason')}")

        services = response.get("services") or []
        if not services:
            raise ServiceLookupError(f"Service {service} not found in cluster {cluster}")

        live = services[0]
        if live.get("status") != "ACTIVE":
            raise ServiceLookupError(f"Service is {live.get('status')}")

        target = ServiceTarget(
            cluster=cluster,
            service=service,
            controller=DeploymentControllerType.from_service(live),
            service_name=live.get("serviceName"),
            cluster_arn=live.get("clusterArn"),
        )
        logger.info(
            f"Service {sanitize_resource_name(service)} uses the {target.controller.value} "
            "deployment controller"
        )
        return target

    async def update_service(self, target: ServiceTarget, task_definition_arn: str) -> None:
        """
        Roll the service onto the new task definition.

        Raises:
            DeploymentSubmissionError: If UpdateService fails
            WaitError: If waiting is enabled and the service does not settle
        """
        wait = self.inputs.wait
        self._transition(
            OrchestratorState.UPDATING_SERVICE,
            "Updating service",
            {"force_new_deployment": wait.force_new_deployment},
        )
        try:
            await self.ecs.update_service(
                target.cluster,
                target.service,
                task_definition_arn,
                force_new_deployment=wait.force_new_deployment,
            )
        except Exception as e:
            logger.error(f"Failed to update service {sanitize_for_log(target.service)}: {e}")
            log_deployment_operation("update_service", False, error=str(e))
            raise DeploymentSubmissionError(str(e)) from e

        log_deployment_operation(
            "update_service", True, {"service": target.service, "cluster": target.cluster}
        )
        logger.info(
            "Deployment started. Watch this deployment's progress in the Amazon ECS console: "
            f"{self._service_console_url(target)}"
        )

        if not wait.wait_for_service_stability:
            logger.debug("Not waiting for the service to become stable")
            return

        self._transition(
            OrchestratorState.WAITING,
            "Waiting for service stability",
            {"minutes": wait.wait_for_minutes},
        )
        await wait_until(
            lambda: self._service_is_stable(target),
            timeout_seconds=wait.wait_for_minutes * 60,
            interval_seconds=self.poll_interval,
            description=f"service {target.service} to become stable",
        )
        self.result.waited = True
        log_deployment_operation("wait_service_stability", True, {"service": target.service})

    async def _service_is_stable(self, target: ServiceTarget) -> bool:
        try:
            response = await self.ecs.describe_service(target.cluster, target.service)
        except Exception as e:
            raise WaitFailedError(f"Failed to check service stability: {e}") from e

        for failure in response.get("failures") or []:
            if failure.get("reason") == "MISSING":
                raise WaitFailedError(f"{failure.get('arn')} is MISSING")

        services = response.get("services") or []
        if not services:
            return False

        live = services[0]
        if live.get("status") in INACTIVE_SERVICE_STATUSES:
            raise WaitFailedError(f"Service is {live.get('status')}")

        deployments = live.get("deployments") or []
        stable = len(deployments) == 1 and live.get("runningCount") == live.get("desiredCount")
        logger.debug(
            f"Service {sanitize_for_log(target.service)}: {len(deployments)} deployment(s), "
            f"running {live.get('runningCount')}/{live.get('desiredCount')}"
        )
        return stable

    async def create_controller_deployment(
        self, target: ServiceTarget, task_definition_arn: str
    ) -> None:
        """
        Hand the rollout to CodeDeploy.

        The application and deployment group default to the names the ECS
        console gives them when blue/green is enabled for the live service.

        Raises:
            DocumentReadError: If the AppSpec cannot be read
            AppSpecError: If the AppSpec lacks the TargetService properties
            DeploymentSubmissionError: If the deployment cannot be created
            WaitError: If waiting is enabled and the deployment does not succeed
        """
        wait = self.inputs.wait
        application = (
            self.inputs.codedeploy_application
            or f"AppECS-{target.cluster_name}-{target.live_service_name}"
        )
        group = (
            self.inputs.codedeploy_deployment_group
            or f"DgpECS-{target.cluster_name}-{target.live_service_name}"
        )
        self._transition(
            OrchestratorState.CREATING_CONTROLLER_DEPLOYMENT,
            "Creating CodeDeploy deployment",
            {"application": application, "deployment_group": group},
        )

        appspec = await read_appspec(self.inputs.codedeploy_appspec, self.config.workspace)
        appspec = substitute_task_definition(appspec, task_definition_arn)

        try:
            group_info = await self.codedeploy.get_deployment_group(application, group)
            deployment_id = await self.codedeploy.create_deployment(
                application,
                group,
                appspec_revision(appspec),
                description=self.inputs.codedeploy_deployment_description,
            )
        except Exception as e:
            logger.error(
                f"Failed to create CodeDeploy deployment in {sanitize_resource_name(group)}: {e}"
            )
            log_deployment_operation("create_deployment", False, error=str(e))
            raise DeploymentSubmissionError(str(e)) from e

        self.result.codedeploy_deployment_id = deployment_id
        self.reporter.set_output(CODEDEPLOY_DEPLOYMENT_ID_OUTPUT, deployment_id)
        log_deployment_operation(
            "create_deployment", True, {"deployment_id": deployment_id, "deployment_group": group}
        )
        logger.info(
            "Deployment started. Watch this deployment's progress in the AWS CodeDeploy console: "
            f"{self._deployment_console_url(deployment_id)}"
        )

        if not wait.wait_for_service_stability:
            logger.debug("Not waiting for the deployment to complete")
            return

        total_minutes = codedeploy_wait_minutes(group_info, wait.wait_for_minutes)
        self._transition(
            OrchestratorState.WAITING,
            "Waiting for CodeDeploy deployment",
            {"deployment_id": deployment_id, "minutes": total_minutes},
        )
        await wait_until(
            lambda: self._deployment_succeeded(deployment_id),
            timeout_seconds=total_minutes * 60,
            interval_seconds=self.poll_interval,
            description=f"CodeDeploy deployment {deployment_id} to succeed",
        )
        self.result.waited = True
        log_deployment_operation("wait_deployment", True, {"deployment_id": deployment_id})

    async def _deployment_succeeded(self, deployment_id: str) -> bool:
        try:
            info = await self.codedeploy.get_deployment(deployment_id)
        except Exception as e:
            raise WaitFailedError(f"Failed to check deployment {deployment_id}: {e}") from e

        status = info.get("status")
        if status in FAILED_CODEDEPLOY_STATUSES:
            error = (info.get("errorInformation") or {}).get("message")
            detail = f": {error}" if error else ""
            raise WaitFailedError(f"Deployment {deployment_id} is {status}{detail}")

        logger.debug(f"CodeDeploy deployment {deployment_id} is {status}")
        return status == "Succeeded"

    def _service_console_url(self, target: ServiceTarget) -> str:
        region = self.ecs.region
        cluster = sanitize_resource_name(target.cluster_name)
        service = sanitize_resource_name(target.live_service_name)
        return (
            f"https://{region}.console.aws.amazon.com/ecs/v2/clusters/{cluster}"
            f"/services/{service}/events?region={region}"
        )

    def _deployment_console_url(self, deployment_id: str) -> str:
        region = self.codedeploy.region
        return (
            f"https://{region}.console.aws.amazon.com/codesuite/codedeploy/deployments/"
            f"{sanitize_resource_name(deployment_id)}?region={region}"
        )


def codedeploy_wait_minutes(group_info: Dict[str, Any], wait_for_minutes: int) -> int:
    """
    Bound for waiting on a blue/green deployment.

    The deployment group may hold traffic before rerouting and keep the
    blue tasks around after success; both add to the requested wait.

    Args:
        group_info: GetDeploymentGroup deploymentGroupInfo
        wait_for_minutes: Requested wait in minutes

    Returns:
        Total minutes, at most MAX_WAIT_MINUTES
    """
    blue_green = group_info.get("blueGreenDeploymentConfiguration") or {}
    ready_option = blue_green.get("deploymentReadyOption") or {}
    termination = blue_green.get("terminateBlueInstancesOnDeploymentSuccess") or {}

    ready_minutes = int(ready_option.get("waitTimeInMinutes") or 0)
    termination_minutes = int(termination.get("terminationWaitTimeInMinutes") or 0)
    return min(ready_minutes + termination_minutes + wait_for_minutes, MAX_WAIT_MINUTES)
