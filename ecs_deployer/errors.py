"""
Exception hierarchy for ECS task deployments.

Every failure the orchestrator can report is a subclass of DeployError so
callers can tell the failure kinds apart without parsing messages.
"""

from typing import Optional


class DeployError(Exception):
    """Base class for all deployment failures."""


class DocumentReadError(DeployError):
    """A task definition or AppSpec file could not be read or decoded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read {path}: {reason}")


class AppSpecError(DeployError):
    """The AppSpec document does not have the expected structure."""


class RegistrationError(DeployError):
    """RegisterTaskDefinition was rejected."""


class ServiceLookupError(DeployError):
    """The target service could not be described or is not usable."""


class DeploymentSubmissionError(DeployError):
    """UpdateService or CreateDeployment failed."""


class WaitError(DeployError):
    """A bounded wait did not end in success."""

    def __init__(self, message: str, description: Optional[str] = None):
        self.description = description
        super().__init__(message)


class WaitTimeoutError(WaitError):
    """The wait deadline passed before the change settled."""


class WaitFailedError(WaitError):
    """The provider reported a terminal failure while waiting."""
