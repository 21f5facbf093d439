"""
Run configuration for the ECS task deployer.

Inputs are always resolved by name. They can come from GitHub Actions style
environment variables (INPUT_<NAME>), from a YAML file, or from the CLI.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CLUSTER = "default"
DEFAULT_APPSPEC = "appspec.yaml"
DEFAULT_WAIT_MINUTES = 30
MAX_WAIT_MINUTES = 360

# Input names as they appear in the action metadata and on the CLI
INPUT_NAMES = (
    "task-definition",
    "service",
    "cluster",
    "wait-for-service-stability",
    "wait-for-minutes",
    "force-new-deployment",
    "codedeploy-appspec",
    "codedeploy-application",
    "codedeploy-deployment-group",
    "codedeploy-deployment-description",
)

WAIT_INPUT_NAMES = ("wait-for-service-stability", "wait-for-minutes", "force-new-deployment")


def get_input(name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Resolve a single input by name from the environment.

    Args:
        name: Input name, e.g. "task-definition"
        environ: Environment mapping (defaults to os.environ)

    Returns:
        The stripped input value, or an empty string when unset
    """
    env = os.environ if environ is None else environ
    key = f"INPUT_{name.replace(' ', '_').upper()}"
    return env.get(key, "").strip()


def parse_bool(value: Any) -> bool:
    """Parse a boolean input. Blank and unset inputs are false."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() == "true"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class WaitPolicy(BaseModel):
    """Post-update waiting behavior. Has no effect on registration."""

    wait_for_service_stability: bool = Field(
        default=False, description="Wait until the update has settled"
    )
    wait_for_minutes: int = Field(
        default=DEFAULT_WAIT_MINUTES,
        description=f"Wait bound in minutes, at most {MAX_WAIT_MINUTES}",
    )
    force_new_deployment: bool = Field(
        default=False, description="Force a new deployment of the service"
    )

    @field_validator("wait_for_service_stability", "force_new_deployment", mode="before")
    @classmethod
    def _parse_flags(cls, value: Any) -> bool:
        return parse_bool(value)

    @field_validator("wait_for_minutes", mode="before")
    @classmethod
    def _clamp_minutes(cls, value: Any) -> int:
        try:
            minutes = int(str(value).strip()) if value is not None else DEFAULT_WAIT_MINUTES
        except ValueError:
            return DEFAULT_WAIT_MINUTES
        if minutes <= 0:
            return DEFAULT_WAIT_MINUTES
        return min(minutes, MAX_WAIT_MINUTES)


class DeployInputs(BaseModel):
    """The named inputs of a single deployment run."""

    task_definition: str = Field(..., description="Path to the task definition file")
    service: Optional[str] = Field(None, description="Service to update; absent means register only")
    cluster: str = Field(default=DEFAULT_CLUSTER, description="Cluster hosting the service")
    wait: WaitPolicy = Field(default_factory=WaitPolicy)
    codedeploy_appspec: str = Field(default=DEFAULT_APPSPEC, description="AppSpec file path")
    codedeploy_application: Optional[str] = Field(None, description="CodeDeploy application")
    codedeploy_deployment_group: Optional[str] = Field(
        None, description="CodeDeploy deployment group"
    )
    codedeploy_deployment_description: Optional[str] = Field(
        None, description="Description attached to the CodeDeploy deployment"
    )

    @field_validator("task_definition", mode="before")
    @classmethod
    def _require_task_definition(cls, value: Any) -> str:
        value = _blank_to_none(value)
        if not value:
            raise ValueError("Input required and not supplied: task-definition")
        return str(value)

    @field_validator(
        "service",
        "codedeploy_application",
        "codedeploy_deployment_group",
        "codedeploy_deployment_description",
        mode="before",
    )
    @classmethod
    def _optional_names(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("cluster", mode="before")
    @classmethod
    def _default_cluster(cls, value: Any) -> str:
        return _blank_to_none(value) or DEFAULT_CLUSTER

    @field_validator("codedeploy_appspec", mode="before")
    @classmethod
    def _default_appspec(cls, value: Any) -> str:
        return _blank_to_none(value) or DEFAULT_APPSPEC

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "DeployInputs":
        """
        Build inputs from a mapping keyed by input name.

        Keys may use the hyphenated input names or their underscore forms.
        Unknown keys are rejected.

        Args:
            values: Mapping of input name to value

        Returns:
            Validated inputs
        """
        normalized: Dict[str, Any] = {}
        for key, value in values.items():
            name = key.replace("_", "-")
            if name not in INPUT_NAMES:
                raise ValueError(f"Unknown input: {key}")
            normalized[name] = value

        wait = {
            name.replace("-", "_"): normalized.pop(name)
            for name in WAIT_INPUT_NAMES
            if name in normalized
        }
        fields = {name.replace("-", "_"): value for name, value in normalized.items()}
        return cls(**fields, wait=WaitPolicy(**wait))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DeployInputs":
        """Resolve every input by name from INPUT_* environment variables."""
        return cls.from_mapping({name: get_input(name, environ) for name in INPUT_NAMES})

    def to_mapping(self) -> Dict[str, Any]:
        """Inverse of from_mapping, omitting unset optional inputs."""
        flat = self.model_dump(exclude={"wait"})
        flat.update(self.wait.model_dump())
        return {key.replace("_", "-"): value for key, value in flat.items() if value is not None}


class LoggingConfig(BaseModel):
    """Logging options for a run."""

    console_level: str = Field(default="INFO", description="Console log level")
    log_dir: Optional[str] = Field(None, description="Directory for rotating log files")
    use_json: bool = Field(default=False, description="Write file logs as JSON")


class DeployConfig(BaseModel):
    """Complete, immutable configuration of one deployment run."""

    inputs: DeployInputs
    workspace: Path = Field(default_factory=Path.cwd, description="Root for relative paths")
    region: Optional[str] = Field(None, description="AWS region; boto3 default when unset")
    output_file: Optional[Path] = Field(None, description="File receiving name=value outputs")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DeployConfig":
        """
        Build configuration the way a GitHub Actions runner provides it.

        Args:
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Run configuration
        """
        env = os.environ if environ is None else environ
        output_file = env.get("GITHUB_OUTPUT")
        return cls(
            inputs=DeployInputs.from_env(env),
            workspace=Path(env.get("GITHUB_WORKSPACE") or os.getcwd()),
            region=env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION") or None,
            output_file=Path(output_file) if output_file else None,
        )

    @classmethod
    def from_file(cls, path: str, overrides: Optional[Mapping[str, Any]] = None) -> "DeployConfig":
        """
        Load configuration from a YAML file.

        The file holds an "inputs" mapping keyed by input name plus optional
        "workspace", "region", "output_file" and "logging" keys.

        Args:
            path: Path to the YAML file
            overrides: Input values taking precedence over the file

        Returns:
            Run configuration
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")

        inputs = dict(data.pop("inputs", None) or {})
        if overrides:
            inputs.update({key: value for key, value in overrides.items() if value is not None})

        return cls(inputs=DeployInputs.from_mapping(inputs), **data)

    def save(self, path: str) -> None:
        """Write this configuration as YAML."""
        data: Dict[str, Any] = {
            "inputs": self.inputs.to_mapping(),
            "workspace": str(self.workspace),
            "logging": self.logging.model_dump(),
        }
        if self.region:
            data["region"] = self.region
        if self.output_file:
            data["output_file"] = str(self.output_file)

        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
