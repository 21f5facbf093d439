"""
Tests for run configuration and name-based input resolution.
"""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from ecs_deployer.config.settings import (
    DEFAULT_CLUSTER,
    MAX_WAIT_MINUTES,
    DeployConfig,
    DeployInputs,
    WaitPolicy,
    get_input,
)


class TestGetInput:
    """Test GitHub Actions style input lookup."""

    def test_reads_input_by_name(self):
        environ = {"INPUT_TASK-DEFINITION": " task-definition.json "}
        assert get_input("task-definition", environ) == "task-definition.json"

    def test_unset_input_is_blank(self):
        assert get_input("service", {}) == ""


class TestWaitPolicy:
    """Test wait option parsing."""

    def test_defaults(self):
        policy = WaitPolicy()
        assert policy.wait_for_service_stability is False
        assert policy.wait_for_minutes == 30
        assert policy.force_new_deployment is False

    @pytest.mark.parametrize(
        "value,expected",
        [("", 30), ("abc", 30), ("0", 30), ("-5", 30), ("45", 45), (1000, MAX_WAIT_MINUTES)],
    )
    def test_wait_for_minutes(self, value, expected):
        assert WaitPolicy(wait_for_minutes=value).wait_for_minutes == expected

    @pytest.mark.parametrize(
        "value,expected", [("true", True), ("TRUE", True), ("false", False), ("", False)]
    )
    def test_boolean_inputs(self, value, expected):
        policy = WaitPolicy(wait_for_service_stability=value, force_new_deployment=value)
        assert policy.wait_for_service_stability is expected
        assert policy.force_new_deployment is expected


class TestDeployInputs:
    """Test input validation and defaults."""

    def test_task_definition_required(self):
        with pytest.raises(ValidationError, match="task-definition"):
            DeployInputs.from_mapping({"task-definition": "  "})

    def test_defaults_for_blank_inputs(self):
        inputs = DeployInputs.from_mapping(
            {
                "task-definition": "task-definition.json",
                "service": "",
                "cluster": "",
                "codedeploy-appspec": "",
            }
        )
        assert inputs.service is None
        assert inputs.cluster == DEFAULT_CLUSTER
        assert inputs.codedeploy_appspec == "appspec.yaml"

    def test_accepts_underscore_names(self):
        inputs = DeployInputs.from_mapping(
            {"task_definition": "td.json", "force_new_deployment": "true"}
        )
        assert inputs.task_definition == "td.json"
        assert inputs.wait.force_new_deployment is True

    def test_unknown_input_rejected(self):
        with pytest.raises(ValueError, match="Unknown input"):
            DeployInputs.from_mapping({"task-definition": "td.json", "bogus": "1"})

    def test_from_env_resolves_by_name(self):
        environ = {
            "INPUT_TASK-DEFINITION": "task-definition.json",
            "INPUT_SERVICE": "service-456",
            "INPUT_CLUSTER": "cluster-789",
            "INPUT_WAIT-FOR-SERVICE-STABILITY": "false",
            "INPUT_WAIT-FOR-MINUTES": "",
            "INPUT_FORCE-NEW-DEPLOYMENT": "true",
            "INPUT_CODEDEPLOY-DEPLOYMENT-GROUP": "my-group",
        }

        inputs = DeployInputs.from_env(environ)

        assert inputs.task_definition == "task-definition.json"
        assert inputs.service == "service-456"
        assert inputs.cluster == "cluster-789"
        assert inputs.wait == WaitPolicy(force_new_deployment=True)
        assert inputs.codedeploy_deployment_group == "my-group"
        assert inputs.codedeploy_application is None

    def test_mapping_round_trip(self):
        inputs = DeployInputs.from_mapping(
            {"task-definition": "td.json", "service": "web", "wait-for-minutes": "10"}
        )
        assert DeployInputs.from_mapping(inputs.to_mapping()) == inputs


class TestDeployConfig:
    """Test loading whole run configurations."""

    def test_from_env(self, tmp_path):
        environ = {
            "INPUT_TASK-DEFINITION": "task-definition.json",
            "GITHUB_WORKSPACE": str(tmp_path),
            "GITHUB_OUTPUT": str(tmp_path / "outputs"),
            "AWS_REGION": "eu-west-1",
        }

        config = DeployConfig.from_env(environ)

        assert config.workspace == tmp_path
        assert config.output_file == tmp_path / "outputs"
        assert config.region == "eu-west-1"
        assert config.inputs.service is None

    def test_from_env_defaults_workspace_to_cwd(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = DeployConfig.from_env({"INPUT_TASK-DEFINITION": "td.json"})
        assert config.workspace == Path(os.getcwd())

    def test_save_and_load(self, tmp_path):
        config = DeployConfig(
            inputs=DeployInputs.from_mapping(
                {"task-definition": "td.json", "service": "web", "wait-for-service-stability": True}
            ),
            workspace=tmp_path,
            region="us-west-2",
        )
        path = tmp_path / "config" / "deploy.yml"

        config.save(str(path))
        loaded = DeployConfig.from_file(str(path))

        assert loaded == config

    def test_from_file_overrides(self, tmp_path):
        path = tmp_path / "deploy.yml"
        path.write_text("inputs:\n  task-definition: td.json\n  service: web\n")

        config = DeployConfig.from_file(str(path), {"service": "api", "cluster": None})

        assert config.inputs.service == "api"
        assert config.inputs.cluster == DEFAULT_CLUSTER

    def test_from_file_requires_mapping(self, tmp_path):
        path = tmp_path / "deploy.yml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ValueError, match="must contain a mapping"):
            DeployConfig.from_file(str(path))

    def test_config_is_immutable(self, tmp_path):
        config = DeployConfig(inputs=DeployInputs(task_definition="td.json"), workspace=tmp_path)
        with pytest.raises(ValidationError):
            config.region = "us-east-1"
