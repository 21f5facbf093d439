"""
ECS task deployer CLI entry point.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from ecs_deployer.config.settings import INPUT_NAMES, DeployConfig, DeployInputs, LoggingConfig
from ecs_deployer.logging_config import setup_logging
from ecs_deployer.output import formatter
from ecs_deployer.reporting import ActionReporter
from ecs_deployer.runner import deploy


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ecs-deploy",
        description="Register an ECS task definition and deploy it to a service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Register only
  ecs-deploy --task-definition task-definition.json

  # Update a service and wait until it is stable
  ecs-deploy --task-definition task-definition.json --service web --cluster prod \\
      --wait-for-service-stability

  # Read inputs the way a GitHub Actions runner passes them
  ecs-deploy --from-env
        """,
    )

    inputs = parser.add_argument_group("deployment inputs")
    inputs.add_argument("--task-definition", help="Path to the task definition file")
    inputs.add_argument("--service", help="Service to deploy to; omit to register only")
    inputs.add_argument("--cluster", help="Cluster of the service (default: default)")
    inputs.add_argument(
        "--wait-for-service-stability",
        action="store_const",
        const="true",
        help="Wait for the service to become stable or the CodeDeploy deployment to succeed",
    )
    inputs.add_argument("--wait-for-minutes", help="Wait bound in minutes (default: 30, max: 360)")
    inputs.add_argument(
        "--force-new-deployment",
        action="store_const",
        const="true",
        help="Force a new deployment of the service",
    )
    inputs.add_argument("--codedeploy-appspec", help="AppSpec file (default: appspec.yaml)")
    inputs.add_argument("--codedeploy-application", help="CodeDeploy application name")
    inputs.add_argument("--codedeploy-deployment-group", help="CodeDeploy deployment group")
    inputs.add_argument(
        "--codedeploy-deployment-description", help="Description of the CodeDeploy deployment"
    )

    parser.add_argument("--config", "-c", help="YAML configuration file")
    parser.add_argument(
        "--from-env", action="store_true", help="Read inputs from INPUT_* environment variables"
    )
    parser.add_argument("--workspace", help="Root for relative paths (default: current directory)")
    parser.add_argument("--region", help="AWS region")
    parser.add_argument("--output-file", help="File receiving name=value outputs")
    parser.add_argument(
        "--format",
        choices=["table", "json", "yaml"],
        help="Print a summary of the run in this format",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--log-dir", help="Directory for rotating log files")
    parser.add_argument("--json-logs", action="store_true", help="Write file logs as JSON")
    parser.add_argument(
        "--generate-config",
        metavar="PATH",
        help="Write an example configuration file and exit",
    )
    parser.add_argument(
        "--validate-config", action="store_true", help="Validate the configuration and exit"
    )
    return parser


def load_config(
    args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None
) -> DeployConfig:
    """
    Build the run configuration from CLI arguments.

    Explicit arguments override values from --config or --from-env.

    Args:
        args: Parsed arguments
        environ: Environment for --from-env (defaults to os.environ)

    Returns:
        Run configuration
    """
    overrides: Dict[str, Any] = {}
    for name in INPUT_NAMES:
        value = getattr(args, name.replace("-", "_"))
        if value is not None:
            overrides[name] = value

    if args.config:
        config = DeployConfig.from_file(args.config, overrides)
    elif args.from_env:
        config = DeployConfig.from_env(environ)
        values = config.inputs.to_mapping()
        values.update(overrides)
        config = config.model_copy(update={"inputs": DeployInputs.from_mapping(values)})
    else:
        config = DeployConfig(inputs=DeployInputs.from_mapping(overrides))

    updates: Dict[str, Any] = {
        "logging": LoggingConfig(
            console_level="DEBUG" if args.verbose else config.logging.console_level,
            log_dir=args.log_dir or config.logging.log_dir,
            use_json=args.json_logs or config.logging.use_json,
        )
    }
    if args.workspace:
        updates["workspace"] = Path(args.workspace)
    if args.region:
        updates["region"] = args.region
    if args.output_file:
        updates["output_file"] = Path(args.output_file)

    return config.model_copy(update=updates)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(console_level="DEBUG" if args.verbose else "INFO")
    logger = logging.getLogger(__name__)

    if args.generate_config:
        example = DeployConfig(inputs=DeployInputs(task_definition="task-definition.json"))
        example.save(args.generate_config)
        print(f"Generated example configuration at: {args.generate_config}")
        return 0

    try:
        config = load_config(args)
    except (ValidationError, ValueError, OSError, yaml.YAMLError) as e:
        ActionReporter().set_failed(f"Invalid configuration: {e}")
        return 1

    if args.validate_config:
        print("Configuration valid")
        return 0

    setup_logging(
        console_level=config.logging.console_level,
        log_dir=config.logging.log_dir,
        use_json=config.logging.use_json,
    )

    try:
        result, reporter = asyncio.run(deploy(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1

    if args.format:
        print(formatter.format_output(result.summary(), args.format))

    return reporter.exit_code


if __name__ == "__main__":
    sys.exit(main())
