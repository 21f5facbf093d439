"""
Caller-visible outputs and failures of a deployment run.

Outputs are appended to the file GitHub Actions exposes as GITHUB_OUTPUT.
Failures are printed as workflow error commands and mark the run as failed;
there is no partial success.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, TextIO

logger = logging.getLogger(__name__)


def escape_command_data(value: str) -> str:
    """Escape a message for a workflow command so it stays on one line."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionReporter:
    """
    Collects the named outputs and failure messages of one run.

    Every failure message is kept in order, so callers (and tests) can see
    exactly what was reported.
    """

    def __init__(self, output_file: Optional[Path] = None, stream: Optional[TextIO] = None):
        """
        Initialize reporter.

        Args:
            output_file: File receiving name=value output lines, if any
            stream: Stream for workflow commands (defaults to stdout)
        """
        self.output_file = output_file
        self.stream = stream
        self.outputs: Dict[str, str] = {}
        self.failures: List[str] = []

    def set_output(self, name: str, value: str) -> None:
        """Publish a named output."""
        self.outputs[name] = value
        logger.info(f"Output {name}: {value}")

        if self.output_file:
            with open(self.output_file, "a", encoding="utf-8") as f:
                f.write(f"{name}={value}\n")

    def set_failed(self, message: str) -> None:
        """Report a failure and mark the run as failed."""
        self.failures.append(message)
        logger.error(message)

        stream = self.stream or sys.stdout
        stream.write(f"::error::{escape_command_data(message)}\n")
        stream.flush()

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0
