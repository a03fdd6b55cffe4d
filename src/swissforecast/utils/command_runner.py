"""Common utilities for subprocess command execution.

This module provides reusable functions for running external commands
with consistent error handling and logging.
"""

# Swiss Forecast
# Copyright (C) 2025  Swiss Forecast developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import subprocess
from pathlib import Path
from typing import List, Optional, Union

from swissforecast.utils.logging import setup_logger

logger = setup_logger(__name__)


class CommandResult:
    """Result of a command execution.

    Attributes:
        returncode: Exit code of the command
        stdout: Standard output as string
        stderr: Standard error as string
        success: Whether the command succeeded (returncode == 0)
    """

    def __init__(self, returncode: int, stdout: str, stderr: str):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.success = returncode == 0

    def __bool__(self) -> bool:
        """Allow using result in boolean context: if result: ..."""
        return self.success

    def __repr__(self) -> str:
        status = "SUCCESS" if self.success else f"FAILED({self.returncode})"
        return f"CommandResult({status})"


def run_command(
    cmd: Union[List[str], str],
    description: str = "",
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> CommandResult:
    """Run a command with consistent error handling.

    Args:
        cmd: Command and arguments as list or string
        description: Human-readable description for logging
        cwd: Working directory for command execution
        timeout: Seconds to wait before the command is killed

    Returns:
        CommandResult with exit code and output

    Raises:
        FileNotFoundError: If command executable not found
        subprocess.TimeoutExpired: If the command outlives ``timeout``

    Example:
        >>> result = run_command(["java", "-version"], "Check java")
        >>> if result:
        ...     print(result.stderr)
    """
    cmd_str = " ".join(cmd) if isinstance(cmd, list) else cmd
    if description:
        logger.info("%s: %s", description, cmd_str)

    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
            cwd=cwd,
            timeout=timeout,
        )
    except FileNotFoundError:
        logger.error(
            "Command not found: %s",
            cmd[0] if isinstance(cmd, list) else cmd.split()[0],
        )
        raise
    except subprocess.TimeoutExpired:
        logger.error("Command timed out after %ss: %s", timeout, cmd_str)
        raise

    result = CommandResult(
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
    if not result:
        logger.warning("%r for %s: %s", result, cmd_str, result.stderr.strip())
    return result

