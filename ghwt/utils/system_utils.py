"""
System Utilities Module

Process helpers shared by the git client and the multiplexer backends.
Every external program is run through here so command lines are logged
in one place.
"""

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class SystemUtils:
    """
    System-level utilities and process management.
    """

    @staticmethod
    def run_command(command: List[str],
                    cwd: Optional[Union[str, Path]] = None,
                    timeout: Optional[float] = None) -> Tuple[int, str, str]:
        """
        Run a command to completion, capturing its output.

        Args:
            command: Command and arguments as list
            cwd: Working directory for command
            timeout: Command timeout in seconds

        Returns:
            Tuple of (return_code, stdout, stderr). A missing executable is
            reported as 127 and a timeout as 124, like a shell would.
        """
        logger.debug(f"Running: {' '.join(command)}")
        try:
            result = subprocess.run(
                command,
                cwd=str(cwd) if cwd is not None else None,
                timeout=timeout,
                capture_output=True,
                text=True
            )
            return (result.returncode, result.stdout or "", result.stderr or "")

        except subprocess.TimeoutExpired:
            logger.warning(f"Command timed out after {timeout}s: {' '.join(command)}")
            return (124, "", f"Command timed out after {timeout} seconds")

        except FileNotFoundError:
            logger.debug(f"Command not found: {command[0]}")
            return (127, "", f"Command not found: {command[0]}")

        except OSError as e:
            logger.warning(f"Error running {' '.join(command)}: {e}")
            return (126, "", str(e))

    @staticmethod
    def run_interactive(command: List[str], cwd: Optional[Union[str, Path]] = None) -> int:
        """
        Run a command attached to the current terminal.

        Returns:
            Exit code of the command, 127 if it could not be started
        """
        logger.debug(f"Running interactively: {' '.join(command)}")
        try:
            result = subprocess.run(command, cwd=str(cwd) if cwd is not None else None)
            return result.returncode
        except OSError as e:
            logger.debug(f"Could not start {command[0]}: {e}")
            return 127

    @staticmethod
    def spawn_detached(command: List[str], cwd: Optional[Union[str, Path]] = None) -> subprocess.Popen:
        """
        Start a command in its own session with no terminal I/O.

        The child is not waited on. OSError propagates if the executable
        cannot be started.
        """
        logger.debug(f"Spawning detached: {' '.join(command)}")
        return subprocess.Popen(
            command,
            cwd=str(cwd) if cwd is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True
        )

    @staticmethod
    def wait_until(predicate: Callable[[], bool],
                   timeout: float,
                   interval: float = 0.1) -> bool:
        """
        Poll predicate until it returns True or timeout seconds pass.

        Returns:
            bool: True if the predicate succeeded within the timeout
        """
        deadline = time.monotonic() + timeout
        while True:
            if predicate():
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(interval)

    @staticmethod
    def get_environment_variable(var_name: str, default: Optional[str] = None) -> Optional[str]:
        """Get environment variable with optional default."""
        return os.environ.get(var_name, default)
