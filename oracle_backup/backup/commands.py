"""
Execution of external backup steps (dump tools, container runtime).

Every step blocks until the process exits. A non-zero exit code or an
expired timeout raises StepFailed; a missing executable raises
PrerequisiteUnavailable.
"""

import getpass
import gzip
import logging
import os
import shutil
import signal
import subprocess
import tempfile
import threading
from pathlib import Path
from typing import List, Optional, Union

from .errors import PrerequisiteUnavailable, StepFailed


logger = logging.getLogger(__name__)


def _stderr_tail(stderr: Union[str, bytes, None], limit: int = 500) -> str:
    if not stderr:
        return ''
    if isinstance(stderr, bytes):
        stderr = stderr.decode('utf-8', errors='replace')
    return stderr.strip()[-limit:]


def _kill(process: subprocess.Popen):
    """Kill a process started in its own session, children included."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except OSError:
        process.kill()


class CommandRunner:
    """Runs external commands with an optional sudo prefix and per-step timeout"""

    def __init__(self, use_sudo: bool = False, timeout: Optional[float] = None):
        self.use_sudo = use_sudo
        self.timeout = timeout

    def _build(self, args: List[str], privileged: bool) -> List[str]:
        if privileged and self.use_sudo:
            return ['sudo', '-n'] + list(args)
        return list(args)

    def run(self, args: List[str], step: str, privileged: bool = False) -> subprocess.CompletedProcess:
        """
        Run a command to completion.

        Args:
            args: Command and arguments
            step: Human readable step name used in errors
            privileged: Prefix with sudo when sudo is enabled

        Returns:
            CompletedProcess with captured text output

        Raises:
            StepFailed: On non-zero exit or timeout
            PrerequisiteUnavailable: If the executable doesn't exist
        """
        command = self._build(args, privileged)
        logger.debug(f"Running {step}: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            raise StepFailed(step, f"timed out after {self.timeout}s")
        except FileNotFoundError:
            raise PrerequisiteUnavailable(f"Command not found: {command[0]}")

        if result.returncode != 0:
            detail = _stderr_tail(result.stderr) or 'no error output'
            raise StepFailed(step, f"exit code {result.returncode}: {detail}")

        return result

    def run_to_gzip(self, args: List[str], destination: Union[str, Path], step: str,
                    privileged: bool = False, level: int = 6) -> str:
        """
        Stream a command's stdout through gzip into a file (`cmd | gzip > dest`).

        The timeout covers the whole stream: when it expires the process group
        is killed while output is still being read. The partial file is removed
        when the command fails.

        Returns:
            Path of the written file

        Raises:
            StepFailed: On non-zero exit or timeout
            PrerequisiteUnavailable: If the executable doesn't exist
        """
        command = self._build(args, privileged)
        destination = Path(destination)
        logger.debug(f"Running {step}: {' '.join(command)} | gzip > {destination}")

        # stderr goes to a file so a chatty process can't block on a full pipe
        with tempfile.TemporaryFile() as errors:
            try:
                process = subprocess.Popen(
                    command,
                    stdout=subprocess.PIPE,
                    stderr=errors,
                    start_new_session=True
                )
            except FileNotFoundError:
                raise PrerequisiteUnavailable(f"Command not found: {command[0]}")

            timed_out = threading.Event()

            def expire():
                timed_out.set()
                _kill(process)

            timer = threading.Timer(self.timeout, expire) if self.timeout else None
            if timer is not None:
                timer.start()

            try:
                with gzip.open(destination, 'wb', compresslevel=level) as output:
                    shutil.copyfileobj(process.stdout, output)
                returncode = process.wait()
            except OSError as e:
                _kill(process)
                process.wait()
                destination.unlink(missing_ok=True)
                raise StepFailed(step, f"failed to write {destination.name}: {e}")
            finally:
                if timer is not None:
                    timer.cancel()
                process.stdout.close()

            if timed_out.is_set():
                destination.unlink(missing_ok=True)
                raise StepFailed(step, f"timed out after {self.timeout}s")

            errors.seek(0)
            stderr = errors.read()

        if returncode != 0:
            destination.unlink(missing_ok=True)
            detail = _stderr_tail(stderr) or 'no error output'
            raise StepFailed(step, f"exit code {returncode}: {detail}")

        return str(destination)

    def container_running(self, name: str) -> bool:
        """
        Check whether a container with the given name is running.

        Raises:
            StepFailed: If the container runtime cannot be queried
            PrerequisiteUnavailable: If docker is not installed
        """
        result = self.run(
            ['docker', 'ps', '--format', '{{.Names}}'],
            step='docker ps',
            privileged=True
        )
        return name in result.stdout.split()

    def take_ownership(self, path: Union[str, Path]):
        """Give the invoking user ownership of files created through sudo."""
        if not self.use_sudo:
            return
        user = getpass.getuser()
        self.run(['chown', '-R', f'{user}:', str(path)], step='chown', privileged=True)
