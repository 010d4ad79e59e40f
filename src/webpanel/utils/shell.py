# src/webpanel/utils/shell.py
"""
External command execution
Every call to nginx, certbot, postfix, dovecot and opendkim tooling goes through here
"""

import subprocess

from ..core.exceptions import ExternalToolError


class CommandRunner:
    """Run external tools with captured output and a fixed timeout"""

    def __init__(self, logger, timeout=60):
        self.logger = logger
        self.timeout = timeout

    def run(self, cmd, timeout=None, cwd=None, check=True):
        """Run a command given as an argument list.

        Raises ExternalToolError on a missing binary, a timeout, or (when
        check is set) a non-zero exit. Returns the CompletedProcess otherwise.
        """
        timeout = timeout or self.timeout
        command_line = " ".join(cmd)
        self.logger.debug(f"Running command: {command_line}")

        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=timeout, cwd=cwd
            )
        except FileNotFoundError:
            raise ExternalToolError(f"Command not found: {cmd[0]}", command=command_line)
        except subprocess.TimeoutExpired:
            raise ExternalToolError(
                f"Command timed out after {timeout}s: {command_line}",
                command=command_line,
            )

        if check and result.returncode != 0:
            output = (result.stderr or result.stdout or "").strip()
            raise ExternalToolError(
                f"Command failed: {command_line}: {output}",
                command=command_line,
                returncode=result.returncode,
                output=output,
            )

        return result

    def succeeds(self, cmd, timeout=None):
        """Return True when the command exits cleanly, False on any failure"""
        try:
            self.run(cmd, timeout=timeout)
            return True
        except ExternalToolError as e:
            self.logger.debug(str(e))
            return False
