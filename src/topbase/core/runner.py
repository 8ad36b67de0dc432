"""Command execution using the invoke library."""

from pathlib import Path

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut

from topbase.core.log import logger


class Runner(Context):
    """invoke.Context with a single, fully parameterised execute().

    Named so it does not collide with invoke's own run()/sudo().
    """

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: int | None = None,
        stdin: str | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Execute a shell command and capture its output.

        Args:
            command: Command string to execute
            cwd: Working directory for command execution
            timeout: Maximum execution time in seconds
            stdin: String fed to the command's stdin
            check: If True, raise on non-zero exit code
            env: Variables layered over os.environ

        Returns:
            invoke.Result with stdout, stderr, exited (return code)

        Raises:
            invoke.UnexpectedExit: If check=True and command
                returns non-zero
        """
        kwargs = {
            "hide": True,
            "warn": not check,
            "in_stream": False,
        }
        if timeout:
            kwargs["timeout"] = timeout
        if stdin is not None:
            from io import StringIO
            kwargs["in_stream"] = StringIO(stdin)
        if env:
            kwargs["env"] = env

        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(command, **kwargs)
            else:
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            result = e.result
            result.exited = -1

        logger.spew(
            "exec {command}",
            command=command,
            cwd=str(cwd) if cwd else None,
            exited=result.exited,
        )
        return result
