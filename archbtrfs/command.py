#!/usr/bin/env python3
# Command Module
# Single seam through which every external utility is executed

import logging
import shlex
import subprocess
from dataclasses import dataclass

from .errors import ToolFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    argv: list
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self):
        return self.returncode == 0


def format_argv(argv):
    return " ".join(shlex.quote(str(a)) for a in argv)


def run_command(argv, check=True, input_text=None, env=None):
    """Run a command, capturing output; raise ToolFailure on non-zero exit when check is set"""
    argv = [str(a) for a in argv]
    logger.debug("CMD %s", format_argv(argv))

    try:
        proc = subprocess.run(
            argv,
            input=input_text,
            capture_output=True,
            text=True,
            env=env,
        )
    except FileNotFoundError as e:
        raise ToolFailure(argv, 127, str(e)) from e

    if proc.stdout:
        logger.debug("STDOUT %s", proc.stdout.strip())
    if proc.stderr:
        logger.debug("STDERR %s", proc.stderr.strip())

    if check and proc.returncode != 0:
        raise ToolFailure(argv, proc.returncode, proc.stderr)

    return CommandResult(argv, proc.returncode, proc.stdout, proc.stderr)
