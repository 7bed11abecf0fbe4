#!/usr/bin/env python3
"""
common

Common functions: environment handling and the aws cli command runner.

Example Usage:
    from site_sync import common
    from site_sync.common import get_environ, run_aws_command
"""
import os
import re
import typing
from dataclasses import dataclass

from subprocess_tee import run as _run

from site_sync import loggy
from site_sync.errors import ConfigError

SUCCESS_MODE_STDERR = "stderr"
SUCCESS_MODE_EXIT_CODE = "exit-code"
SUCCESS_MODES = (SUCCESS_MODE_STDERR, SUCCESS_MODE_EXIT_CODE)


def get_environ(variable: str, default: typing.Optional[str] = None) -> str:
    """
    get_environ()

    This handles getting environnent variables better than the standard os.environ.get()
    There's a case where the ENV var could exist but it is empty, thus it should return the default val.

    Returns: String
    """
    _VAL = os.environ.get(variable, default)
    if not _VAL:
        return default
    return _VAL


def resolve_pipeline_variable(param):
    """
    resolve_pipeline_variable()

    Config values could get passed in as a literal string.
    Quickly check, resolve and pass back the true environment variable content.
    The `literal string` could be a variable surrounded by characters.

    Examples:
        * $BUILD_DIR
        * ${BUILD_DIR}
        * ${BUILD_DIR}/site

    param: String containing potential env variable

    Returns: String containing resolved env variable or original param if it can't resolve
    """
    if not isinstance(param, str):
        return param

    _param = None

    if "${" in param and "}" in param:
        if param.startswith("${") and param.endswith("}") and param.count("${") == 1:
            _param = os.environ.get(param.removeprefix("${").removesuffix("}"), None)
        else:
            m = re.search('\\$\\{(.+?)\\}', param)
            if m:
                found = m.group(1)
                _param = os.environ.get(found, None)
                _param = _param if _param is None else param.replace("${" + found + "}", _param)
    elif param.startswith("$"):
        _param = os.environ.get(param.removeprefix("$"), None)

    return _param if _param is not None else param


def add_bash_exports_to_env(file: typing.Optional[str] = None) -> bool:
    """
    add_bash_exports_to_env()

    Given a file with exports in it (i.e. circleCI BASH_ENV file), read in each export and add them to current os.environ

    file: Path to file with exports inside

    Returns: True/False
    """
    loggy.debug("common.add_bash_exports_to_env(): BEGIN")

    if not file:
        file = os.environ.get('BASH_ENV')

    if not file or not os.path.exists(file):
        return False

    if os.stat(file).st_size != 0:
        with open(file, 'r') as _BASH_ENV:
            for _line in _BASH_ENV.readlines():
                if _line.startswith('export') and '=' in _line:
                    loggy.debug(f"common.add_bash_exports_to_env(): Adding ({_line.strip()}) to os.environ")
                    _var, _val = _line.strip().split('export ', 1)[1].split('=', 1)[:2]
                    os.environ[_var] = _val.strip('"')

    return True


@dataclass
class CommandResult:
    """
    The captured outcome of one aws cli invocation.

    stdout/stderr are always strings, empty when the process wrote nothing.
    """
    args: typing.List[str]
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    def succeeded(self, mode: str = SUCCESS_MODE_STDERR) -> bool:
        """
        succeeded()

        mode "stderr": success when nothing was written to stderr, whatever the exit code.
        mode "exit-code": success when the process exited 0, stderr is only a warning.
        """
        if mode == SUCCESS_MODE_STDERR:
            return not self.stderr
        if mode == SUCCESS_MODE_EXIT_CODE:
            return self.returncode == 0
        raise ConfigError(f"Unknown success mode {mode!r}, expected one of {', '.join(SUCCESS_MODES)}")

    @property
    def warnings(self) -> str:
        """stderr text of a process that exited 0"""
        return self.stderr if self.returncode == 0 else ""


def run_aws_command(args: typing.List[str],
                    env: typing.Optional[dict] = None,
                    executable: str = "aws") -> CommandResult:
    """
    run_aws_command()

    Run the aws cli synchronously with an argument list. Output is streamed to the
    console and captured. A non-zero exit code never raises here, callers classify
    the result with CommandResult.succeeded().

    args: List of cli arguments i.e. ["s3", "sync", "./build", "s3://bucket/", "--delete"]
    env: (Optional) full environment for the process, defaults to os.environ
    executable: (Optional) the cli binary, defaults to aws

    Returns: CommandResult
    """
    cmd = [executable, *args]
    loggy.debug(f"common.run_aws_command(): {' '.join(cmd)}")

    _process_output = _run(cmd, check=False, env=env)

    return CommandResult(
        args=list(args),
        stdout=_process_output.stdout or "",
        stderr=_process_output.stderr or "",
        returncode=_process_output.returncode,
    )
