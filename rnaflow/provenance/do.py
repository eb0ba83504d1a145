"""Centralize running of external commands, providing logging and tracking.

Commands are lists of program and arguments; no shell is involved. A command
never raises for a non-zero exit status here, the status and captured output
are handed back so the calling stage can decide what a failure means.
"""
import collections
import subprocess

from rnaflow import utils
from rnaflow.log import logger, logger_cl

CommandResult = collections.namedtuple("CommandResult", ["exit_status", "stdout", "stderr"])

# shell convention for a command that could not be started
NOT_FOUND_STATUS = 127

def run(cmd, descr=None, cwd=None, capture_output=True, stdout_file=None):
    """Run the provided command, returning exit status and captured output.

    cwd switches the process working directory for the duration of the call
    and always restores it afterwards. stdout_file redirects standard output
    to the given path, for tools that only write results to stdout.
    """
    cmd = [str(x) for x in cmd]
    if descr:
        logger.debug(descr)
    logger_cl.debug(format_cmd(cmd, stdout_file))
    if cwd:
        with utils.chdir(cwd):
            return _do_run(cmd, capture_output, stdout_file)
    else:
        return _do_run(cmd, capture_output, stdout_file)

def format_cmd(cmd, stdout_file=None):
    """Render a command as a single human readable line.
    """
    line = " ".join(str(x) for x in cmd)
    if stdout_file:
        line += " > %s" % stdout_file
    return line

def _split_lines(output):
    if output is None:
        return []
    return output.decode("utf-8", errors="replace").splitlines()

def _do_run(cmd, capture_output, stdout_file):
    """Perform running and collect output lines.
    """
    pipe = subprocess.PIPE if capture_output else None
    out_handle = open(stdout_file, "wb") if stdout_file else None
    try:
        try:
            s = subprocess.Popen(cmd, stdout=out_handle or pipe, stderr=pipe,
                                 close_fds=True)
        except OSError as e:
            logger.debug("Could not start %s: %s" % (cmd[0], e))
            return CommandResult(NOT_FOUND_STATUS, [], [str(e)])
        stdout, stderr = s.communicate()
    finally:
        if out_handle:
            out_handle.close()
    result = CommandResult(s.returncode, _split_lines(stdout), _split_lines(stderr))
    for line in result.stdout + result.stderr:
        if line.rstrip():
            logger.debug(line.rstrip())
    return result
