"""Shared shape of a pipeline stage: outcomes, failures and command execution.

Every stage returns exactly one StageResult. Failures that stop the run are
raised as exceptions from the PipelineError family; the top level records
them as a failed StageResult before aborting.
"""
import collections

from rnaflow.log import logger
from rnaflow.provenance import do

SUCCESS = "success"
SKIPPED = "skipped_precondition"
FAILED = "tool_failure"

# lines of tool output kept on a failure for diagnostics
FAILURE_CONTEXT_LINES = 20


class PipelineError(Exception):
    pass

class PreconditionUnmet(PipelineError):
    """A declared input artifact or program is not available.
    """
    def __init__(self, stage, missing):
        self.stage = stage
        self.missing = list(missing)
        super(PreconditionUnmet, self).__init__(
            "%s: %s is missing." % (stage, " or ".join("'%s'" % x for x in self.missing)))

class ToolInvocationFailure(PipelineError):
    """An external program finished with a non-zero exit status.
    """
    def __init__(self, program, exit_status, output=None, message=None):
        self.program = program
        self.exit_status = exit_status
        self.output = list(output or [])
        if message is None:
            message = "'%s' failed with exit status %s" % (program, exit_status)
        if self.output:
            message += "\n" + "\n".join(self.output)
        super(ToolInvocationFailure, self).__init__(message)

class ConsistencyViolation(PipelineError):
    pass

class DataQualityWarning(PipelineError):
    """A tool succeeded but its output could not be interpreted.
    """
    pass


class StageResult(collections.namedtuple("StageResult", ["stage", "status", "commands",
                                                         "outputs", "warnings", "message"])):
    """Outcome of one stage: success, skipped precondition or tool failure.
    """
    @classmethod
    def success(cls, stage, commands=(), outputs=None, warnings=()):
        return cls(stage, SUCCESS, list(commands), outputs or {}, list(warnings), "")

    @classmethod
    def skipped(cls, stage, message, commands=()):
        return cls(stage, SKIPPED, list(commands), {}, [], message)

    @classmethod
    def failure(cls, stage, message):
        return cls(stage, FAILED, [], {}, [], message)

    @property
    def ok(self):
        return self.status in (SUCCESS, SKIPPED)


def announce(title):
    logger.info("************** %s **************" % title)

def run_command(block, cmd, descr=None, cwd=None, stdout_file=None, capture_output=True):
    """Record a command in the stage's log block, run it and enforce success.

    The command line is written before the program starts so the audit
    trail includes the command that failed.
    """
    cmd = [str(x) for x in cmd]
    block.record(cmd, stdout_file)
    logger.info("Input command : %s" % do.format_cmd(cmd, stdout_file))
    result = do.run(cmd, descr, cwd=cwd, capture_output=capture_output,
                    stdout_file=stdout_file)
    if result.exit_status != 0:
        logger.error("'%s' failed with exit status %s" % (cmd[0], result.exit_status))
        raise ToolInvocationFailure(cmd[0], result.exit_status,
                                    (result.stdout + result.stderr)[-FAILURE_CONTEXT_LINES:])
    return result
