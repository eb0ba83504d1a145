"""Durable audit trail of every external command executed during a run.

The log is a plain UTF-8 text file (RNASeq_results/COMMAND.txt) made of
blocks: a stage header line, one line per executed command and a blank line.
Lines are flushed as they are recorded so a crash keeps a partial trail.
"""
import contextlib
import os

from rnaflow import utils
from rnaflow.provenance import do

COMMAND_PREFIX = "    command : "


class CommandLog(object):
    """Append-only command record shared by all stages of a run.
    """
    def __init__(self, log_file):
        self.log_file = log_file

    @contextlib.contextmanager
    def block(self, header):
        """Open a stage block, closing it with a blank line on every exit path.
        """
        utils.safe_makedir(os.path.dirname(self.log_file))
        with open(self.log_file, "a", encoding="utf-8") as out_handle:
            _write_line(out_handle, header)
            block = CommandBlock(header, out_handle)
            try:
                yield block
            finally:
                _write_line(out_handle, "")

    def read(self):
        if not os.path.exists(self.log_file):
            return ""
        with open(self.log_file, encoding="utf-8") as in_handle:
            return in_handle.read()


class CommandBlock(object):
    """Commands recorded for one stage, in execution order.
    """
    def __init__(self, header, out_handle):
        self.header = header
        self.commands = []
        self._out_handle = out_handle

    def record(self, cmd, stdout_file=None):
        line = do.format_cmd(cmd, stdout_file)
        self.commands.append(line)
        _write_line(self._out_handle, COMMAND_PREFIX + line)
        return line


def _write_line(out_handle, line):
    out_handle.write(line + "\n")
    out_handle.flush()
