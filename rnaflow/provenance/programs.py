"""Identify program versions used for analysis, reporting in structured table.

Catalogs the external programs a run depends on, enabling reproduction of
results, and probes the Python runtime needed to build raw count tables.
"""
import re

from rnaflow import utils
from rnaflow.log import logger
from rnaflow.pipeline import config_utils, layout, version
from rnaflow.provenance import do

_cl_progs = [{"cmd": "hisat2", "args": ["--version"], "stdout_flag": "version"},
             {"cmd": "hisat2-build", "args": ["--version"], "stdout_flag": "version"},
             {"cmd": "samtools", "args": ["--version"], "stdout_flag": "samtools"},
             {"cmd": "stringtie", "args": ["--version"]},
             {"cmd": "gffcompare", "args": ["--version"], "stdout_flag": "gffcompare"},
             {"cmd": "python", "args": ["--version"], "stdout_flag": "Python"},
             {"cmd": "Rscript", "args": ["--version"], "stdout_flag": "version"}]


class PythonRuntime(object):
    """Capability of the python command found on the PATH.
    """
    UNAVAILABLE = "unavailable"
    PYTHON2 = "python2"
    PYTHON3 = "python3"


def probe_python(config):
    """Find which major Python version, if any, runs as `python`.
    """
    try:
        python = config_utils.get_program("python", config)
    except config_utils.CmdNotFound:
        logger.debug("python not found on the PATH")
        return PythonRuntime.UNAVAILABLE
    result = do.run([python, "--version"], "Checking python version")
    # python 2 reports its version on stderr
    match = None
    for line in result.stdout + result.stderr:
        match = re.search(r"Python (\d+)\.", line)
        if match:
            break
    if result.exit_status != 0 or not match:
        logger.warning("Could not determine version of %s" % python)
        return PythonRuntime.UNAVAILABLE
    return PythonRuntime.PYTHON3 if int(match.group(1)) >= 3 else PythonRuntime.PYTHON2

def _parse_from_stdoutflag(stdout, x):
    for line in stdout:
        if line.find(x) >= 0:
            parts = [p for p in line[line.find(x) + len(x):].split() if p.strip()]
            if parts:
                return parts[0].strip()
    return ""

def _get_cl_version(p, config):
    """Retrieve version of a single commandline program.
    """
    try:
        prog = config_utils.get_program(p["cmd"], config)
    except config_utils.CmdNotFound:
        return ""
    result = do.run([prog] + p.get("args", []), capture_output=True)
    lines = [l.strip() for l in result.stdout + result.stderr if l.strip()]
    if p.get("stdout_flag"):
        v = _parse_from_stdoutflag(lines, p["stdout_flag"])
    else:
        v = lines[-1] if lines else ""
    if v.endswith("."):
        v = v[:-1]
    return v

def get_versions(config):
    """Retrieve details on all programs available on the system.
    """
    out = [{"program": "rnaflow",
            "version": ("%s-%s" % (version.__version__, version.__git_revision__)
                        if version.__git_revision__ else version.__version__)}]
    for p in _cl_progs:
        out.append({"program": p["cmd"], "version": _get_cl_version(p, config)})
    return out

def write_versions(context):
    """Write CSV file with versions used in analysis pipeline.
    """
    out_file = layout.programs_file(context)
    utils.safe_makedir(layout.results(context))
    with open(out_file, "w") as out_handle:
        for p in get_versions(context.config):
            out_handle.write("{program},{version}\n".format(**p))
    return out_file

def add_subparser(subparsers):
    """Add command line option for exporting version information.
    """
    parser = subparsers.add_parser("version",
                                   help="Export versions of used software to RNASeq_results/programs.txt")
    parser.add_argument("run_config", help="YAML run configuration file")
    return parser
