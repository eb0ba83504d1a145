"""Gene and transcript raw count tables from ballgown output with prepDE.py.

This is the last and optional processing stage: when Python, 2to3 for a
Python 3 runtime or the prepDE.py download is not available the stage is
skipped with a warning and the differential analysis runs without the
count based methods.
"""
import os

import requests

from rnaflow import utils
from rnaflow.log import logger
from rnaflow.pipeline import checks, config_utils, layout
from rnaflow.pipeline.stage import StageResult, announce, run_command
from rnaflow.provenance import programs

PREPDE_URL = "https://ccb.jhu.edu/software/stringtie/dl/prepDE.py"
HEADER = "* Creating Gene and Transcript Raw Count File : "

def fetch_prepde(context, url=PREPDE_URL):
    """Download prepDE.py into the count directory unless already present.
    """
    out_file = layout.prepde_script(context)
    if utils.file_exists(out_file):
        return out_file
    utils.safe_makedir(os.path.dirname(out_file))
    logger.info("Downloading %s to %s" % (url, out_file))
    r = requests.get(url)
    r.raise_for_status()
    with open(out_file, "w") as out_handle:
        out_handle.write(r.text)
    return out_file

def write_sample_list(context, samples):
    """Write the prepDE.py input: `<sample> <ballgown gtf>` per line.
    """
    out_file = layout.sample_list(context)
    utils.safe_makedir(os.path.dirname(out_file))
    with open(out_file, "w") as out_handle:
        for sample in samples:
            out_handle.write("%s %s\n" % (sample, layout.ballgown_gtf(context, sample)))
    return out_file

def _skip(message):
    logger.warning("%s Raw reads count table creation is skipped." % message)
    return StageResult.skipped("count_table", message)

def count_table(context, command_log):
    announce("Creating gene and transcript raw count file")
    runtime = programs.probe_python(context.config)
    if runtime == programs.PythonRuntime.UNAVAILABLE:
        return _skip("Python is not available, it is needed to run 'prepDE.py'.")
    if (runtime == programs.PythonRuntime.PYTHON3 and
            not config_utils.program_installed("2to3", context.config)):
        return _skip("'2to3' is not available to convert 'prepDE.py' to Python 3.")
    inventory = checks.check(context, [checks.BALLGOWN])
    if not inventory.has(checks.BALLGOWN):
        return _skip("'%s' is missing." % checks.describe(context, checks.BALLGOWN))
    try:
        prepde = fetch_prepde(context)
    except requests.RequestException as e:
        return _skip("Could not download 'prepDE.py' from %s: %s." % (PREPDE_URL, e))
    sample_list = write_sample_list(context, inventory.samples(checks.BALLGOWN))
    python = config_utils.get_program("python", context.config)
    with command_log.block(HEADER) as block:
        if runtime == programs.PythonRuntime.PYTHON3:
            run_command(block, [config_utils.get_program("2to3", context.config),
                                "-W", prepde, "--no-diffs"],
                        "Converting prepDE.py to Python 3")
        run_command(block, [python, prepde, "-i", sample_list], "Creating raw count tables",
                    cwd=layout.count_dir(context))
    logger.info("'%s' has been created." % layout.gene_count_matrix(context))
    return StageResult.success("count_table", block.commands,
                               {"gene": layout.gene_count_matrix(context),
                                "transcript": layout.transcript_count_matrix(context)})
