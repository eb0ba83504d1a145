#!/usr/bin/env python -Es
"""Run the staged hisat2, stringtie and ballgown RNA-seq pipeline.

The <run_config.yaml> file describes the run: path prefix holding gene_data/,
genome name, sample pattern, number of cores and the two group design.

Usage:
  rnaflow_run.py <run_config.yaml> [--stage NAME ...]
     --stage run only the named stages, in pipeline order:
          index align convert assemble merge quantify compare count_table differential
  rnaflow_run.py version <run_config.yaml>
     write versions of the external programs to RNASeq_results/programs.txt
"""
import argparse
import sys

from rnaflow import log
from rnaflow.pipeline import config_utils, version
from rnaflow.pipeline.main import STAGES, run_main
from rnaflow.pipeline.stage import PipelineError
from rnaflow.provenance import programs

def parse_cl_args(in_args):
    """Parse input commandline arguments, handling the version sub-command.
    """
    sub_cmds = {"version": programs.add_subparser}
    description = "Staged RNA-seq processing and differential expression."
    parser = argparse.ArgumentParser(description=description)
    sub_cmd = None
    if len(in_args) > 0 and in_args[0] in sub_cmds:
        subparsers = parser.add_subparsers(help="rnaflow supplemental commands")
        sub_cmds[in_args[0]](subparsers)
        sub_cmd = in_args[0]
    else:
        parser.add_argument("run_config", help="YAML run configuration file")
        parser.add_argument("-s", "--stage", dest="stages", action="append",
                            choices=[s.name for s in STAGES], default=[],
                            help="Stage to run, can be given multiple times. Defaults to all")
        parser.add_argument("-v", "--version", action="version",
                            version="rnaflow %s" % version.__version__)
    args = parser.parse_args(in_args)
    return sub_cmd, args

if __name__ == "__main__":
    sub_cmd, args = parse_cl_args(sys.argv[1:])
    try:
        if sub_cmd == "version":
            handler = log.setup_local_logging()
            try:
                print(programs.write_versions(config_utils.load_context(args.run_config)))
            finally:
                handler.pop_application()
                handler.close()
        else:
            run_main(args.run_config, args.stages or None)
    except PipelineError as e:
        sys.stderr.write("%s\n" % e)
        sys.exit(1)
