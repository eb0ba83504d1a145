"""Main entry point for the staged RNA-seq pipeline.

Stages run strictly in order, each checking its own inputs first. Required
stages abort the run on any failure; the optional count table stage is
skipped when its inputs or runtime are not available.
"""
import collections
import os

from rnaflow import log, utils
from rnaflow.bam import convert
from rnaflow.log import logger
from rnaflow.ngsalign import hisat2
from rnaflow.pipeline import config_utils, layout
from rnaflow.pipeline.stage import PipelineError, PreconditionUnmet, StageResult
from rnaflow.provenance import cmdlog, programs
from rnaflow.rnaseq import count, differential, gffcompare, stringtie

DEFAULT_LOG_DIR = "log"

Stage = collections.namedtuple("Stage", ["name", "fn", "optional"])

STAGES = [Stage("index", hisat2.build_index, False),
          Stage("align", hisat2.align, False),
          Stage("convert", convert.convert, False),
          Stage("assemble", stringtie.assemble, False),
          Stage("merge", stringtie.merge, False),
          Stage("quantify", stringtie.quantify, False),
          Stage("compare", gffcompare.compare, False),
          Stage("count_table", count.count_table, True),
          Stage("differential", differential.run, False)]

def run_main(config_file, stages=None):
    """Run the pipeline from a YAML run configuration, handling logging setup.
    """
    context = config_utils.load_context(config_file)
    log_config = dict(context.config)
    if log_config.get("log_dir") is None:
        log_config["log_dir"] = layout.results(context, DEFAULT_LOG_DIR)
    handler = log.setup_local_logging(log_config)
    try:
        logger.info("Run configuration: %s" % os.path.abspath(config_file))
        utils.safe_makedir(layout.results(context))
        programs.write_versions(context)
        results = run_pipeline(context, cmdlog.CommandLog(layout.command_log(context)), stages)
    finally:
        handler.pop_application()
        handler.close()
    return results

def select_stages(names=None):
    """Pipeline stages to run, in pipeline order regardless of the order given.
    """
    if not names:
        return list(STAGES)
    known = [s.name for s in STAGES]
    unknown = [x for x in names if x not in known]
    if unknown:
        raise config_utils.ConfigurationError("Unknown stages %s, choose from: %s" %
                                              (", ".join(unknown), ", ".join(known)))
    return [s for s in STAGES if s.name in set(names)]

def run_pipeline(context, command_log, stages=None, results=None):
    """Run the selected stages in order, returning one StageResult per stage.

    results collects the StageResults as they finish, including the failed
    one, and stays available to the caller when a failure aborts the run.
    """
    if results is None:
        results = []
    for stage in select_stages(stages):
        try:
            result = stage.fn(context, command_log)
        except PreconditionUnmet as e:
            if not stage.optional:
                logger.error(str(e))
                results.append(StageResult.failure(stage.name, str(e)))
                raise
            logger.warning(str(e))
            result = StageResult.skipped(stage.name, str(e))
        except PipelineError as e:
            logger.error("%s failed: %s" % (stage.name, e))
            results.append(StageResult.failure(stage.name, str(e)))
            raise
        for warning in result.warnings:
            logger.warning("%s: %s" % (stage.name, warning))
        logger.info("Finished %s: %s" % (stage.name, result.status))
        results.append(result)
    return results
