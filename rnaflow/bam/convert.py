"""Sort and convert hisat2 SAM output to BAM files.

Two interchangeable converters produce gene_data/raw_bam/<sample>.bam:
samtools run serially, one sample at a time, or pysam run in parallel over
samples with a bounded number of workers.
"""
import pysam

from rnaflow import utils
from rnaflow.distributed import multi
from rnaflow.log import logger
from rnaflow.pipeline import checks, config_utils, layout
from rnaflow.pipeline.stage import StageResult, ToolInvocationFailure, announce, run_command

HEADERS = {"samtools": "* SAMtools Converting '.sam' to '.bam' : ",
           "pysam": "* pysam Converting '.sam' to '.bam' : "}

PARALLEL_BACKEND = "multiprocessing"

def convert(context, command_log):
    converter = config_utils.get_algorithm("bam_converter", context)
    announce("%s converting '.sam' to '.bam'" % converter)
    programs = ["samtools"] if converter == "samtools" else []
    inventory = checks.check(context, [checks.SAM], programs)
    checks.require("convert", inventory, [checks.SAM], programs)
    samples = inventory.samples(checks.SAM)
    utils.safe_makedir(layout.gene_data(context, "raw_bam"))
    with command_log.block(HEADERS[converter]) as block:
        if converter == "samtools":
            for sample in samples:
                cmd = [inventory.programs["samtools"], "sort", "-@", context.num_cores,
                       "-o", layout.bam_file(context, sample), layout.sam_file(context, sample)]
                run_command(block, cmd, "Sorting %s into BAM" % sample)
        else:
            _pysam_convert(context, block, samples)
    return StageResult.success("convert", block.commands,
                               {"bam": [layout.bam_file(context, s) for s in samples]})

def _pysam_convert(context, block, samples):
    """Convert all samples with pysam, failing once the whole batch has finished.
    """
    cores = config_utils.get_algorithm("converter_cores", context)
    items = []
    for sample in samples:
        sam_file, bam_file = layout.sam_file(context, sample), layout.bam_file(context, sample)
        block.record(["pysam.sort", "-o", bam_file, sam_file])
        items.append((sam_file, bam_file))
    results = multi.run_multicore(sort_and_index, items, cores, backend=PARALLEL_BACKEND)
    failed = [(bam_file, error) for bam_file, error in results if error]
    if failed:
        for bam_file, error in failed:
            logger.error("pysam could not create %s: %s" % (bam_file, error))
        raise ToolInvocationFailure("pysam", 1, [e for _, e in failed],
                                    "pysam conversion failed for %s of %s samples: %s"
                                    % (len(failed), len(items), ", ".join(b for b, _ in failed)))

def sort_and_index(sam_file, bam_file):
    """Coordinate sort a SAM file into BAM and index it.

    Returns the output file and an error message, None on success.
    """
    logger.debug("Converting %s to %s" % (sam_file, bam_file))
    try:
        pysam.sort("-o", bam_file, sam_file)
        pysam.index(bam_file)
    except pysam.utils.SamtoolsError as e:
        return bam_file, str(e)
    return bam_file, None
