"""
implements transcript assembly, merging and ballgown quantification with StringTie
http://ccb.jhu.edu/software/stringtie/
manual: http://ccb.jhu.edu/software/stringtie/index.shtml?t=manual
"""
import os

from rnaflow import utils
from rnaflow.log import logger
from rnaflow.pipeline import checks, config_utils, layout
from rnaflow.pipeline.stage import StageResult, announce, run_command

ASSEMBLE_HEADER = "* Stringtie assembly : "
MERGE_HEADER = "* Stringtie Merging Transcripts : "
QUANTIFY_HEADER = "* Stringtie Creating Table count for Ballgown : "

def _options(context):
    return config_utils.get_options("stringtie", context.config)

def assemble(context, command_log):
    """Assemble transcripts for each sample guided by the reference annotation.
    """
    announce("Stringtie assembly")
    kinds = [checks.REFERENCE_GTF, checks.BAM]
    inventory = checks.require("assemble", checks.check(context, kinds, ["stringtie"]),
                               kinds, ["stringtie"])
    samples = inventory.samples(checks.BAM)
    utils.safe_makedir(layout.gene_data(context, "raw_gtf"))
    with command_log.block(ASSEMBLE_HEADER) as block:
        for sample in samples:
            cmd = ([inventory.programs["stringtie"], "-p", context.num_cores,
                    "-G", layout.reference_gtf(context),
                    "-o", layout.sample_gtf(context, sample), "-l", sample] + _options(context) +
                   [layout.bam_file(context, sample)])
            run_command(block, cmd, "Assembling transcripts of %s" % sample)
    return StageResult.success("assemble", block.commands,
                               {"gtf": [layout.sample_gtf(context, s) for s in samples]})

def write_merge_list(context, gtf_files):
    """Write the merge manifest: one gene_data relative path per sample assembly.
    """
    out_file = layout.merge_list(context)
    utils.safe_makedir(os.path.dirname(out_file))
    with open(out_file, "w") as out_handle:
        for gtf_file in sorted(gtf_files):
            out_handle.write("%s\n" % os.path.join("raw_gtf", os.path.basename(gtf_file)))
    return out_file

def merge(context, command_log):
    """Merge per-sample assemblies into stringtie_merged.gtf.

    The manifest lists paths relative to gene_data, so stringtie runs from there.
    """
    announce("Stringtie merging transcripts")
    kinds = [checks.REFERENCE_GTF, checks.SAMPLE_GTF]
    inventory = checks.require("merge", checks.check(context, kinds, ["stringtie"]),
                               kinds, ["stringtie"])
    merge_list = write_merge_list(context, inventory.files(checks.SAMPLE_GTF))
    gene_data = layout.gene_data(context)
    rel = lambda f: os.path.relpath(f, gene_data)
    with command_log.block(MERGE_HEADER) as block:
        cmd = ([inventory.programs["stringtie"], "--merge", "-p", context.num_cores,
                "-G", rel(layout.reference_gtf(context)),
                "-o", rel(layout.merged_gtf(context))] + _options(context) + [rel(merge_list)])
        run_command(block, cmd, "Merging %s assemblies" % inventory.count(checks.SAMPLE_GTF),
                    cwd=gene_data)
    return StageResult.success("merge", block.commands,
                               {"merge_list": merge_list, "merged": layout.merged_gtf(context)})

def quantify(context, command_log):
    """Estimate abundances of the merged transcripts per sample for ballgown.
    """
    announce("Stringtie creating table count for Ballgown")
    kinds = [checks.BAM, checks.MERGED_GTF]
    inventory = checks.require("quantify", checks.check(context, kinds, ["stringtie"]),
                               kinds, ["stringtie"])
    samples = inventory.samples(checks.BAM)
    with command_log.block(QUANTIFY_HEADER) as block:
        for sample in samples:
            ballgown_gtf = layout.ballgown_gtf(context, sample)
            abundance = layout.gene_abundance(context, sample)
            utils.safe_makedir(os.path.dirname(ballgown_gtf))
            utils.safe_makedir(os.path.dirname(abundance))
            # -e only estimates abundance of the given transcripts
            cmd = ([inventory.programs["stringtie"], "-e", "-B", "-p", context.num_cores,
                    "-G", layout.merged_gtf(context), "-o", ballgown_gtf, "-A", abundance] +
                   _options(context) + [layout.bam_file(context, sample)])
            run_command(block, cmd, "Quantifying %s for ballgown" % sample)
    logger.info("Ballgown tables are in '%s'" % layout.gene_data(context, "ballgown"))
    return StageResult.success("quantify", block.commands,
                               {"ballgown": [layout.ballgown_gtf(context, s) for s in samples]})
