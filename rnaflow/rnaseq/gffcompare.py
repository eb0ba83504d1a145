"""Compare the merged assembly with the reference annotation using gffcompare.
"""
from rnaflow.pipeline import checks, config_utils, layout
from rnaflow.pipeline.stage import StageResult, announce, run_command

HEADER = "* Gffcompare Comparing Transcripts between Merged and Reference : "

def compare(context, command_log):
    announce("Gffcompare comparing transcripts between merged and reference")
    kinds = [checks.MERGED_GTF, checks.REFERENCE_GTF]
    inventory = checks.require("compare", checks.check(context, kinds, ["gffcompare"]),
                               kinds, ["gffcompare"])
    out_prefix = layout.gene_data(context, "merged", "merged")
    with command_log.block(HEADER) as block:
        cmd = ([inventory.programs["gffcompare"], "-r", layout.reference_gtf(context), "-G",
                "-o", out_prefix] + config_utils.get_options("gffcompare", context.config) +
               [layout.merged_gtf(context)])
        run_command(block, cmd, "Comparing %s to the reference" % layout.merged_gtf(context))
    return StageResult.success("compare", block.commands, {"prefix": out_prefix})
