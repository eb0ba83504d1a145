"""Build a hisat2 index and align reads with hisat2.

Alignment writes one SAM per sample into gene_data/raw_sam and summarizes
the aligner's stderr statistics into the Alignment_Report tables.
"""
from rnaflow import utils
from rnaflow.bam import fastq
from rnaflow.log import logger
from rnaflow.pipeline import checks, config_utils, layout
from rnaflow.pipeline.stage import (StageResult, DataQualityWarning, announce,
                                    run_command)
from rnaflow.qc import hisat2 as hisat2_qc

INDEX_HEADER = "* Creating Hisat2 Index : "
ALIGN_HEADER = "* Hisat2 Alignment : "

def build_index(context, command_log):
    """Create the <genome>_tran hisat2 index, with optional splice site and exon files.
    """
    announce("Creating Hisat2 Index")
    splice_sites = config_utils.get_algorithm("splice_site_info", context)
    exons = config_utils.get_algorithm("exon_info", context)
    programs = ["hisat2-build"]
    if splice_sites:
        programs.append("extract_splice_sites.py")
    if exons:
        programs.append("extract_exons.py")
    inventory = checks.check(context, [checks.REFERENCE_GTF, checks.REFERENCE_FASTA], programs)
    checks.require("index", inventory, [checks.REFERENCE_GTF, checks.REFERENCE_FASTA], programs)
    utils.safe_makedir(layout.index_dir(context))
    gtf_file = layout.reference_gtf(context)
    with command_log.block(INDEX_HEADER) as block:
        if splice_sites:
            run_command(block, [inventory.programs["extract_splice_sites.py"], gtf_file],
                        "Extracting splice sites from %s" % gtf_file,
                        stdout_file=layout.splice_site_file(context))
        if exons:
            run_command(block, [inventory.programs["extract_exons.py"], gtf_file],
                        "Extracting exons from %s" % gtf_file,
                        stdout_file=layout.exon_file(context))
        cmd = [inventory.programs["hisat2-build"]] + index_args(context, splice_sites, exons)
        run_command(block, cmd, "Building hisat2 index for %s" % context.genome_name)
    logger.info("'%s.*.ht2' has been created." % layout.index_prefix(context))
    return StageResult.success("index", block.commands,
                               {"index": layout.index_prefix(context)})

def index_args(context, splice_sites, exons):
    """hisat2-build arguments for the four splice site/exon combinations.
    """
    args = []
    if splice_sites:
        args += ["--ss", layout.splice_site_file(context)]
    if exons:
        args += ["--exon", layout.exon_file(context)]
    args += config_utils.get_options("hisat2-build", context.config)
    return args + [layout.reference_fasta(context), layout.index_prefix(context)]

def align_args(context, group):
    """Per sample hisat2 arguments, one -<n> <file> pair per mate.
    """
    args = ["-p", context.num_cores, "--dta", "-x", layout.index_prefix(context)]
    for i, mate in enumerate(group.mates):
        args += ["-%s" % (i + 1), mate]
    args += config_utils.get_options("hisat2", context.config)
    return args + ["-S", layout.sam_file(context, group.sample)]

def align(context, command_log):
    """Align every sample's reads and write the alignment reports.

    Samples are grouped before anything runs, so inconsistent read file names
    stop the stage without invoking hisat2.
    """
    announce("Hisat2 Alignment")
    inventory = checks.check(context, [checks.HT2_INDEX, checks.FASTQ], ["hisat2"])
    checks.require("align", inventory, [checks.HT2_INDEX, checks.FASTQ], ["hisat2"])
    groups = fastq.group_samples(inventory.files(checks.FASTQ))
    utils.safe_makedir(layout.gene_data(context, "raw_sam"))
    report = hisat2_qc.AlignmentReport()
    warnings = []
    with command_log.block(ALIGN_HEADER) as block:
        for group in groups:
            cmd = [inventory.programs["hisat2"]] + align_args(context, group)
            result = run_command(block, cmd, "Aligning %s with hisat2" % group.sample)
            try:
                report.add(group.sample, hisat2_qc.parse_summary(result.stderr))
            except DataQualityWarning as e:
                logger.warning("Alignment statistics of %s not reported: %s" % (group.sample, e))
                warnings.append("%s: %s" % (group.sample, e))
    outputs = {"sam": [layout.sam_file(context, g.sample) for g in groups]}
    if report.samples:
        outputs.update(report.write(layout.alignment_report_dir(context)))
    return StageResult.success("align", block.commands, outputs, warnings)
