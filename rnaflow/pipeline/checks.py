"""Precondition checks: which expected files and programs exist right now.

An inventory is a fresh snapshot of the filesystem under the run's path
prefix. Stages take one before running because a previous stage may just
have produced the files they need. Absent files are a normal result, only
errors scanning an existing directory propagate.
"""
import os
import re

from rnaflow import utils
from rnaflow.log import logger
from rnaflow.pipeline import config_utils, layout
from rnaflow.pipeline.stage import PreconditionUnmet

REFERENCE_FASTA = "reference_fasta"
REFERENCE_GTF = "reference_gtf"
FASTQ = "fastq"
HT2_INDEX = "ht2_index"
SAM = "sam"
BAM = "bam"
SAMPLE_GTF = "sample_gtf"
MERGED_GTF = "merged_gtf"
BALLGOWN = "ballgown"
PHENODATA = "phenodata"
COUNT_MATRIX = "count_matrix"

ALL_KINDS = (REFERENCE_FASTA, REFERENCE_GTF, PHENODATA, FASTQ, HT2_INDEX, SAM, BAM,
             SAMPLE_GTF, MERGED_GTF, BALLGOWN, COUNT_MATRIX)


def _single(path_fn):
    def scan(context):
        path = path_fn(context)
        return [path] if os.path.isfile(path) else []
    return scan

def _sample_files(dir_fn, ext):
    def scan(context):
        dname = dir_fn(context)
        return [os.path.join(dname, x) for x in utils.list_matching(dname, "*" + ext)
                if re.search(context.sample_pattern, x)]
    return scan

def _index_files(context):
    return [os.path.join(layout.index_dir(context), x) for x in
            utils.list_matching(layout.index_dir(context), "%s_tran.*.ht2" % context.genome_name)]

def _ballgown_dirs(context):
    base_dir = layout.gene_data(context, "ballgown")
    return [os.path.join(base_dir, x) for x in utils.list_matching(base_dir, "*")
            if re.search(context.sample_pattern, x) and os.path.isfile(layout.ballgown_gtf(context, x))]

_SCANNERS = {REFERENCE_FASTA: _single(layout.reference_fasta),
             REFERENCE_GTF: _single(layout.reference_gtf),
             PHENODATA: _single(layout.phenodata_file),
             FASTQ: _sample_files(layout.fastq_dir, ".fastq.gz"),
             HT2_INDEX: _index_files,
             SAM: _sample_files(lambda c: layout.gene_data(c, "raw_sam"), ".sam"),
             BAM: _sample_files(lambda c: layout.gene_data(c, "raw_bam"), ".bam"),
             SAMPLE_GTF: _sample_files(lambda c: layout.gene_data(c, "raw_gtf"), ".gtf"),
             MERGED_GTF: _single(layout.merged_gtf),
             BALLGOWN: _ballgown_dirs,
             COUNT_MATRIX: _single(layout.gene_count_matrix)}

_LABELS = {REFERENCE_FASTA: "{genome}.fa",
           REFERENCE_GTF: "{genome}.gtf",
           PHENODATA: "phenodata.csv",
           FASTQ: "XXX_*.fastq.gz",
           HT2_INDEX: "{genome}_tran.*.ht2",
           SAM: "XXX.sam",
           BAM: "XXX.bam",
           SAMPLE_GTF: "XXX.gtf",
           MERGED_GTF: "stringtie_merged.gtf",
           BALLGOWN: "ballgown/XXX/XXX.gtf",
           COUNT_MATRIX: "gene_count_matrix.csv"}


def describe(context, kind):
    """Human readable name of a file kind, used in precondition messages.
    """
    return _LABELS[kind].format(genome=context.genome_name)


class FileSetInventory(object):
    """Snapshot of existing files per kind and of available programs.
    """
    def __init__(self, context, found, programs=None):
        self.context = context
        self._found = found
        self.programs = programs or {}

    def files(self, kind):
        return list(self._found[kind])

    def count(self, kind):
        return len(self._found[kind])

    def has(self, kind):
        return self.count(kind) > 0

    def samples(self, kind):
        """Sample names for per-sample kinds, from the file or directory names.
        """
        if kind == BALLGOWN:
            return sorted(os.path.basename(f) for f in self._found[kind])
        return sorted(utils.splitext_plus(os.path.basename(f))[0] for f in self._found[kind])

    def missing(self, kinds):
        return [k for k in kinds if not self.has(k)]

    def summary(self):
        lines = ["Current progress of RNA-seq files in '%s':" % self.context.path_prefix]
        for kind in ALL_KINDS:
            if kind in self._found:
                lines.append("    %s : %s" % (describe(self.context, kind), self.count(kind)))
        for name, path in sorted(self.programs.items()):
            lines.append("    %s : %s" % (name, path or "not found"))
        return "\n".join(lines)


def check(context, kinds, programs=()):
    """Scan the filesystem and PATH for the requested kinds and programs.
    """
    found = {}
    for kind in kinds:
        found[kind] = _SCANNERS[kind](context)
    avail = {}
    for name in programs:
        try:
            avail[name] = config_utils.get_program(name, context.config)
        except config_utils.CmdNotFound:
            avail[name] = None
    inventory = FileSetInventory(context, found, avail)
    logger.debug(inventory.summary())
    return inventory

def require(stage, inventory, kinds=(), programs=()):
    """Raise PreconditionUnmet naming everything a required stage is missing.
    """
    missing = [describe(inventory.context, k) for k in inventory.missing(kinds)]
    missing += [p for p in programs if not inventory.programs.get(p)]
    if missing:
        raise PreconditionUnmet(stage, missing)
    return inventory
