"""Utilities for working with fastq files.
"""
import collections
import os
import re

from rnaflow.log import logger
from rnaflow.pipeline.stage import ConsistencyViolation

# <sample>_<mate suffix><mate number>.fastq.gz, e.g. SRR1_1.fastq.gz or SRR1_R2.fastq.gz
FASTQ_NAME = re.compile(r"^(?P<sample>.+?)_(?P<suffix>[A-Za-z]*)(?P<mate>[1-9])\.fastq\.gz$")

SampleGroup = collections.namedtuple("SampleGroup", ["sample", "mate_suffix", "mates"])


def mate_file(fastq_dir, sample, mate_suffix, mate):
    return os.path.join(fastq_dir, "%s_%s%s.fastq.gz" % (sample, mate_suffix, mate))

def group_samples(fastq_files):
    """Group read files into samples with their ordered mates.

    Every file has to follow the same <sample>_<suffix><mate>.fastq.gz shape
    with one shared mate suffix. Mates of a sample are rebuilt as mates 1..N
    from that suffix, so a mixed suffix or a gap in the mate numbers would
    pair the wrong files and is rejected before anything runs.
    """
    by_sample = collections.OrderedDict()
    suffixes = set()
    for fname in sorted(fastq_files):
        match = FASTQ_NAME.match(os.path.basename(fname))
        if not match:
            raise ConsistencyViolation("Inconsistent formats. Please check files are all "
                                       "'XXX_*.fastq.gz': %s" % os.path.basename(fname))
        suffixes.add(match.group("suffix"))
        by_sample.setdefault(match.group("sample"), set()).add(fname)
    if len(suffixes) > 1:
        raise ConsistencyViolation("Inconsistent mate suffixes %s. Please check files are all "
                                   "'XXX_*.fastq.gz' with the same suffix"
                                   % ", ".join(sorted("'%s'" % x for x in suffixes)))
    groups = []
    for sample, files in by_sample.items():
        suffix = list(suffixes)[0]
        fastq_dir = os.path.dirname(list(files)[0])
        mates = [mate_file(fastq_dir, sample, suffix, i + 1) for i in range(len(files))]
        if set(mates) != files:
            raise ConsistencyViolation("Mates of sample %s are not numbered 1 to %s: %s"
                                       % (sample, len(files),
                                          ", ".join(sorted(os.path.basename(f) for f in files))))
        groups.append(SampleGroup(sample, suffix, mates))
    logger.debug("Grouped %s fastq files into %s samples" % (len(fastq_files), len(groups)))
    return groups
