"""Alignment metrics parsed from the hisat2 summary printed on stderr.

Each metric is read by matching its line against a fixed label pattern and
keeping the number. The patterns follow hisat2's classic summary wording; a
wording change makes the match fail and is reported as a DataQualityWarning
instead of being turned into a number.
"""
import collections
import os
import re

import pandas as pd

from rnaflow import utils
from rnaflow.pipeline.stage import DataQualityWarning

METRICS = ["total_reads", "concordantly_1", "concordantly_more_1",
           "discordantly_1", "not_both"]
OVERALL_RATE = "overall_alignment_rate"

_COUNT = r"^\s*(\d+) \(\d+(?:\.\d+)?%\) "

PAIRED_PATTERNS = collections.OrderedDict([
    ("total_reads", r"^\s*(\d+) reads; of these:\s*$"),
    ("concordantly_1", _COUNT + r"aligned concordantly exactly 1 time\s*$"),
    ("concordantly_more_1", _COUNT + r"aligned concordantly >1 times\s*$"),
    ("discordantly_1", _COUNT + r"aligned discordantly 1 time\s*$"),
    ("not_both", r"^\s*(\d+) pairs aligned 0 times concordantly or discordantly; of these:\s*$"),
    (OVERALL_RATE, r"^\s*(\d+(?:\.\d+)?)% overall alignment rate\s*$")])

# single end reads have no pairs: unique and multiple hits fill the
# concordant rows, unaligned reads the not_both row
UNPAIRED_PATTERNS = collections.OrderedDict([
    ("total_reads", r"^\s*(\d+) reads; of these:\s*$"),
    ("concordantly_1", _COUNT + r"aligned exactly 1 time\s*$"),
    ("concordantly_more_1", _COUNT + r"aligned >1 times\s*$"),
    ("not_both", _COUNT + r"aligned 0 times\s*$"),
    (OVERALL_RATE, r"^\s*(\d+(?:\.\d+)?)% overall alignment rate\s*$")])

_PAIRED_FLAG = re.compile(r"^\s*\d+ \(\d+(?:\.\d+)?%\) were paired; of these:\s*$")

REPORT_FILES = {"reads": "Alignment_report_reads.csv",
                "proportion": "Alignment_report_proportion.csv",
                "rate": "Overall_Mapping_rate.csv"}


def is_paired_summary(lines):
    return any(_PAIRED_FLAG.match(line) for line in lines)

def parse_summary(lines):
    """Extract metric counts and the overall alignment rate from summary lines.

    Returns a dictionary with every name in METRICS plus OVERALL_RATE.
    """
    patterns = PAIRED_PATTERNS if is_paired_summary(lines) else UNPAIRED_PATTERNS
    out = {}
    for metric, pattern in patterns.items():
        regex = re.compile(pattern)
        for line in lines:
            match = regex.match(line)
            if match:
                out[metric] = match.group(1)
                break
    missing = [m for m in patterns if m not in out]
    if missing:
        raise DataQualityWarning("Could not find %s in hisat2 summary:\n%s"
                                 % (", ".join(missing), "\n".join(lines)))
    summary = {m: int(out.get(m, 0)) for m in METRICS}
    if summary["total_reads"] == 0:
        raise DataQualityWarning("hisat2 summary reports 0 reads, no proportions can be computed")
    summary[OVERALL_RATE] = float(out[OVERALL_RATE])
    return summary


class AlignmentReport(object):
    """Per-sample alignment metrics with absolute, proportion and rate views.
    """
    def __init__(self):
        self._summaries = collections.OrderedDict()

    def add(self, sample, summary):
        self._summaries[sample] = summary

    @property
    def samples(self):
        return list(self._summaries.keys())

    def counts(self):
        return pd.DataFrame({s: [x[m] for m in METRICS] for s, x in self._summaries.items()},
                            index=METRICS, columns=self.samples)

    def proportions(self):
        """Metric counts as a fraction of total reads, total_reads itself kept absolute.
        """
        counts = self.counts()
        out = counts.div(counts.loc["total_reads"], axis=1)
        out.loc["total_reads"] = counts.loc["total_reads"]
        return out

    def mapping_rates(self):
        return pd.DataFrame({OVERALL_RATE: [x[OVERALL_RATE] for x in self._summaries.values()]},
                            index=self.samples)

    def write(self, out_dir):
        """Write the three report tables as CSV with row names.
        """
        utils.safe_makedir(out_dir)
        out = {k: os.path.join(out_dir, v) for k, v in REPORT_FILES.items()}
        self.counts().to_csv(out["reads"])
        self.proportions().to_csv(out["proportion"])
        self.mapping_rates().to_csv(out["rate"])
        return out
