import os

import pandas as pd
import pytest

from rnaflow.pipeline.stage import DataQualityWarning
from rnaflow.qc import hisat2


def test_parse_paired_summary(paired_summary):
    summary = hisat2.parse_summary(paired_summary)
    assert summary["total_reads"] == 1000000
    assert summary["concordantly_1"] == 850000
    assert summary["concordantly_more_1"] == 50000
    assert summary["discordantly_1"] == 20000
    assert summary["not_both"] == 80000
    assert summary[hisat2.OVERALL_RATE] == 95.00


def test_parse_unpaired_summary(unpaired_summary):
    summary = hisat2.parse_summary(unpaired_summary)
    assert summary["total_reads"] == 2000
    assert summary["concordantly_1"] == 1600
    assert summary["concordantly_more_1"] == 200
    assert summary["discordantly_1"] == 0
    assert summary["not_both"] == 200
    assert summary[hisat2.OVERALL_RATE] == 90.00


def test_parse_changed_wording_is_flagged(paired_summary):
    changed = [x.replace("overall alignment rate", "of reads aligned") for x in paired_summary]
    with pytest.raises(DataQualityWarning) as excinfo:
        hisat2.parse_summary(changed)
    assert hisat2.OVERALL_RATE in str(excinfo.value)


def test_parse_empty_output_is_flagged():
    with pytest.raises(DataQualityWarning):
        hisat2.parse_summary([])


def test_report_views(paired_summary, unpaired_summary):
    report = hisat2.AlignmentReport()
    report.add("SRR1", hisat2.parse_summary(paired_summary))
    report.add("SRR2", hisat2.parse_summary(unpaired_summary))
    counts = report.counts()
    assert list(counts.index) == hisat2.METRICS
    assert list(counts.columns) == ["SRR1", "SRR2"]
    proportions = report.proportions()
    assert proportions.loc["concordantly_1", "SRR1"] == pytest.approx(0.85)
    assert proportions.loc["concordantly_1", "SRR2"] == pytest.approx(0.8)
    assert report.mapping_rates().loc["SRR1", hisat2.OVERALL_RATE] == 95.00


def test_report_write(tmpdir, paired_summary):
    report = hisat2.AlignmentReport()
    report.add("SRR1", hisat2.parse_summary(paired_summary))
    out = report.write(os.path.join(str(tmpdir), "Alignment_Report"))
    assert sorted(os.path.basename(x) for x in out.values()) == sorted(hisat2.REPORT_FILES.values())
    reads = pd.read_csv(out["reads"], index_col=0)
    assert reads.loc["total_reads", "SRR1"] == 1000000
    rates = pd.read_csv(out["rate"], index_col=0)
    assert rates.loc["SRR1", hisat2.OVERALL_RATE] == 95.00


def test_parse_zero_reads_is_flagged():
    empty = ["0 reads; of these:",
             "  0 (0.00%) were unpaired; of these:",
             "    0 (0.00%) aligned 0 times",
             "    0 (0.00%) aligned exactly 1 time",
             "    0 (0.00%) aligned >1 times",
             "0.00% overall alignment rate"]
    with pytest.raises(DataQualityWarning) as excinfo:
        hisat2.parse_summary(empty)
    assert "0 reads" in str(excinfo.value)


def test_proportions_keep_total_reads_absolute(unpaired_summary):
    report = hisat2.AlignmentReport()
    report.add("SRR2", hisat2.parse_summary(unpaired_summary))
    proportions = report.proportions()
    assert proportions.loc["total_reads", "SRR2"] == 2000
    assert proportions.loc["not_both", "SRR2"] == pytest.approx(0.1)
    assert not proportions.isnull().values.any()
