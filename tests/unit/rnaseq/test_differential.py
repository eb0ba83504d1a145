import os

import pytest

from rnaflow.pipeline import config_utils, layout
from rnaflow.pipeline.stage import PreconditionUnmet, SUCCESS
from rnaflow.rnaseq import differential


@pytest.fixture
def ballgown(context, touch):
    touch(layout.phenodata_file(context), "ids,treatment\nSRR1,case\nSRR2,control\n")
    for x in ["SRR1", "SRR2"]:
        touch(layout.ballgown_gtf(context, x))


def _scripts(mock_run):
    return [os.path.basename(c[0][0][-1]) for c in mock_run.call_args_list]


def test_without_count_matrix(context, command_log, ballgown, mock_programs, mock_run):
    result = differential.run(context, command_log)
    assert result.status == SUCCESS
    assert _scripts(mock_run) == ["ballgown_analysis.R", "tpm_analysis.R"]
    assert mock_run.call_args_list[0][0][0][:2] == ["Rscript", "--vanilla"]
    assert sorted(result.outputs) == ["ballgown", "tpm"]
    assert not os.path.exists(layout.results(context, "DESeq2_analysis"))


def test_with_count_matrix(context, command_log, ballgown, touch, mock_programs, mock_run):
    touch(layout.gene_count_matrix(context))
    differential.run(context, command_log)
    assert _scripts(mock_run) == ["ballgown_analysis.R", "tpm_analysis.R",
                                  "deseq2_analysis.R", "edger_analysis.R"]
    assert mock_run.call_args[1]["cwd"] == layout.results(context, "edgeR_analysis")
    assert len(command_log.read().strip().split("\n")) == 5


def test_script_uses_design_and_thresholds(context, command_log, ballgown, touch,
                                           mock_programs, mock_run):
    touch(layout.gene_count_matrix(context))
    differential.run(context, command_log, {"deseq2": {"pval": 0.01}})
    with open(layout.results(context, "DESeq2_analysis", "deseq2_analysis.R")) as in_handle:
        script = in_handle.read()
    assert 'levels = c("control", "case")' in script
    assert "pvalue < 0.01" in script
    assert layout.gene_count_matrix(context) in script


def test_threshold_defaults():
    thresholds = differential.get_thresholds({"differential": {"edger": {"log2fc": 2}}})
    assert thresholds["deseq2"] == {"pval": 0.1, "log2fc": 1.0}
    assert thresholds["edger"] == {"pval": 0.05, "log2fc": 2.0}
    assert thresholds["ballgown"]["pval"] == 0.05


def test_needs_phenodata(context, command_log, touch, mock_programs, mock_run):
    touch(layout.ballgown_gtf(context, "SRR1"))
    with pytest.raises(PreconditionUnmet) as excinfo:
        differential.run(context, command_log)
    assert "phenodata.csv" in str(excinfo.value)
    assert not mock_run.called


def test_r_escape():
    assert differential.r_escape(r"SRR\d+") == r"SRR\\d+"
    assert differential.r_escape('say "case"') == r'say \"case\"'


def test_script_escapes_regex_pattern(config, touch):
    config["sample_pattern"] = r"SRR\d+"
    config["design"]["case_group"] = 'treated "A"'
    context = config_utils.context_from_config(config)
    touch(layout.phenodata_file(context))
    r_file = differential.create_script(context, differential.METHODS[0],
                                        differential.get_thresholds({})["ballgown"])
    with open(r_file) as in_handle:
        script = in_handle.read()
    assert r'samplePattern = "SRR\\d+"' in script
    tpm_file = differential.create_script(context, differential.METHODS[1],
                                          differential.get_thresholds({})["tpm"])
    with open(tpm_file) as in_handle:
        assert r'group == "treated \"A\""' in in_handle.read()
