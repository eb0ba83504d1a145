import os

import pytest

from rnaflow.pipeline import layout
from rnaflow.pipeline.stage import PreconditionUnmet, SUCCESS, ToolInvocationFailure
from rnaflow.provenance import do
from rnaflow.rnaseq import gffcompare, stringtie


@pytest.fixture
def bams(context, touch):
    touch(layout.reference_gtf(context))
    return [touch(layout.bam_file(context, x)) for x in ["SRR1", "SRR2"]]


def test_assemble(context, command_log, bams, mock_programs, mock_run):
    result = stringtie.assemble(context, command_log)
    assert result.status == SUCCESS
    cmds = [c[0][0] for c in mock_run.call_args_list]
    assert cmds == [["stringtie", "-p", "2", "-G", layout.reference_gtf(context),
                     "-o", layout.sample_gtf(context, x), "-l", x, layout.bam_file(context, x)]
                    for x in ["SRR1", "SRR2"]]
    assert len(result.commands) == 2


def test_merge_runs_from_gene_data(context, command_log, touch, mock_programs, mock_run):
    touch(layout.reference_gtf(context))
    for x in ["SRR2", "SRR1"]:
        touch(layout.sample_gtf(context, x))
    result = stringtie.merge(context, command_log)
    assert result.status == SUCCESS
    with open(layout.merge_list(context)) as in_handle:
        assert in_handle.read() == "raw_gtf/SRR1.gtf\nraw_gtf/SRR2.gtf\n"
    assert mock_run.call_count == 1
    args, kwargs = mock_run.call_args
    assert args[0] == ["stringtie", "--merge", "-p", "2", "-G", "ref_genes/chr22.gtf",
                       "-o", "merged/stringtie_merged.gtf", "merged/mergelist.txt"]
    assert kwargs["cwd"] == layout.gene_data(context)


def test_quantify(context, command_log, bams, touch, mock_programs, mock_run):
    touch(layout.merged_gtf(context))
    result = stringtie.quantify(context, command_log)
    assert result.status == SUCCESS
    cmd = mock_run.call_args_list[0][0][0]
    assert cmd[:4] == ["stringtie", "-e", "-B", "-p"]
    assert cmd[cmd.index("-o") + 1] == layout.ballgown_gtf(context, "SRR1")
    assert cmd[cmd.index("-A") + 1] == layout.gene_abundance(context, "SRR1")
    assert os.path.isdir(os.path.dirname(layout.ballgown_gtf(context, "SRR2")))


def test_quantify_needs_merged(context, command_log, bams, mock_programs, mock_run):
    with pytest.raises(PreconditionUnmet) as excinfo:
        stringtie.quantify(context, command_log)
    assert "stringtie_merged.gtf" in str(excinfo.value)
    assert not mock_run.called
    assert command_log.read() == ""


def test_compare(context, command_log, touch, mock_programs, mock_run):
    touch(layout.reference_gtf(context))
    touch(layout.merged_gtf(context))
    result = gffcompare.compare(context, command_log)
    assert result.status == SUCCESS
    assert mock_run.call_args[0][0] == ["gffcompare", "-r", layout.reference_gtf(context), "-G",
                                        "-o", os.path.join(layout.merged_dir(context), "merged"),
                                        layout.merged_gtf(context)]
    assert command_log.read().startswith(gffcompare.HEADER)


def test_assemble_twice_writes_same_block(context, command_log, bams, mock_programs, mock_run):
    first = stringtie.assemble(context, command_log)
    second = stringtie.assemble(context, command_log)
    assert first.commands == second.commands
    blocks = command_log.read().split("\n\n")
    assert blocks[0] == blocks[1]
    assert blocks[0].split("\n")[0] == stringtie.ASSEMBLE_HEADER
    assert blocks[2] == ""


def test_assemble_stops_at_first_failure(context, command_log, touch, mock_programs, mocker):
    touch(layout.reference_gtf(context))
    for x in ["SRR1", "SRR2", "SRR3"]:
        touch(layout.bam_file(context, x))
    run = mocker.patch("rnaflow.provenance.do.run",
                       side_effect=[do.CommandResult(0, [], []),
                                    do.CommandResult(1, [], ["[E::bam_hdr_read] invalid BAM"]),
                                    do.CommandResult(0, [], [])])
    with pytest.raises(ToolInvocationFailure) as excinfo:
        stringtie.assemble(context, command_log)
    assert excinfo.value.exit_status == 1
    assert "invalid BAM" in str(excinfo.value)
    assert run.call_count == 2
    assert not any(layout.bam_file(context, "SRR3") in c[0][0] for c in run.call_args_list)
    lines = command_log.read().split("\n")
    assert lines[0] == stringtie.ASSEMBLE_HEADER
    assert [x for x in lines[1:3] if x.startswith("    command : ")] == lines[1:3]
    assert layout.bam_file(context, "SRR2") in lines[2]
    assert lines[3:] == ["", ""]
