import os

import pytest

from rnaflow.pipeline import config_utils, layout
from rnaflow.provenance import do, programs


@pytest.mark.parametrize(("stdout", "stderr", "expected"), [
    (["Python 3.10.4"], [], programs.PythonRuntime.PYTHON3),
    ([], ["Python 2.7.18"], programs.PythonRuntime.PYTHON2),
    (["something else"], [], programs.PythonRuntime.UNAVAILABLE),
])
def test_probe_python(mocker, mock_programs, stdout, stderr, expected):
    mocker.patch("rnaflow.provenance.do.run", return_value=do.CommandResult(0, stdout, stderr))
    assert programs.probe_python({}) == expected


def test_probe_python_not_installed(mocker, mock_run):
    mocker.patch("rnaflow.pipeline.config_utils.get_program",
                 side_effect=config_utils.CmdNotFound("python"))
    assert programs.probe_python({}) == programs.PythonRuntime.UNAVAILABLE
    assert not mock_run.called


def test_write_versions(mocker, context, mock_programs):
    mocker.patch("rnaflow.provenance.do.run",
                 return_value=do.CommandResult(0, ["samtools 1.15.1", "Using htslib 1.15.1"], []))
    out_file = programs.write_versions(context)
    assert out_file == layout.programs_file(context)
    with open(out_file) as in_handle:
        lines = [l.strip() for l in in_handle]
    assert lines[0].startswith("rnaflow,")
    assert "samtools,1.15.1" in lines
    assert os.path.isfile(out_file)
