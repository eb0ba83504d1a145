import os
import sys

import pytest

from rnaflow import utils
from rnaflow.provenance import do


def test_run_captures_output():
    result = do.run([sys.executable, "-c", "import sys; print('out'); sys.stderr.write('err\\n')"])
    assert result.exit_status == 0
    assert result.stdout == ["out"]
    assert result.stderr == ["err"]


def test_run_reports_exit_status():
    result = do.run([sys.executable, "-c", "import sys; sys.exit(3)"])
    assert result.exit_status == 3


def test_run_missing_program():
    result = do.run(["rnaflow-no-such-program-here"])
    assert result.exit_status == do.NOT_FOUND_STATUS
    assert result.stderr


def test_run_in_directory_restores_cwd(tmpdir):
    work_dir = str(tmpdir.mkdir("work"))
    orig_dir = os.getcwd()
    result = do.run([sys.executable, "-c", "import os; print(os.getcwd())"], cwd=work_dir)
    assert os.path.realpath(result.stdout[0]) == os.path.realpath(work_dir)
    assert os.getcwd() == orig_dir


def test_run_stdout_file(tmpdir):
    out_file = os.path.join(str(tmpdir), "out.txt")
    result = do.run([sys.executable, "-c", "print('to file')"], stdout_file=out_file)
    assert result.exit_status == 0
    assert result.stdout == []
    with open(out_file) as in_handle:
        assert in_handle.read().strip() == "to file"


def test_chdir_restores_cwd_on_error(tmpdir):
    orig_dir = os.getcwd()
    with pytest.raises(ValueError):
        with utils.chdir(str(tmpdir)):
            raise ValueError("stage aborted")
    assert os.getcwd() == orig_dir


def test_format_cmd():
    assert do.format_cmd(["extract_exons.py", "genes.gtf"], "genes.exon") == \
        "extract_exons.py genes.gtf > genes.exon"
    assert do.format_cmd(["hisat2", "-p", 2]) == "hisat2 -p 2"
