"""Shared fixtures: a run context rooted in a temporary directory and mocked tools."""
import os

import pytest

from rnaflow.pipeline import config_utils, layout
from rnaflow.provenance import cmdlog, do


PAIRED_SUMMARY = """1000000 reads; of these:
  1000000 (100.00%) were paired; of these:
    100000 (10.00%) aligned concordantly 0 times
    850000 (85.00%) aligned concordantly exactly 1 time
    50000 (5.00%) aligned concordantly >1 times
    ----
    100000 pairs aligned concordantly 0 times; of these:
      20000 (20.00%) aligned discordantly 1 time
    ----
    80000 pairs aligned 0 times concordantly or discordantly; of these:
      160000 mates make up the pairs; of these:
        100000 (62.50%) aligned 0 times
        40000 (25.00%) aligned exactly 1 time
        20000 (12.50%) aligned >1 times
95.00% overall alignment rate""".split("\n")

UNPAIRED_SUMMARY = """2000 reads; of these:
  2000 (100.00%) were unpaired; of these:
    200 (10.00%) aligned 0 times
    1600 (80.00%) aligned exactly 1 time
    200 (10.00%) aligned >1 times
90.00% overall alignment rate""".split("\n")


@pytest.fixture
def paired_summary():
    return list(PAIRED_SUMMARY)


@pytest.fixture
def unpaired_summary():
    return list(UNPAIRED_SUMMARY)


@pytest.fixture
def config(tmpdir):
    return {"path_prefix": str(tmpdir),
            "genome_name": "chr22",
            "sample_pattern": "SRR[0-9]+",
            "num_cores": 2,
            "design": {"independent_variable": "treatment",
                       "case_group": "case",
                       "control_group": "control"}}


@pytest.fixture
def context(config):
    return config_utils.context_from_config(config)


@pytest.fixture
def command_log(context):
    return cmdlog.CommandLog(layout.command_log(context))


@pytest.fixture
def touch():
    """Create a file, and its directories, under a path."""
    def _touch(fname, content="x\n"):
        if not os.path.exists(os.path.dirname(fname)):
            os.makedirs(os.path.dirname(fname))
        with open(fname, "w") as out_handle:
            out_handle.write(content)
        return fname
    return _touch


@pytest.fixture
def mock_programs(mocker):
    """Every external program resolves to its bare name."""
    yield mocker.patch("rnaflow.pipeline.config_utils.get_program",
                       side_effect=lambda name, config, default=None: name)


@pytest.fixture
def mock_run(mocker):
    """Replace process execution; every command succeeds without output."""
    yield mocker.patch("rnaflow.provenance.do.run",
                       return_value=do.CommandResult(0, [], []))
