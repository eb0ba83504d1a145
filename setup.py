#!/usr/bin/env python

"""Setup file and install script for the rnaflow RNA-seq pipeline"""

import os
import subprocess

import setuptools

VERSION = '0.1.0'

# add rnaflow version number and git commit hash of the current revision to version.py
try:
    git_run = subprocess.run(['git', 'rev-parse', '--short', 'HEAD'], stdout=subprocess.PIPE,
                             stderr=subprocess.DEVNULL)
    git_run.check_returncode()
except (OSError, subprocess.SubprocessError):
    commit_hash = ''
else:
    commit_hash = git_run.stdout.strip().decode()

here = os.path.dirname(os.path.abspath(__file__))
with open(os.path.join(here, 'rnaflow', 'pipeline', 'version.py'), 'w') as version_file:
    version_file.writelines([f'__version__ = "{VERSION}"\n',
                             f'__git_revision__ = "{commit_hash}"\n'])

# external tools (hisat2, samtools, stringtie, gffcompare, R) are installed separately,
# for instance via Conda from bioconda
setuptools.setup(name="rnaflow",
                 version=VERSION,
                 description="Staged hisat2, stringtie and ballgown RNA-seq pipeline",
                 packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
                 scripts=["scripts/rnaflow_run.py"],
                 python_requires=">=3.6",
                 install_requires=["logbook",
                                   "toolz",
                                   "PyYAML",
                                   "pandas",
                                   "joblib",
                                   "pysam",
                                   "requests"],
                 extras_require={"test": ["pytest", "pytest-mock", "mock"]})
