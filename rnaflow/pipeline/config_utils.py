"""Loads run configurations from .yaml files and expands environment variables.
"""
import collections
import os

import toolz as tz
import yaml

from rnaflow.pipeline.stage import PipelineError


class CmdNotFound(Exception):
    pass

class ConfigurationError(PipelineError):
    pass

# Immutable per-run settings handed to every stage.
PipelineContext = collections.namedtuple(
    "PipelineContext", ["path_prefix", "genome_name", "sample_pattern", "num_cores",
                        "independent_variable", "case_group", "control_group", "config"])

ALGORITHM_DEFAULTS = {"splice_site_info": True,
                      "exon_info": True,
                      "bam_converter": "samtools",
                      "converter_cores": 1}
BAM_CONVERTERS = ("samtools", "pysam")
PATH_FIELDS = ("path_prefix", "log_dir")

# ## Retrieval functions

def load_config(config_file):
    """Load YAML config file, replacing environmental variables.
    """
    with open(config_file) as in_handle:
        config = yaml.safe_load(in_handle) or {}
    # only paths are expanded, patterns and design labels are kept verbatim
    for field in PATH_FIELDS:
        if field in config:
            config[field] = expand_path(config[field])
    if isinstance(config.get("resources"), dict):
        config["resources"] = _expand_paths(config["resources"])
    if "resources" not in config:
        config["resources"] = {}
    # lowercase resource names, the preferred way to specify
    config["resources"] = {k.lower(): v for k, v in config["resources"].items()}
    return config

def _expand_paths(config):
    for field, setting in config.items():
        if isinstance(config[field], dict):
            config[field] = _expand_paths(config[field])
        else:
            config[field] = expand_path(setting)
    return config

def expand_path(path):
    """ Combines os.path.expandvars with replacing ~ with $HOME.
    """
    try:
        return os.path.expandvars(path.replace("~", "$HOME"))
    except AttributeError:
        return path

def load_context(config_file):
    """Read a run configuration file into a PipelineContext.
    """
    return context_from_config(load_config(config_file))

def context_from_config(config):
    """Validate a configuration dictionary and build the run context.
    """
    missing = [k for k in ["path_prefix", "genome_name", "sample_pattern"] if not config.get(k)]
    missing += ["design: %s" % k for k in ["independent_variable", "case_group", "control_group"]
                if not tz.get_in(["design", k], config)]
    if missing:
        raise ConfigurationError("Missing required configuration: %s" % ", ".join(missing))
    algorithm = dict(ALGORITHM_DEFAULTS)
    algorithm.update(config.get("algorithm") or {})
    for flag in ["splice_site_info", "exon_info"]:
        if not isinstance(algorithm[flag], bool):
            raise ConfigurationError("'%s' needs to be true or false, found %r" % (flag, algorithm[flag]))
    if algorithm["bam_converter"] not in BAM_CONVERTERS:
        raise ConfigurationError("Unexpected bam_converter %s, choose from: %s" %
                                 (algorithm["bam_converter"], ", ".join(BAM_CONVERTERS)))
    config = dict(config)
    config["algorithm"] = algorithm
    config.setdefault("resources", {})
    design = config["design"]
    return PipelineContext(path_prefix=os.path.abspath(config["path_prefix"]),
                           genome_name=config["genome_name"],
                           sample_pattern=config["sample_pattern"],
                           num_cores=int(config.get("num_cores", 1)),
                           independent_variable=design["independent_variable"],
                           case_group=design["case_group"],
                           control_group=design["control_group"],
                           config=config)

def get_algorithm(name, context):
    return tz.get_in(["algorithm", name], context.config, ALGORITHM_DEFAULTS.get(name))

def get_resources(name, config):
    """Retrieve resources for a program, pulling from multiple config sources.
    """
    return tz.get_in(["resources", name], config,
                     tz.get_in(["resources", "default"], config, {}))

def get_options(name, config):
    """Extra command line options configured for a program.
    """
    resources = get_resources(name, config)
    if isinstance(resources, dict) and resources.get("options"):
        return [str(x) for x in resources["options"]]
    return []

def get_program(name, config, default=None):
    """Retrieve the executable for a program from the configuration.

    The preferred location for program information is `resources`, either a
    plain command string or a dictionary with a `cmd` key. Falls back to the
    program name and then searches the PATH.
    """
    config = getattr(config, "config", config)
    pconfig = config.get("resources", {}).get(name)
    return _get_program_cmd(name, pconfig, default)

def _get_check_program_cmd(fn):
    def wrap(name, pconfig, default):
        is_ok = lambda f: os.path.isfile(f) and os.access(f, os.X_OK)
        program = expand_path(fn(name, pconfig, default))
        if is_ok(program):
            return program
        # search the PATH now
        for adir in os.environ.get("PATH", "").split(os.pathsep):
            if adir and is_ok(os.path.join(adir, program)):
                return os.path.join(adir, program)
        raise CmdNotFound(" ".join(map(repr, (fn.__name__, name, pconfig, default))))
    return wrap

@_get_check_program_cmd
def _get_program_cmd(name, pconfig, default):
    """Retrieve commandline of a program.
    """
    if pconfig is None:
        return default or name
    elif isinstance(pconfig, str):
        return pconfig
    elif "cmd" in pconfig:
        return pconfig["cmd"]
    elif default is not None:
        return default
    else:
        return name

def program_installed(name, config):
    try:
        get_program(name, config)
        return True
    except CmdNotFound:
        return False
