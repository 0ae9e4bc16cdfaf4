# magkernel - brute-force magnetostatic kernels for finite-difference micromagnetics

import logging
from magkernel.util import configuration
from magkernel.util.helpers import set_logging_level, start_logging_to_file
from magkernel.mesh import Mesh, KernelPreconditionError
from magkernel.demag import brute_kernel, unit_kernel, KernelBuilder, DemagKernel
from magkernel.__version__ import __version__

__all__ = ["Mesh", "KernelPreconditionError", "brute_kernel", "unit_kernel",
           "KernelBuilder", "DemagKernel", "set_logging_level"]

_MAGKERNEL_LOG_LEVELS = {
        "EXTREMEDEBUG" : 5,
        "DEBUG" : logging.DEBUG,
        "INFO" : logging.INFO,
        "WARNING" : logging.WARNING,
        "ERROR" : logging.ERROR,
        "CRITICAL" : logging.CRITICAL
}

# create extreme debugging logging level, which has numerical value 5
logging.EXTREMEDEBUG = 5
logging.addLevelName(logging.EXTREMEDEBUG, 'EXTREMEDEBUG')

logger = logging.getLogger(name='magkernel')
logger.propagate = False  # no need to propagate up to root handler, since we define our own
logger.setLevel(logging.DEBUG)

# Read the settings from the configuration file.
logfiles = configuration.get_config_option("logging", "logfiles", "").split()
level_name = configuration.get_config_option("logging", "console_logging_level", "INFO")
try:
    console_level = _MAGKERNEL_LOG_LEVELS[level_name.upper()]
except KeyError:
    raise ValueError("Unknown logging level: '{}' (allowed values: {})".format(
        level_name, ", ".join(_MAGKERNEL_LOG_LEVELS)))

formatter = logging.Formatter('[%(asctime)s] %(levelname)s: %(message)s', datefmt='%Y-%m-%d %H:%M:%S')

if not logger.handlers:
    ch = logging.StreamHandler()
    ch.setLevel(console_level)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    # Now add file handlers for all logfiles listed in the configuration file.
    for f in logfiles:
        maxBytes = configuration.get_config_option("logging", "maxBytes", 51200)
        backupCount = configuration.get_config_option("logging", "backupCount", 1)
        start_logging_to_file(f, formatter=formatter, mode='a', level=console_level,
                              maxBytes=maxBytes, backupCount=backupCount)

logger.debug("{:15} {:<20}".format("magkernel", __version__))
