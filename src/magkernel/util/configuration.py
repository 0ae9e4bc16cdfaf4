import configparser
import os

__all__ = ["get_configuration", "get_config_option"]

CONFIGURATION_FILES = [
    os.path.expanduser("~/.magkernelrc"),
    os.path.expanduser("~/.magkernel/magkernelrc")
]


def get_configuration():
    _parser = configparser.ConfigParser()
    _parser.read(CONFIGURATION_FILES)
    return _parser


def get_config_option(section, name, default_value=None):
    try:
        return get_configuration().get(section, name)
    except configparser.NoOptionError:
        return default_value
    except configparser.NoSectionError:
        return default_value


def write_magkernelrc_template_to_file(filename):
    """
    Write some default magkernel configuration options to the given file.
    """
    with open(filename, 'w') as f:
        f.write(MAGKERNELRC_TEMPLATE)


# Template for the '.magkernelrc' file.
MAGKERNELRC_TEMPLATE = \
"""\
[logging]

# Logfiles entries:
#
# - Files with an absolute path name (such as '~/.magkernel/global.log')
#   define global logfiles to which all magkernel programs will add
#   log statements. Their file size can be limited by setting appropriate
#   values for 'maxBytes' and 'backupCount' (see the documentation of
#   'logging.handlers.RotatingFileHander' for details on what they mean).
#
# - Filenames without an absolute path (such as 'session.log') result in
#   a logfile of that name being created in the current working
#   directory when the magkernel module is loaded.
#
#logfiles =
#   ~/.magkernel/global.log
#   session.log

logfiles =

# Logfile size limit in bytes (default: 50 MB)
maxBytes = 52428800

# Number of backups for logfiles when they exceed the size limit
backupCount = 1

# Useful logging level choices: [DEBUG, INFO, WARNING]
console_logging_level = INFO

[kernel]

# Default integration accuracy for the brute-force demag kernel.
# Larger values use more integration points (slower, more accurate).
accuracy = 6.0

# Show a progress bar while the kernel is being computed.
show_progress = False

# Number of worker processes (1 means compute in the calling process).
processes = 1
"""
