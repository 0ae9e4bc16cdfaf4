import os
import logging
import logging.handlers

logger = logging.getLogger("magkernel")


def logging_handler_str(handler):
    """
    Return a string describing the given logging handler.

    """
    if handler.__class__ == logging.StreamHandler:
        handlerstr = str(handler.stream)
    elif handler.__class__ in [logging.FileHandler, logging.handlers.RotatingFileHandler]:
        handlerstr = str(handler.baseFilename)
    else:
        handlerstr = str(handler)
    return handlerstr


def set_logging_level(level):
    """
    Set the level for magkernel log messages.

    *Arguments*

    level: string

       One of the levels supported by Python's `logging` module.
       Supported values: 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL' and
       the magkernel specific level 'EXTREMEDEBUG'.
    """
    if level not in ['EXTREMEDEBUG', 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
        raise ValueError("Logging level must be one of: 'EXTREMEDEBUG', 'DEBUG', "
                         "'INFO', 'WARNING', 'ERROR', 'CRITICAL'")
    logger.setLevel(level)


def start_logging_to_file(filename, formatter=None, mode='a', level=logging.DEBUG, maxBytes=0, backupCount=1):
    """
    Add a logging handler to the "magkernel" logger which writes all
    (future) logging output to the given file. It is possible to call
    this multiple times with different filenames. By default, if the
    file already exists then new output will be appended at the end
    (use the 'mode' argument to change this).

    *Arguments*

    formatter: instance of logging.Formatter

        For details, see the section 'Formatter Objects' in the
        documentation of the logging module.

    mode: ['a' | 'w']

        Determines whether new content is appended at the end ('a') or
        whether logfile contents are overwritten ('w'). Default: 'a'.

    maxBytes, backupCount:

        Limit the size of the logfile to `maxBytes` (0 means unlimited).
        See the docstring of `logging.handlers.RotatingFileHandler`.

    *Returns*

    The newly created logging hander is returned.
    """
    if formatter is None:
        formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s: %(message)s', datefmt='%H:%M:%S')

    filename = os.path.abspath(os.path.expanduser(filename))
    dirname = os.path.dirname(filename)
    if not os.path.exists(dirname):
        os.makedirs(dirname)
    h = logging.handlers.RotatingFileHandler(
        filename, mode=mode, maxBytes=int(maxBytes), backupCount=int(backupCount))
    h.setLevel(level)
    h.setFormatter(formatter)
    logger.addHandler(h)
    logger.debug("magkernel logging output will be written to file: "
                 "'{}' (mode: '{}')".format(logging_handler_str(h), mode))
    return h


def format_time(num_seconds):
    """
    Given a number of seconds, return a string with `num_seconds`
    converted into a more readable format (including minutes and
    hours if appropriate).

    """
    hours = int(num_seconds / 3600.0)
    r = num_seconds - 3600 * hours
    minutes = int(r / 60.0)
    seconds = r - 60 * minutes

    res = "{} h ".format(hours) if (hours > 0) else ""
    res += "{} min ".format(minutes) if (minutes >
                                         0 or (minutes == 0 and hours > 0)) else ""
    res += "{:.2f} seconds".format(seconds)
    return res


def make_human_readable(nbytes):
    """
    Given a number of bytes, return a string of the form "12.2 MB" or "3.44 GB"
    which makes the number more digestible by a human reader. Everything less
    than 500 MB will be displayed in units of MB, everything above in units of GB.
    """
    if nbytes < 500 * 1024 ** 2:
        res = '{:.2f} MB'.format(nbytes / 1024 ** 2)
    else:
        res = '{:.2f} GB'.format(nbytes / 1024 ** 3)
    return res


def vec2str(a, fmt='{}', delims='()', sep=', '):
    """
    Convert a 3-sequence (e.g. a numpy array) to a string, optionally
    with some formatting options.

    For example, `vec2str([1, 2, 3])` returns "(1, 2, 3)".
    """
    lft, rgt = delims
    return lft + sep.join([fmt.format(x) for x in a]) + rgt
