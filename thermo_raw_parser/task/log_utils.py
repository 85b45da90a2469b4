import logging

from thermo_raw_parser.config import Verbosity


logger = logging.getLogger("thermo_raw_parser.task")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

PROGRESS_PERCENTAGE_STEP = 10


def verbosity_to_level(verbosity):
    '''Translate a :class:`~.Verbosity` into a :mod:`logging` level'''
    return {
        Verbosity.QUIET: logging.WARNING,
        Verbosity.NORMAL: logging.INFO,
        Verbosity.VERBOSE: logging.DEBUG,
    }[Verbosity(verbosity)]


def configure_logging(verbosity, stream=None):
    '''Install a single stream handler on the ``thermo_raw_parser`` logger
    whose level is derived from ``verbosity``. Calling this again replaces
    the handler rather than adding another.

    Parameters
    ----------
    verbosity : :class:`~.Verbosity`
        How much to log
    stream : file-like, optional
        Where to write log records. Defaults to :obj:`sys.stderr`.

    Returns
    -------
    :class:`logging.Logger`
    '''
    level = verbosity_to_level(verbosity)
    root = logging.getLogger("thermo_raw_parser")
    for handler in list(root.handlers):
        if getattr(handler, "_thermo_raw_parser_handler", False):
            root.removeHandler(handler)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._thermo_raw_parser_handler = True
    root.addHandler(handler)
    root.setLevel(level)
    return root


class LogUtilsMixin(object):
    '''Route ``log``, ``debug``, ``warn`` and ``error`` messages to a
    :class:`logging.Logger`. Subclasses set :attr:`logger_state`, otherwise
    the task logger is used.
    '''

    logger_state = None

    @property
    def _logger(self):
        if self.logger_state is None:
            return logger
        return self.logger_state

    def log(self, *message):
        self._logger.info(u', '.join(map(str, message)))

    def warn(self, *message):
        self._logger.warning(u', '.join(map(str, message)))

    def debug(self, *message):
        self._logger.debug(u', '.join(map(str, message)))

    def error(self, *message):
        self._logger.error(u', '.join(map(str, message)))


class PercentProgress(object):
    '''Track progress through a closed range of scan numbers, reporting
    each :const:`PROGRESS_PERCENTAGE_STEP` percent boundary exactly once.

    Parameters
    ----------
    first : int
        The first scan number
    last : int
        The last scan number
    callback : callable
        Called with the percentage reached
    step : int
        The percentage between reports
    '''

    def __init__(self, first, last, callback, step=PROGRESS_PERCENTAGE_STEP):
        self.first = first
        self.total = max(last - first + 1, 0)
        self.callback = callback
        self.step = step
        self.last_reported = 0

    def update(self, scan_number):
        if self.total == 0:
            return None
        done = scan_number - self.first + 1
        percent = (done * 100) // self.total
        reached = (percent // self.step) * self.step
        if reached > self.last_reported:
            self.last_reported = reached
            self.callback(reached)
            return reached
        return None
