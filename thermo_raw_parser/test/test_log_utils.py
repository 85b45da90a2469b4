import io
import logging
import unittest

from thermo_raw_parser.config import Verbosity
from thermo_raw_parser.task.log_utils import (
    configure_logging, verbosity_to_level, PercentProgress, LogUtilsMixin)


class TestPercentProgress(unittest.TestCase):

    def run_progress(self, first, last):
        reported = []
        progress = PercentProgress(first, last, reported.append)
        for scan_number in range(first, last + 1):
            progress.update(scan_number)
        return reported

    def test_every_step(self):
        assert self.run_progress(1, 100) == [10, 20, 30, 40, 50, 60, 70, 80, 90, 100]

    def test_short_range(self):
        reported = self.run_progress(5, 7)
        assert reported == sorted(set(reported))
        assert reported[-1] == 100
        assert len(reported) == 3

    def test_empty_range(self):
        assert self.run_progress(1, 0) == []


class TestConfigureLogging(unittest.TestCase):

    def tearDown(self):
        configure_logging(Verbosity.NORMAL, stream=io.StringIO())

    def test_levels(self):
        assert verbosity_to_level(Verbosity.QUIET) == logging.WARNING
        assert verbosity_to_level(Verbosity.NORMAL) == logging.INFO
        assert verbosity_to_level(2) == logging.DEBUG

    def test_single_handler(self):
        stream = io.StringIO()
        configure_logging(Verbosity.VERBOSE)
        root = configure_logging(Verbosity.QUIET, stream)
        tagged = [h for h in root.handlers if getattr(h, "_thermo_raw_parser_handler", False)]
        assert len(tagged) == 1
        logging.getLogger("thermo_raw_parser.output.common").info("hidden")
        logging.getLogger("thermo_raw_parser.output.common").warning("shown")
        assert "hidden" not in stream.getvalue()
        assert " - WARNING - shown" in stream.getvalue()

    def test_mixin(self):
        stream = io.StringIO()
        configure_logging(Verbosity.VERBOSE, stream)

        class Task(LogUtilsMixin):
            logger_state = logging.getLogger("thermo_raw_parser.test.task")

        task = Task()
        task.log("converted", 3)
        task.debug("details")
        assert "converted, 3" in stream.getvalue()
        assert "details" in stream.getvalue()
