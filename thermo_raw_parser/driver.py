'''Orchestrates a single RAW file conversion.

:class:`ConversionDriver` opens the source, checks that it can be read,
selects the mass spectrometer and then runs the metadata pass and the
spectrum pass requested by its :class:`~.ConversionConfig`. The source
is always closed before :meth:`ConversionDriver.run` returns.
'''
import os
import enum
import logging

from thermo_raw_parser.errors import (
    SourceNotFound, SourceUnreadable, SourceInUseOrAcquiring)
from thermo_raw_parser.data_source.common import Device
from thermo_raw_parser.output.infer_type import get_writer
from thermo_raw_parser.output.metadata import MetadataWriter
from thermo_raw_parser.task.log_utils import LogUtilsMixin


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class DriverState(enum.Enum):
    Unopened = "unopened"
    Opened = "opened"
    Validated = "validated"
    Converting = "converting"
    Done = "done"
    Failed = "failed"


def _default_source_factory(path):
    from thermo_raw_parser.data_source.thermo_raw_net import ThermoRawFileSource
    return ThermoRawFileSource(path)


class ConversionDriver(LogUtilsMixin):
    """Run one conversion from start to finish.

    Parameters
    ----------
    config : :class:`~.ConversionConfig`
        The conversion settings
    source_factory : callable, optional
        Called with the RAW file path to open a :class:`~.ScanSource`.
        Defaults to :class:`~.ThermoRawFileSource`.

    Attributes
    ----------
    state : :class:`DriverState`
        The driver's progress through a conversion
    source : :class:`~.ScanSource`
        The opened source, or :const:`None`
    first_scan : int
    last_scan : int
    metadata_writer : :class:`~.MetadataWriter`
    spectrum_writer : :class:`~.SpectrumWriter`
    """

    logger_state = logger

    def __init__(self, config, source_factory=None):
        if source_factory is None:
            source_factory = _default_source_factory
        self.config = config
        self.source_factory = source_factory
        self.state = DriverState.Unopened
        self.source = None
        self.first_scan = None
        self.last_scan = None
        self.metadata_writer = None
        self.spectrum_writer = None

    def __repr__(self):
        return "%s(%r, state=%s)" % (self.__class__.__name__, self.config.raw_file_path, self.state.name)

    def _transition(self, state):
        self.debug("Conversion state %s -> %s" % (self.state.name, state.name))
        self.state = state

    def open(self):
        """Acquire the source handle.

        Raises
        ------
        :class:`~.SourceNotFound`:
            If the RAW file does not exist
        """
        path = self.config.raw_file_path
        if not os.path.exists(path):
            raise SourceNotFound(path)
        self.source = self.source_factory(path)
        self._transition(DriverState.Opened)
        return self.source

    def validate(self):
        """Check that the opened source can be converted.

        Raises
        ------
        :class:`~.SourceUnreadable`:
            If the source is not open or the decoder reported an error
        :class:`~.SourceInUseOrAcquiring`:
            If the instrument is still writing the file
        """
        path = self.config.raw_file_path
        source = self.source
        if source is None or not source.is_open():
            raise SourceUnreadable(path)
        is_error, detail = source.has_error()
        if is_error:
            raise SourceUnreadable(path, detail)
        if source.in_acquisition():
            raise SourceInUseOrAcquiring(path)
        self._transition(DriverState.Validated)

    def prepare(self):
        '''Select the mass spectrometer and resolve the scan range'''
        self.source.select_instrument(Device.MS, 1)
        self.first_scan = self.source.first_scan_number()
        self.last_scan = self.source.last_scan_number()
        self._transition(DriverState.Converting)
        self.log("Preferred data modes: MS1 %s, MSn %s" % (
            self.config.ms1_mode.name, self.config.msn_mode.name))
        self.log("Scan range: %d - %d" % (self.first_scan, self.last_scan))

    def convert(self):
        '''Run the metadata pass, then the spectrum pass'''
        if self.config.metadata_format is not None:
            self.metadata_writer = MetadataWriter(self.config)
            self.metadata_writer.write(self.source, self.first_scan, self.last_scan)
        if self.config.output_format is not None:
            self.spectrum_writer = get_writer(self.config)
            self.spectrum_writer.write(self.source, self.first_scan, self.last_scan)

    def close(self):
        if self.source is not None:
            self.source.close()

    def run(self):
        """Carry out the whole conversion.

        Any error moves the driver to :attr:`DriverState.Failed` and is
        re-raised after the source is closed.

        Returns
        -------
        :class:`ConversionDriver`
        """
        path = self.config.raw_file_path
        self.log("Started parsing %s" % (path, ))
        try:
            self.open()
            self.validate()
            self.prepare()
            self.convert()
        except Exception:
            self._transition(DriverState.Failed)
            raise
        finally:
            self.close()
        self._transition(DriverState.Done)
        self.log("Finished parsing %s" % (path, ))
        return self


def parse(config, source_factory=None):
    '''Convert the RAW file described by ``config``.

    Parameters
    ----------
    config : :class:`~.ConversionConfig`
    source_factory : callable, optional
        Opens a :class:`~.ScanSource` from a path

    Returns
    -------
    :class:`ConversionDriver`
    '''
    return ConversionDriver(config, source_factory).run()
