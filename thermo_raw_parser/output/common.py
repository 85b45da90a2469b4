'''The shared contract of all spectrum writers.

A writer walks a closed range of scan numbers, turns each
:class:`~.ScanRecord` into a :class:`SpectrumRecord` and serializes it
to its :class:`~.OutputSink`. Subclasses implement :meth:`SpectrumWriter.begin`,
:meth:`SpectrumWriter.write_spectrum` and :meth:`SpectrumWriter.complete`.
'''
import logging

from dataclasses import dataclass
from typing import Optional, Tuple

from thermo_raw_parser.errors import InstrumentFieldMissing
from thermo_raw_parser.data_source.activation import dissociation_method
from thermo_raw_parser.precursor import calculate_selected_ion_mz, get_precursor_intensity
from thermo_raw_parser.spectrum_mode import select_peaks_for, PeakSelection
from thermo_raw_parser.task.log_utils import LogUtilsMixin, PercentProgress
from thermo_raw_parser.output.sink import OutputSink


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass
class IsolationWindow:
    lower: float
    target: float
    upper: float

    @property
    def lower_bound(self):
        return self.target - self.lower

    @property
    def upper_bound(self):
        return self.target + self.upper


@dataclass
class PrecursorIon:
    '''The ion selected for fragmentation in an MSn scan.

    Attributes
    ----------
    mz: float
        The corrected selected ion m/z
    charge: int
        The charge state, or :const:`None` when unknown
    intensity: float
        The ion's intensity in the precursor scan, or :const:`None`
    scan_number: int
        The precursor scan's number, or :const:`None` when it was not found
    isolation_window: :class:`IsolationWindow`
    activation: :class:`~.DissociationMethod`
    collision_energy: float
    '''
    mz: float
    charge: Optional[int] = None
    intensity: Optional[float] = None
    scan_number: Optional[int] = None
    isolation_window: Optional[IsolationWindow] = None
    activation: Optional[object] = None
    collision_energy: Optional[float] = None


@dataclass
class SpectrumRecord:
    '''A scan prepared for serialization. One is built per scan and
    discarded once written.
    '''
    title: str
    scan_number: int
    retention_time: float
    ms_level: int
    polarity: int
    peaks: PeakSelection
    precursor: Optional[PrecursorIon] = None
    filter_string: Optional[str] = None
    injection_time: Optional[float] = None
    scan_window: Optional[Tuple[float, float]] = None

    @property
    def is_centroid(self):
        return self.peaks.is_centroid

    @property
    def retention_time_seconds(self):
        return self.retention_time * 60.0


class SpectrumWriter(LogUtilsMixin):
    """A common base class for all types which serialize a range of scans
    from a :class:`~.ScanSource` to an :class:`~.OutputSink`.

    Attributes
    ----------
    config : :class:`~.ConversionConfig`
        The conversion settings
    sink : :class:`~.OutputSink`
        The destination, owned by this writer
    skipped_scans : list
        The scan numbers skipped because of missing instrument data
    spectra_written : int
        The number of spectra serialized
    """

    file_extension = None
    logger_state = logger

    def __init__(self, config, sink=None):
        if sink is None:
            sink = OutputSink.for_spectra(config, self.file_extension)
        self.config = config
        self.sink = sink
        self.skipped_scans = []
        self.spectra_written = 0

    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.sink.path)

    @property
    def path(self):
        return self.sink.path

    def write(self, source, first_scan, last_scan):
        """Serialize every scan in ``[first_scan, last_scan]`` in ascending
        order.

        The sink is closed when this method returns, whether it succeeds or
        raises. A failed run leaves a partial file in place.

        Parameters
        ----------
        source : :class:`~.ScanSource`
            The source to read scans from
        first_scan : int
            The first scan number to write
        last_scan : int
            The last scan number to write, inclusive
        """
        progress = PercentProgress(
            first_scan, last_scan, lambda percent: self.log("%d%% of scans processed" % percent))
        success = False
        try:
            self.begin(source, first_scan, last_scan)
            for scan_number in range(first_scan, last_scan + 1):
                record = self.prepare_spectrum(source, scan_number)
                if record is not None:
                    self.write_spectrum(record)
                    self.spectra_written += 1
                progress.update(scan_number)
            self.complete()
            success = True
        finally:
            self.sink.close(upload=success)
        if self.skipped_scans:
            self.warn("Skipped %d scans with missing instrument data" % len(self.skipped_scans))
        return self

    def _is_writable(self, source, scan_number):
        try:
            scan = source.get_scan(scan_number)
            scan.validate()
        except InstrumentFieldMissing:
            return False
        return select_peaks_for(scan, self.config) is not None

    def count_writable_scans(self, source, first_scan, last_scan):
        """The number of spectra :meth:`write` will produce for a range.

        Without ``ignore_instrument_errors`` any unwritable scan aborts the
        run, so the whole range is counted without reading it.

        Returns
        -------
        int
        """
        if not self.config.ignore_instrument_errors:
            return max(last_scan - first_scan + 1, 0)
        return sum(1 for scan_number in range(first_scan, last_scan + 1)
                   if self._is_writable(source, scan_number))

    def _skip(self, scan_number, error):
        if not self.config.ignore_instrument_errors:
            raise error
        self.warn("Skipping scan %d: %s" % (scan_number, error))
        self.skipped_scans.append(scan_number)
        return None

    def prepare_spectrum(self, source, scan_number):
        """Read a scan and resolve its precursor and peak representation.

        Parameters
        ----------
        source : :class:`~.ScanSource`
        scan_number : int

        Returns
        -------
        :class:`SpectrumRecord` or :const:`None`:
            :const:`None` when the scan was skipped

        Raises
        ------
        :class:`~.InstrumentFieldMissing`:
            When the scan lacks required data and instrument errors are
            not being ignored
        """
        try:
            scan = source.get_scan(scan_number)
            scan.validate()
        except InstrumentFieldMissing as err:
            return self._skip(scan_number, err)
        peaks = select_peaks_for(scan, self.config)
        if peaks is None:
            return self._skip(scan_number, InstrumentFieldMissing("peak data", scan_number))
        precursor = None
        if scan.ms_level > 1:
            precursor = self.resolve_precursor(source, scan)
        return SpectrumRecord(
            title=scan.id,
            scan_number=scan.scan_number,
            retention_time=scan.retention_time,
            ms_level=scan.ms_level,
            polarity=scan.polarity,
            peaks=peaks,
            precursor=precursor,
            filter_string=scan.filter_string,
            injection_time=scan.injection_time,
            scan_window=scan.scan_window)

    def resolve_precursor(self, source, scan):
        reaction = scan.reaction
        isolation_width = scan.isolation_width
        selected_mz = calculate_selected_ion_mz(reaction, scan.monoisotopic_mz, isolation_width)
        if isolation_width is None or isolation_width <= 0:
            isolation_width = reaction.isolation_width
        charge = scan.charge or None
        precursor_scan_number = source.find_precursor_scan_number(scan)
        intensity = None
        if self.config.include_precursor_intensity and precursor_scan_number is not None:
            try:
                intensity = get_precursor_intensity(
                    source, precursor_scan_number, selected_mz, scan.retention_time, isolation_width)
            except InstrumentFieldMissing as err:
                self.warn("Precursor intensity unavailable for scan %d: %s" % (scan.scan_number, err))
        half_width = (isolation_width or 0.0) / 2.0
        window = IsolationWindow(
            half_width, reaction.precursor_mass + reaction.isolation_width_offset, half_width)
        return PrecursorIon(
            mz=selected_mz, charge=charge, intensity=intensity,
            scan_number=precursor_scan_number, isolation_window=window,
            activation=dissociation_method(reaction.activation_type),
            collision_energy=reaction.collision_energy)

    def begin(self, source, first_scan, last_scan):
        """Called once before the first spectrum is written.

        Parameters
        ----------
        source : :class:`~.ScanSource`
        first_scan : int
        last_scan : int
        """

    def write_spectrum(self, record):
        """Serialize a single spectrum

        Parameters
        ----------
        record : :class:`SpectrumRecord`
        """
        raise NotImplementedError()

    def complete(self):
        """Called once after the last spectrum has been written, before
        the sink is closed.
        """
