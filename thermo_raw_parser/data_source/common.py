'''The data model shared between scan sources and writers, and the
abstract :class:`ScanSource` contract that any RAW file decoder must
satisfy.
'''
import abc
import enum

from collections import namedtuple
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import numpy as np

from thermo_raw_parser.errors import InstrumentFieldMissing
from thermo_raw_parser.data_source._thermo_helper import make_id


class Device(enum.IntEnum):
    '''The controller types found in a RAW file'''
    NONE = -1
    MS = 0
    Analog = 1
    AD_Card = 2
    PDA = 3
    UV = 4
    Other = 5


class PeakList(namedtuple("PeakList", ['mz', 'intensity'])):
    """Represent the parallel m/z and intensity arrays of a mass spectrum.

    Attributes
    ----------
    mz: :class:`np.ndarray`
        The m/z axis of a mass spectrum
    intensity: :class:`np.ndarray`
        The intensity measured at the corresponding m/z of a mass spectrum
    """

    def __new__(cls, mz, intensity):
        mz = np.asarray(mz, dtype=np.float64)
        intensity = np.asarray(intensity, dtype=np.float64)
        if mz.shape != intensity.shape:
            raise ValueError(
                "m/z and intensity arrays must be the same size (%d != %d)" % (len(mz), len(intensity)))
        return super(PeakList, cls).__new__(cls, mz, intensity)

    def __len__(self):
        return len(self.mz)

    def __eq__(self, other):
        try:
            return np.allclose(self.mz, other.mz) and np.allclose(self.intensity, other.intensity)
        except (AttributeError, ValueError):
            return False

    def __ne__(self, other):
        return not (self == other)

    __hash__ = tuple.__hash__


@dataclass
class PrecursorReaction:
    '''The fragmentation event that produced an MSn scan.

    Attributes
    ----------
    precursor_mass: float
        The m/z the instrument targeted for isolation
    isolation_width: float
        The full width of the isolation window
    collision_energy: float
        The activation energy
    activation_type: str
        The Thermo activation type name, e.g. ``"HCD"``
    isolation_width_offset: float
        The offset of the isolation window center from ``precursor_mass``
    '''
    precursor_mass: float
    isolation_width: float = 0.0
    collision_energy: float = 0.0
    activation_type: Optional[str] = None
    isolation_width_offset: float = 0.0


@dataclass
class ScanRecord:
    '''A single scan as read from the RAW file.

    Attributes
    ----------
    scan_number: int
        The scan's number, monotonic within a run
    retention_time: float
        The time the scan was acquired, in minutes
    ms_level: int
        The degree of fragmentation, 1 for survey scans
    polarity: int
        +1 for positive mode, -1 for negative mode
    peaks: :class:`PeakList`
        The scan's raw (segmented) signal, or :const:`None`
    centroid_peaks: :class:`PeakList`
        The vendor's centroid stream, or :const:`None`
    is_centroided: bool
        Whether :attr:`peaks` was acquired as centroided data
    reaction: :class:`PrecursorReaction`
        The precursor reaction for MSn scans
    filter_string: str
        The Thermo scan filter
    trailer: dict
        The "trailer extra" values recorded for the scan
    scan_window: tuple
        The (low, high) m/z scan range
    '''
    scan_number: int
    retention_time: Optional[float]
    ms_level: Optional[int]
    polarity: int = 1
    peaks: Optional[PeakList] = None
    centroid_peaks: Optional[PeakList] = None
    is_centroided: bool = False
    reaction: Optional[PrecursorReaction] = None
    filter_string: Optional[str] = None
    trailer: Dict[str, Any] = field(default_factory=dict)
    scan_window: Optional[Tuple[float, float]] = None

    @property
    def id(self):
        return make_id(self.scan_number)

    @property
    def has_centroid_stream(self):
        return self.centroid_peaks is not None

    def trailer_value(self, key, default=None):
        value = self.trailer.get(key)
        if value is None:
            return default
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return default
        return value

    def trailer_float(self, key, default=None):
        value = self.trailer_value(key)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    @property
    def monoisotopic_mz(self):
        return self.trailer_float("Monoisotopic M/Z")

    @property
    def charge(self):
        '''The precursor charge from the trailer, or 0 if unknown'''
        value = self.trailer_float("Charge State", 0)
        return int(value)

    @property
    def isolation_width(self):
        if self.ms_level is None:
            return None
        return self.trailer_float("MS%d Isolation Width" % self.ms_level)

    @property
    def master_scan_number(self):
        value = self.trailer_float("Master Scan Number")
        if not value or value <= 0:
            return None
        return int(value)

    @property
    def injection_time(self):
        return self.trailer_float("Ion Injection Time (ms)")

    def validate(self):
        """Check that every field required to serialize this scan is
        present.

        Raises
        ------
        :class:`~.InstrumentFieldMissing`
        """
        if self.ms_level is None or self.ms_level < 1:
            raise InstrumentFieldMissing("ms level", self.scan_number)
        if self.retention_time is None:
            raise InstrumentFieldMissing("retention time", self.scan_number)
        if self.peaks is None and self.centroid_peaks is None:
            raise InstrumentFieldMissing("peak data", self.scan_number)
        if self.ms_level > 1 and self.reaction is None:
            raise InstrumentFieldMissing("precursor reaction", self.scan_number)
        return True


@dataclass
class InstrumentMetadata:
    '''Run-level information about the instrument and sample'''
    name: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    software_version: Optional[str] = None
    hardware_version: Optional[str] = None
    file_revision: Optional[int] = None
    creation_date: Optional[str] = None
    sample_id: Optional[str] = None
    sample_vial: Optional[str] = None
    time_range: Optional[Tuple[float, float]] = None
    mass_range: Optional[Tuple[float, float]] = None


ChromatogramTrace = namedtuple("ChromatogramTrace", ['times', 'intensities', 'scan_numbers'])


class ScanSource(abc.ABC):
    """An Abstract Base Class describing an opened RAW file.

    Implementations are read-only. :meth:`select_instrument` must be
    called before any scan is requested. Sources support the context
    manager protocol, closing the underlying handle on exit.
    """

    source_file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    @abc.abstractmethod
    def is_open(self):
        """Whether the underlying file handle was acquired

        Returns
        -------
        bool
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def has_error(self):
        """Whether the decoder encountered an error reading the file

        Returns
        -------
        is_error: bool
        detail: str
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def in_acquisition(self):
        """Whether the file is still being written by the instrument

        Returns
        -------
        bool
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def select_instrument(self, kind, index):
        """Select the controller to read scans from.

        Parameters
        ----------
        kind : :class:`Device`
            The controller type
        index : int
            The 1-based controller number of that type
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def first_scan_number(self):
        raise NotImplementedError()

    @abc.abstractmethod
    def last_scan_number(self):
        raise NotImplementedError()

    @abc.abstractmethod
    def get_scan(self, scan_number):
        """Read a single scan

        Parameters
        ----------
        scan_number : int
            The scan to read

        Returns
        -------
        :class:`ScanRecord`

        Raises
        ------
        :class:`~.InstrumentFieldMissing`:
            If the decoder cannot produce a required field for the scan
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def instrument_metadata(self):
        """
        Returns
        -------
        :class:`InstrumentMetadata`
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def retention_time_for_scan(self, scan_number):
        raise NotImplementedError()

    @abc.abstractmethod
    def get_chromatogram_trace(self, mass_low, mass_high, rt_low, rt_high):
        """Extract a mass-range chromatogram over a retention time window

        Returns
        -------
        :class:`ChromatogramTrace`
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def close(self):
        raise NotImplementedError()

    def scan_range(self):
        return (self.first_scan_number(), self.last_scan_number())

    def ms_level_for_scan(self, scan_number):
        """Get the MS level of a scan without requiring its peak data.

        Implementations which can read scan headers cheaply should
        override this method.

        Returns
        -------
        int
        """
        return self.get_scan(scan_number).ms_level

    def ms_levels(self, first_scan=None, last_scan=None):
        """The set of MS levels present in a range of scans

        Returns
        -------
        set
        """
        if first_scan is None:
            first_scan = self.first_scan_number()
        if last_scan is None:
            last_scan = self.last_scan_number()
        levels = set()
        for scan_number in range(first_scan, last_scan + 1):
            try:
                level = self.ms_level_for_scan(scan_number)
            except (KeyError, InstrumentFieldMissing):
                continue
            if level is not None:
                levels.add(level)
        return levels

    def find_precursor_scan_number(self, scan, max_search=100):
        """Locate the scan a product scan's precursor was selected from.

        Uses the trailer's master scan number when present, otherwise
        searches backwards for the most recent scan with a lower MS level.

        Parameters
        ----------
        scan : :class:`ScanRecord`
            The product scan
        max_search : int
            The number of earlier scans to examine

        Returns
        -------
        int or :const:`None`
        """
        master = scan.master_scan_number
        if master is not None:
            return master
        first = self.first_scan_number()
        scan_number = scan.scan_number - 1
        i = 0
        while scan_number >= first and i < max_search:
            try:
                level = self.ms_level_for_scan(scan_number)
            except InstrumentFieldMissing:
                level = None
            if level is not None and level < scan.ms_level:
                return scan_number
            scan_number -= 1
            i += 1
        return None
