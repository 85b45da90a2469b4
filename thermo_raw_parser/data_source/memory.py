'''An in-memory :class:`~.ScanSource` for scans which have already been
materialized or fully specified programmatically.
'''
from collections import OrderedDict

import numpy as np

from thermo_raw_parser.errors import InstrumentFieldMissing

from .common import (
    ScanSource, ScanRecord, PeakList, PrecursorReaction,
    InstrumentMetadata, ChromatogramTrace, Device)


class MemoryScanSource(ScanSource):
    '''A :class:`~.ScanSource` implementation which holds a collection of
    :class:`~.ScanRecord` objects.

    The decoder state flags (:attr:`open_`, :attr:`error`,
    :attr:`acquiring`) can be set to emulate a RAW file which failed to open,
    reported an error, or is still being acquired.

    Parameters
    ----------
    scans : Iterable of :class:`~.ScanRecord`
        The scans, in any order. Scan numbers must be unique.
    metadata : :class:`~.InstrumentMetadata`, optional
        The run-level metadata to report
    source_file : str, optional
        The path this source pretends to have been read from
    '''

    def __init__(self, scans, metadata=None, source_file=None, open_=True, error=None, acquiring=False):
        self._scans = OrderedDict()
        for scan in sorted(scans, key=lambda x: x.scan_number):
            if scan.scan_number in self._scans:
                raise ValueError("Duplicate scan number %d" % (scan.scan_number, ))
            self._scans[scan.scan_number] = scan
        if metadata is None:
            metadata = InstrumentMetadata()
        self._metadata = metadata
        self.source_file = source_file
        self.open_ = open_
        self.error = error
        self.acquiring = acquiring
        self._selected_instrument = None
        self.closed = False
        self.requested_traces = []

    def __repr__(self):
        return "%s(%d scans)" % (self.__class__.__name__, len(self._scans))

    def __len__(self):
        return len(self._scans)

    def __iter__(self):
        return iter(self._scans.values())

    def is_open(self):
        return self.open_ and not self.closed

    def has_error(self):
        return (self.error is not None, self.error)

    def in_acquisition(self):
        return self.acquiring

    def select_instrument(self, kind, index):
        if Device(kind) != Device.MS or index != 1:
            raise ValueError("No instrument %r #%d in this source" % (kind, index))
        self._selected_instrument = (Device(kind), index)

    def _check_selected(self):
        if self._selected_instrument is None:
            raise RuntimeError("select_instrument must be called before reading scans")

    def first_scan_number(self):
        self._check_selected()
        if not self._scans:
            return 1
        return next(iter(self._scans))

    def last_scan_number(self):
        self._check_selected()
        if not self._scans:
            return 0
        return next(reversed(self._scans))

    def get_scan(self, scan_number):
        self._check_selected()
        try:
            return self._scans[scan_number]
        except KeyError:
            raise InstrumentFieldMissing("scan", scan_number, "no such scan in this source") from None

    def retention_time_for_scan(self, scan_number):
        return self.get_scan(scan_number).retention_time

    def instrument_metadata(self):
        meta = self._metadata
        if meta.time_range is None and self._scans:
            times = [s.retention_time for s in self._scans.values() if s.retention_time is not None]
            if times:
                meta.time_range = (min(times), max(times))
        return meta

    def get_chromatogram_trace(self, mass_low, mass_high, rt_low, rt_high):
        self._check_selected()
        self.requested_traces.append((mass_low, mass_high, rt_low, rt_high))
        times = []
        intensities = []
        scan_numbers = []
        for scan in self._scans.values():
            if scan.ms_level != 1 or scan.retention_time is None:
                continue
            if not (rt_low <= scan.retention_time <= rt_high):
                continue
            peaks = scan.centroid_peaks if scan.centroid_peaks is not None else scan.peaks
            total = 0.0
            if peaks is not None and len(peaks):
                mask = (peaks.mz >= mass_low) & (peaks.mz <= mass_high)
                total = float(peaks.intensity[mask].sum())
            times.append(scan.retention_time)
            intensities.append(total)
            scan_numbers.append(scan.scan_number)
        return ChromatogramTrace(
            np.array(times, dtype=np.float64), np.array(intensities, dtype=np.float64),
            np.array(scan_numbers, dtype=np.int64))

    def close(self):
        self.closed = True

    @classmethod
    def make_scan(cls, scan_number, retention_time=None, ms_level=1, mz=None, intensity=None,
                  centroid_mz=None, centroid_intensity=None, is_centroided=False, polarity=1,
                  precursor_mass=None, isolation_width=0.0, collision_energy=0.0,
                  activation_type=None, isolation_width_offset=0.0, filter_string=None,
                  trailer=None, scan_window=None, **kwargs):
        '''Build a :class:`~.ScanRecord` from plain values.

        Parameters
        ----------
        scan_number: int
            The scan number
        retention_time: float
            The acquisition time in minutes
        ms_level: int
            The degree of fragmentation
        mz, intensity: array-like
            The raw signal. Omitted when both are :const:`None`.
        centroid_mz, centroid_intensity: array-like
            The vendor centroid stream. Omitted when both are :const:`None`.
        precursor_mass: float
            When given, a :class:`~.PrecursorReaction` is built from this and
            the other reaction arguments
        trailer: dict
            Trailer extra values. Any remaining keyword arguments are added
            to it.
        '''
        peaks = None
        if mz is not None or intensity is not None:
            peaks = PeakList(mz if mz is not None else [], intensity if intensity is not None else [])
        centroid_peaks = None
        if centroid_mz is not None or centroid_intensity is not None:
            centroid_peaks = PeakList(
                centroid_mz if centroid_mz is not None else [],
                centroid_intensity if centroid_intensity is not None else [])
        reaction = None
        if precursor_mass is not None:
            reaction = PrecursorReaction(
                precursor_mass, isolation_width, collision_energy,
                activation_type, isolation_width_offset)
        trailer = dict(trailer or {})
        trailer.update(kwargs)
        return ScanRecord(
            scan_number=scan_number, retention_time=retention_time, ms_level=ms_level,
            polarity=polarity, peaks=peaks, centroid_peaks=centroid_peaks,
            is_centroided=is_centroided, reaction=reaction, filter_string=filter_string,
            trailer=trailer, scan_window=scan_window)


make_scan = MemoryScanSource.make_scan
