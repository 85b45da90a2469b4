'''Thermo RAW file reading implementation using the pure .NET
RawFileReader library.

This module provides :class:`ThermoRawFileSource`, a :class:`~.ScanSource`
implementation.

Depends upon the ``pythonnet`` project which provides the :mod:`clr`
module, enabling nearly seamless interoperation with the Common Language
Runtime. The ThermoFisher.CommonCore DLLs are not distributed with this
package; their location is given with :func:`register_dll` or listed in
the ``vendor_readers.thermo-net`` entry of the user configuration file.
'''
import os
import sys
import logging

from collections import OrderedDict

import numpy as np

from thermo_raw_parser.config import get_config
from thermo_raw_parser.errors import InstrumentFieldMissing, SourceUnreadable

from .common import (
    ScanSource, ScanRecord, PeakList, PrecursorReaction,
    InstrumentMetadata, ChromatogramTrace, Device)
from ._thermo_helper import FilterString, _try_number


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


_DEFAULT_DLL_PATH = os.path.join(
    os.path.dirname(
        os.path.realpath(__file__)),
    "_vendor",
    "ThermoRawFileReader",
    "Libraries")


# late binding imports

Business = None
_RawFileReader = None
clr = None
NullReferenceException = Exception
Marshal = None
IntPtr = None
Int64 = None


def is_thermo_raw_file(path):
    '''Detect whether or not the file referenced by ``path``
    is a Thermo RAW file by checking its header signature.

    Parameters
    ----------
    path: :class:`str`
        The path to test

    Returns
    -------
    :class:`bool`:
        Whether or not the file is a Thermo RAW file.
    '''
    with open(path, 'rb') as fh:
        lead_bytes = fh.read(32)
    try:
        decoded = lead_bytes.decode("utf-16")[1:9]
    except UnicodeDecodeError:
        return False
    return decoded == "Finnigan"


def determine_if_available():
    '''Checks whether or not the .NET-based Thermo
    RAW file reading feature is available.

    Returns
    -------
    :class:`bool`:
        Whether or not the feature is enabled.
    '''
    try:
        return _register_dll()
    except (OSError, ImportError):
        return False


def _register_dll(search_paths=None):
    '''Start the Common Language Runtime interop service by importing
    the :mod:`clr` module from Pythonnet, and then populate the global
    names referring to .NET entities, and finally attempt to locate the
    ThermoRawFileReader DLLs by searching along ``search_paths``.

    Parameters
    ----------
    search_paths: list
        The paths to check along for the ThermoRawFileReader DLL bundle.

    Returns
    -------
    :class:`bool`:
        Whether or not the .NET library successfully loaded
    '''
    if search_paths is None:
        search_paths = []
    search_paths = list(search_paths)
    search_paths.append(_DEFAULT_DLL_PATH)
    # Take user-specified search paths first.
    search_paths = get_config().get('vendor_readers', {}).get('thermo-net', []) + search_paths
    global _RawFileReader, Business, clr, NullReferenceException   # pylint: disable=global-statement
    global Marshal, IntPtr, Int64   # pylint: disable=global-statement
    if _test_dll_loaded():
        return True
    try:
        import clr  # pylint: disable=redefined-outer-name
        from System import NullReferenceException  # pylint: disable=redefined-outer-name
        clr.AddReference("System.Runtime")
        clr.AddReference("System.Runtime.InteropServices")
        from System import IntPtr, Int64  # pylint: disable=redefined-outer-name
        from System.Runtime.InteropServices import Marshal  # pylint: disable=redefined-outer-name
    except ImportError:
        return False
    for path in search_paths:
        sys.path.append(path)
        try:
            clr.AddReference('ThermoFisher.CommonCore.RawFileReader')
            clr.AddReference('ThermoFisher.CommonCore.Data')
        except OSError:
            continue
        try:
            import ThermoFisher.CommonCore.Data.Business as Business  # pylint: disable=redefined-outer-name
            import ThermoFisher.CommonCore.RawFileReader as _RawFileReader  # pylint: disable=redefined-outer-name
        except ImportError:
            continue
        logger.debug("Loaded ThermoFisher.CommonCore from %r", path)
        break
    return _test_dll_loaded()


def register_dll(search_paths=None):
    '''Register the location of the Thermo RawFileReader DLL bundle with
    the Common Language Runtime interop system and load the .NET symbols
    used by this feature.

    Parameters
    ----------
    search_paths: list
        The paths to check along for the ThermoRawFileReader DLL bundle.

    Raises
    ------
    ImportError:
        If the libraries could not be loaded
    '''
    if search_paths is None:
        search_paths = []
    loaded = _register_dll(search_paths)
    if not loaded:
        msg = '''The ThermoFisher.CommonCore libraries could not be located and loaded.'''
        raise ImportError(msg)


def _test_dll_loaded():
    return _RawFileReader is not None


def _copy_double_array(src):
    '''Copy a .NET Array[Double] to a NumPy ndarray[np.float64] via a raw
    memory copy.
    '''
    if src is None:
        return np.array([], dtype=np.float64)
    dest = np.empty(len(src), dtype=np.float64)
    Marshal.Copy(
        src, 0,
        IntPtr.__overloads__[Int64](dest.__array_interface__['data'][0]),
        len(src))
    return dest


def _device(kind):
    return getattr(Business.Device, Device(kind).name)


class ThermoRawFileSource(ScanSource):
    '''Reads scans from Thermo Fisher RAW files through the vendor's
    RawFileReader library.

    Opening the file never raises for a corrupt or partial file; the
    decoder's state is reported through :meth:`is_open`, :meth:`has_error`
    and :meth:`in_acquisition` and checked by the caller.

    Parameters
    ----------
    source_file : str
        The path to the RAW file
    '''

    def __init__(self, source_file, **kwargs):
        if not _test_dll_loaded():
            register_dll(kwargs.get("search_paths"))
        self.source_file = source_file
        self._source = None
        try:
            self._source = _RawFileReader.RawFileReaderAdapter.FileFactory(source_file)
        except NullReferenceException as err:
            raise SourceUnreadable(source_file, str(err)) from err
        self._selected_instrument = None

    def __repr__(self):
        return "ThermoRawFileSource(%r)" % (self.source_file)

    def _check_selected(self):
        if self._selected_instrument is None:
            raise RuntimeError("select_instrument must be called before reading scans")

    def is_open(self):
        return self._source is not None and bool(self._source.IsOpen)

    def has_error(self):
        is_error = bool(self._source.IsError)
        detail = None
        if is_error:
            detail = str(self._source.FileError.ErrorMessage)
        return is_error, detail

    def in_acquisition(self):
        return bool(self._source.InAcquisition)

    def select_instrument(self, kind, index):
        self._source.SelectInstrument(_device(kind), index)
        self._selected_instrument = (Device(kind), index)

    def first_scan_number(self):
        self._check_selected()
        return int(self._source.RunHeaderEx.FirstSpectrum)

    def last_scan_number(self):
        self._check_selected()
        return int(self._source.RunHeaderEx.LastSpectrum)

    def retention_time_for_scan(self, scan_number):
        self._check_selected()
        return float(self._source.RetentionTimeFromScanNumber(scan_number))

    def ms_level_for_scan(self, scan_number):
        self._check_selected()
        try:
            return int(self._source.GetFilterForScanNumber(scan_number).MSOrder)
        except NullReferenceException as err:
            raise InstrumentFieldMissing("ms level", scan_number, str(err)) from err

    def _trailer_values(self, scan_number):
        trailers = self._source.GetTrailerExtraInformation(scan_number)
        return OrderedDict(
            zip([label.strip().strip(":") for label in trailers.Labels], map(_try_number, trailers.Values)))

    def _scan_arrays(self, scan_number, stats):
        segscan = self._source.GetSegmentedScanFromScanNumber(scan_number, stats)
        return PeakList(_copy_double_array(segscan.Positions), _copy_double_array(segscan.Intensities))

    def _centroid_arrays(self, scan_number):
        stream = self._source.GetCentroidStream(scan_number, False)
        if stream is None or stream.Length == 0:
            return None
        return PeakList(_copy_double_array(stream.Masses), _copy_double_array(stream.Intensities))

    def _reaction(self, scan_event, ms_level):
        try:
            reaction = scan_event.GetReaction(ms_level - 2)
        except NullReferenceException:
            return None
        activation = str(reaction.ActivationType)
        return PrecursorReaction(
            precursor_mass=float(reaction.PrecursorMass),
            isolation_width=float(reaction.IsolationWidth),
            collision_energy=float(reaction.CollisionEnergy),
            activation_type=activation,
            isolation_width_offset=float(reaction.IsolationWidthOffset))

    def get_scan(self, scan_number):
        self._check_selected()
        try:
            stats = self._source.GetScanStatsForScanNumber(scan_number)
            scan_filter = self._source.GetFilterForScanNumber(scan_number)
        except NullReferenceException as err:
            raise InstrumentFieldMissing("scan header", scan_number, str(err)) from err
        filter_string = FilterString(str(scan_filter.ToString()))
        ms_level = int(scan_filter.MSOrder)
        retention_time = self.retention_time_for_scan(scan_number)
        scan_event = self._source.GetScanEventForScanNumber(scan_number)
        reaction = None
        if ms_level > 1:
            reaction = self._reaction(scan_event, ms_level)
        centroid_peaks = None
        if Business.Scan.FromFile(self._source, scan_number).HasCentroidStream:
            centroid_peaks = self._centroid_arrays(scan_number)
        return ScanRecord(
            scan_number=scan_number,
            retention_time=retention_time,
            ms_level=ms_level,
            polarity=filter_string.get("polarity", 1),
            peaks=self._scan_arrays(scan_number, stats),
            centroid_peaks=centroid_peaks,
            is_centroided=bool(stats.IsCentroidScan),
            reaction=reaction,
            filter_string=filter_string,
            trailer=self._trailer_values(scan_number),
            scan_window=(float(stats.LowMass), float(stats.HighMass)))

    def instrument_metadata(self):
        self._check_selected()
        instrument = self._source.GetInstrumentData()
        sample = self._source.SampleInformation
        header = self._source.RunHeaderEx
        file_header = self._source.FileHeader
        return InstrumentMetadata(
            name=str(instrument.Name) if instrument.Name else None,
            model=str(instrument.Model) if instrument.Model else None,
            serial_number=str(instrument.SerialNumber) if instrument.SerialNumber else None,
            software_version=str(instrument.SoftwareVersion) if instrument.SoftwareVersion else None,
            hardware_version=str(instrument.HardwareVersion) if instrument.HardwareVersion else None,
            file_revision=int(file_header.Revision),
            creation_date=str(self._source.CreationDate),
            sample_id=str(sample.SampleId) if sample.SampleId else None,
            sample_vial=str(sample.Vial) if sample.Vial else None,
            time_range=(float(header.StartTime), float(header.EndTime)),
            mass_range=(float(header.LowMass), float(header.HighMass)))

    def get_chromatogram_trace(self, mass_low, mass_high, rt_low, rt_high):
        self._check_selected()
        from ThermoFisher.CommonCore.Data import Range  # pylint: disable=import-error
        scans = self._source.GetFilteredScansListByTimeRange("", rt_low, rt_high)
        if scans is None or scans.Count == 0:
            return ChromatogramTrace(np.array([]), np.array([]), np.array([], dtype=np.int64))
        settings = Business.ChromatogramTraceSettings(Business.TraceType.MassRange)
        settings.Filter = ""
        settings.MassRanges = [Range(mass_low, mass_high)]
        data = self._source.GetChromatogramData([settings], scans[0], scans[scans.Count - 1])
        signal = Business.ChromatogramSignal.FromChromatogramData(data)[0]
        return ChromatogramTrace(
            _copy_double_array(signal.Times), _copy_double_array(signal.Intensities),
            np.array(list(signal.Scans), dtype=np.int64))

    def close(self):
        '''Close the underlying file reader.
        '''
        if self._source is not None:
            self._source.Dispose()
            self._source = None

    def __del__(self):
        self.close()
