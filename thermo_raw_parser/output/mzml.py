"""
Writing mzML
------------

Using the :mod:`psims` library, :mod:`thermo_raw_parser.output.mzml` writes
the scans of a RAW file to an mzML document, either plain or wrapped in an
``<indexedmzML>`` element with a byte offset index and checksum.

The document header is built before the first spectrum is written: the
MS levels present in the run, the source file and its SHA-1 checksum, the
instrument configuration inferred from the first scan's filter string, and
the data processing applied. Total ion current and base peak chromatograms
are accumulated while spectra are written and appended after them.
"""
import os
import hashlib

from collections import OrderedDict
from collections.abc import Sequence

import numpy as np

from psims.mzml import writer

from pyteomics.auxiliary import unitfloat

from thermo_raw_parser.config import OutputFormat, SpectrumMode
from thermo_raw_parser.errors import InstrumentFieldMissing
from thermo_raw_parser.version import version as lib_version
from thermo_raw_parser.data_source._thermo_helper import (
    FilterString, analyzer_map, ionization_map, inlet_map)

from .common import SpectrumWriter


SOFTWARE_ID = "thermo_raw_parser"
SOURCE_FILE_ID = "RAW1"
INSTRUMENT_CONFIGURATION_ID = 1
COMPRESSION_NONE = "none"


class SpectrumDescription(Sequence):
    '''The summary cvParams of one spectrum (base peak, TIC and observed
    m/z bounds) computed from the peaks being written. Descriptors can be
    read back by position or by term name.
    '''
    def __init__(self, attribs=None):
        Sequence.__init__(self)
        self.descriptors = list(attribs or [])

    def __getitem__(self, i):
        if isinstance(i, int):
            return self.descriptors[i]
        for d in self.descriptors:
            if i == d.get('name'):
                return d.get('value')
        raise KeyError(i)

    def __len__(self):
        return len(self.descriptors)

    def append(self, desc):
        self.descriptors.append(desc)
        return len(self.descriptors) - 1

    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.descriptors)

    @classmethod
    def from_arrays(cls, arrays):
        """Calculate the spectrum's descriptors from a pair of m/z and
        intensity arrays.

        Parameters
        ----------
        arrays : :class:`~.PeakList` or :class:`~.PeakSelection`
            The signal to calculate properties from.

        Returns
        -------
        :class:`SpectrumDescription`
        """
        descriptors = cls()
        if len(arrays.mz):
            base_peak_i = int(np.argmax(arrays.intensity))
            base_peak_mz = float(arrays.mz[base_peak_i])
            base_peak_intensity = float(arrays.intensity[base_peak_i])
        else:
            base_peak_mz = base_peak_intensity = 0.0
        descriptors.append({
            "name": "base peak m/z",
            "value": base_peak_mz,
        })
        descriptors.append({
            "name": "base peak intensity",
            "value": base_peak_intensity,
            "unit_name": writer.DEFAULT_INTENSITY_UNIT
        })
        descriptors.append({
            "name": "total ion current",
            "value": float(arrays.intensity.sum()),
        })
        if len(arrays.mz):
            descriptors.append({
                "name": "lowest observed m/z",
                "value": float(arrays.mz.min())
            })
            descriptors.append({
                "name": "highest observed m/z",
                "value": float(arrays.mz.max())
            })
        return descriptors


def sha1_checksum(path, block_size=2 ** 20):
    digest = hashlib.sha1()
    with open(path, 'rb') as fh:
        chunk = fh.read(block_size)
        while chunk:
            digest.update(chunk)
            chunk = fh.read(block_size)
    return digest.hexdigest()


class MzMLSpectrumWriter(SpectrumWriter):
    """Write the scans of a :class:`~.ScanSource` to a file in mzML format.

    Attributes
    ----------
    base_peak_chromatogram_tracker : :class:`OrderedDict`
        Accumulated mapping of scan number to (scan time, base peak
        intensity). This is used to write the *base peak chromatogram*.
    total_ion_chromatogram_tracker : :class:`OrderedDict`
        Accumulated mapping of scan number to (scan time, total
        intensity). This is used to write the *total ion chromatogram*.
    compression : :class:`str`
        The compression type to use for binary data arrays
    data_encoding : :class:`dict`
        The binary encoding of each array type
    writer : :class:`~psims.mzml.writer.PlainMzMLWriter`
        The lower level writer implementation
    """

    format = OutputFormat.MzML
    file_extension = OutputFormat.MzML.extension

    default_data_encoding = {
        writer.MZ_ARRAY: np.float64,
        writer.INTENSITY_ARRAY: np.float32,
    }

    _format_conversion_term = "Conversion to mzML"

    def __init__(self, config, sink=None, data_encoding=None):
        super(MzMLSpectrumWriter, self).__init__(config, sink)
        if data_encoding is None:
            data_encoding = self.default_data_encoding
        self.data_encoding = data_encoding
        self.compression = writer.COMPRESSION_ZLIB if config.zlib_compression else COMPRESSION_NONE
        self.writer = None
        self._run_tag = None
        self._spectrum_list_tag = None
        self.total_ion_chromatogram_tracker = OrderedDict()
        self.base_peak_chromatogram_tracker = OrderedDict()

    def _make_writer(self, handle):
        return writer.PlainMzMLWriter(handle, close=False)

    def _file_contents(self, source, first_scan, last_scan):
        contents = []
        levels = source.ms_levels(first_scan, last_scan)
        if 1 in levels:
            contents.append("MS1 spectrum")
        if any(level > 1 for level in levels):
            contents.append("MSn spectrum")
        modes = {self.config.ms1_mode, self.config.msn_mode}
        if not self.config.peak_picking:
            modes = {SpectrumMode.PROFILE}
        if SpectrumMode.CENTROID in modes:
            contents.append("centroid spectrum")
        if SpectrumMode.PROFILE in modes:
            contents.append("profile spectrum")
        return contents

    def _source_file(self, source):
        path = source.source_file or self.config.raw_file_path
        params = ["Thermo nativeID format", "Thermo RAW format"]
        if path is not None and os.path.exists(path):
            params.append({"SHA-1": sha1_checksum(path)})
        location = "file:///" + os.path.dirname(os.path.abspath(path)).replace("\\", "/").lstrip("/")
        return {
            "name": os.path.basename(path),
            "location": location,
            "id": SOURCE_FILE_ID,
            "params": params,
        }

    def _software_list(self):
        return [{
            'id': SOFTWARE_ID,
            'version': lib_version,
            'MS:1000799': SOFTWARE_ID,
            'params': [],
        }]

    def _instrument_configuration(self, source, first_scan):
        filter_string = None
        try:
            filter_string = source.get_scan(first_scan).filter_string
        except (KeyError, InstrumentFieldMissing):
            self.warn("Could not read scan %d to describe the instrument" % (first_scan, ))
        if filter_string is not None and not isinstance(filter_string, FilterString):
            filter_string = FilterString(filter_string)
        ionization_label = filter_string.get("ionization") if filter_string is not None else None
        analyzer_label = filter_string.get("analyzer") if filter_string is not None else None

        source_params = [ionization_map.get(ionization_label, ionization_map['ESI'])]
        inlet = inlet_map.get(ionization_label)
        if inlet is not None:
            source_params.append(inlet)
        analyzer = analyzer_map.get(analyzer_label, "mass analyzer type")
        # the most common Thermo detector, though not universal
        component_list = [
            self.writer.Source(order=1, params=source_params),
            self.writer.Analyzer(order=2, params=[analyzer]),
            self.writer.Detector(order=3, params=["inductive detector"]),
        ]
        params = ["Thermo Fisher Scientific instrument model"]
        metadata = source.instrument_metadata()
        if metadata.serial_number:
            params.append({"instrument serial number": metadata.serial_number})
        return [self.writer.InstrumentConfiguration(
            INSTRUMENT_CONFIGURATION_ID, component_list, params=params)]

    def _data_processing_list(self):
        params = [{"name": self._format_conversion_term}]
        if self.config.peak_picking:
            params.append({"name": "peak picking"})
        return [{
            'id': "%s_processing" % SOFTWARE_ID,
            'processing_methods': [{
                'software_reference': SOFTWARE_ID,
                'order': 0,
                'params': params,
            }]
        }]

    def begin(self, source, first_scan, last_scan):
        self.writer = self._make_writer(self.sink.open())
        self.writer.begin()
        self.writer.controlled_vocabularies()
        self.writer.file_description(
            self._file_contents(source, first_scan, last_scan), [self._source_file(source)])
        self.writer.software_list(self._software_list())
        self.writer.instrument_configuration_list(
            self._instrument_configuration(source, first_scan))
        self.writer.data_processing_list(self._data_processing_list())
        self._run_tag = self.writer.run(
            id=self.config.raw_file_name_without_extension,
            instrument_configuration=INSTRUMENT_CONFIGURATION_ID,
            source_file=SOURCE_FILE_ID)
        self._run_tag.__enter__()
        self._spectrum_list_tag = self.writer.spectrum_list(
            count=self.count_writable_scans(source, first_scan, last_scan))
        self._spectrum_list_tag.__enter__()

    def _pack_precursor_information(self, record):
        """Repackage the :class:`~.PrecursorIon` of ``record`` into the nested
        :class:`dict` structure that :class:`~psims.mzml.writer.PlainMzMLWriter`
        expects.
        """
        precursor = record.precursor
        package = {
            "mz": precursor.mz,
            "intensity": precursor.intensity,
            "charge": precursor.charge,
            "scan_id": None,
            "params": [],
        }
        if precursor.scan_number is not None:
            package["scan_id"] = "controllerType=0 controllerNumber=1 scan=%d" % precursor.scan_number
        activation = [{"name": str(precursor.activation)}]
        if precursor.collision_energy is not None:
            activation.append({
                "name": "collision energy",
                "value": precursor.collision_energy,
                "unit_name": "electronvolt",
                'unit_accession': 'UO:0000266'
            })
        package["activation"] = activation
        window = precursor.isolation_window
        if window is not None:
            package['isolation_window_args'] = {
                "lower": window.lower,
                "target": window.target,
                "upper": window.upper
            }
        return package

    def extract_scan_event_parameters(self, record):
        """Package the scan event description into a pair of :class:`list`s
        that :class:`~psims.mzml.writer.PlainMzMLWriter` expects.

        Returns
        -------
        scan_parameters: :class:`list`
        scan_window_list: :class:`list`
        """
        scan_parameters = []
        scan_window_list = []
        if record.filter_string is not None:
            scan_parameters.append({"name": "filter string", "value": str(record.filter_string)})
        if record.injection_time is not None:
            injection_time = unitfloat(record.injection_time, 'millisecond')
            scan_parameters.append({
                "accession": 'MS:1000927', "value": injection_time,
                "unit_name": injection_time.unit_info,
            })
        if record.scan_window is not None:
            scan_window_list.append(tuple(record.scan_window))
        return scan_parameters, scan_window_list

    def write_spectrum(self, record):
        descriptors = SpectrumDescription.from_arrays(record.peaks)
        spectrum_params = [
            {"name": "ms level", "value": record.ms_level},
            {"name": "MS1 spectrum"} if record.ms_level == 1 else {"name": "MSn spectrum"},
        ] + list(descriptors)
        scan_parameters, scan_window_list = self.extract_scan_event_parameters(record)
        precursor_information = None
        if record.precursor is not None:
            precursor_information = self._pack_precursor_information(record)

        self.writer.write_spectrum(
            record.peaks.mz, record.peaks.intensity,
            id=record.title, params=spectrum_params,
            centroided=record.is_centroid,
            polarity=record.polarity,
            scan_start_time=record.retention_time,
            compression=self.compression,
            instrument_configuration_id=INSTRUMENT_CONFIGURATION_ID,
            precursor_information=precursor_information,
            scan_params=scan_parameters,
            scan_window_list=scan_window_list,
            encoding=self.data_encoding)

        self.total_ion_chromatogram_tracker[record.scan_number] = (
            record.retention_time, descriptors["total ion current"])
        self.base_peak_chromatogram_tracker[record.scan_number] = (
            record.retention_time, descriptors["base peak intensity"])

    def _make_default_chromatograms(self):
        queue = []
        if len(self.total_ion_chromatogram_tracker) > 0:
            queue.append(dict(
                chromatogram=self.total_ion_chromatogram_tracker,
                chromatogram_type='total ion current chromatogram',
                id='TIC'))
        if len(self.base_peak_chromatogram_tracker) > 0:
            queue.append(dict(
                chromatogram=self.base_peak_chromatogram_tracker,
                chromatogram_type="basepeak chromatogram",
                id='BPC'))
        return queue

    def write_chromatograms(self):
        queue = self._make_default_chromatograms()
        if not queue:
            return
        with self.writer.chromatogram_list(count=len(queue)):
            for chromatogram in queue:
                time_array, intensity_array = zip(*chromatogram['chromatogram'].values())
                self.writer.write_chromatogram(
                    time_array, intensity_array, id=chromatogram['id'],
                    chromatogram_type=chromatogram['chromatogram_type'],
                    compression=self.compression)

    def complete(self):
        """Finish writing to the output document.

        This closes the open list tags, writes the chromatograms,
        and closes the :obj:`<mzML>` tag.
        """
        if self._spectrum_list_tag is not None:
            self._spectrum_list_tag.__exit__(None, None, None)
        if self._run_tag is not None:
            self.write_chromatograms()
            self._run_tag.__exit__(None, None, None)
        self.writer.__exit__(None, None, None)
        self.total_ion_chromatogram_tracker.clear()
        self.base_peak_chromatogram_tracker.clear()


class IndexedMzMLSpectrumWriter(MzMLSpectrumWriter):
    """Write an indexed mzML document. The output is never gzip
    compressed, its index holds byte offsets into the uncompressed file.
    """

    format = OutputFormat.IndexMzML
    file_extension = OutputFormat.IndexMzML.extension

    def _make_writer(self, handle):
        return writer.IndexedMzMLWriter(handle, close=False)
