'''Writing a snapshot of a RAW file's run and instrument metadata.

The snapshot is grouped into sections of ``{"accession", "name", "value"}``
entries, using PSI-MS or NCIt accessions where one exists. The same
entries are written either as a JSON document or as ``key=value`` lines.
'''
import os
import json
import logging

from collections import OrderedDict

from thermo_raw_parser.config import MetadataFormat
from thermo_raw_parser.errors import InstrumentFieldMissing
from thermo_raw_parser.precursor import calculate_selected_ion_mz
from thermo_raw_parser.task.log_utils import LogUtilsMixin
from thermo_raw_parser.output.sink import OutputSink


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


SECTIONS = ("FileProperties", "InstrumentProperties", "MsData", "ScanSettings", "SampleData")


def _entry(accession, name, value):
    return OrderedDict([("accession", accession), ("name", name), ("value", value)])


class ScanSummary(object):
    '''Accumulates per-scan statistics in a single pass over a scan range'''

    def __init__(self):
        self.ms1_count = 0
        self.msn_count = 0
        self.min_ms_level = None
        self.max_ms_level = None
        self.min_charge = None
        self.max_charge = None
        self.min_precursor_mz = None
        self.max_precursor_mz = None
        self.skipped = []

    @staticmethod
    def _low(current, value):
        return value if current is None else min(current, value)

    @staticmethod
    def _high(current, value):
        return value if current is None else max(current, value)

    def add(self, scan):
        level = scan.ms_level
        self.min_ms_level = self._low(self.min_ms_level, level)
        self.max_ms_level = self._high(self.max_ms_level, level)
        if level == 1:
            self.ms1_count += 1
            return
        self.msn_count += 1
        charge = scan.charge
        if charge:
            self.min_charge = self._low(self.min_charge, charge)
            self.max_charge = self._high(self.max_charge, charge)
        if scan.reaction is not None:
            mz = calculate_selected_ion_mz(scan.reaction, scan.monoisotopic_mz, scan.isolation_width)
            self.min_precursor_mz = self._low(self.min_precursor_mz, mz)
            self.max_precursor_mz = self._high(self.max_precursor_mz, mz)


class MetadataWriter(LogUtilsMixin):
    """Writes the metadata of one RAW file as JSON or text.

    Attributes
    ----------
    config : :class:`~.ConversionConfig`
    sink : :class:`~.OutputSink`
        The destination, owned by this writer. Never compressed.
    """

    logger_state = logger

    def __init__(self, config, sink=None):
        if sink is None:
            sink = OutputSink.for_metadata(config)
        self.config = config
        self.sink = sink

    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.sink.path)

    @property
    def path(self):
        return self.sink.path

    def _required(self, value, field_name):
        if value:
            return value
        if not self.config.ignore_instrument_errors:
            raise InstrumentFieldMissing(field_name)
        self.warn("Instrument %s is missing, writing an empty value" % (field_name, ))
        return ""

    def summarize_scans(self, source, first_scan, last_scan):
        summary = ScanSummary()
        for scan_number in range(first_scan, last_scan + 1):
            try:
                scan = source.get_scan(scan_number)
                if scan.ms_level is None:
                    raise InstrumentFieldMissing("ms level", scan_number)
            except InstrumentFieldMissing as err:
                if not self.config.ignore_instrument_errors:
                    raise
                self.warn("Skipping scan %d: %s" % (scan_number, err))
                summary.skipped.append(scan_number)
                continue
            summary.add(scan)
        return summary

    def collect(self, source, first_scan, last_scan):
        """Gather every metadata entry, grouped by section.

        Parameters
        ----------
        source : :class:`~.ScanSource`
        first_scan : int
        last_scan : int

        Returns
        -------
        :class:`collections.OrderedDict`
        """
        metadata = source.instrument_metadata()
        summary = self.summarize_scans(source, first_scan, last_scan)
        sections = OrderedDict((name, []) for name in SECTIONS)

        sections["FileProperties"].extend([
            _entry("NCIT:C47922", "Pathname", os.path.abspath(self.config.raw_file_path)),
            _entry("NCIT:C25714", "Version", metadata.file_revision),
            _entry("NCIT:C69199", "Content Creation Date", metadata.creation_date),
        ])

        sections["InstrumentProperties"].extend([
            _entry("MS:1000494", "Thermo Scientific instrument model",
                   self._required(metadata.name, "name")),
            _entry("MS:1000529", "instrument serial number",
                   self._required(metadata.serial_number, "serial number")),
            _entry("NCIT:C111093", "Software Version", metadata.software_version or ""),
            _entry("", "Instrument model", metadata.model or ""),
        ])
        if metadata.hardware_version:
            sections["InstrumentProperties"].append(
                _entry("", "Hardware Version", metadata.hardware_version))

        ms_data = sections["MsData"]
        ms_data.extend([
            _entry("", "Number of MS1 spectra", summary.ms1_count),
            _entry("", "Number of MSn spectra", summary.msn_count),
            _entry("", "MS min MS level", summary.min_ms_level),
            _entry("", "MS max MS level", summary.max_ms_level),
            _entry("", "MS min charge", summary.min_charge),
            _entry("", "MS max charge", summary.max_charge),
            _entry("", "MS min precursor m/z", summary.min_precursor_mz),
            _entry("", "MS max precursor m/z", summary.max_precursor_mz),
        ])

        settings = sections["ScanSettings"]
        settings.extend([
            _entry("", "First scan", first_scan),
            _entry("", "Last scan", last_scan),
        ])
        if metadata.time_range is not None:
            settings.extend([
                _entry("MS:1000016", "Scan start time", metadata.time_range[0]),
                _entry("", "Scan end time", metadata.time_range[1]),
            ])
        if metadata.mass_range is not None:
            settings.extend([
                _entry("MS:1000501", "scan window lower limit", metadata.mass_range[0]),
                _entry("MS:1000500", "scan window upper limit", metadata.mass_range[1]),
            ])

        sections["SampleData"].extend([
            _entry("", "Sample vial", metadata.sample_vial or ""),
            _entry("", "Sample id", metadata.sample_id or ""),
        ])
        return sections

    def write(self, source, first_scan, last_scan):
        '''Write the metadata in the configured format'''
        if self.config.metadata_format == MetadataFormat.TXT:
            return self.write_text(source, first_scan, last_scan)
        return self.write_json(source, first_scan, last_scan)

    def write_json(self, source, first_scan, last_scan):
        sections = self.collect(source, first_scan, last_scan)
        with self.sink:
            self.sink.write(json.dumps(sections, indent=2))
            self.sink.write("\n")
        self.log("Wrote metadata to %s" % (self.sink.path, ))
        return self

    def write_text(self, source, first_scan, last_scan):
        sections = self.collect(source, first_scan, last_scan)
        with self.sink:
            for entries in sections.values():
                for entry in entries:
                    value = entry['value']
                    self.sink.write("%s=%s\n" % (entry['name'], "" if value is None else value))
        self.log("Wrote metadata to %s" % (self.sink.path, ))
        return self
