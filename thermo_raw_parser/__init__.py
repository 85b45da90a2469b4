'''
thermo_raw_parser
-----------------
Convert the scans of a Thermo Fisher RAW file to MGF, mzML, indexed mzML
or Parquet, and write its run metadata as JSON or text.
'''
from .version import version

from .config import (
    ConversionConfig, S3Settings, OutputFormat, MetadataFormat,
    SpectrumMode, Verbosity)
from .errors import (
    ThermoRawParserError, SourceNotFound, SourceUnreadable,
    SourceInUseOrAcquiring, InvalidConfiguration, InstrumentFieldMissing,
    SinkWriteFailure)
from .data_source import (
    ScanSource, ScanRecord, PeakList, PrecursorReaction, MemoryScanSource)
from .precursor import calculate_selected_ion_mz, get_precursor_intensity
from .spectrum_mode import select_peaks
from .output import (
    OutputSink, MGFSpectrumWriter, MzMLSpectrumWriter,
    IndexedMzMLSpectrumWriter, ParquetSpectrumWriter, MetadataWriter,
    get_writer)
from .driver import ConversionDriver, DriverState, parse


__all__ = [
    "version",
    "ConversionConfig", "S3Settings", "OutputFormat", "MetadataFormat",
    "SpectrumMode", "Verbosity",
    "ThermoRawParserError", "SourceNotFound", "SourceUnreadable",
    "SourceInUseOrAcquiring", "InvalidConfiguration", "InstrumentFieldMissing",
    "SinkWriteFailure",
    "ScanSource", "ScanRecord", "PeakList", "PrecursorReaction", "MemoryScanSource",
    "calculate_selected_ion_mz", "get_precursor_intensity",
    "select_peaks",
    "OutputSink", "MGFSpectrumWriter", "MzMLSpectrumWriter",
    "IndexedMzMLSpectrumWriter", "ParquetSpectrumWriter", "MetadataWriter",
    "get_writer",
    "ConversionDriver", "DriverState", "parse",
]
