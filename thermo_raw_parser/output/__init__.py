from .sink import OutputSink, S3Uploader, resolve_output_path, resolve_metadata_path

from .common import (
    SpectrumWriter, SpectrumRecord, PrecursorIon, IsolationWindow)

from .mgf import MGFSpectrumWriter

from .mzml import MzMLSpectrumWriter, IndexedMzMLSpectrumWriter

from .parquet import ParquetSpectrumWriter, MZPARQUET_SCHEMA

from .metadata import MetadataWriter

from .infer_type import get_writer, writer_type_for, writer_types


__all__ = [
    "OutputSink", "S3Uploader", "resolve_output_path", "resolve_metadata_path",
    "SpectrumWriter", "SpectrumRecord", "PrecursorIon", "IsolationWindow",
    "MGFSpectrumWriter",
    "MzMLSpectrumWriter", "IndexedMzMLSpectrumWriter",
    "ParquetSpectrumWriter", "MZPARQUET_SCHEMA",
    "MetadataWriter",
    "get_writer", "writer_type_for", "writer_types",
]
