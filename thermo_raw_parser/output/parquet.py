'''Writing spectra as Parquet ("mzparquet").

Each peak is one row, carrying its spectrum's scan number, MS level,
retention time and precursor description. Rows are buffered and written
in row groups through :class:`pyarrow.parquet.ParquetWriter`, so only
one row group is ever held in memory.
'''
import numpy as np

import pyarrow as pa
import pyarrow.parquet as pq

from thermo_raw_parser.config import OutputFormat

from .common import SpectrumWriter


DEFAULT_ROW_GROUP_SIZE = 1024 * 1024


MZPARQUET_SCHEMA = pa.schema([
    pa.field("scan", pa.uint32(), nullable=False),
    pa.field("level", pa.uint8(), nullable=False),
    pa.field("rt", pa.float32(), nullable=False),
    pa.field("mz", pa.float64(), nullable=False),
    pa.field("intensity", pa.float32(), nullable=False),
    pa.field("precursor_scan", pa.uint32()),
    pa.field("precursor_mz", pa.float64()),
    pa.field("precursor_charge", pa.int16()),
    pa.field("isolation_lower", pa.float32()),
    pa.field("isolation_upper", pa.float32()),
])


def _repeat(value, n, type_):
    if value is None:
        return pa.nulls(n, type=type_)
    return pa.array(np.full(n, value), type=type_)


class ParquetSpectrumWriter(SpectrumWriter):
    """Write spectra to a Parquet file with one row per peak.

    Attributes
    ----------
    row_group_size : int
        The maximum number of rows in a row group
    compression : str
        The column chunk compression codec
    """

    format = OutputFormat.Parquet
    file_extension = OutputFormat.Parquet.extension
    schema = MZPARQUET_SCHEMA

    def __init__(self, config, sink=None, row_group_size=DEFAULT_ROW_GROUP_SIZE):
        super(ParquetSpectrumWriter, self).__init__(config, sink)
        self.row_group_size = row_group_size
        self.compression = "zstd" if config.zlib_compression else "none"
        self._writer = None
        self._buffer = []
        self._buffered_rows = 0
        self.rows_written = 0

    def begin(self, source, first_scan, last_scan):
        self._writer = pq.ParquetWriter(
            self.sink.open(), self.schema, compression=self.compression)

    def _spectrum_table(self, record):
        n = len(record.peaks.mz)
        precursor = record.precursor
        precursor_scan = precursor_mz = precursor_charge = None
        isolation_lower = isolation_upper = None
        if precursor is not None:
            precursor_scan = precursor.scan_number
            precursor_mz = precursor.mz
            precursor_charge = precursor.charge
            if precursor.isolation_window is not None:
                isolation_lower = precursor.isolation_window.lower_bound
                isolation_upper = precursor.isolation_window.upper_bound
        columns = [
            _repeat(record.scan_number, n, pa.uint32()),
            _repeat(record.ms_level, n, pa.uint8()),
            _repeat(record.retention_time, n, pa.float32()),
            pa.array(np.asarray(record.peaks.mz, dtype=np.float64), type=pa.float64()),
            pa.array(np.asarray(record.peaks.intensity, dtype=np.float32), type=pa.float32()),
            _repeat(precursor_scan, n, pa.uint32()),
            _repeat(precursor_mz, n, pa.float64()),
            _repeat(precursor_charge, n, pa.int16()),
            _repeat(isolation_lower, n, pa.float32()),
            _repeat(isolation_upper, n, pa.float32()),
        ]
        return pa.Table.from_arrays(columns, schema=self.schema)

    def write_spectrum(self, record):
        table = self._spectrum_table(record)
        if table.num_rows == 0:
            return
        self._buffer.append(table)
        self._buffered_rows += table.num_rows
        if self._buffered_rows >= self.row_group_size:
            self.flush()

    def flush(self):
        if not self._buffer:
            return
        table = pa.concat_tables(self._buffer)
        self._writer.write_table(table, row_group_size=self.row_group_size)
        self.rows_written += table.num_rows
        self.debug("Wrote %d rows" % table.num_rows)
        self._buffer = []
        self._buffered_rows = 0

    def complete(self):
        self.flush()
        self._writer.close()
