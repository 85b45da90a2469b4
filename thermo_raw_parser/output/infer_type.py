'''Map each :class:`~.OutputFormat` to the writer that produces it.

The set of formats is closed: every member of :class:`~.OutputFormat`
has exactly one writer here.
'''
from thermo_raw_parser.config import OutputFormat
from thermo_raw_parser.errors import InvalidConfiguration

from thermo_raw_parser.output.mgf import MGFSpectrumWriter
from thermo_raw_parser.output.mzml import MzMLSpectrumWriter, IndexedMzMLSpectrumWriter
from thermo_raw_parser.output.parquet import ParquetSpectrumWriter


writer_types = {
    OutputFormat.MGF: MGFSpectrumWriter,
    OutputFormat.MzML: MzMLSpectrumWriter,
    OutputFormat.IndexMzML: IndexedMzMLSpectrumWriter,
    OutputFormat.Parquet: ParquetSpectrumWriter,
}


def writer_type_for(output_format):
    '''Get the writer class for ``output_format``

    Raises
    ------
    :class:`~.InvalidConfiguration`:
        If ``output_format`` is not a known format
    '''
    try:
        return writer_types[OutputFormat(output_format)]
    except (KeyError, ValueError) as err:
        raise InvalidConfiguration("Unknown output format %r" % (output_format, )) from err


def get_writer(config, **kwargs):
    '''Create the spectrum writer for ``config.output_format``.

    Parameters
    ----------
    config : :class:`~.ConversionConfig`
    **kwargs
        Forwarded to the writer

    Returns
    -------
    :class:`~.SpectrumWriter`
    '''
    return writer_type_for(config.output_format)(config, **kwargs)
