'''The ``thermo-raw-parser`` command line tool, converting a Thermo RAW
file to MGF, mzML, indexed mzML or Parquet, and writing its metadata as
JSON or text.
'''
import os
import logging

import click

from thermo_raw_parser.version import version
from thermo_raw_parser.config import ConversionConfig, S3Settings, Verbosity
from thermo_raw_parser.errors import ThermoRawParserError
from thermo_raw_parser.driver import ConversionDriver
from thermo_raw_parser.task.log_utils import configure_logging

from thermo_raw_parser.tools.utils import (
    is_debug_mode, register_debug_hook, OUTPUT_FORMAT, METADATA_FORMAT, SPECTRUM_MODE)


logger = logging.getLogger("thermo_raw_parser.tools.conversion")


@click.command("thermo-raw-parser", context_settings=dict(help_option_names=['-h', '--help']))
@click.option("-i", "--input", "input_file", required=True,
              type=click.Path(exists=True, dir_okay=False), help="The raw file input.")
@click.option("-o", "--output", "output_directory", type=click.Path(exists=True, file_okay=False),
              help="The output directory. Specify this or an output file.")
@click.option("-b", "--output_file", "output_file", type=click.Path(dir_okay=False),
              help="The output file. Specify this or an output directory.")
@click.option("-f", "--format", "output_format", type=OUTPUT_FORMAT, default=None,
              help="The output format for the spectra (0 for MGF, 1 for mzML, 2 for indexed mzML, 3 for Parquet)")
@click.option("-m", "--metadata", "metadata_format", type=METADATA_FORMAT, default=None,
              help="The metadata output format (0 for JSON, 1 for TXT).")
@click.option("-g", "--gzip", is_flag=True, help="GZip the output file if this flag is specified.")
@click.option("-p", "--noPeakPicking", "no_peak_picking", is_flag=True,
              help="Don't use the peak picking provided by the native Thermo library.")
@click.option("-z", "--noZlibCompression", "no_zlib_compression", is_flag=True,
              help="Don't use zlib compression for the m/z and intensity arrays.")
@click.option("-1", "--ms1mode", "ms1_mode", type=SPECTRUM_MODE, default=1, show_default=True,
              help="MS1 spectra mode (0 for profile, 1 for centroid)")
@click.option("-x", "--msnmode", "msn_mode", type=SPECTRUM_MODE, default=1, show_default=True,
              help="MSn spectra mode (0 for profile, 1 for centroid)")
@click.option("-P", "--precursorIntensity", "precursor_intensity", is_flag=True,
              help="Look up the precursor ion intensity in the precursor scan.")
@click.option("-e", "--ignoreInstrumentErrors", "ignore_instrument_errors", is_flag=True,
              help="Ignore missing properties by the instrument.")
@click.option("-v", "--verbose", is_flag=True, help="Log additional diagnostic information.")
@click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors.")
@click.option("-u", "--s3_url", default=None, help="Optional property to write directly the data into S3 Storage.")
@click.option("-k", "--s3_accesskeyid", default=None, help="Optional key for the S3 bucket to write the file output.")
@click.option("-t", "--s3_secretaccesskey", default=None,
              help="Optional key for the S3 bucket to write the file output.")
@click.option("-n", "--s3_bucketName", "s3_bucket_name", default=None,
              help="S3 bucket name")
@click.version_option(version, "--version")
@click.pass_context
def main(ctx, input_file, output_directory=None, output_file=None, output_format=None, metadata_format=None,
         gzip=False, no_peak_picking=False, no_zlib_compression=False, ms1_mode=1, msn_mode=1,
         precursor_intensity=False, ignore_instrument_errors=False, verbose=False, quiet=False,
         s3_url=None, s3_accesskeyid=None, s3_secretaccesskey=None, s3_bucket_name=None):
    """Convert a Thermo RAW file to MGF, mzML, indexed mzML or Parquet.
    """
    if output_format is None and metadata_format is None:
        raise click.UsageError("Specify an output format (-f) or a metadata format (-m)", ctx)
    if output_directory is None and output_file is None:
        raise click.UsageError("Specify an output directory (-o) or an output file (-b)", ctx)
    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet cannot be used together", ctx)
    if verbose:
        verbosity = Verbosity.VERBOSE
    elif quiet:
        verbosity = Verbosity.QUIET
    else:
        verbosity = Verbosity.NORMAL
    configure_logging(verbosity)
    source_factory = (ctx.obj or {}).get("source_factory")
    try:
        config = ConversionConfig(
            raw_file_path=os.path.abspath(input_file),
            output_directory=output_directory,
            output_file=output_file,
            output_format=output_format,
            metadata_format=metadata_format,
            gzip=gzip,
            ms1_mode=ms1_mode,
            msn_mode=msn_mode,
            peak_picking=not no_peak_picking,
            zlib_compression=not no_zlib_compression,
            ignore_instrument_errors=ignore_instrument_errors,
            include_precursor_intensity=precursor_intensity,
            s3=S3Settings.from_values(s3_url, s3_accesskeyid, s3_secretaccesskey, s3_bucket_name),
            verbosity=verbosity)
        ConversionDriver(config, source_factory).run()
    except ThermoRawParserError as err:
        logger.error(str(err))
        logger.debug("Conversion failed", exc_info=True)
        ctx.exit(1)


if is_debug_mode():
    register_debug_hook()

if __name__ == '__main__':
    click.secho("Running Debug Mode", fg='yellow')
    register_debug_hook()
    main()
