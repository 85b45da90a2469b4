'''Conversion settings and simple library-wide configuration management.

:class:`ConversionConfig` is resolved once per run and never mutated
afterwards. The user-level ``config.json`` tracks machine state such as
where to look for the vendor RawFileReader libraries.
'''
import os
import sys
import copy
import json
import enum
import warnings

from dataclasses import dataclass
from typing import Optional

from thermo_raw_parser.errors import InvalidConfiguration


CONFIG_FILE_NAME = 'config.json'


class OutputFormat(enum.IntEnum):
    '''The spectrum output formats. The integer values are the codes
    accepted on the command line.
    '''
    MGF = 0
    MzML = 1
    IndexMzML = 2
    Parquet = 3

    @property
    def extension(self):
        return _output_extensions[self]


_output_extensions = {
    OutputFormat.MGF: ".mgf",
    OutputFormat.MzML: ".mzML",
    OutputFormat.IndexMzML: ".mzML",
    OutputFormat.Parquet: ".mzparquet",
}


class MetadataFormat(enum.IntEnum):
    JSON = 0
    TXT = 1

    @property
    def suffix(self):
        if self == MetadataFormat.JSON:
            return "-metadata.json"
        return "-metadata.txt"


class SpectrumMode(enum.IntEnum):
    PROFILE = 0
    CENTROID = 1


class Verbosity(enum.IntEnum):
    QUIET = 0
    NORMAL = 1
    VERBOSE = 2


def _coerce_enum(enum_type, value, label):
    if value is None or isinstance(value, enum_type):
        return value
    try:
        return enum_type(int(value))
    except (TypeError, ValueError):
        pass
    if isinstance(value, str):
        for member in enum_type:
            if member.name.lower() == value.lower():
                return member
    choices = ', '.join("%d for %s" % (m.value, m.name) for m in enum_type)
    raise InvalidConfiguration("unknown %s value %r (%s)" % (label, value, choices))


@dataclass(frozen=True)
class S3Settings:
    '''Credentials and location for uploading the output to an
    S3-compatible object store.
    '''
    url: str
    access_key_id: str
    secret_access_key: str
    bucket_name: str

    @classmethod
    def from_values(cls, url=None, access_key_id=None, secret_access_key=None, bucket_name=None):
        '''Build an :class:`S3Settings` if all four values are present,
        return :const:`None` if none are.

        Raises
        ------
        :class:`~.InvalidConfiguration`:
            If only some of the values were given
        '''
        values = {
            "s3_url": url,
            "s3_accesskeyid": access_key_id,
            "s3_secretaccesskey": secret_access_key,
            "s3_bucketName": bucket_name,
        }
        given = [k for k, v in values.items() if v]
        if not given:
            return None
        if len(given) != len(values):
            missing = sorted(set(values) - set(given))
            raise InvalidConfiguration(
                "S3 output requires url, access key, secret key and bucket name; missing %s" % (
                    ', '.join(missing), ))
        return cls(url, access_key_id, secret_access_key, bucket_name)


@dataclass(frozen=True)
class ConversionConfig:
    '''The complete, immutable description of one conversion run.

    Exactly one output base is used for spectra: the explicit
    :attr:`output_file` when given, otherwise a file named after the
    RAW file inside :attr:`output_directory`.

    Attributes
    ----------
    raw_file_path: str
        The RAW file to convert
    output_directory: str
        The directory to write outputs to
    output_file: str
        An explicit spectrum output file path
    output_format: :class:`OutputFormat`
        The spectrum format to write, or :const:`None` to skip spectra
    metadata_format: :class:`MetadataFormat`
        The metadata format to write, or :const:`None` to skip metadata
    gzip: bool
        Whether to gzip the spectrum output. Never applied to indexed mzML.
    ms1_mode: :class:`SpectrumMode`
        The preferred peak representation for MS1 spectra
    msn_mode: :class:`SpectrumMode`
        The preferred peak representation for MSn spectra
    peak_picking: bool
        Whether vendor centroids may be used. When :const:`False`, profile
        data is always preferred.
    zlib_compression: bool
        Whether binary arrays are compressed, for formats which support it
    ignore_instrument_errors: bool
        Whether missing instrument fields are tolerated
    include_precursor_intensity: bool
        Whether to look up the precursor ion intensity in the precursor scan
    s3: :class:`S3Settings`
        Remote upload settings, or :const:`None`
    verbosity: :class:`Verbosity`
        How much to log
    '''
    raw_file_path: str
    output_directory: Optional[str] = None
    output_file: Optional[str] = None
    output_format: Optional[OutputFormat] = None
    metadata_format: Optional[MetadataFormat] = None
    gzip: bool = False
    ms1_mode: SpectrumMode = SpectrumMode.CENTROID
    msn_mode: SpectrumMode = SpectrumMode.CENTROID
    peak_picking: bool = True
    zlib_compression: bool = True
    ignore_instrument_errors: bool = False
    include_precursor_intensity: bool = False
    s3: Optional[S3Settings] = None
    verbosity: Verbosity = Verbosity.NORMAL

    def __post_init__(self):
        # frozen dataclasses must bypass __setattr__ to normalize fields
        _set = object.__setattr__
        if not self.raw_file_path:
            raise InvalidConfiguration("No RAW file specified!")
        _set(self, 'output_format', _coerce_enum(OutputFormat, self.output_format, "output format"))
        _set(self, 'metadata_format', _coerce_enum(MetadataFormat, self.metadata_format, "metadata format"))
        _set(self, 'ms1_mode', _coerce_enum(SpectrumMode, self.ms1_mode, "MS1 spectra mode"))
        _set(self, 'msn_mode', _coerce_enum(SpectrumMode, self.msn_mode, "MSn spectra mode"))
        _set(self, 'verbosity', _coerce_enum(Verbosity, self.verbosity, "verbosity"))
        if self.ms1_mode is None or self.msn_mode is None:
            raise InvalidConfiguration("The MS1 and MSn spectra modes must be set")
        if self.output_format is None and self.metadata_format is None:
            raise InvalidConfiguration("An output format or a metadata format should be provided")
        if self.output_directory is None and self.output_file is None:
            raise InvalidConfiguration("Specify an output directory or output file")
        if self.s3 is not None and not isinstance(self.s3, S3Settings):
            raise InvalidConfiguration("Invalid S3 settings %r" % (self.s3, ))

    @property
    def raw_file_name(self):
        return os.path.basename(self.raw_file_path.replace("\\", "/"))

    @property
    def raw_file_name_without_extension(self):
        return os.path.splitext(self.raw_file_name)[0]

    @property
    def metadata_directory(self):
        '''The directory metadata files are written to'''
        if self.output_directory is not None:
            return self.output_directory
        return os.path.dirname(os.path.abspath(self.output_file))

    @property
    def gzip_output(self):
        '''Whether the spectrum output will actually be gzip-compressed.

        Indexed mzML stores byte offsets into the uncompressed document
        and so is never compressed.
        '''
        return self.gzip and self.output_format != OutputFormat.IndexMzML

    def mode_for_ms_level(self, ms_level):
        if ms_level == 1:
            return self.ms1_mode
        return self.msn_mode


def _get_home_dir():
    """Find user's home directory if possible.
    Otherwise, returns None.
    """
    path = os.path.expanduser("~")
    if os.path.isdir(path):
        return path
    for evar in ('HOME', 'USERPROFILE', 'TMP'):
        path = os.environ.get(evar)
        if path is not None and os.path.isdir(path):
            return path
    return None


def get_config_dir():
    """Get the configuration directory path.

    Tries the following routes:
        1. The environment variable "THERMO_RAW_PARSER_CONFIGDIR"
        2. If on an XDG-compliant platform (Linux, Free BSD), the environment
           variable "XDG_CONFIG_HOME"/thermo_raw_parser
        3. The user's home directory/.thermo_raw_parser

    If the configuration directory does not exist, it will
    be created.

    Returns
    -------
    str
    """
    FALLBACK_DIR = '.'
    configdir = os.environ.get('THERMO_RAW_PARSER_CONFIGDIR')
    if configdir is not None:
        configdir = os.path.abspath(configdir)
        if not os.path.exists(configdir):
            try:
                os.makedirs(configdir)
            except OSError:
                return FALLBACK_DIR
        return configdir

    home_dir = _get_home_dir()
    if home_dir is not None:
        configdir = os.path.join(home_dir, '.thermo_raw_parser')
    else:
        configdir = None
    if sys.platform.startswith(('linux', 'freebsd')):
        configdir = None
        xdg_base = os.environ.get('XDG_CONFIG_HOME')
        if xdg_base is None:
            xdg_base = home_dir
            if xdg_base is not None:
                xdg_base = os.path.join(xdg_base, '.config')
        if xdg_base is not None:
            configdir = os.path.join(xdg_base, 'thermo_raw_parser')
    if configdir is not None:
        if os.path.exists(configdir):
            return configdir
        try:
            os.makedirs(configdir)
            return configdir
        except OSError:
            return FALLBACK_DIR
    return FALLBACK_DIR


_DEFAULT_CONFIG = {
    'vendor_readers': {
        "thermo-net": [],
    },
    'schema_version': '1.0.0'
}


def get_config():
    """Load the config.json file from the configuration
    directory given by :func:`get_config_dir`.

    If the config file does not exist, a default one
    will be created.

    Returns
    -------
    dict
    """
    confdir = get_config_dir()
    path = os.path.join(confdir, CONFIG_FILE_NAME)
    if not os.path.exists(path):
        try:
            save_config(_DEFAULT_CONFIG)
        except OSError as err:
            warnings.warn("Encountered the error %r when trying to write the default configuration" % (err, ))
            return copy.deepcopy(_DEFAULT_CONFIG)
    try:
        with open(path, 'rt') as fh:
            config = json.load(fh)
    except (OSError, ValueError) as err:
        warnings.warn(
            "Encountered the error %r when trying to read configuration" % (err, ))
        config = copy.deepcopy(_DEFAULT_CONFIG)
    if "schema_version" not in config:
        config['schema_version'] = '1.0.0'
    return config


def save_config(config=None):
    """Save the configuration in `config` to disk in the
    configuration directory given by :func:`get_config_dir`.

    Parameters
    ----------
    config : dict, optional
        The configuration dictionary (the default is None, which will use the default, empty config)

    """
    if config is None:
        config = copy.deepcopy(_DEFAULT_CONFIG)
    confdir = get_config_dir()
    path = os.path.join(confdir, CONFIG_FILE_NAME)
    with open(path, 'wt') as fh:
        json.dump(config, fh)
