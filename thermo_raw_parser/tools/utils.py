import os
import sys
import warnings
import logging

import click

from thermo_raw_parser.config import OutputFormat, MetadataFormat, SpectrumMode


def _describe_codes(enum_type):
    return ', '.join("%d for %s" % (member.value, member.name) for member in enum_type)


class EnumCodeParamType(click.ParamType):
    '''Accepts the integer code of an :class:`enum.IntEnum` member'''

    def __init__(self, enum_type, name=None):
        self.enum_type = enum_type
        self.name = name or enum_type.__name__

    def convert(self, value, param, ctx):
        if isinstance(value, self.enum_type):
            return value
        try:
            return self.enum_type(int(value))
        except (TypeError, ValueError):
            self.fail("%r is not a valid %s code (%s)" % (
                value, self.name, _describe_codes(self.enum_type)), param, ctx)

    def get_metavar(self, param, ctx=None):
        return '[%s]' % '|'.join(str(member.value) for member in self.enum_type)


OUTPUT_FORMAT = EnumCodeParamType(OutputFormat, "output format")
METADATA_FORMAT = EnumCodeParamType(MetadataFormat, "metadata format")
SPECTRUM_MODE = EnumCodeParamType(SpectrumMode, "spectrum mode")


def register_debug_hook():
    import traceback

    def info(type, value, tb):
        if hasattr(sys, 'ps1') or not sys.stderr.isatty():
            sys.__excepthook__(type, value, tb)
        else:
            import pdb as pdb_api
            traceback.print_exception(type, value, tb)
            pdb_api.post_mortem(tb)

    sys.excepthook = info
    logging.basicConfig(level="DEBUG")


def is_debug_mode():
    env_val = os.environ.get('THERMO_RAW_PARSER_DEBUG', '').lower()
    if not env_val:
        return False
    if env_val in ('0', 'no', 'false', 'off'):
        return False
    elif env_val in ('1', 'yes', 'true', 'on'):
        return True
    else:
        warnings.warn("THERMO_RAW_PARSER_DEBUG value %r was not recognized. Enabling debug mode" % (env_val, ))
        return True
