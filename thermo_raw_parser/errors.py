'''Exception types raised while validating a conversion, reading from
a :class:`~.ScanSource`, or writing to an :class:`~.OutputSink`.

All of them derive from :class:`ThermoRawParserError`, so a caller can
catch a single type to report any failed conversion.
'''


class ThermoRawParserError(Exception):
    '''Base class for all errors raised by :mod:`thermo_raw_parser`'''


class SourceNotFound(ThermoRawParserError, OSError):
    '''The RAW file does not exist at the given location'''

    def __init__(self, path):
        self.path = path
        super(SourceNotFound, self).__init__(
            "The file doesn't exist in the specified location - %s" % (path, ))


class SourceUnreadable(ThermoRawParserError):
    '''The RAW file could not be opened, or the decoder reported
    an error for it.

    Attributes
    ----------
    path: str
        The path to the RAW file
    detail: str
        The decoder's description of the error, if any
    '''

    def __init__(self, path, detail=None):
        self.path = path
        self.detail = detail
        if detail:
            message = "Error opening (%s) - %s" % (detail, path)
        else:
            message = "Unable to access the RAW file - %s" % (path, )
        super(SourceUnreadable, self).__init__(message)


class SourceInUseOrAcquiring(ThermoRawParserError):
    '''The RAW file is still being written by the instrument'''

    def __init__(self, path):
        self.path = path
        super(SourceInUseOrAcquiring, self).__init__(
            "RAW file still being acquired - %s" % (path, ))


class InvalidConfiguration(ThermoRawParserError, ValueError):
    '''The requested conversion is missing a required setting or
    combines settings that conflict.
    '''


class InstrumentFieldMissing(ThermoRawParserError):
    '''A value the instrument should have recorded is absent or unusable.

    Attributes
    ----------
    field_name: str
        The name of the missing field
    scan_number: int or None
        The scan the field belongs to, or :const:`None` for run-level fields
    '''

    def __init__(self, field_name, scan_number=None, detail=None):
        self.field_name = field_name
        self.scan_number = scan_number
        self.detail = detail
        if scan_number is not None:
            message = "Missing instrument field %r for scan %d" % (field_name, scan_number)
        else:
            message = "Missing instrument field %r" % (field_name, )
        if detail:
            message = "%s: %s" % (message, detail)
        super(InstrumentFieldMissing, self).__init__(message)


class SinkWriteFailure(ThermoRawParserError, IOError):
    '''Writing to, closing, or uploading the output failed'''

    def __init__(self, path, detail):
        self.path = path
        self.detail = detail
        super(SinkWriteFailure, self).__init__(
            "Failed to write output %s: %s" % (path, detail))
