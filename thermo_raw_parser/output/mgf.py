"""Code for writing Mascot Generic Format files.

Every scan in the range is written as one ``BEGIN IONS``/``END IONS``
block. MSn blocks carry ``PEPMASS`` and, when the charge is known,
``CHARGE``.
"""

from thermo_raw_parser.config import OutputFormat

from .common import SpectrumWriter


def _format_parameter(key, value):
    return "{0}={1}\n".format(str(key).upper(), str(value))


def _format_float(value):
    return repr(float(value))


class MGFSpectrumWriter(SpectrumWriter):
    """A MASCOT Generic Format writer.

    Global parameters may be added with :meth:`add_global_parameter` before
    the first spectrum is written.

    Attributes
    ----------
    started: bool
        Whether spectra have been written out yet or not.
    """

    format = OutputFormat.MGF
    file_extension = OutputFormat.MGF.extension

    def __init__(self, config, sink=None):
        super(MGFSpectrumWriter, self).__init__(config, sink)
        self.started = False

    def add_global_parameter(self, name, value):
        """Add a global parameter at the beginning of the file, before scans
        are written.

        Parameters
        ----------
        name : str
            The parameter name. Will be made upper-case.
        value : object
            The parameter's value. Will be converted to a string.

        Raises
        ------
        ValueError:
            If spectra have already been written
        """
        if self.started:
            raise ValueError("Cannot add global parameter if scan data has begun being written")
        self.add_parameter(name, value)

    def add_parameter(self, name, value):
        self.sink.write(_format_parameter(name, value))

    def write_header(self, record):
        self.add_parameter("title", record.title)
        self.add_parameter("scans", record.scan_number)
        self.add_parameter("rtinseconds", _format_float(record.retention_time_seconds))
        precursor = record.precursor
        if precursor is not None:
            if precursor.intensity is not None:
                self.add_parameter("pepmass", "%s %s" % (
                    _format_float(precursor.mz), _format_float(precursor.intensity)))
            else:
                self.add_parameter("pepmass", _format_float(precursor.mz))
            if precursor.charge:
                polarity = record.polarity if record.polarity is not None else 1
                self.add_parameter("charge", "%d%s" % (abs(precursor.charge), "+" if polarity > 0 else '-'))

    def write_vectors(self, record):
        mz_array = record.peaks.mz
        intensity_array = record.peaks.intensity
        lines = []
        for i in range(len(mz_array)):
            lines.append("%s %s\n" % (_format_float(mz_array[i]), _format_float(intensity_array[i])))
        self.sink.write(''.join(lines))

    def write_spectrum(self, record):
        self.started = True
        self.sink.write(b'BEGIN IONS\n')
        self.write_header(record)
        self.write_vectors(record)
        self.sink.write(b'END IONS\n\n')
