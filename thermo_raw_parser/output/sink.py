'''Output destination management.

An :class:`OutputSink` owns the single byte stream a writer writes to.
It resolves the output path from a :class:`~.ConversionConfig`, opens the
file on first use, optionally gzip-compresses everything written through it,
and uploads the finished file to an S3-compatible bucket when configured.
'''
import os
import logging

from thermo_raw_parser.errors import SinkWriteFailure
from thermo_raw_parser.data_source._compression import get_writer, GZIP_SUFFIX


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def resolve_output_path(config, extension=None):
    '''Determine where the spectrum output of ``config`` is written.

    An explicit output file is used as given, otherwise the file is named
    after the RAW file inside the output directory. The gzip suffix is
    appended when the output will be compressed.

    Parameters
    ----------
    config : :class:`~.ConversionConfig`
    extension : str, optional
        Overrides the output format's extension

    Returns
    -------
    str
    '''
    if config.output_file is not None:
        path = config.output_file
    else:
        if extension is None:
            extension = config.output_format.extension
        path = os.path.join(
            config.output_directory, config.raw_file_name_without_extension + extension)
    if config.gzip_output:
        path += GZIP_SUFFIX
    return path


def resolve_metadata_path(config):
    '''Determine where the metadata output of ``config`` is written.
    Metadata is never compressed.
    '''
    return os.path.join(
        config.metadata_directory,
        config.raw_file_name_without_extension + config.metadata_format.suffix)


class S3Uploader(object):
    '''Copies a finished local file to an S3-compatible bucket using
    :mod:`s3fs`.

    Parameters
    ----------
    settings : :class:`~.S3Settings`
    '''

    def __init__(self, settings):
        self.settings = settings
        self._filesystem = None

    @property
    def filesystem(self):
        if self._filesystem is None:
            from s3fs import S3FileSystem
            self._filesystem = S3FileSystem(
                key=self.settings.access_key_id,
                secret=self.settings.secret_access_key,
                client_kwargs={"endpoint_url": self.settings.url})
        return self._filesystem

    def remote_path(self, path):
        return "%s/%s" % (self.settings.bucket_name.strip("/"), os.path.basename(path))

    def upload(self, path):
        remote = self.remote_path(path)
        logger.info("Uploading %s to %s", path, remote)
        self.filesystem.put(path, remote)
        return remote


class OutputSink(object):
    '''A lazily opened, exactly-once closed output stream.

    At most one sink may be open at any time. Opening a second sink while
    another is open raises :class:`~.SinkWriteFailure`.

    Attributes
    ----------
    path : str
        The local path written to
    compress : bool
        Whether the stream is gzip compressed
    uploader : :class:`S3Uploader`
        Where to upload the file after it is closed, or :const:`None`
    '''

    _open_sink = None

    def __init__(self, path, compress=False, uploader=None):
        self.path = path
        self.compress = compress
        self.uploader = uploader
        self._file = None
        self._stream = None
        self.opened = False
        self.closed = False
        self.remote_path = None

    def __repr__(self):
        return "%s(%r, compress=%r)" % (self.__class__.__name__, self.path, self.compress)

    @classmethod
    def for_spectra(cls, config, extension=None):
        '''Create the sink for the spectrum output of ``config``'''
        uploader = S3Uploader(config.s3) if config.s3 is not None else None
        return cls(resolve_output_path(config, extension), config.gzip_output, uploader)

    @classmethod
    def for_metadata(cls, config):
        '''Create the sink for the metadata output of ``config``'''
        uploader = S3Uploader(config.s3) if config.s3 is not None else None
        return cls(resolve_metadata_path(config), False, uploader)

    @classmethod
    def currently_open(cls):
        return OutputSink._open_sink

    def open(self):
        '''Open the output file if it is not open yet and return the
        writable binary stream.

        Returns
        -------
        file-like
        '''
        if self._stream is not None:
            return self._stream
        if self.closed:
            raise SinkWriteFailure(self.path, "the sink has already been closed")
        current = OutputSink._open_sink
        if current is not None and current is not self:
            raise SinkWriteFailure(self.path, "another output sink is still open (%s)" % (current.path, ))
        logger.debug("Opening output file %s", self.path)
        try:
            self._file = open(self.path, 'wb')
        except OSError as err:
            raise SinkWriteFailure(self.path, err) from err
        if self.compress:
            self._stream = get_writer(self._file)
        else:
            self._stream = self._file
        self.opened = True
        OutputSink._open_sink = self
        return self._stream

    @property
    def stream(self):
        return self.open()

    def write(self, data):
        if isinstance(data, str):
            data = data.encode('utf-8')
        try:
            return self.open().write(data)
        except OSError as err:
            raise SinkWriteFailure(self.path, err) from err

    def close(self, upload=True):
        '''Flush and close the stream. Closing an already closed sink does
        nothing.

        Parameters
        ----------
        upload : bool
            Whether to upload the file if an uploader is configured. Failed
            conversions pass :const:`False`.
        '''
        if self.closed:
            return
        self.closed = True
        if OutputSink._open_sink is self:
            OutputSink._open_sink = None
        if self._stream is None:
            return
        try:
            try:
                if self._stream is not self._file:
                    self._stream.close()
            finally:
                self._file.close()
        except OSError as err:
            raise SinkWriteFailure(self.path, err) from err
        finally:
            self._stream = None
            self._file = None
        if upload and self.uploader is not None:
            try:
                self.remote_path = self.uploader.upload(self.path)
            except (OSError, ValueError) as err:
                raise SinkWriteFailure(self.path, "upload failed: %s" % (err, )) from err

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close(upload=exc_type is None)
