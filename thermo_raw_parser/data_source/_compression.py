'''Gzip wrapping for output streams.
'''

import io
import gzip

GzipFile = gzip.GzipFile

GZIP_MAGIC = b'\037\213'
GZIP_SUFFIX = ".gzip"


def is_gzipped(f):
    """Whether the file at ``f`` begins with the gzip magic number.

    Parameters
    ----------
    f : file-like or path-like

    Returns
    -------
    bool
    """
    if isinstance(f, str):
        with io.open(f, 'rb') as fh:
            return is_gzipped(fh)
    position = f.tell()
    f.seek(0)
    header = f.read(len(GZIP_MAGIC))
    f.seek(position)
    return header == GZIP_MAGIC


def get_writer(fileobj):
    '''Wrap a binary file object so that everything written to it is gzip
    compressed. Closing the wrapper does not close ``fileobj``.
    '''
    return GzipFile(fileobj=fileobj, mode='wb')
