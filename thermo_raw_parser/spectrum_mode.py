'''Decide whether each scan is written as profile or centroid peaks.
'''
from collections import namedtuple

from thermo_raw_parser.config import SpectrumMode


class PeakSelection(namedtuple("PeakSelection", ['mode', 'peaks'])):
    '''The peak representation chosen for a scan.

    Attributes
    ----------
    mode: :class:`~.SpectrumMode`
        How :attr:`peaks` should be described in the output
    peaks: :class:`~.PeakList`
        The peaks to write
    '''

    @property
    def is_centroid(self):
        return self.mode == SpectrumMode.CENTROID

    @property
    def mz(self):
        return self.peaks.mz

    @property
    def intensity(self):
        return self.peaks.intensity


def _raw_selection(scan):
    # data acquired centroided is centroid data regardless of the stream it came from
    mode = SpectrumMode.CENTROID if scan.is_centroided else SpectrumMode.PROFILE
    return PeakSelection(mode, scan.peaks)


def select_peaks(scan, requested_mode, peak_picking=True):
    '''Choose the peak representation for ``scan``.

    CENTROID uses the vendor centroid stream. PROFILE uses the raw signal.
    If the requested representation is absent for this scan, whichever
    one the scan does provide is used. Disabling peak picking always
    requests PROFILE.

    Parameters
    ----------
    scan : :class:`~.ScanRecord`
        The scan to choose peaks for
    requested_mode : :class:`~.SpectrumMode`
        The configured mode for this scan's MS level
    peak_picking : bool
        Whether vendor centroids may be used

    Returns
    -------
    :class:`PeakSelection` or :const:`None`:
        :const:`None` only when the scan has no peak data at all
    '''
    if not peak_picking:
        requested_mode = SpectrumMode.PROFILE
    if requested_mode == SpectrumMode.CENTROID:
        if scan.centroid_peaks is not None:
            return PeakSelection(SpectrumMode.CENTROID, scan.centroid_peaks)
        if scan.peaks is not None:
            return _raw_selection(scan)
    else:
        if scan.peaks is not None:
            return _raw_selection(scan)
        if scan.centroid_peaks is not None:
            return PeakSelection(SpectrumMode.CENTROID, scan.centroid_peaks)
    return None


def select_peaks_for(scan, config):
    '''Choose the peak representation for ``scan`` using the modes in a
    :class:`~.ConversionConfig`.
    '''
    return select_peaks(scan, config.mode_for_ms_level(scan.ms_level), config.peak_picking)
