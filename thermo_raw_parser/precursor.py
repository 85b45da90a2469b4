'''Selected ion m/z correction and precursor intensity lookup for MSn scans.

The precursor mass recorded in a scan's reaction is the m/z the instrument
targeted, which is not always the monoisotopic peak. When the trailer
provides a monoisotopic m/z that is plausibly within the isolation window it
is used instead, mirroring the correction ProteoWizard applies to Thermo data.
'''
import logging

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


ZERO_DELTA = 0.0001
PRECURSOR_MZ_DELTA = 0.0001
DEFAULT_ISOLATION_WINDOW_LOWER_OFFSET = 1.5
DEFAULT_ISOLATION_WINDOW_UPPER_OFFSET = 2.5
PRECURSOR_INTENSITY_TOLERANCE = 0.01


def calculate_selected_ion_mz(reaction, monoisotopic_mz=None, isolation_width=None):
    """Compute the selected ion m/z of a precursor.

    Parameters
    ----------
    reaction : :class:`~.PrecursorReaction`
        The scan's precursor reaction
    monoisotopic_mz : float, optional
        The monoisotopic m/z reported in the trailer
    isolation_width : float, optional
        The full isolation width reported in the trailer. When missing or
        zero, the reaction's isolation width is used.

    Returns
    -------
    float
    """
    precursor_mass = reaction.precursor_mass
    selected_ion_mz = precursor_mass

    if isolation_width is None or isolation_width < ZERO_DELTA:
        isolation_width = reaction.isolation_width

    isolation_width = isolation_width / 2.0

    if monoisotopic_mz is not None and monoisotopic_mz > ZERO_DELTA and \
            abs(precursor_mass - monoisotopic_mz) > PRECURSOR_MZ_DELTA:
        selected_ion_mz = monoisotopic_mz
        if isolation_width <= 2.0:
            lower = precursor_mass - DEFAULT_ISOLATION_WINDOW_LOWER_OFFSET * 2
            upper = precursor_mass + DEFAULT_ISOLATION_WINDOW_UPPER_OFFSET
        else:
            lower = precursor_mass - isolation_width
            upper = precursor_mass + isolation_width
        if selected_ion_mz < lower or selected_ion_mz > upper:
            selected_ion_mz = precursor_mass

    return selected_ion_mz


def get_precursor_intensity(source, precursor_scan_number, precursor_mass, retention_time=None,
                            isolation_width=None):
    """Estimate the intensity of the precursor ion in its precursor scan.

    If the precursor scan has a centroid stream, the intensity of the
    first centroid within :const:`PRECURSOR_INTENSITY_TOLERANCE` of
    ``precursor_mass`` is returned. Otherwise a mass-range chromatogram
    is extracted around the precursor at the precursor scan's retention
    time, but no intensity is derived from it.

    Parameters
    ----------
    source : :class:`~.ScanSource`
        The source to read the precursor scan from
    precursor_scan_number : int
        The scan the precursor was selected from
    precursor_mass : float
        The precursor's m/z
    retention_time : float, optional
        The product scan's retention time
    isolation_width : float, optional
        The full isolation width

    Returns
    -------
    float or :const:`None`
    """
    scan = source.get_scan(precursor_scan_number)
    if scan.has_centroid_stream:
        centroids = scan.centroid_peaks
        for i in range(len(centroids)):
            if abs(precursor_mass - centroids.mz[i]) < PRECURSOR_INTENSITY_TOLERANCE:
                return float(centroids.intensity[i])
        return None

    # TODO: derive an intensity from the extracted trace once its intended
    # aggregation (apex or summed signal) is settled.
    half_width = (isolation_width or 0.0) / 2.0
    rt = source.retention_time_for_scan(precursor_scan_number)
    source.get_chromatogram_trace(
        precursor_mass - half_width, precursor_mass + half_width, rt, rt)
    logger.debug(
        "No centroid stream for precursor scan %d, precursor intensity of %f unavailable",
        precursor_scan_number, precursor_mass)
    return None
