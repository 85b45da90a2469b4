import unittest

import pytest

from thermo_raw_parser.data_source import PrecursorReaction, MemoryScanSource
from thermo_raw_parser.precursor import calculate_selected_ion_mz, get_precursor_intensity

from thermo_raw_parser.test.common import ms1_scan, ms2_scan, ready


class TestSelectedIonMz(unittest.TestCase):

    def test_narrow_window_accepts_nearby_monoisotopic(self):
        reaction = PrecursorReaction(500.0, isolation_width=1.0)
        assert calculate_selected_ion_mz(reaction, 498.0, 1.0) == 498.0

    def test_narrow_window_bounds(self):
        reaction = PrecursorReaction(500.0, isolation_width=2.0)
        assert calculate_selected_ion_mz(reaction, 497.0, 2.0) == 497.0
        assert calculate_selected_ion_mz(reaction, 502.5, 2.0) == 502.5
        assert calculate_selected_ion_mz(reaction, 496.99, 2.0) == 500.0
        assert calculate_selected_ion_mz(reaction, 502.51, 2.0) == 500.0

    def test_wide_window_uses_isolation_width(self):
        reaction = PrecursorReaction(500.0, isolation_width=10.0)
        assert calculate_selected_ion_mz(reaction, 495.5, 10.0) == 495.5
        assert calculate_selected_ion_mz(reaction, 505.0, 10.0) == 505.0
        assert calculate_selected_ion_mz(reaction, 494.9, 10.0) == 500.0

    def test_missing_isolation_width_falls_back_to_reaction(self):
        reaction = PrecursorReaction(500.0, isolation_width=12.0)
        assert calculate_selected_ion_mz(reaction, 494.5, None) == 494.5
        assert calculate_selected_ion_mz(reaction, 494.5, 0.0) == 494.5
        narrow = PrecursorReaction(500.0, isolation_width=1.0)
        assert calculate_selected_ion_mz(narrow, 494.5, None) == 500.0

    def test_missing_or_equal_monoisotopic(self):
        reaction = PrecursorReaction(500.0, isolation_width=1.0)
        assert calculate_selected_ion_mz(reaction) == 500.0
        assert calculate_selected_ion_mz(reaction, 0.0, 1.0) == 500.0
        assert calculate_selected_ion_mz(reaction, 500.00005, 1.0) == 500.0

    def test_repeatable(self):
        reaction = PrecursorReaction(733.41, isolation_width=1.6)
        first = calculate_selected_ion_mz(reaction, 732.91, 1.6)
        assert first == calculate_selected_ion_mz(reaction, 732.91, 1.6)


@pytest.mark.parametrize("isolation_width,monoisotopic_mz", [
    (0.7, 496.5), (2.0, 503.0), (4.0, 490.0), (4.0, 510.0),
])
def test_narrow_window_rejects_distant_monoisotopic(isolation_width, monoisotopic_mz):
    reaction = PrecursorReaction(500.0, isolation_width=isolation_width)
    assert calculate_selected_ion_mz(reaction, monoisotopic_mz, isolation_width) == 500.0


@pytest.mark.parametrize("isolation_width,monoisotopic_mz", [
    (4.5, 497.8), (6.0, 503.0), (20.0, 490.0),
])
def test_wide_window_accepts_monoisotopic_inside(isolation_width, monoisotopic_mz):
    reaction = PrecursorReaction(500.0, isolation_width=isolation_width)
    assert calculate_selected_ion_mz(reaction, monoisotopic_mz, isolation_width) == monoisotopic_mz


class TestPrecursorIntensity(unittest.TestCase):

    def test_first_centroid_within_tolerance(self):
        scan = ms1_scan(
            1, 0.5, centroid_mz=[497.995, 498.002, 498.5],
            centroid_intensity=[10.0, 20.0, 30.0])
        source = ready(MemoryScanSource([scan]))
        assert get_precursor_intensity(source, 1, 498.0, 0.51, 1.0) == 10.0

    def test_no_matching_centroid(self):
        source = ready(MemoryScanSource([ms1_scan(1, 0.5)]))
        assert get_precursor_intensity(source, 1, 612.0, 0.51, 1.0) is None
        assert source.requested_traces == []

    def test_without_centroid_stream_extracts_trace(self):
        scan = ms1_scan(1, 0.5, centroid_mz=None, centroid_intensity=None)
        source = ready(MemoryScanSource([scan, ms2_scan(2, 0.51)]))
        assert get_precursor_intensity(source, 1, 400.3, 0.51, 2.0) is None
        assert len(source.requested_traces) == 1
        assert source.requested_traces[0] == pytest.approx((399.3, 401.3, 0.5, 0.5))
