import unittest
import tempfile

import numpy as np

from thermo_raw_parser.config import SpectrumMode
from thermo_raw_parser.spectrum_mode import select_peaks, select_peaks_for

from thermo_raw_parser.test.common import ms1_scan, ms2_scan, make_config


class TestSelectPeaks(unittest.TestCase):

    def test_centroid_requested(self):
        scan = ms1_scan(1, 0.5)
        selection = select_peaks(scan, SpectrumMode.CENTROID)
        assert selection.is_centroid
        assert selection.peaks is scan.centroid_peaks

    def test_profile_requested(self):
        scan = ms1_scan(1, 0.5)
        selection = select_peaks(scan, SpectrumMode.PROFILE)
        assert not selection.is_centroid
        assert len(selection.mz) == 11

    def test_profile_requested_only_centroids_available(self):
        scan = ms1_scan(1, 0.5, mz=None, intensity=None)
        selection = select_peaks(scan, SpectrumMode.PROFILE)
        assert selection.is_centroid
        assert np.allclose(selection.mz, [400.3, 400.8, 498.005])

    def test_centroid_requested_only_profile_available(self):
        scan = ms1_scan(1, 0.5, centroid_mz=None, centroid_intensity=None)
        selection = select_peaks(scan, SpectrumMode.CENTROID)
        assert not selection.is_centroid
        assert selection.peaks is scan.peaks

    def test_no_peak_picking_forces_profile(self):
        scan = ms1_scan(1, 0.5)
        selection = select_peaks(scan, SpectrumMode.CENTROID, peak_picking=False)
        assert selection.mode == SpectrumMode.PROFILE
        assert selection.peaks is scan.peaks

    def test_no_peak_picking_without_profile(self):
        scan = ms1_scan(1, 0.5, mz=None, intensity=None)
        selection = select_peaks(scan, SpectrumMode.CENTROID, peak_picking=False)
        assert selection.is_centroid

    def test_raw_data_acquired_centroided(self):
        scan = ms2_scan(2, 0.51, centroid_mz=None, centroid_intensity=None)
        selection = select_peaks(scan, SpectrumMode.PROFILE)
        assert selection.is_centroid
        assert selection.peaks is scan.peaks

    def test_no_peaks(self):
        scan = ms1_scan(1, 0.5, mz=None, intensity=None, centroid_mz=None, centroid_intensity=None)
        assert select_peaks(scan, SpectrumMode.CENTROID) is None
        assert select_peaks(scan, SpectrumMode.PROFILE) is None

    def test_modes_per_ms_level(self):
        with tempfile.TemporaryDirectory() as directory:
            config = make_config(
                directory, output_format=0, ms1_mode=SpectrumMode.PROFILE, msn_mode=SpectrumMode.CENTROID)
        ms1 = select_peaks_for(ms1_scan(1, 0.5), config)
        ms2 = select_peaks_for(ms2_scan(2, 0.51), config)
        assert ms1.mode == SpectrumMode.PROFILE
        assert ms2.mode == SpectrumMode.CENTROID


if __name__ == '__main__':
    unittest.main()
