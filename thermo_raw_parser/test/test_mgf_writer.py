import os
import gzip
import unittest
import tempfile

import numpy as np
import pytest

from pyteomics import mgf

from thermo_raw_parser.config import OutputFormat, SpectrumMode
from thermo_raw_parser.errors import InstrumentFieldMissing
from thermo_raw_parser.data_source import MemoryScanSource
from thermo_raw_parser.output import MGFSpectrumWriter

from thermo_raw_parser.test.common import (
    make_run, make_config, ms1_scan, ms2_scan, ready, UnreadableScanSource)


class TestMGFSpectrumWriter(unittest.TestCase):

    def setUp(self):
        self.directory = tempfile.mkdtemp()

    def write(self, source=None, **kwargs):
        if source is None:
            source = make_run()
        kwargs.setdefault("output_format", OutputFormat.MGF)
        config = make_config(self.directory, **kwargs)
        source = ready(source)
        writer = MGFSpectrumWriter(config)
        writer.write(source, source.first_scan_number(), source.last_scan_number())
        return writer

    def read(self, path):
        with open(path) as fh:
            return list(mgf.read(fh, convert_arrays=1))

    def test_roundtrip(self):
        source = make_run()
        writer = self.write(source)
        assert writer.path == os.path.join(self.directory, "sample.mgf")
        spectra = self.read(writer.path)
        assert len(spectra) == 4
        for spectrum, scan in zip(spectra, ready(source)):
            params = spectrum['params']
            assert params['title'] == "controllerType=0 controllerNumber=1 scan=%d" % scan.scan_number
            assert int(params['scans']) == scan.scan_number
            assert abs(float(params['rtinseconds']) - scan.retention_time * 60) < 1e-6
            assert np.allclose(spectrum['m/z array'], scan.centroid_peaks.mz, atol=1e-6)
            assert np.allclose(spectrum['intensity array'], scan.centroid_peaks.intensity, atol=1e-6)

    def test_precursor_fields(self):
        spectra = self.read(self.write().path)
        product = spectra[1]['params']
        assert product['pepmass'][0] == pytest.approx(498.0)
        assert product['pepmass'][1] is None
        assert int(product['charge'][0]) == 2
        assert 'pepmass' not in spectra[0]['params'] or spectra[0]['params']['pepmass'][0] is None
        third = spectra[2]['params']
        assert third['pepmass'][0] == pytest.approx(649.83)
        assert int(third['charge'][0]) == 3

    def test_block_layout(self):
        writer = self.write(MemoryScanSource([ms2_scan(7, 1.25, precursor_mass=445.12, monoisotopic_mz=None)]))
        with open(writer.path) as fh:
            lines = fh.read().splitlines()
        assert lines == [
            "BEGIN IONS",
            "TITLE=controllerType=0 controllerNumber=1 scan=7",
            "SCANS=7",
            "RTINSECONDS=75.0",
            "PEPMASS=445.12",
            "CHARGE=2+",
            "175.119 120.0",
            "304.162 340.5",
            "433.204 88.25",
            "END IONS",
            "",
        ]

    def test_negative_polarity_and_unknown_charge(self):
        scans = [
            ms2_scan(1, 0.1, charge=0, polarity=-1),
            ms2_scan(2, 0.2, charge=3, polarity=-1),
        ]
        writer = self.write(MemoryScanSource(scans))
        with open(writer.path) as fh:
            content = fh.read()
        assert "CHARGE=3-" in content
        assert content.count("CHARGE=") == 1

    def test_precursor_intensity(self):
        spectra = self.read(self.write(include_precursor_intensity=True).path)
        assert spectra[1]['params']['pepmass'] == pytest.approx((498.0, 1500.0))

    def test_profile_mode(self):
        spectra = self.read(self.write(ms1_mode=SpectrumMode.PROFILE).path)
        assert len(spectra[0]['m/z array']) == 11

    def test_gzip(self):
        writer = self.write(gzip=True)
        assert writer.path.endswith(".mgf.gzip")
        with gzip.open(writer.path, 'rt') as fh:
            spectra = list(mgf.read(fh, use_index=False))
        assert len(spectra) == 4

    def test_only_centroid_available(self):
        source = MemoryScanSource([ms1_scan(1, 0.5, mz=None, intensity=None)])
        writer = self.write(source, ms1_mode=SpectrumMode.PROFILE)
        with open(writer.path) as fh:
            assert fh.read().count("BEGIN IONS") == 1

    def test_missing_field_is_fatal(self):
        source = MemoryScanSource([ms1_scan(1, 0.5), ms1_scan(2, None), ms1_scan(3, 0.7)])
        with pytest.raises(InstrumentFieldMissing):
            self.write(source)

    def test_missing_field_is_skipped(self):
        source = MemoryScanSource([ms1_scan(1, 0.5), ms1_scan(2, None), ms1_scan(3, 0.7)])
        writer = self.write(source, ignore_instrument_errors=True)
        assert writer.skipped_scans == [2]
        assert writer.spectra_written == 2
        assert [int(s['params']['scans']) for s in self.read(writer.path)] == [1, 3]

    def test_unreadable_scan_before_product_scan(self):
        source = UnreadableScanSource(
            [ms1_scan(1, 0.5), ms1_scan(2, 0.6), ms2_scan(3, 0.61)], unreadable=[2])
        writer = self.write(source, ignore_instrument_errors=True, include_precursor_intensity=True)
        assert writer.skipped_scans == [2]
        assert writer.spectra_written == 2
        spectra = self.read(writer.path)
        assert [int(s['params']['scans']) for s in spectra] == [1, 3]
        assert spectra[1]['params']['pepmass'] == pytest.approx((498.0, 1500.0))

    def test_unreadable_precursor_scan_drops_intensity(self):
        source = UnreadableScanSource(
            [ms1_scan(1, 0.5), ms2_scan(2, 0.51, master_scan=1)], unreadable=[1])
        writer = self.write(source, ignore_instrument_errors=True, include_precursor_intensity=True)
        assert writer.skipped_scans == [1]
        spectra = self.read(writer.path)
        assert len(spectra) == 1
        assert spectra[0]['params']['pepmass'][0] == pytest.approx(498.0)
        assert spectra[0]['params']['pepmass'][1] is None

    def test_gap_in_scan_numbers_is_skipped(self):
        source = ready(MemoryScanSource([ms1_scan(1, 0.5), ms1_scan(3, 0.7)]))
        config = make_config(self.directory, output_format=OutputFormat.MGF, ignore_instrument_errors=True)
        writer = MGFSpectrumWriter(config)
        writer.write(source, 1, 3)
        assert writer.skipped_scans == [2]
        assert [int(s['params']['scans']) for s in self.read(writer.path)] == [1, 3]

    def test_global_parameter(self):
        config = make_config(self.directory, output_format=OutputFormat.MGF)
        writer = MGFSpectrumWriter(config)
        writer.add_global_parameter("com", "sample run")
        writer.write(ready(make_run()), 1, 1)
        with open(writer.path) as fh:
            assert fh.readline() == "COM=sample run\n"
        with pytest.raises(ValueError):
            writer.add_global_parameter("com", "too late")


if __name__ == '__main__':
    unittest.main()
