import unittest

import pytest

from thermo_raw_parser.errors import InstrumentFieldMissing
from thermo_raw_parser.data_source import MemoryScanSource, PeakList, Device

from thermo_raw_parser.test.common import make_run, ms1_scan, ms2_scan, ready, UnreadableScanSource


class TestMemoryScanSource(unittest.TestCase):

    def test_requires_instrument_selection(self):
        source = make_run()
        with pytest.raises(RuntimeError):
            source.get_scan(1)
        source.select_instrument(Device.MS, 1)
        assert source.get_scan(1).scan_number == 1
        with pytest.raises(ValueError):
            source.select_instrument(Device.UV, 1)

    def test_scan_range(self):
        source = ready(make_run())
        assert source.scan_range() == (1, 4)
        assert source.ms_levels() == {1, 2}
        with pytest.raises(InstrumentFieldMissing):
            source.get_scan(99)

    def test_duplicate_scan_numbers(self):
        with pytest.raises(ValueError):
            MemoryScanSource([ms1_scan(1, 0.1), ms1_scan(1, 0.2)])

    def test_context_manager(self):
        with make_run() as source:
            assert source.is_open()
        assert not source.is_open()
        assert source.closed

    def test_find_precursor_scan(self):
        source = ready(make_run())
        assert source.find_precursor_scan_number(source.get_scan(2)) == 1
        assert source.find_precursor_scan_number(source.get_scan(3)) == 1
        orphan = ready(MemoryScanSource([ms2_scan(5, 0.1)]))
        assert orphan.find_precursor_scan_number(orphan.get_scan(5)) is None

    def test_find_precursor_scan_past_unreadable_scan(self):
        source = ready(UnreadableScanSource(
            [ms1_scan(1, 0.5), ms1_scan(2, 0.6), ms2_scan(3, 0.61)], unreadable=[2]))
        assert source.find_precursor_scan_number(source.get_scan(3)) == 1

    def test_chromatogram_trace(self):
        source = ready(make_run())
        trace = source.get_chromatogram_trace(498.0, 498.01, 0.0, 1.0)
        assert list(trace.scan_numbers) == [1, 4]
        assert list(trace.intensities) == [1500.0, 1500.0]


class TestScanRecord(unittest.TestCase):

    def test_trailer_values(self):
        scan = ms2_scan(2, 0.51, trailer={"Charge State": " ", "Master Scan Number": 0})
        assert scan.charge == 0
        assert scan.master_scan_number is None
        assert scan.monoisotopic_mz == 498.0
        assert scan.isolation_width == 1.0
        assert scan.injection_time == 35.0
        assert scan.id == "controllerType=0 controllerNumber=1 scan=2"

    def test_validate(self):
        assert ms2_scan(2, 0.51).validate()
        missing_reaction = ms2_scan(2, 0.51)
        missing_reaction.reaction = None
        with pytest.raises(InstrumentFieldMissing) as excinfo:
            missing_reaction.validate()
        assert excinfo.value.field_name == "precursor reaction"
        assert excinfo.value.scan_number == 2
        with pytest.raises(InstrumentFieldMissing):
            ms1_scan(1, 0.5, mz=None, intensity=None, centroid_mz=None, centroid_intensity=None).validate()


def test_peak_list():
    peaks = PeakList([100.0, 200.0], [1, 2])
    assert peaks.intensity.dtype.kind == 'f'
    assert peaks == PeakList([100.0, 200.0], [1.0, 2.0])
    with pytest.raises(ValueError):
        PeakList([1.0], [1.0, 2.0])
