import os

import numpy as np

from thermo_raw_parser.config import ConversionConfig
from thermo_raw_parser.errors import InstrumentFieldMissing
from thermo_raw_parser.data_source import MemoryScanSource, InstrumentMetadata, make_scan


RAW_NAME = "sample.raw"

MS1_FILTER = "FTMS + p NSI Full ms [350.0000-1800.0000]"
MS2_FILTER = "ITMS + c NSI r d Full ms2 500.00@cid35.00 [135.0000-1510.0000]"


def make_metadata(**kwargs):
    values = dict(
        name="Orbitrap Fusion Lumos", model="Orbitrap Fusion Lumos",
        serial_number="FSN20145", software_version="3.1.2412.17",
        file_revision=66, creation_date="2020-01-14 10:38:02",
        sample_vial="1:A,3", sample_id="QC-01",
        time_range=(0.0, 1.0), mass_range=(135.0, 1800.0))
    values.update(kwargs)
    return InstrumentMetadata(**values)


def ms1_scan(scan_number, retention_time, **kwargs):
    values = dict(
        ms_level=1,
        mz=np.linspace(400.0, 401.0, 11),
        intensity=np.array([0, 10, 50, 200, 50, 10, 0, 5, 25, 5, 0], dtype=float),
        centroid_mz=[400.3, 400.8, 498.005],
        centroid_intensity=[200.0, 25.0, 1500.0],
        filter_string=MS1_FILTER,
        scan_window=(350.0, 1800.0),
        trailer={"Ion Injection Time (ms)": 12.5})
    values.update(kwargs)
    return make_scan(scan_number, retention_time, **values)


def ms2_scan(scan_number, retention_time, precursor_mass=500.0, monoisotopic_mz=498.0,
             charge=2, master_scan=None, **kwargs):
    trailer = {
        "Monoisotopic M/Z": monoisotopic_mz,
        "Charge State": charge,
        "MS2 Isolation Width": 1.0,
        "Ion Injection Time (ms)": 35.0,
    }
    if master_scan is not None:
        trailer["Master Scan Number"] = master_scan
    trailer.update(kwargs.pop("trailer", {}))
    values = dict(
        ms_level=2,
        centroid_mz=[175.119, 304.162, 433.204],
        centroid_intensity=[120.0, 340.5, 88.25],
        is_centroided=True,
        mz=[175.119, 304.162, 433.204],
        intensity=[120.0, 340.5, 88.25],
        isolation_width=1.0, collision_energy=35.0, activation_type="CID",
        filter_string=MS2_FILTER,
        scan_window=(135.0, 1510.0))
    values.update(kwargs)
    return make_scan(
        scan_number, retention_time, precursor_mass=precursor_mass,
        trailer=trailer, **values)


def make_run(metadata=None, **kwargs):
    '''A small run: one survey scan followed by two product scans and a
    second survey scan.
    '''
    scans = [
        ms1_scan(1, 0.5),
        ms2_scan(2, 0.51, master_scan=1),
        ms2_scan(3, 0.52, precursor_mass=650.33, monoisotopic_mz=649.83, charge=3),
        ms1_scan(4, 0.6),
    ]
    if metadata is None:
        metadata = make_metadata()
    return MemoryScanSource(scans, metadata=metadata, **kwargs)


def ready(source):
    '''Select the mass spectrometer the way the driver does'''
    source.select_instrument(0, 1)
    return source


def make_raw_file(directory, name=RAW_NAME):
    path = os.path.join(directory, name)
    with open(path, 'wb') as fh:
        fh.write(b"\x01\xa1F\x00i\x00n\x00n\x00i\x00g\x00a\x00n\x00")
    return path


def make_config(directory, **kwargs):
    kwargs.setdefault("raw_file_path", os.path.join(directory, RAW_NAME))
    kwargs.setdefault("output_directory", directory)
    return ConversionConfig(**kwargs)


class SourceFactory(object):
    '''Hands out a prepared source in place of opening a RAW file'''

    def __init__(self, source):
        self.source = source
        self.paths = []

    def __call__(self, path):
        self.paths.append(path)
        if self.source.source_file is None:
            self.source.source_file = path
        return self.source


class RecordingScanSource(MemoryScanSource):
    '''Remembers every scan number requested from it'''

    def __init__(self, *args, **kwargs):
        super(RecordingScanSource, self).__init__(*args, **kwargs)
        self.requested = []

    def get_scan(self, scan_number):
        self.requested.append(scan_number)
        return super(RecordingScanSource, self).get_scan(scan_number)


class UnreadableScanSource(MemoryScanSource):
    '''Fails to decode the header of the scans listed in ``unreadable``'''

    def __init__(self, *args, **kwargs):
        self.unreadable = set(kwargs.pop("unreadable", ()))
        super(UnreadableScanSource, self).__init__(*args, **kwargs)

    def get_scan(self, scan_number):
        if scan_number in self.unreadable:
            raise InstrumentFieldMissing("scan header", scan_number)
        return super(UnreadableScanSource, self).get_scan(scan_number)
