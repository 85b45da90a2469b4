import os
import unittest
import tempfile

import pytest

from thermo_raw_parser.config import OutputFormat, MetadataFormat
from thermo_raw_parser.errors import (
    SourceNotFound, SourceUnreadable, SourceInUseOrAcquiring, InstrumentFieldMissing)
from thermo_raw_parser.driver import ConversionDriver, DriverState, parse
from thermo_raw_parser.output import MGFSpectrumWriter, ParquetSpectrumWriter, OutputSink

from thermo_raw_parser.test.common import (
    make_run, make_config, make_raw_file, make_metadata, ms1_scan,
    SourceFactory, RecordingScanSource)


class TestConversionDriver(unittest.TestCase):

    def setUp(self):
        self.directory = tempfile.mkdtemp()
        self.raw_path = make_raw_file(self.directory)

    def driver(self, source, **kwargs):
        kwargs.setdefault("output_format", OutputFormat.MGF)
        config = make_config(self.directory, **kwargs)
        return ConversionDriver(config, SourceFactory(source))

    def test_run(self):
        source = make_run()
        driver = self.driver(source, metadata_format=MetadataFormat.JSON)
        assert driver.state == DriverState.Unopened
        driver.run()
        assert driver.state == DriverState.Done
        assert (driver.first_scan, driver.last_scan) == (1, 4)
        assert isinstance(driver.spectrum_writer, MGFSpectrumWriter)
        assert driver.spectrum_writer.spectra_written == 4
        assert os.path.exists(os.path.join(self.directory, "sample.mgf"))
        assert os.path.exists(os.path.join(self.directory, "sample-metadata.json"))
        assert source.closed
        assert OutputSink.currently_open() is None

    def test_metadata_only(self):
        driver = self.driver(make_run(), output_format=None, metadata_format=MetadataFormat.TXT)
        driver.run()
        assert driver.spectrum_writer is None
        assert sorted(os.listdir(self.directory)) == ["sample-metadata.txt", "sample.raw"]

    def test_dispatch(self):
        driver = self.driver(make_run(), output_format=OutputFormat.Parquet)
        driver.run()
        assert isinstance(driver.spectrum_writer, ParquetSpectrumWriter)

    def test_source_not_found(self):
        source = make_run()
        factory = SourceFactory(source)
        config = make_config(
            self.directory, raw_file_path=os.path.join(self.directory, "absent.raw"),
            output_format=OutputFormat.MGF)
        driver = ConversionDriver(config, factory)
        with pytest.raises(SourceNotFound):
            driver.run()
        assert driver.state == DriverState.Failed
        assert factory.paths == []

    def test_not_open(self):
        driver = self.driver(make_run(open_=False))
        with pytest.raises(SourceUnreadable):
            driver.run()
        assert driver.state == DriverState.Failed
        assert not os.path.exists(os.path.join(self.directory, "sample.mgf"))

    def test_decoder_error(self):
        driver = self.driver(make_run(error="Unsupported file revision"))
        with pytest.raises(SourceUnreadable) as excinfo:
            driver.run()
        assert "Unsupported file revision" in str(excinfo.value)
        assert driver.source.closed

    def test_in_acquisition(self):
        driver = self.driver(make_run(acquiring=True))
        with pytest.raises(SourceInUseOrAcquiring):
            driver.run()
        assert driver.state == DriverState.Failed

    def test_stepwise(self):
        driver = self.driver(make_run())
        driver.open()
        assert driver.state == DriverState.Opened
        driver.validate()
        assert driver.state == DriverState.Validated
        driver.prepare()
        assert driver.state == DriverState.Converting
        driver.convert()
        driver.close()

    def test_aborts_on_missing_field(self):
        source = RecordingScanSource(
            [ms1_scan(1, 0.5), ms1_scan(2, None), ms1_scan(3, 0.7)], metadata=make_metadata())
        driver = self.driver(source)
        with pytest.raises(InstrumentFieldMissing):
            driver.run()
        assert driver.state == DriverState.Failed
        assert 3 not in source.requested
        assert source.closed
        assert OutputSink.currently_open() is None

    def test_skips_missing_field(self):
        source = RecordingScanSource(
            [ms1_scan(1, 0.5), ms1_scan(2, None), ms1_scan(3, 0.7)], metadata=make_metadata())
        driver = self.driver(source, ignore_instrument_errors=True)
        driver.run()
        assert driver.state == DriverState.Done
        assert driver.spectrum_writer.skipped_scans == [2]


def test_parse():
    directory = tempfile.mkdtemp()
    make_raw_file(directory)
    config = make_config(directory, output_format=OutputFormat.IndexMzML, gzip=True)
    driver = parse(config, SourceFactory(make_run()))
    assert driver.state == DriverState.Done
    assert os.path.exists(os.path.join(directory, "sample.mzML"))
    assert not os.path.exists(os.path.join(directory, "sample.mzML.gzip"))
