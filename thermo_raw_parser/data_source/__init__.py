'''Sources of scans. :class:`ScanSource` is the contract every RAW file
decoder satisfies; :class:`MemoryScanSource` holds scans built in memory
and :class:`~.ThermoRawFileSource` reads them through the vendor library.
'''
from .common import (
    ScanSource, ScanRecord, PeakList, PrecursorReaction,
    InstrumentMetadata, ChromatogramTrace, Device)

from .memory import MemoryScanSource, make_scan

from .activation import dissociation_method, DissociationMethod

from ._thermo_helper import FilterString, make_id, parse_id


__all__ = [
    "ScanSource", "ScanRecord", "PeakList", "PrecursorReaction",
    "InstrumentMetadata", "ChromatogramTrace", "Device",
    "MemoryScanSource", "make_scan",
    "dissociation_method", "DissociationMethod",
    "FilterString", "make_id", "parse_id",
]
