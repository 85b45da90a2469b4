'''Command line tools for :mod:`thermo_raw_parser`.'''
