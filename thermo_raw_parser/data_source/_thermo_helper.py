import re


analyzer_pat = re.compile(r"(?P<mass_analyzer_type>ITMS|TQMS|SQMS|TOFMS|FTMS|SECTOR|ASTMS)")
polarity_pat = re.compile(r"(?P<polarity>[\+\-])")
ionization_pat = re.compile(r"(?P<ionization_type>EI|CI|FAB|APCI|ESI|NSI|TSP|FD|MALDI|GD)")
ms_level_pat = re.compile(r" ms(?P<level>\d*) ")

activation_pat = re.compile(
    r"""(?:(?P<isolation_mz>\d+\.\d*)@
        (?P<activation_type>[a-z]+)
        (?P<activation_energy>\d*\.?\d*))""", re.VERBOSE)
scan_window_pat = re.compile(
    r"""
    \[(?P<scan_start>[0-9\.]+)-(?P<scan_end>[0-9\.]+)\]
    """, re.VERBOSE)

# The values are PSI-MS controlled vocabulary term names
analyzer_map = {
    "FTMS": "orbitrap",
    "ASTMS": "orbitrap",
    "ITMS": "radial ejection linear ion trap",
    "SQMS": "quadrupole",
    "TQMS": "quadrupole",
    "TOFMS": "time-of-flight",
    "SECTOR": "magnetic sector",
}


ionization_map = {
    "EI": "electron ionization",
    "CI": "chemical ionization",
    "FAB": "fast atom bombardment ionization",
    "ESI": "electrospray ionization",
    "NSI": "nanoelectrospray",
    "APCI": "atmospheric pressure chemical ionization",
    "TSP": "thermospray ionization",
    "FD": "field desorption",
    "MALDI": "matrix-assisted laser desorption ionization",
    "GD": "glow discharge ionization",
}


inlet_map = {
    "FAB": "continuous flow fast atom bombardment",
    "ESI": "electrospray inlet",
    "NSI": "nanospray inlet",
    "TSP": "thermospray inlet",
}


class FilterString(str):
    '''A Thermo scan filter string which parses itself on construction.

    >>> fs = FilterString("FTMS + p NSI Full ms [350.0000-1800.0000]")
    >>> fs.get("analyzer"), fs.get("polarity"), fs.get("scan_window")
    ('FTMS', 1, (350.0, 1800.0))
    '''
    def __init__(self, value):
        self.data = self._parse()

    def get(self, key, default=None):
        return self.data.get(key, default)

    def _parse(self):
        return filter_string_parser(self)


def filter_string_parser(line):
    """Parses instrument information from Thermo's filter string

    Parameters
    ----------
    line : str
        The filter string associated with a scan

    Returns
    -------
    dict
        Fields extracted from the filter string
    """
    words = line.upper().split(" ")
    values = dict()
    i = 0
    ms_level_info = ms_level_pat.search(line)
    if ms_level_info is not None:
        level = ms_level_info.group("level")
        values['ms_level'] = int(level) if level else 1
        if level:
            tandem_sequence = []
            for part in line[ms_level_info.end():].split(" "):
                activation_info = activation_pat.search(part)
                if activation_info is not None:
                    tandem_sequence.append({
                        "isolation_mz": float(activation_info.group('isolation_mz')),
                        "activation_type": activation_info.group('activation_type'),
                        "activation_energy": _try_number(activation_info.group('activation_energy')),
                    })
            values['tandem_sequence'] = tandem_sequence

    scan_window_info = scan_window_pat.search(line)
    if scan_window_info is not None:
        values['scan_window'] = (float(scan_window_info.group(1)), float(scan_window_info.group(2)))

    try:
        word = words[i]
        i += 1
        analyzer_info = analyzer_pat.search(word)
        if analyzer_info is not None:
            values['analyzer'] = analyzer_info.group(0)
            word = words[i]
            i += 1

        polarity_info = polarity_pat.search(word)
        if polarity_info is not None:
            values["polarity"] = 1 if polarity_info.group(0) == "+" else -1
            word = words[i]
            i += 1

        if word in ("P", "C"):
            values['peak_mode'] = 'profile' if word == 'P' else 'centroid'
            word = words[i]
            i += 1

        ionization_info = ionization_pat.search(word)
        if ionization_info is not None:
            values['ionization'] = ionization_info.group(0)
        return values
    except IndexError:
        return values


_id_template = "controllerType=0 controllerNumber=1 scan="


def make_id(scan_number):
    '''Build the Thermo native id string for ``scan_number``'''
    try:
        return "%s%d" % (_id_template, scan_number)
    except TypeError:
        return None


def parse_id(scan_id):
    return int(scan_id.replace(_id_template, ""))


def _try_number(string):
    try:
        x = float(string)
        return x
    except (TypeError, ValueError):
        return string
