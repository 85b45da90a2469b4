'''Maps Thermo activation type codes onto PSI-MS dissociation method terms.
'''
from collections import namedtuple


class DissociationMethod(namedtuple("DissociationMethod", ["name", "accession"])):
    '''A PSI-MS dissociation method term'''

    def __str__(self):
        return self.name


CID = DissociationMethod('collision-induced dissociation', 'MS:1000133')
HCD = DissociationMethod('beam-type collision-induced dissociation', 'MS:1000422')
ETD = DissociationMethod('electron transfer dissociation', 'MS:1000598')
ECD = DissociationMethod('electron capture dissociation', 'MS:1000250')
MPD = DissociationMethod('infrared multiphoton dissociation', 'MS:1000262')
PD = DissociationMethod('photodissociation', 'MS:1000435')
PQD = DissociationMethod('pulsed q dissociation', 'MS:1000599')

UnknownDissociation = DissociationMethod("dissociation method", "MS:1000044")


dissociation_methods_map = {
    'cid': CID,
    'cad': CID,
    'hcd': HCD,
    'etd': ETD,
    'ecd': ECD,
    'mpd': MPD,
    'pd': PD,
    'uvpd': PD,
    'pqd': PQD,
}


def dissociation_method(activation_type):
    '''Look up the dissociation term for a Thermo activation type name
    such as ``"HCD"`` or ``"cid"``. Unrecognized or missing types map to
    the generic "dissociation method" term.

    Parameters
    ----------
    activation_type : str

    Returns
    -------
    :class:`DissociationMethod`
    '''
    if not activation_type:
        return UnknownDissociation
    return dissociation_methods_map.get(str(activation_type).strip().lower(), UnknownDissociation)
