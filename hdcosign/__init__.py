#
# (c) Copyright 2022 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#

__version__ = '0.1.0'

__all__ = [ 'cosigner', 'exceptions', 'bip32', 'sig', 'constants', 'utils' ]

# the record itself
from hdcosign.cosigner import Cosigner

# errors it raises
from hdcosign.exceptions import CosignerError, MalformedEncoding, InvalidType
