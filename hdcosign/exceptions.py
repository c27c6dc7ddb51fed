#
# (c) Copyright 2021 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# Exceptions
#

class CosignerError(ValueError):
    pass

class MalformedEncoding(CosignerError):
    # raw bytes could not be decoded: short read, bad key, trailing junk
    def __init__(self, msg, field=None):
        self.field = field
        super().__init__(msg)

class InvalidType(CosignerError):
    # value has wrong type or size for a record field
    def __init__(self, msg, field=None):
        self.field = field
        super().__init__(msg)

# EOF
