# (c) Copyright 2021 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
import struct
from binascii import b2a_hex

from .constants import *
from .exceptions import InvalidType, MalformedEncoding

# show bytes as hex in a string
B2A = lambda x: b2a_hex(x).decode('ascii')

def force_bytes(foo):
    # convert strings to bytes where needed
    return foo.encode('utf-8') if isinstance(foo, str) else foo

# Serialization/deserialization tools
# - need this for text msg signing
def ser_compact_size(l):
    if l < 253:
        return struct.pack("B", l)
    elif l < 0x10000:
        return struct.pack("<BH", 253, l)
    elif l < 0x100000000:
        return struct.pack("<BI", 254, l)
    else:
        return struct.pack("<BQ", 255, l)

def ser_pstr(text, field='string'):
    # "pascal string": one byte of length, then that many UTF-8 bytes
    raw = force_bytes(text)
    if len(raw) > MAX_PSTR_LEN:
        raise InvalidType(f"{field} too long: {len(raw)} bytes", field)
    return bytes([len(raw)]) + raw

def read_exact(s, n, field):
    # read exactly n bytes from stream, or fail
    rv = s.read(n)
    if len(rv) != n:
        raise MalformedEncoding(f"ran out of bytes reading {field}: "
                                    f"wanted {n}, got {len(rv)}", field)
    return rv

def read_u8(s, field):
    return read_exact(s, 1, field)[0]

def read_u32le(s, field):
    return struct.unpack('<I', read_exact(s, 4, field))[0]

def read_pstr(s, field):
    # pascal string -> str
    ln = read_u8(s, field)
    raw = read_exact(s, ln, field)
    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError:
        raise MalformedEncoding(f"{field} is not UTF-8", field)


# high bit set in LE32 indicating hardened BIP-32 path component
HARDENED = 0x8000_0000

def path_component_in_range(num: int) -> bool:
    # cannot be less than 0
    # cannot be more than (2 ** 31) - 1
    if 0 <= num < HARDENED:
        return True
    return False

def path2str(path):
    # take numeric path (list of numbers) and convert to human form
    # - standardizing on "m/84h" style
    return '/'.join(['m'] + [str(i & ~HARDENED)+('h' if i&HARDENED else '') for i in path])

def str2path(path):
    # normalize notation and return numbers
    rv = []

    for i in path.split('/'):
        if i == 'm':
            continue
        if not i:
            # trailing or duplicated slashes
            continue

        if i[-1] in "'phHP":
            if len(i) < 2:
                raise ValueError(f"Malformed bip32 path component: {i}")
            num = int(i[:-1], 0)
            if not path_component_in_range(num):
                raise ValueError(f"Hardened path component out of range: {i}")
            here = num | HARDENED
        else:
            here = int(i, 0)
            if not path_component_in_range(here):
                raise ValueError(f"Non-hardened path component out of range: {i}")

        rv.append(here)

    return rv

# EOF
