#
# (c) Copyright 2022 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# Protocol constants.
#

# reserved BIP-32 index for the ownership proof key: <account>/PROOF_INDEX/0
# - largest non-hardened value, so verifiers can derive it from the xpub
# - never part of any spending descriptor
PROOF_INDEX = 0x7fff_ffff

# fixed field sizes (bytes) in the cosigner record
TOKEN_SIZE = 32
AUTH_PUBKEY_SIZE = 33
JOIN_SIG_SIZE = 65

# pascal strings have a one byte length prefix
MAX_PSTR_LEN = 255

# BIP-32 serialized key sizes
#   version(4) depth(1) parent_fp(4) index(4) chain_code(32) key(33)
XKEY_BODY_SIZE = 78
XKEY_CHECKSUM_SIZE = 4
XKEY_RAW_SIZE = XKEY_BODY_SIZE + XKEY_CHECKSUM_SIZE

# extended key version prefixes, per network
# - regtest shares testnet prefixes, so decoding a tpub yields 'testnet'
NETWORKS = {
    'main':    dict(xpub=0x0488B21E, xprv=0x0488ADE4),
    'testnet': dict(xpub=0x043587CF, xprv=0x04358394),
    'regtest': dict(xpub=0x043587CF, xprv=0x04358394),
    'simnet':  dict(xpub=0x0420BD3A, xprv=0x0420B900),
}

DEFAULT_NETWORK = 'main'

# "Bitcoin Signed Message" digest, used for both proof and join hashes
MESSAGE_MAGIC = b'Bitcoin Signed Message:\n'

# BIP-137 header byte for compressed P2PKH recoverable signatures
SIG_HEADER_BASE = 31

# EOF
