#
# (c) Copyright 2022 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# Wrappers for crypto library. AKA API Cleanup
#
# My standards:
# - pubkeys: 33 bytes, always compressed
# - private key: 32 bytes
# - signature: 64 bytes or 65 bytes if recoverable
# - no DER, no PEM, no other serializations
# - message digests (for sig/verify) are already digested
# - ECDSA verify returns bool, doesn't raise exception
#
from hashlib import sha256
from Crypto.Hash import RIPEMD160

from hdcosign.wrap_coincurve import CT_sig_verify, CT_sig_to_pubkey, CT_sign
from hdcosign.wrap_coincurve import CT_pick_keypair, CT_priv_to_pubkey
from hdcosign.wrap_coincurve import CT_pubkey_tweak_add, CT_privkey_tweak_add, CT_pubkey_check

__all__ = [ 'sha256s', 'sha256d', 'hash160',
            'CT_sig_verify', 'CT_sig_to_pubkey', 'CT_sign',
            'CT_pick_keypair', 'CT_priv_to_pubkey',
            'CT_pubkey_tweak_add', 'CT_privkey_tweak_add', 'CT_pubkey_check' ]

def sha256s(msg):
    # single-shot SHA256
    return sha256(msg).digest()

def sha256d(msg):
    # double SHA256, as used for checksums and signed messages
    return sha256(sha256(msg).digest()).digest()

def hash160(x):
    # classic bitcoin nested hashes
    # - hashlib's ripemd160 depends on the OpenSSL build, so not used
    return RIPEMD160.new(sha256s(x)).digest()

# EOF
