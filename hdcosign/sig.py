#
# (c) Copyright 2022 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# Message signing as used by the cosigner protocols.
#
# - messages are hashed like "Bitcoin Signed Message" text (see BIP-137)
# - signatures are 65 bytes: BIP-137 header byte, then r and s
# - verification recovers the pubkey and compares, so returns bool only
#
from hdcosign.constants import MESSAGE_MAGIC, PROOF_INDEX, JOIN_SIG_SIZE
from hdcosign.compat import sha256d, CT_sign, CT_sig_to_pubkey
from hdcosign.utils import ser_compact_size

__all__ = [ 'PROOF_INDEX', 'hash_message', 'sign_hash', 'sign_message',
            'recover_hash', 'verify_hash', 'verify_message' ]

def hash_message(msg):
    # digest that gets signed, for any protocol message
    assert isinstance(msg, (bytes, bytearray))
    return sha256d(ser_compact_size(len(MESSAGE_MAGIC)) + MESSAGE_MAGIC
                        + ser_compact_size(len(msg)) + msg)

def sign_hash(digest, privkey):
    # 65 byte recoverable signature over an already-hashed message
    assert len(digest) == 32
    return CT_sign(privkey, digest, recoverable=True)

def sign_message(msg, privkey):
    return sign_hash(hash_message(msg), privkey)

def recover_hash(digest, signature):
    # pubkey that made signature; raises ValueError
    if len(signature) != JOIN_SIG_SIZE:
        raise ValueError("signature must be 65 bytes")
    return CT_sig_to_pubkey(digest, bytes(signature))

def verify_hash(digest, signature, pubkey):
    # True if pubkey signed digest. Never raises on bad signatures.
    try:
        got = recover_hash(digest, signature)
    except (ValueError, TypeError):
        # includes the all-zero placeholder signature
        return False

    return got == pubkey

def verify_message(msg, signature, pubkey):
    return verify_hash(hash_message(msg), signature, pubkey)

# EOF
