#
# (c) Copyright 2022 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
#
# Crypto primitives, over "coincurve" (libsecp256k1).
#
# nice docs: <https://ofek.dev/coincurve/api/>
#
# - generally using terribile serializations for signatures (DER)
# - docs do not make it clear what serialization is needed
#
from coincurve.ecdsa import deserialize_compact, serialize_compact, der_to_cdata, cdata_to_der
from coincurve import PrivateKey, PublicKey

from hdcosign.constants import SIG_HEADER_BASE

def CT_sig_verify(pub, msg_digest, sig):
    assert len(sig) == 64
    der = cdata_to_der(deserialize_compact(sig))
    return PublicKey(pub).verify(der, msg_digest, hasher=None)

def CT_sig_to_pubkey(msg_digest, sig):
    assert len(sig) == 65
    rec_id = sig[0]
    # from BIP-137
    if 31 <= rec_id <= 34:
        rec_id -= 31        # P2PKH compressed (what we make)
    elif 39 <= rec_id <= 42:
        rec_id -= 39        # P2WPKH
    else:
        raise ValueError(f'See BIP-137 for recid encoding, saw: {rec_id}')

    sig2 = sig[1:] + bytes([rec_id])
    nxt = PublicKey.from_signature_and_message(sig2, msg_digest, hasher=None)
    return nxt.format()

def CT_pick_keypair():
    # Choose pub/private pair, return private key (32 bytes) and compressed pubkey
    pk = PrivateKey()
    return pk.secret, PublicKey.from_secret(pk.secret).format()

def CT_sign(privkey, msg_digest, recoverable=False):
    pk = PrivateKey(privkey)
    if recoverable:
        # rec_id is last byte; move it to front as BIP-137 header
        sig = pk.sign_recoverable(msg_digest, hasher=None)
        bip137 = sig[-1] + SIG_HEADER_BASE
        return bytes([bip137]) + sig[0:64]
    else:
        der = pk.sign(msg_digest, hasher=None)
        return serialize_compact(der_to_cdata(der))

def CT_priv_to_pubkey(priv):
    pk = PrivateKey(priv)
    return pk.public_key.format()

def CT_pubkey_check(pub):
    # ValueError unless pub is a valid point
    return PublicKey(pub).format()

def CT_pubkey_tweak_add(pub, tweak):
    # point(tweak) + pub, compressed. ValueError if tweak >= N or result is infinity
    return PublicKey(pub).add(tweak).format()

def CT_privkey_tweak_add(priv, tweak):
    # (tweak + priv) mod N, 32 bytes. ValueError if tweak >= N or result is zero
    return PrivateKey(priv).add(tweak).secret

# EOF
