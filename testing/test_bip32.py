#
# (c) Copyright 2022 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# Extended keys: derivation vectors and the encodings used in cosigner records.
#
import pytest
from io import BytesIO

import base58

from hdcosign.bip32 import PrvKeyNode, PubKeyNode, version_to_network
from hdcosign.constants import XKEY_RAW_SIZE, NETWORKS
from hdcosign.exceptions import MalformedEncoding
from hdcosign.compat import sha256d


XPUB = "xpub69H7F5d8KSRgmmdJg2KhpAK8SR3DjMwAdkxj3ZuxV27CprR9LgpeyGmXUbC6wb7ERfvrnKZjXoUmmDznezpbZb7ap6r1D3tgFxHmwMkQTPH"
XPRV = "xprv9vHkqa6EV4sPZHYqZznhT2NPtPCjKuDKGY38FBWLvgaDx45zo9WQRUT3dKYnjwih2yJD9mkrocEZXo1ex8G81dwSM1fwqWpWkeS3v86pgKt"

def test_parse():
    pub_node = PubKeyNode.parse(s=XPUB)
    assert pub_node.extended_public_key() == XPUB
    assert pub_node.network == 'main'
    assert PrvKeyNode.parse(s=XPRV).extended_private_key() == XPRV
    assert PrvKeyNode.parse(s=XPRV).extended_public_key() == XPUB

def test_parse_incorrect_type():
    assert PrvKeyNode.parse(base58.b58decode_check(XPRV)).extended_private_key() == XPRV
    assert PrvKeyNode.parse(BytesIO(base58.b58decode_check(XPRV))).extended_private_key() == XPRV
    with pytest.raises(ValueError):
        PrvKeyNode.parse(1584784554)
    # wrong kind of key for the class
    with pytest.raises(ValueError):
        PrvKeyNode.parse(XPUB)
    with pytest.raises(ValueError):
        PubKeyNode.parse(XPRV)

def test_equality():
    m0 = PrvKeyNode.parse(s=XPRV)
    m1 = PrvKeyNode.parse(s=XPRV)
    assert m0 == m1

    M0 = PubKeyNode.parse(s=XPUB)
    M1 = PubKeyNode.parse(s=XPUB)
    assert M0 == M1
    assert m0 != M0
    assert m0.to_public() == M0

    seed = "fffcf9f6f3f0edeae7e4e1dedbd8d5d2cfccc9c6c3c0bdbab7b4b1aeaba8a5a29f9c999693908d8a8784817e7b7875726f6c696663605d5a5754514e4b484542"
    m0 = PrvKeyNode.master_key(bip39_seed=bytes.fromhex(seed))
    m1 = PrvKeyNode.parse(s=m0.extended_private_key())
    assert m0 == m1

    # same key, other network
    assert PubKeyNode.parse(M0.extended_public_key('testnet')) != M0

def test_networks():
    M = PubKeyNode.parse(XPUB)

    tpub = M.extended_public_key('testnet')
    assert tpub.startswith('tpub')
    T = PubKeyNode.parse(tpub)
    assert T.network == 'testnet'
    assert T.raw_encode() == M.raw_encode()

    # regtest shares prefixes with testnet
    R = PubKeyNode.parse(tpub, network='regtest')
    assert R.network == 'regtest'
    with pytest.raises(ValueError):
        PubKeyNode.parse(tpub, network='main')

    assert version_to_network(NETWORKS['simnet']['xpub'], 'xpub') == 'simnet'
    with pytest.raises(ValueError):
        version_to_network(0x12345678, 'xpub')
    with pytest.raises(ValueError):
        PubKeyNode(key=M.key, chain_code=M.chain_code, network='mainnet')

def test_regtest_equality():
    M = PubKeyNode.parse(XPUB)
    tpub = M.extended_public_key('testnet')
    T = PubKeyNode.parse(tpub)
    R = PubKeyNode.parse(tpub, network='regtest')

    # same version prefix, so same key once encoded
    assert R == T
    assert R.to_raw() == T.to_raw()
    assert PubKeyNode.from_raw(R.to_raw()) == R
    assert M != T

def test_off_curve_key():
    with pytest.raises(ValueError):
        PubKeyNode(key=b'\x02' + bytes(32), chain_code=bytes(32))

    M = PubKeyNode.parse(XPUB)
    body = M.to_raw()[:45] + b'\x02' + bytes(32)
    with pytest.raises(MalformedEncoding):
        PubKeyNode.from_raw(body + sha256d(body)[:4])

def test_raw_encoding():
    M = PubKeyNode.parse(XPUB)

    raw = M.to_raw()
    assert len(raw) == XKEY_RAW_SIZE
    # base58check payload, with its checksum
    assert base58.b58encode(raw).decode() == XPUB
    assert PubKeyNode.from_raw(raw) == M
    assert PubKeyNode.from_raw(raw, 'main') == M

    # network agnostic: no version, no checksum
    assert M.raw_encode() == raw[4:78]
    assert M.to_raw('testnet')[4:78] == raw[4:78]

    with pytest.raises(MalformedEncoding):
        PubKeyNode.from_raw(raw, 'testnet')
    with pytest.raises(MalformedEncoding):
        PubKeyNode.from_raw(raw[:-1])
    with pytest.raises(MalformedEncoding):
        PubKeyNode.from_raw(raw[:-1] + bytes([raw[-1] ^ 1]))

    # private key never leaks into raw form
    m = PrvKeyNode.parse(XPRV)
    assert m.to_raw() == raw

def test_ckd_pub_ckd_priv_matches_public_key():
    seed = "b4385b54033b047216d71031bd83b3c059d041590f24c666875c980353c9a5d3322f723f74d1f5e893de7af80d80307f51683e13557ad1e4a2fe151b1c7f0d8b"
    m = PrvKeyNode.master_key(bip39_seed=bytes.fromhex(seed))
    M = PubKeyNode.parse(s=m.extended_public_key())
    m44 = m.ckd(index=44)
    M44 = M.ckd(index=44)
    assert m44.extended_public_key() == M44.extended_public_key()
    assert m44.extended_public_key() == "xpub68gENos6i4PQxkSjJB2Ww79EfUVX8J4nrTHYzUWa3q6gMivLymbzHiu1MBoxi3fVDUQVi61Lv7brNs18sHjzdBVgCXocZxDwrsGrAf4GN3T"
    m440 = m44.ckd(index=0)
    M440 = M44.ckd(index=0)
    assert m440.extended_public_key() == M440.extended_public_key()
    assert m440.extended_public_key() == "xpub6AotjNzqVqVCmdvqAsMi2zNEDCobz7s9zit2pfdKPPc9LQ2GwSGybYDKuqDGC7mVhSWNZBNeRwqtjvA7rX4ACKXa8GrnD5XQkGb542RuzZ5"
    m440__ = m440.ckd(index=2**31-1)
    M440__ = M440.ckd(index=2**31-1)
    assert m440__.sec() == M440__.sec()
    assert m440__.to_public() == M440__.to_public()

def test_ckd_pub_hardened_failure():
    M = PubKeyNode.parse(s=XPUB)
    with pytest.raises(RuntimeError):
        M.ckd(2**31)
    with pytest.raises(RuntimeError):
        M.derive_path("m/0/1h")

def test_derive_path():
    m = PrvKeyNode.master_key(bytes.fromhex("000102030405060708090a0b0c0d0e0f"))
    a = m.derive_path("m/0'/1/2h")
    assert a == m.ckd(2**31).ckd(1).ckd(2**31 + 2)
    assert a.__repr__() == "m/0'/1/2'"

    # parent link is dropped, fingerprint kept
    c = a.clone()
    assert c == a
    assert c.parent is None

def test_vector_1():
    # Chain m
    seed ="000102030405060708090a0b0c0d0e0f"
    xpub = "xpub661MyMwAqRbcFtXgS5sYJABqqG9YLmC4Q1Rdap9gSE8NqtwybGhePY2gZ29ESFjqJoCu1Rupje8YtGqsefD265TMg7usUDFdp6W1EGMcet8"
    xpriv = "xprv9s21ZrQH143K3QTDL4LXw2F7HEK3wJUD2nW2nRk4stbPy6cq3jPPqjiChkVvvNKmPGJxWUtg6LnF5kejMRNNU3TGtRBeJgk33yuGBxrMPHi"
    m = PrvKeyNode.master_key(bip39_seed=bytes.fromhex(seed))
    assert m.extended_public_key() == xpub
    assert m.extended_private_key() == xpriv
    assert m.__repr__() == "m"

    # chain m/0'
    xpub = "xpub68Gmy5EdvgibQVfPdqkBBCHxA5htiqg55crXYuXoQRKfDBFA1WEjWgP6LHhwBZeNK1VTsfTFUHCdrfp1bgwQ9xv5ski8PX9rL2dZXvgGDnw"
    xpriv = "xprv9uHRZZhk6KAJC1avXpDAp4MDc3sQKNxDiPvvkX8Br5ngLNv1TxvUxt4cV1rGL5hj6KCesnDYUhd7oWgT11eZG7XnxHrnYeSvkzY7d2bhkJ7"
    m0h = m.ckd(index=2**31)
    assert m0h.extended_public_key() == xpub
    assert m0h.extended_private_key() == xpriv
    assert m0h.__repr__() == "m/0'"

    # chain M/0'/1, public only
    M0h1 = PubKeyNode.parse(xpub).ckd(index=1)

    # chain m/0'/1
    xpub = "xpub6ASuArnXKPbfEwhqN6e3mwBcDTgzisQN1wXN9BJcM47sSikHjJf3UFHKkNAWbWMiGj7Wf5uMash7SyYq527Hqck2AxYysAA7xmALppuCkwQ"
    xpriv = "xprv9wTYmMFdV23N2TdNG573QoEsfRrWKQgWeibmLntzniatZvR9BmLnvSxqu53Kw1UmYPxLgboyZQaXwTCg8MSY3H2EU4pWcQDnRnrVA1xe8fs"
    m0h1 = m0h.ckd(index=1)
    assert M0h1.extended_public_key() == xpub
    assert m0h1.extended_public_key() == xpub
    assert m0h1.extended_private_key() == xpriv

    # chain m/0'/1/2'/2/1000000000
    xpub = "xpub6H1LXWLaKsWFhvm6RVpEL9P4KfRZSW7abD2ttkWP3SSQvnyA8FSVqNTEcYFgJS2UaFcxupHiYkro49S8yGasTvXEYBVPamhGW6cFJodrTHy"
    xpriv = "xprvA41z7zogVVwxVSgdKUHDy1SKmdb533PjDz7J6N6mV6uS3ze1ai8FHa8kmHScGpWmj4WggLyQjgPie1rFSruoUihUZREPSL39UNdE3BBDu76"
    node = m.derive_path("m/0h/1/2h/2/1000000000")
    assert node.extended_public_key() == xpub
    assert node.extended_private_key() == xpriv
    assert node.__repr__() == "m/0'/1/2'/2/1000000000"

def test_vector_3():
    # leading zeros in private key
    seed = "4b381541583be4423346c643850da4b320e46a87ae3d2a4e6da11eba819cd4acba45d239319ac14f863b8d5ab5a0d0c64d2e8a1e7d1457df2e5a3c51c73235be"
    xpub = "xpub661MyMwAqRbcEZVB4dScxMAdx6d4nFc9nvyvH3v4gJL378CSRZiYmhRoP7mBy6gSPSCYk6SzXPTf3ND1cZAceL7SfJ1Z3GC8vBgp2epUt13"
    xpriv = "xprv9s21ZrQH143K25QhxbucbDDuQ4naNntJRi4KUfWT7xo4EKsHt2QJDu7KXp1A3u7Bi1j8ph3EGsZ9Xvz9dGuVrtHHs7pXeTzjuxBrCmmhgC6"
    m = PrvKeyNode.master_key(bip39_seed=bytes.fromhex(seed))
    assert m.extended_public_key() == xpub
    assert m.extended_private_key() == xpriv

    xpub = "xpub68NZiKmJWnxxS6aaHmn81bvJeTESw724CRDs6HbuccFQN9Ku14VQrADWgqbhhTHBaohPX4CjNLf9fq9MYo6oDaPPLPxSb7gwQN3ih19Zm4Y"
    xpriv = "xprv9uPDJpEQgRQfDcW7BkF7eTya6RPxXeJCqCJGHuCJ4GiRVLzkTXBAJMu2qaMWPrS7AANYqdq6vcBcBUdJCVVFceUvJFjaPdGZ2y9WACViL4L"
    m0h = m.ckd(index=2 ** 31)
    assert m0h.extended_public_key() == xpub
    assert m0h.extended_private_key() == xpriv

# EOF
