#
# (c) Copyright 2022 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
import pytest

from hdcosign.bip32 import PrvKeyNode
from hdcosign.compat import CT_priv_to_pubkey

# commonly used test case
NETWORK = 'main'
ACCOUNT_PATH = "m/44h/0h/0h"

@pytest.fixture(scope='session')
def account_prv():
    # account private key, from BIP-32 test vector #1 seed
    m = PrvKeyNode.master_key(bytes.fromhex('000102030405060708090a0b0c0d0e0f'))
    return m.derive_path(ACCOUNT_PATH)

@pytest.fixture(scope='session')
def account_pub(account_prv):
    return account_prv.to_public()

@pytest.fixture(scope='session')
def auth_privkey():
    return bytes([7]) * 32

@pytest.fixture
def test_options(account_pub, auth_privkey):
    return dict(
        id=5,
        tokenDepth=0,
        token=bytes(32),
        name='test1',
        purpose=0,
        fingerPrint=0,
        key=account_pub,
        authPubKey=CT_priv_to_pubkey(auth_privkey),
        joinSignature=bytes([1]) * 65,
        data=b"m/44'/0'/0'/0/0",
    )

@pytest.fixture
def test_raw(test_options):
    # its serialization
    return bytes.fromhex(
        '05'                                    # id
        + '00000000'                            # tokenDepth
        + test_options['token'].hex()           # token
        + '05' + '7465737431'                   # name
        + '00000000'                            # purpose
        + '00000000'                            # fingerPrint
        + '0f' + '6d2f3434272f30272f30272f302f30'   # data
        + test_options['key'].to_raw(NETWORK).hex()
        + test_options['authPubKey'].hex()
        + test_options['joinSignature'].hex()
    )

@pytest.fixture
def cosigner(test_options):
    from hdcosign.cosigner import Cosigner
    return Cosigner.from_options(test_options)

# EOF
