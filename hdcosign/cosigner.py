#
# (c) Copyright 2022 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# cosigner.py
#
# One participant in a shared m-of-n HD wallet: the record, its binary and
# JSON encodings, and the two signature protocols built on it.
#
# Binary layout (integers are little-endian):
#
#   id(1) tokenDepth(4) token(32) pstr(name) purpose(4) fingerPrint(4)
#   pstr(path) xpub(82) authPubKey(33) joinSignature(65)
#
# where pstr is one byte of length followed by UTF-8 bytes, and xpub is the
# network-tagged extended public key with checksum (see bip32.py).
#
import json
import struct
from io import BytesIO
from binascii import a2b_hex

from hdcosign.constants import *
from hdcosign.exceptions import CosignerError, InvalidType, MalformedEncoding
from hdcosign.bip32 import PubKeyNode, PrvKeyNode, InvalidKeyError
from hdcosign.sig import hash_message, verify_hash
from hdcosign.utils import B2A, ser_pstr, read_exact, read_u8, read_u32le, read_pstr

# option/JSON key => attribute
OPTION_FIELDS = {
    'id': 'id',
    'tokenDepth': 'token_depth',
    'token': 'token',
    'name': 'name',
    'purpose': 'purpose',
    'fingerPrint': 'fingerprint',
    'path': 'path',
    'key': 'key',
    'authPubKey': 'auth_pub_key',
    'joinSignature': 'join_signature',
}

# placeholder join signature, before the join protocol completes
EMPTY_JOIN_SIG = bytes(JOIN_SIG_SIZE)


def _check_uint(value, bits, field):
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidType(f"{field} must be an integer", field)
    if not (0 <= value < (1 << bits)):
        raise InvalidType(f"{field} out of range for uint{bits}: {value}", field)
    return value

def _check_bytes(value, size, field):
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise InvalidType(f"{field} must be bytes", field)
    if len(value) != size:
        raise InvalidType(f"{field} must be {size} bytes, got {len(value)}", field)
    return bytes(value)

def _check_text(value, field):
    if not isinstance(value, str):
        raise InvalidType(f"{field} must be a string", field)
    if len(value.encode('utf-8')) > MAX_PSTR_LEN:
        raise InvalidType(f"{field} longer than {MAX_PSTR_LEN} bytes", field)
    return value

def _check_key(value, network=None):
    # account key: public only; xpub text is accepted too
    if value is None:
        return None
    if isinstance(value, str):
        try:
            return PubKeyNode.parse(value, network=network)
        except ValueError as exc:
            raise InvalidType(f"bad account key: {exc}", 'key')
    if isinstance(value, PrvKeyNode):
        raise InvalidType("account key must not carry private key", 'key')
    if not isinstance(value, PubKeyNode):
        raise InvalidType("account key must be an extended public key", 'key')
    return value

def _unhex(value, field):
    if not isinstance(value, str):
        raise InvalidType(f"{field} must be hex text", field)
    try:
        return a2b_hex(value)
    except ValueError:
        raise InvalidType(f"{field} is not valid hex", field)


class Cosigner:
    """
    Wallet participant record.

    The account key is public only. Token, token depth and join signature
    are the mutable "details"; everything else is fixed once invited.

    No locking is done here: a service sharing one record between
    requests must allow one writer at a time per cosigner.
    """

    __slots__ = tuple(OPTION_FIELDS.values())

    def __init__(self, id=0, token_depth=0, token=None, name='', purpose=0,
                    fingerprint=0, path='', key=None, auth_pub_key=None,
                    join_signature=None):
        # every way of building a record passes here
        self.id = _check_uint(id, 8, 'id')
        self.token_depth = _check_uint(token_depth, 32, 'tokenDepth')
        self.token = bytes(TOKEN_SIZE) if token is None \
                        else _check_bytes(token, TOKEN_SIZE, 'token')
        self.name = _check_text(name, 'name')
        self.purpose = _check_uint(purpose, 32, 'purpose')
        self.fingerprint = _check_uint(fingerprint, 32, 'fingerPrint')
        self.path = _check_text(path, 'path')
        self.key = _check_key(key)
        self.auth_pub_key = bytes(AUTH_PUBKEY_SIZE) if auth_pub_key is None \
                        else _check_bytes(auth_pub_key, AUTH_PUBKEY_SIZE, 'authPubKey')
        self.join_signature = EMPTY_JOIN_SIG if join_signature is None \
                        else _check_bytes(join_signature, JOIN_SIG_SIZE, 'joinSignature')

    def __repr__(self):
        return '<%s %d: %s>' % (self.__class__.__name__, self.id, self.name)

    @classmethod
    def from_options(cls, options):
        # sparse dict using the wire names; missing values get defaults
        args = {}
        for k, attr in OPTION_FIELDS.items():
            if options.get(k) is not None:
                args[attr] = options[k]

        if 'path' not in args and options.get('data') is not None:
            # raw path bytes, as found on the wire
            data = options['data']
            if not isinstance(data, (bytes, bytearray)):
                raise InvalidType("data must be bytes", 'data')
            try:
                args['path'] = bytes(data).decode('utf-8')
            except UnicodeDecodeError:
                raise InvalidType("data is not UTF-8", 'data')

        return cls(**args)

    def _require_key(self):
        if self.key is None:
            raise InvalidType("cosigner has no account key", 'key')
        return self.key

    #
    # Binary
    #
    def get_size(self):
        return (1 + 4 + TOKEN_SIZE
                + 1 + len(self.name.encode('utf-8'))
                + 4 + 4
                + 1 + len(self.path.encode('utf-8'))
                + XKEY_RAW_SIZE + AUTH_PUBKEY_SIZE + JOIN_SIG_SIZE)

    def to_raw(self, network=None):
        # network picks xpub version prefix; default is key's own network
        key = self._require_key()

        rv = bytes([self.id])
        rv += struct.pack('<I', self.token_depth)
        rv += self.token
        rv += ser_pstr(self.name, 'name')
        rv += struct.pack('<II', self.purpose, self.fingerprint)
        rv += ser_pstr(self.path, 'path')
        rv += key.to_raw(network)
        rv += self.auth_pub_key
        rv += self.join_signature

        assert len(rv) == self.get_size()
        return rv

    @classmethod
    def from_raw(cls, data, network=None):
        # exact inverse of to_raw(); short or long input is an error
        s = BytesIO(data)

        args = dict(id=read_u8(s, 'id'))
        args['token_depth'] = read_u32le(s, 'tokenDepth')
        args['token'] = read_exact(s, TOKEN_SIZE, 'token')
        args['name'] = read_pstr(s, 'name')
        args['purpose'] = read_u32le(s, 'purpose')
        args['fingerprint'] = read_u32le(s, 'fingerPrint')
        args['path'] = read_pstr(s, 'path')
        args['key'] = PubKeyNode.from_raw(read_exact(s, XKEY_RAW_SIZE, 'key'), network)
        args['auth_pub_key'] = read_exact(s, AUTH_PUBKEY_SIZE, 'authPubKey')
        args['join_signature'] = read_exact(s, JOIN_SIG_SIZE, 'joinSignature')

        if s.read(1):
            raise MalformedEncoding("trailing bytes after cosigner record")

        return cls(**args)

    #
    # JSON
    #
    def to_public_view(self, network=None):
        return dict(
            id=self.id,
            name=self.name,
            purpose=self.purpose,
            fingerPrint=self.fingerprint,
            path=self.path,
            accountKey=self.key.extended_public_key(network) if self.key else None,
            authPubKey=B2A(self.auth_pub_key),
        )

    def to_detailed_view(self, network=None):
        # public view plus the session/join values
        rv = self.to_public_view(network)
        rv.update(
            tokenDepth=self.token_depth,
            token=B2A(self.token),
            joinSignature=B2A(self.join_signature),
        )
        return rv

    def to_json(self, details=False, network=None):
        if details:
            return self.to_detailed_view(network)
        return self.to_public_view(network)

    @classmethod
    def from_json(cls, obj, details=False, network=None):
        # Inverse of to_json(). When details is False, the detail fields
        # are ignored even if present and keep their defaults.
        if isinstance(obj, (str, bytes)):
            obj = json.loads(obj)

        def field(k):
            try:
                return obj[k]
            except KeyError:
                raise InvalidType(f"missing {k}", k)

        args = dict(
            id=field('id'),
            name=field('name'),
            purpose=field('purpose'),
            fingerprint=field('fingerPrint'),
            path=field('path'),
            key=_check_key(field('accountKey'), network),
            auth_pub_key=_unhex(field('authPubKey'), 'authPubKey'),
        )

        if details:
            args['token_depth'] = field('tokenDepth')
            args['token'] = _unhex(field('token'), 'token')
            args['join_signature'] = _unhex(field('joinSignature'), 'joinSignature')

        return cls(**args)

    def to_http_options(self, network=None):
        # field names expected by the HTTP client; values not checked
        return dict(
            cosignerName=self.name,
            cosignerPurpose=self.purpose,
            cosignerFingerPrint=self.fingerprint,
            cosignerData=B2A(self.path.encode('utf-8')),
            accountKey=self.key.extended_public_key(network) if self.key else None,
            token=B2A(self.token),
            joinSignature=B2A(self.join_signature),
            authPubKey=B2A(self.auth_pub_key),
        )

    #
    # Comparison and copies
    #
    def equals_public(self, other):
        return isinstance(other, Cosigner) \
            and self.id == other.id \
            and self.name == other.name \
            and self.purpose == other.purpose \
            and self.fingerprint == other.fingerprint \
            and self.path == other.path \
            and self.key == other.key \
            and self.auth_pub_key == other.auth_pub_key

    def equals_full(self, other):
        return self.equals_public(other) \
            and self.token_depth == other.token_depth \
            and self.token == other.token \
            and self.join_signature == other.join_signature

    def equals(self, other, details=False):
        if details:
            return self.equals_full(other)
        return self.equals_public(other)

    def __eq__(self, other):
        if not isinstance(other, Cosigner):
            return NotImplemented
        return self.equals_full(other)

    __hash__ = None

    def clone(self):
        return Cosigner(
            id=self.id,
            token_depth=self.token_depth,
            token=bytearray(self.token),
            name=self.name,
            purpose=self.purpose,
            fingerprint=self.fingerprint,
            path=self.path,
            key=self.key.clone() if self.key else None,
            auth_pub_key=bytearray(self.auth_pub_key),
            join_signature=bytearray(self.join_signature),
        )

    #
    # Session token: the session layer decides how depths are compared.
    #
    def rotate_token(self, token):
        token = _check_bytes(token, TOKEN_SIZE, 'token')
        self.token_depth = _check_uint(self.token_depth + 1, 32, 'tokenDepth')
        self.token = token

    #
    # Ownership proof
    #
    # Cosigner signs pstr(name) + authPubKey + raw(xpub) with the key at
    # <account>/PROOF_INDEX/0, showing it holds the account private key.
    #
    def get_proof_message(self):
        return ser_pstr(self.name, 'name') + self.auth_pub_key \
                    + self._require_key().raw_encode()

    def get_proof_hash(self):
        return hash_message(self.get_proof_message())

    def get_proof_key(self):
        # public node for the proof key
        return self._require_key().ckd(PROOF_INDEX).ckd(0)

    def verify_proof(self, signature):
        # returns False on any problem
        if self.key is None:
            return False
        try:
            pubkey = self.get_proof_key().sec()
            digest = self.get_proof_hash()
        except (InvalidKeyError, CosignerError):
            return False

        return verify_hash(digest, signature, pubkey)

    #
    # Join authorization
    #
    # Inviter's pairing key signs pstr(walletName) + pstr(name) + authPubKey
    # + raw(xpub), so the signature only admits this cosigner to that wallet.
    #
    def get_join_message(self, wallet_name):
        return ser_pstr(wallet_name, 'wallet name') + self.get_proof_message()

    def get_join_hash(self, wallet_name):
        return hash_message(self.get_join_message(wallet_name))

    def is_joined(self):
        return self.join_signature != EMPTY_JOIN_SIG

    def verify_join_signature(self, pubkey, wallet_name):
        # checks stored join_signature was made by pubkey; no state change
        if self.key is None or not self.is_joined():
            return False
        if not isinstance(wallet_name, str):
            return False
        try:
            digest = self.get_join_hash(wallet_name)
        except (CosignerError, TypeError):
            return False

        return verify_hash(digest, self.join_signature, pubkey)

    def set_join_signature(self, signature):
        # size checked only; whether a joined record may be re-signed is
        # for the wallet service to decide
        self.join_signature = _check_bytes(signature, JOIN_SIG_SIZE, 'joinSignature')

# EOF
