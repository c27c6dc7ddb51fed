#
# (c) Copyright 2022 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# BIP-32 extended keys: derivation and the network-tagged encodings.
#
import hmac
import hashlib
from io import BytesIO
from typing import Union, List

import base58

from hdcosign.constants import NETWORKS, DEFAULT_NETWORK, XKEY_BODY_SIZE, XKEY_RAW_SIZE
from hdcosign.constants import XKEY_CHECKSUM_SIZE
from hdcosign.compat import hash160, sha256d, CT_priv_to_pubkey
from hdcosign.compat import CT_pubkey_tweak_add, CT_privkey_tweak_add, CT_pubkey_check
from hdcosign.exceptions import MalformedEncoding
from hdcosign.utils import HARDENED, str2path


Prv_or_PubKeyNode = Union["PrvKeyNode", "PubKeyNode"]


def big_endian_to_int(b: bytes) -> int:
    """
    Big endian representation to integer.

    :param b: big endian representation
    :return: integer
    """
    return int.from_bytes(b, "big")


def int_to_big_endian(n: int, length: int) -> bytes:
    """
    Represents integer in big endian byteorder.

    :param n: integer
    :param length: byte length
    :return: big endian
    """
    return n.to_bytes(length, "big")


def version_to_network(version: int, kind: str, network: str = None) -> str:
    """
    Finds network name for an extended key version prefix.

    :param version: 4-byte version prefix as integer
    :param kind: 'xpub' or 'xprv'
    :param network: expected network; checked instead of searched (default=None)
    :return: network name
    """
    if network is not None:
        if network not in NETWORKS:
            raise ValueError(f"unknown network: {network}")
        if NETWORKS[network][kind] != version:
            raise ValueError("version 0x%08x is not %s for %s" % (version, kind, network))
        return network

    for name, versions in NETWORKS.items():
        if versions[kind] == version:
            return name

    raise ValueError("unknown %s version: 0x%08x" % (kind, version))


class InvalidKeyError(Exception):
    """Raised when derived key is invalid"""


class PubKeyNode(object):

    mark: str = "M"
    kind: str = "xpub"

    __slots__ = (
        "parent",
        "key",
        "chain_code",
        "depth",
        "index",
        "parsed_parent_fingerprint",
        "parsed_version",
        "network",
    )

    def __init__(self, key: bytes, chain_code: bytes, index: int = 0,
                 depth: int = 0, network: str = DEFAULT_NETWORK,
                 parent: Prv_or_PubKeyNode = None,
                 parent_fingerprint: bytes = None):
        """
        Initializes Pub/PrvKeyNode.

        :param key: public (33 bytes) or private (32 bytes) key
        :param chain_code: chain code
        :param index: current node derivation index (default=0)
        :param depth: current node depth (default=0)
        :param network: network name, one of NETWORKS (default='main')
        :param parent: parent node of the current node (default=None)
        :param parent_fingerprint: fingerprint of parent node (default=None)
        """
        if network not in NETWORKS:
            raise ValueError(f"unknown network: {network}")
        if len(chain_code) != 32:
            raise ValueError("chain code must be 32 bytes")
        self._check_key(key)

        self.parent = parent
        self.key = bytes(key)
        self.chain_code = bytes(chain_code)
        self.depth = depth
        self.index = index
        self.parsed_parent_fingerprint = parent_fingerprint
        self.parsed_version = None
        self.network = network

    @staticmethod
    def _check_key(key: bytes):
        if len(key) != 33 or key[0] not in (2, 3):
            raise ValueError("expecting compressed public key")
        # must also be a point on the curve
        CT_pubkey_check(key)

    def __eq__(self, other) -> bool:
        """
        Checks whether two private/public key nodes are equal.

        Networks sharing version prefixes (testnet, regtest) are the
        same key; their encodings cannot tell them apart.

        :param other: other private/public key node
        """
        if type(self) != type(other):
            return False
        return self.key == other.key and \
            self.chain_code == other.chain_code and \
            self.depth == other.depth and \
            self.index == other.index and \
            self.pub_version() == other.pub_version() and \
            self.parent_fingerprint == other.parent_fingerprint

    __hash__ = None

    @property
    def parent_fingerprint(self) -> bytes:
        """
        Gets parent fingerprint.

        If node is parsed from extended key, only parsed parent fingerprint
        is available. If node is derived, parent fingerprint is calculated
        from parent node.

        :return: parent fingerprint
        """
        if self.parent:
            fingerprint = self.parent.fingerprint()
        else:
            fingerprint = self.parsed_parent_fingerprint
        # in case there is still None here - it is master
        return fingerprint or b"\x00\x00\x00\x00"

    def pub_version(self, network: str = None) -> int:
        """
        Extended public key version integer for a network; the node's own
        network if none given.

        :return: extended public key version
        """
        return NETWORKS[network or self.network]["xpub"]

    def __repr__(self) -> str:
        if self.is_master() or self.is_root():
            return self.mark
        if self.is_hardened():
            index = str(self.index - HARDENED) + "'"
        else:
            index = str(self.index)
        parent = str(self.parent) if self.parent else self.mark
        return parent + "/" + index

    def is_hardened(self) -> bool:
        """Check whether current key node is hardened."""
        return self.index >= HARDENED

    def is_master(self) -> bool:
        """Check whether current key node is master node."""
        return self.depth == 0 and self.index == 0 and self.parent is None

    def is_root(self) -> bool:
        """Check whether current key node is root (has no parent)."""
        return self.parent is None

    def sec(self) -> bytes:
        """Compressed public key, 33 bytes."""
        return self.key

    def fingerprint(self) -> bytes:
        """
        Gets current node fingerprint.

        :return: first four bytes of RIPEMD160(SHA256(public key))
        """
        return hash160(self.sec())[:4]

    @classmethod
    def parse(cls, s: Union[str, bytes, BytesIO],
              network: str = None) -> Prv_or_PubKeyNode:
        """
        Initializes private/public key node from extended key (base58 text)
        or its serialized 78 byte body.

        :param s: serialized node or extended key
        :param network: expected network; detected from version if None
        :return: public/private key node
        """
        if isinstance(s, str):
            s = BytesIO(base58.b58decode_check(s))
        elif isinstance(s, (bytes, bytearray)):
            s = BytesIO(s)
        elif isinstance(s, BytesIO):
            pass
        else:
            raise ValueError("has to be bytes, str or BytesIO")
        return cls._parse(s, network=network)

    @classmethod
    def _parse(cls, s: BytesIO, network: str = None) -> Prv_or_PubKeyNode:
        """
        Initializes private/public key node from serialized node buffer.

        :param s: serialized node buffer
        :param network: expected network (default=None)
        :return: public/private key node
        """
        body = s.read(XKEY_BODY_SIZE)
        if len(body) != XKEY_BODY_SIZE:
            raise ValueError("extended key too short")
        version = big_endian_to_int(body[0:4])
        network = version_to_network(version, cls.kind, network)
        depth = body[4]
        parent_fingerprint = body[5:9]
        index = big_endian_to_int(body[9:13])
        chain_code = body[13:45]
        key_bytes = cls._unpad_key(body[45:78])
        key = cls(
            key=key_bytes,
            chain_code=chain_code,
            index=index,
            depth=depth,
            network=network,
            parent_fingerprint=parent_fingerprint,
        )
        key.parsed_version = version
        return key

    @staticmethod
    def _unpad_key(key_bytes: bytes) -> bytes:
        return key_bytes

    def _serialize(self, key: bytes, version: int) -> bytes:
        """
        Serializes public/private key node to extended key format.

        :param key: 33 bytes of key data
        :param version: extended public/private key version
        :return: serialized extended public/private key node
        """
        # 4 byte: version bytes
        result = int_to_big_endian(version, 4)
        # 1 byte: depth: 0x00 for master nodes, 0x01 for level-1 derived keys
        result += int_to_big_endian(self.depth, 1)
        # 4 bytes: the fingerprint of the parent key (0x00000000 if master key)
        if self.is_master():
            result += int_to_big_endian(0x00000000, 4)
        else:
            result += self.parent_fingerprint
        # 4 bytes: child number. This is ser32(i) for i in xi = xpar/i,
        # with xi the key being serialized. (0x00000000 if master key)
        result += int_to_big_endian(self.index, 4)
        # 32 bytes: the chain code
        result += self.chain_code
        # 33 bytes: the public key or private key data
        # (serP(K) for public keys, 0x00 || ser256(k) for private keys)
        result += key
        return result

    def serialize_public(self, network: str = None) -> bytes:
        """
        Serializes public key node to extended key format (78 bytes).

        :param network: network for version prefix (default=node's network)
        :return: serialized extended public key node
        """
        return self._serialize(version=self.pub_version(network), key=self.sec())

    def extended_public_key(self, network: str = None) -> str:
        """
        Base58 encodes serialized public key node. Version prefix follows
        the network given, or the node's own network.

        :param network: network name (default=None)
        :return: extended public key
        """
        return base58.b58encode_check(self.serialize_public(network)).decode('ascii')

    def to_raw(self, network: str = None) -> bytes:
        """
        Binary form of the extended public key: serialized node plus the
        4 byte checksum, which is the base58check payload (82 bytes).

        :param network: network for version prefix (default=node's network)
        :return: raw bytes
        """
        body = self.serialize_public(network)
        return body + sha256d(body)[:XKEY_CHECKSUM_SIZE]

    @classmethod
    def from_raw(cls, data: bytes, network: str = None) -> "PubKeyNode":
        """
        Inverse of to_raw(). Failures raise MalformedEncoding.

        :param data: exactly 82 bytes
        :param network: expected network; detected from version if None
        :return: public key node
        """
        if len(data) != XKEY_RAW_SIZE:
            raise MalformedEncoding(f"extended key must be {XKEY_RAW_SIZE} bytes", "key")
        body, chk = data[:XKEY_BODY_SIZE], data[XKEY_BODY_SIZE:]
        if sha256d(body)[:XKEY_CHECKSUM_SIZE] != chk:
            raise MalformedEncoding("extended key checksum mismatch", "key")
        try:
            return PubKeyNode._parse(BytesIO(body), network=network)
        except ValueError as exc:
            raise MalformedEncoding(f"bad extended key: {exc}", "key")

    def raw_encode(self) -> bytes:
        """
        Network agnostic binary form: serialized node without version
        prefix and without checksum (74 bytes).
        """
        return self.serialize_public()[4:]

    def to_public(self) -> "PubKeyNode":
        """Public-only copy of this node."""
        return PubKeyNode(
            key=self.sec(),
            chain_code=self.chain_code,
            index=self.index,
            depth=self.depth,
            network=self.network,
            parent_fingerprint=self.parent_fingerprint,
        )

    def clone(self) -> Prv_or_PubKeyNode:
        """Independent copy; parent link is replaced by its fingerprint."""
        return self.__class__(
            key=self.key,
            chain_code=self.chain_code,
            index=self.index,
            depth=self.depth,
            network=self.network,
            parent_fingerprint=self.parent_fingerprint,
        )

    def ckd(self, index: int) -> "PubKeyNode":
        """
        The function CKDpub((Kpar, cpar), i) → (Ki, ci) computes a child
        extended public key from the parent extended public key.
        It is only defined for non-hardened child keys.

        * Check whether i ≥ 2**31 (whether the child is a hardened key).
        * If so (hardened child):
            return failure
        * If not (normal child):
            let I = HMAC-SHA512(Key=cpar, Data=serP(Kpar) || ser32(i)).
        * Split I into two 32-byte sequences, IL and IR.
        * The returned child key Ki is point(parse256(IL)) + Kpar.
        * The returned chain code ci is IR.
        * In case parse256(IL) ≥ n or Ki is the point at infinity,
            the resulting key is invalid, and one should proceed with the next
             value for i.

        :param index: derivation index
        :return: derived child
        """
        if index >= HARDENED:
            raise RuntimeError("failure: hardened child for public ckd")
        I = hmac.new(key=self.chain_code, msg=self.key + int_to_big_endian(index, 4),
                     digestmod=hashlib.sha512).digest()
        IL, IR = I[:32], I[32:]
        try:
            Ki = CT_pubkey_tweak_add(self.key, IL)
        except ValueError:
            raise InvalidKeyError(f"invalid child at index {index}")
        return self.__class__(
            key=Ki,
            chain_code=IR,
            index=index,
            depth=self.depth + 1,
            network=self.network,
            parent=self
        )

    def get_extended_pubkey_from_path(self, index_list: List[int]) -> Prv_or_PubKeyNode:
        """
        Derives node from current node.

        :param index_list: specific index list (or index path) for derivation
        :return: derived node
        """
        node = self
        for i in index_list:
            node = node.ckd(index=i)
        return node

    def derive_path(self, path: str) -> Prv_or_PubKeyNode:
        """
        Derives node from text path, relative to this node: "m/44h/0h/0h"

        :param path: derivation path text
        :return: derived node
        """
        return self.get_extended_pubkey_from_path(str2path(path))


class PrvKeyNode(PubKeyNode):

    mark: str = "m"
    kind: str = "xprv"

    __slots__ = ()

    @staticmethod
    def _check_key(key: bytes):
        if len(key) != 32:
            raise ValueError("expecting 32 byte private key")

    @staticmethod
    def _unpad_key(key_bytes: bytes) -> bytes:
        if key_bytes[0] != 0:
            raise ValueError("private key data must start with zero byte")
        return key_bytes[1:]

    def sec(self) -> bytes:
        """Compressed public key for this private key, 33 bytes."""
        return CT_priv_to_pubkey(self.key)

    def prv_version(self, network: str = None) -> int:
        """
        Extended private key version integer for a network.

        :return: extended private key version
        """
        return NETWORKS[network or self.network]["xprv"]

    @classmethod
    def master_key(cls, bip39_seed: bytes, network: str = DEFAULT_NETWORK) -> "PrvKeyNode":
        """
        Generates master private key node from bip39 seed.

        * Generate a seed byte sequence S (bip39_seed arg) of a chosen length
          (between 128 and 512 bits; 256 bits is advised) from a (P)RNG.
        * Calculate I = HMAC-SHA512(Key = "Bitcoin seed", Data = S)
        * Split I into two 32-byte sequences, IL and IR.
        * Use parse256(IL) as master secret key, and IR as master chain code.

        :param bip39_seed: bip39_seed
        :param network: network name (default='main')
        :return: master private key node
        """
        I = hmac.new(key=b"Bitcoin seed", msg=bip39_seed, digestmod=hashlib.sha512).digest()
        IL, IR = I[:32], I[32:]
        # In case IL is 0 or ≥ n, the master key is invalid
        try:
            CT_priv_to_pubkey(IL)
        except ValueError:
            raise InvalidKeyError("master key is zero or not below curve order")
        return cls(
            key=IL,
            chain_code=IR,
            network=network
        )

    def serialize_private(self, network: str = None) -> bytes:
        """
        Serializes private key node to extended key format.

        :param network: network for version prefix (default=node's network)
        :return: serialized extended private key node
        """
        return self._serialize(version=self.prv_version(network), key=b"\x00" + self.key)

    def extended_private_key(self, network: str = None) -> str:
        """
        Base58 encodes serialized private key node.

        :param network: network name (default=None)
        :return: extended private key
        """
        return base58.b58encode_check(self.serialize_private(network)).decode('ascii')

    def ckd(self, index: int) -> "PrvKeyNode":
        """
        The function CKDpriv((kpar, cpar), i) → (ki, ci) computes
        a child extended private key from the parent extended private key:

        * Check whether i ≥ 2**31 (whether the child is a hardened key).
        * If so (hardened child):
            let I = HMAC-SHA512(Key=cpar, Data=0x00 || ser256(kpar) || ser32(i))
            (Note: The 0x00 pads the private key to make it 33 bytes long.)
        * If not (normal child):
            let I = HMAC-SHA512(Key=cpar, Data=serP(point(kpar)) || ser32(i))
        * Split I into two 32-byte sequences, IL and IR.
        * The returned child key ki is parse256(IL) + kpar (mod n).
        * The returned chain code ci is IR.
        * In case parse256(IL) ≥ n or ki = 0, the resulting key is invalid,
            and one should proceed with the next value for i.
            (Note: this has probability lower than 1 in 2**127.)

        :param index: derivation index
        :return: derived child
        """
        if index >= HARDENED:
            # hardened
            data = b"\x00" + self.key + int_to_big_endian(index, 4)
        else:
            data = self.sec() + int_to_big_endian(index, 4)
        I = hmac.new(key=self.chain_code, msg=data, digestmod=hashlib.sha512).digest()
        IL, IR = I[:32], I[32:]
        try:
            ki = CT_privkey_tweak_add(self.key, IL)
        except ValueError:
            raise InvalidKeyError(f"invalid child at index {index}")
        return self.__class__(
            key=ki,
            chain_code=IR,
            index=index,
            depth=self.depth + 1,
            network=self.network,
            parent=self
        )

# EOF
