"""Binary codec for exported public keys.

Encodes and decodes the public key layouts a key-management backend
exports:

- IEEE-P1363: ``0x04 || X || Y``, each coordinate zero-padded to the
  curve field width
- ASN.1 DER SubjectPublicKeyInfo for EC and RSA keys
- Raw 32-byte Ed25519 / X25519 keys
- 96-byte compressed BLS12-381 G2 points (BBS+ public keys)
- The flattened ``{"x", "y", "curve", "type"}`` JSON used for ECDH
  key-wrapping keys

DER is read by a small strict TLV reader rather than a general ASN.1
library: the only structure needed is SubjectPublicKeyInfo, and trailing
bytes after it must be rejected, not ignored.

All functions are pure. Decoders copy what they keep out of the input.
"""

from dataclasses import dataclass, replace

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from py_ecc.bls.g2_primitives import signature_to_G2, subgroup_check
from py_ecc.optimized_bls12_381 import is_inf
from pydantic import ValidationError

from kmsjwk.config import get_settings
from kmsjwk.core.errors import (
    CurveMismatchError,
    InvalidEncodingError,
    InvalidKeySizeError,
    UnsupportedKeyTypeError,
)
from kmsjwk.core.key_types import (
    BLS12381_G2,
    CURVES,
    SECP256K1,
    Curve,
    KeyEncoding,
    KeyFamily,
    KeySpec,
    curve_by_name,
    curve_by_oid,
)
from kmsjwk.core.keys import BLSKey, ECKey, NativeKey, OKPKey, RSAKey
from kmsjwk.schemas.jwk import PublicKeyView

# ASN.1 universal tags
TAG_BIT_STRING = 0x03
TAG_NULL = 0x05
TAG_OID = 0x06
TAG_SEQUENCE = 0x30

EC_PUBLIC_KEY_OID = "1.2.840.10045.2.1"
RSA_ENCRYPTION_OID = "1.2.840.113549.1.1.1"
# Placeholder algorithm identifier historically written for secp256k1 keys.
# Syntactically valid, registered to nothing.
LEGACY_SECP256K1_OID = "2.0"

OID_MODE_LEGACY = "legacy"
OID_MODE_REGISTERED = "registered"


# ==================== DER ====================

@dataclass(frozen=True)
class SubjectPublicKeyInfo:
    """Parsed SubjectPublicKeyInfo."""
    algorithm: str
    parameters: str | None  # namedCurve OID when the parameters are an OID
    public_key: bytes


def _read_tlv(data: bytes, pos: int) -> tuple[int, bytes, int]:
    """Read one DER element at ``pos``.

    Returns:
        Tuple of (tag, value, position after the element)
    """
    if pos + 2 > len(data):
        raise InvalidEncodingError("asn1: syntax error: data truncated")

    tag = data[pos]
    if tag & 0x1F == 0x1F:
        raise InvalidEncodingError("asn1: structure error: high-tag-number form not supported")

    length = data[pos + 1]
    pos += 2
    if length == 0x80:
        raise InvalidEncodingError("asn1: syntax error: indefinite length found (not DER)")
    if length & 0x80:
        num_bytes = length & 0x7F
        if num_bytes > 4 or pos + num_bytes > len(data):
            raise InvalidEncodingError("asn1: syntax error: data truncated")
        length_bytes = data[pos:pos + num_bytes]
        if length_bytes[0] == 0:
            raise InvalidEncodingError("asn1: structure error: superfluous leading zeros in length")
        length = int.from_bytes(length_bytes, "big")
        if length < 0x80:
            raise InvalidEncodingError("asn1: structure error: non-minimal length")
        pos += num_bytes

    end = pos + length
    if end > len(data):
        raise InvalidEncodingError("asn1: syntax error: data truncated")
    return tag, data[pos:end], end


def _expect(data: bytes, pos: int, tag: int) -> tuple[bytes, int]:
    actual, value, pos = _read_tlv(data, pos)
    if actual != tag:
        raise InvalidEncodingError("asn1: structure error: tags don't match")
    return value, pos


def _encode_length(length: int) -> bytes:
    if length < 0x80:
        return bytes([length])
    body = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([0x80 | len(body)]) + body


def _encode_tlv(tag: int, value: bytes) -> bytes:
    return bytes([tag]) + _encode_length(len(value)) + value


def _encode_base128(value: int) -> bytes:
    out = [value & 0x7F]
    value >>= 7
    while value:
        out.append(0x80 | (value & 0x7F))
        value >>= 7
    return bytes(reversed(out))


def encode_oid(dotted: str) -> bytes:
    """Encode a dotted object identifier as DER content octets."""
    arcs = [int(arc) for arc in dotted.split(".")]
    if len(arcs) < 2 or arcs[0] > 2 or (arcs[0] < 2 and arcs[1] >= 40):
        raise ValueError(f"invalid object identifier: {dotted}")
    body = _encode_base128(arcs[0] * 40 + arcs[1])
    for arc in arcs[2:]:
        body += _encode_base128(arc)
    return body


def decode_oid(body: bytes) -> str:
    """Decode DER object identifier content octets to dotted form."""
    if not body or body[-1] & 0x80:
        raise InvalidEncodingError("asn1: syntax error: truncated object identifier")

    values = []
    value = 0
    for i, byte in enumerate(body):
        if value == 0 and byte == 0x80 and (i == 0 or not body[i - 1] & 0x80):
            raise InvalidEncodingError("asn1: syntax error: non-minimal object identifier")
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            values.append(value)
            value = 0

    first = values[0]
    if first < 40:
        arcs = [0, first]
    elif first < 80:
        arcs = [1, first - 40]
    else:
        arcs = [2, first - 80]
    return ".".join(str(arc) for arc in arcs + values[1:])


def parse_spki(data: bytes) -> SubjectPublicKeyInfo:
    """Strictly parse a DER SubjectPublicKeyInfo.

    Raises:
        InvalidEncodingError: On any structural error, including bytes
            left over after the outer SEQUENCE
    """
    data = bytes(data)
    body, end = _expect(data, 0, TAG_SEQUENCE)
    if end != len(data):
        raise InvalidEncodingError("asn1: trailing data after public key")

    algorithm_body, pos = _expect(body, 0, TAG_SEQUENCE)
    bit_string, pos = _expect(body, pos, TAG_BIT_STRING)
    if pos != len(body):
        raise InvalidEncodingError("asn1: trailing data inside public key info")

    oid_body, alg_pos = _expect(algorithm_body, 0, TAG_OID)
    algorithm = decode_oid(oid_body)

    parameters = None
    if alg_pos < len(algorithm_body):
        tag, value, alg_pos = _read_tlv(algorithm_body, alg_pos)
        if tag == TAG_OID:
            parameters = decode_oid(value)
        if alg_pos != len(algorithm_body):
            raise InvalidEncodingError("asn1: trailing data inside algorithm identifier")

    if not bit_string or bit_string[0] != 0:
        raise InvalidEncodingError("asn1: structure error: invalid public key bit string")

    return SubjectPublicKeyInfo(
        algorithm=algorithm,
        parameters=parameters,
        public_key=bit_string[1:],
    )


def encode_spki(algorithm: str, public_key: bytes, parameters: str | None = None) -> bytes:
    """Encode a SubjectPublicKeyInfo with an optional OID parameter."""
    algorithm_body = _encode_tlv(TAG_OID, encode_oid(algorithm))
    if parameters is not None:
        algorithm_body += _encode_tlv(TAG_OID, encode_oid(parameters))
    return _encode_tlv(
        TAG_SEQUENCE,
        _encode_tlv(TAG_SEQUENCE, algorithm_body)
        + _encode_tlv(TAG_BIT_STRING, b"\x00" + public_key),
    )


# ==================== EC ====================

def _decode_point(point: bytes, curve: Curve) -> ECKey:
    if len(point) != curve.point_size:
        raise InvalidEncodingError(
            f"invalid {curve.name} point length: {len(point)} bytes, expected {curve.point_size}"
        )
    if point[0] != 0x04:
        raise InvalidEncodingError("point is not in uncompressed form")
    try:
        public_key = ec.EllipticCurvePublicKey.from_encoded_point(curve.crypto_curve(), point)
    except ValueError as e:
        raise InvalidEncodingError(f"invalid {curve.name} point: {e}") from e
    return ECKey.from_cryptography(public_key)


def decode_ieee_p1363(data: bytes, curve: Curve) -> ECKey:
    """Decode an uncompressed IEEE-P1363 point."""
    return _decode_point(bytes(data), curve)


def encode_ieee_p1363(key: ECKey) -> bytes:
    return key.point_bytes()


def _curve_with_point_size(size: int) -> Curve | None:
    for candidate in CURVES.values():
        if candidate.family == KeyFamily.EC and candidate.point_size == size:
            return candidate
    return None


def decode_ec_der(data: bytes, curve: Curve) -> ECKey:
    """Decode an EC SubjectPublicKeyInfo and check it is on ``curve``.

    secp256k1 keys may also carry the legacy placeholder algorithm
    identifier, in which case the point length identifies the curve. The
    form read is kept on the key so re-encoding writes it back.

    Raises:
        InvalidEncodingError: Malformed DER or a point not on the curve
        CurveMismatchError: The DER names a different curve or key family
    """
    spki = parse_spki(data)
    point = spki.public_key

    if spki.algorithm == LEGACY_SECP256K1_OID and curve == SECP256K1:
        if len(point) != curve.point_size:
            other = _curve_with_point_size(len(point))
            if other is not None:
                raise CurveMismatchError(
                    f"key is not {curve.name}: point length matches {other.name}"
                )
    elif spki.algorithm == EC_PUBLIC_KEY_OID:
        if spki.parameters is None:
            raise InvalidEncodingError("EC key is missing its namedCurve parameter")
        named = curve_by_oid(spki.parameters)
        if named is None:
            raise CurveMismatchError(f"unsupported named curve: {spki.parameters}")
        if named != curve:
            raise CurveMismatchError(f"key is {named.name}, expected {curve.name}")
    else:
        raise CurveMismatchError(f"invalid EC key: algorithm {spki.algorithm}")

    key = _decode_point(point, curve)
    if curve == SECP256K1:
        oid_mode = OID_MODE_LEGACY if spki.algorithm == LEGACY_SECP256K1_OID else OID_MODE_REGISTERED
        key = replace(key, der_oid=oid_mode)
    return key


def encode_ec_der(key: ECKey) -> bytes:
    if key.curve == SECP256K1:
        return marshal_secp256k1_der(key)
    return key.to_cryptography().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def marshal_secp256k1_der(key: ECKey | ec.EllipticCurvePublicKey, oid_mode: str | None = None) -> bytes:
    """Encode an EC public key as SubjectPublicKeyInfo for secp256k1 consumers.

    Args:
        key: EC public key (any curve; the point is written as given)
        oid_mode: ``legacy`` writes the placeholder identifier 2.0,
            ``registered`` writes id-ecPublicKey with the key's namedCurve.
            Defaults to the form the key was decoded from, then to the
            ``secp256k1_der_oid`` setting.
    """
    if isinstance(key, (ec.EllipticCurvePublicKey, ec.EllipticCurvePrivateKey)):
        key = ECKey.from_cryptography(key)
    if oid_mode is None:
        oid_mode = key.der_oid or get_settings().secp256k1_der_oid

    if oid_mode == OID_MODE_LEGACY:
        return encode_spki(LEGACY_SECP256K1_OID, key.point_bytes())
    if oid_mode == OID_MODE_REGISTERED:
        return encode_spki(EC_PUBLIC_KEY_OID, key.point_bytes(), key.curve.oid)
    raise ValueError(f"Unknown secp256k1 OID mode: {oid_mode}")


# ==================== RSA ====================

def decode_rsa_der(data: bytes) -> RSAKey:
    """Decode an RSA SubjectPublicKeyInfo."""
    try:
        spki = parse_spki(data)
    except InvalidEncodingError as e:
        raise InvalidEncodingError(f"rsa: invalid public key: {e.reason}") from e
    if spki.algorithm != RSA_ENCRYPTION_OID:
        raise InvalidEncodingError("rsa: invalid public key")

    try:
        public_key = serialization.load_der_public_key(bytes(data))
    except (ValueError, UnsupportedAlgorithm) as e:
        raise InvalidEncodingError(f"rsa: invalid public key: {e}") from e
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise InvalidEncodingError("rsa: invalid public key")
    return RSAKey.from_cryptography(public_key)


def encode_rsa_der(key: RSAKey) -> bytes:
    return key.public().to_cryptography().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


# ==================== OKP ====================

def decode_okp_raw(data: bytes, curve: Curve) -> OKPKey:
    """Wrap a raw Ed25519 / X25519 key."""
    if data is None or len(data) != curve.size:
        size = 0 if data is None else len(data)
        raise InvalidKeySizeError(
            f"invalid {curve.name} key size: {size} bytes, expected {curve.size}"
        )
    return OKPKey(curve=curve, x=bytes(data))


# ==================== BLS12-381 G2 ====================

def decode_bls_g2(data: bytes) -> BLSKey:
    """Decode and validate a compressed G2 point."""
    if data is None or len(data) != BLS12381_G2.size:
        raise InvalidKeySizeError("invalid size of public key")

    data = bytes(data)
    try:
        point = signature_to_G2(data)
    except ValueError as e:
        raise InvalidEncodingError(f"invalid BLS12-381 G2 point: {e}") from e
    if is_inf(point) or not subgroup_check(point):
        raise InvalidEncodingError("invalid BLS12-381 G2 point: not in the G2 subgroup")
    return BLSKey(x=data)


# ==================== KW JSON ====================

def decode_kw_json(data: bytes, curve: Curve) -> ECKey:
    """Decode the flattened JSON coordinates of an ECDH-KW key."""
    try:
        view = PublicKeyView.model_validate_json(bytes(data))
    except ValidationError as e:
        raise InvalidEncodingError(str(e)) from e

    if view.type is not None and view.type != "EC":
        raise InvalidEncodingError(f"kw public key type must be EC, got {view.type}")
    named = curve_by_name(view.curve) if view.curve else None
    if named != curve:
        raise CurveMismatchError(f"key is {view.curve}, expected {curve.name}")
    if not view.x or not view.y:
        raise InvalidEncodingError("kw public key is missing coordinates")
    if len(view.x) > curve.size or len(view.y) > curve.size:
        raise InvalidEncodingError(f"kw public key coordinates exceed {curve.name} field width")

    point = b"\x04" + view.x.rjust(curve.size, b"\x00") + view.y.rjust(curve.size, b"\x00")
    return _decode_point(point, curve)


def encode_kw_json(key: ECKey) -> bytes:
    size = key.curve.size
    return PublicKeyView(
        x=key.x.to_bytes(size, "big"),
        y=key.y.to_bytes(size, "big"),
        curve=key.curve.name,
        type="EC",
    ).to_json()


# ==================== Dispatch ====================

def decode_public_key(data: bytes, spec: KeySpec) -> NativeKey:
    """Decode public key bytes in the layout ``spec`` commits to."""
    if spec.family == KeyFamily.EC:
        if spec.encoding == KeyEncoding.IEEE_P1363:
            return decode_ieee_p1363(data, spec.curve)
        if spec.encoding == KeyEncoding.DER:
            return decode_ec_der(data, spec.curve)
        if spec.encoding == KeyEncoding.KW_JSON:
            return decode_kw_json(data, spec.curve)
    elif spec.family == KeyFamily.OKP:
        return decode_okp_raw(data, spec.curve)
    elif spec.family == KeyFamily.BLS:
        return decode_bls_g2(data)
    elif spec.family == KeyFamily.RSA:
        return decode_rsa_der(data)

    raise UnsupportedKeyTypeError(f"invalid key type: {spec.key_type.value}")


def encode_public_key(key: NativeKey, spec: KeySpec) -> bytes:
    """Encode the public part of ``key`` in the layout ``spec`` commits to."""
    if spec.family == KeyFamily.SYMMETRIC or spec.encoding == KeyEncoding.NONE:
        raise UnsupportedKeyTypeError(f"invalid key type: {spec.key_type.value}")
    if key.family != spec.family:
        raise CurveMismatchError(
            f"{key.family.value} key cannot be encoded as {spec.key_type.value}"
        )
    if spec.curve is not None and key.curve != spec.curve:
        raise CurveMismatchError(f"key is {key.curve.name}, expected {spec.curve.name}")

    if isinstance(key, ECKey):
        if spec.encoding == KeyEncoding.IEEE_P1363:
            return encode_ieee_p1363(key)
        if spec.encoding == KeyEncoding.DER:
            return encode_ec_der(key)
        return encode_kw_json(key)
    if isinstance(key, OKPKey):
        return key.x
    if isinstance(key, BLSKey):
        return key.x
    return encode_rsa_der(key)
