"""Tests for the JWK record."""

import json

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa, x25519

from kmsjwk.core.errors import (
    InvalidEncodingError,
    InvalidKeySizeError,
    KeyCreationError,
    UnsupportedKeyTypeError,
)
from kmsjwk.core.jwk import JWK
from kmsjwk.core.key_types import BLS12381_G2, ED25519, P256, SECP256K1
from kmsjwk.core.keys import BLSKey, ECKey, OKPKey, RSAKey

ED25519_JWK = {
    "kty": "OKP",
    "use": "enc",
    "crv": "Ed25519",
    "kid": "sample@sample.id",
    "x": "sEHL6KXs8bUz9Ss2qSWWjhhRMHVjrog0lzFENM132R8",
    "alg": "EdDSA",
}

X25519_JWK = {
    "kty": "OKP",
    "use": "enc",
    "crv": "X25519",
    "kid": "sample@sample.id",
    "x": "sEHL6KXs8bUz9Ss2qSWWjhhRMHVjrog0lzFENM132R8",
}

BLS_JWK = {
    "kty": "EC",
    "use": "enc",
    "crv": "BLS12381_G2",
    "kid": "sample@sample.id",
    "x": "tKWJu0SOY7onl4tEyOOH11XBriQN2JgzV-UmjgBMSsNkcAx3_l97SVYViSDBouTVBkBfrLh33C5icDD-4UEDxNO3Wn1ijMHvn2N63DU4pkezA3kGN81jGbwbrsMPpiOF",
}

RSA_JWK = {
    "kty": "RSA",
    "e": "AQAB",
    "use": "enc",
    "kid": "sample@sample.id",
    "alg": "RS256",
    "n": "1hOl09BUnwY7jFBqoZKa4XDmIuc0YFb4y_5ThiHhLRW68aNG5Vo23n3ugND2GK3PsguZqJ_HrWCGVuVlKTmFg"
         "JWQD9ZnVcYqScgHpQRhxMBi86PIvXR01D_PWXZZjvTRakpvQxUT5bVBdWnaBHQoxDBt0YIVi5a7x-gXB1aDlts4RTMpfS9BPmEjX"
         "4lciozwS6Ow_wTO3C2YGa_Our0ptIxr-x_3sMbPCN8Fe_iaBDezeDAm39xCNjFa1E735ipXA4eUW_6SzFJ5-bM2UKba2WE6xUaEa5G1"
         "MDDHCG5LKKd6Mhy7SSAzPOR2FTKYj89ch2asCPlbjHTu8jS6Iy8",
}

P256_JWK = {
    "kty": "EC",
    "use": "enc",
    "crv": "P-256",
    "kid": "sample@sample.id",
    "x": "JR7nhI47w7bxrNkp7Xt1nbmozNn-RB2Q-PWi7KHT8J0",
    "y": "iXmKtH0caOgB1vV0CQwinwK999qdDvrssKhdbiAz9OI",
    "alg": "ES256",
}

P384_JWK = {
    "kty": "EC",
    "use": "enc",
    "crv": "P-384",
    "kid": "sample@sample.id",
    "x": "GGFw14WnABx5S__MLwjy7WPgmPzCNbygbJikSqwx1nQ7APAiIyLeiAeZnAFQSr8C",
    "y": "Bjev4lkaRbd4Ery0vnO8Ox4QgIDGbuflmFq0HhL-QHIe3KhqxrqZqbQYGlDNudEv",
    "alg": "ES384",
}

P521_JWK = {
    "kty": "EC",
    "use": "enc",
    "crv": "P-521",
    "kid": "sample@sample.id",
    "x": "AZi-AxJkB09qw8dBnNrz53xM-wER0Y5IYXSEWSTtzI5Sdv_5XijQn9z-vGz1pMdww-C75GdpAzp2ghejZJSxbAd6",
    "y": "AZzRvW8NBytGNbF3dyNOMHB0DHCOzGp8oYBv_ZCyJbQUUnq-TYX7j8-PlKe9Ce5acxZzrcUKVtJ4I8JgI5x9oXIW",
    "alg": "ES521",
}

SECP256K1_JWK = {
    "kty": "EC",
    "use": "enc",
    "crv": "secp256k1",
    "kid": "sample@sample.id",
    "x": "YRrvJocKf39GpdTnd-zBFE0msGDqawR-Cmtc6yKoFsM",
    "y": "kE-dMH9S3mxnTXo0JFEhraCU_tVYFDfpu9tpP1LfVKQ",
    "alg": "ES256K",
}

PUBLIC_VECTORS = [
    ED25519_JWK, X25519_JWK, BLS_JWK, RSA_JWK, P256_JWK, P384_JWK, P521_JWK, SECP256K1_JWK,
]


class TestParsePublishedKeys:
    """Tests for parsing published JWK documents."""

    @pytest.mark.parametrize("document", PUBLIC_VECTORS, ids=lambda d: d.get("crv", d["kty"]))
    def test_round_trip(self, document):
        """Parsing and re-serializing reproduces the document."""
        jwk = JWK.from_json(json.dumps(document))

        assert not jwk.is_private
        assert jwk.public_key_bytes()
        assert jwk.to_dict() == document

    def test_ec_members(self):
        """EC vectors keep their coordinates and metadata."""
        jwk = JWK.from_dict(P256_JWK)

        assert isinstance(jwk.key, ECKey)
        assert jwk.key.curve == P256
        assert (jwk.kty, jwk.crv) == ("EC", "P-256")
        assert (jwk.kid, jwk.use, jwk.alg) == ("sample@sample.id", "enc", "ES256")
        assert len(jwk.public_key_bytes()) == 65

    def test_bls_members(self):
        """BBS+ keys are kty EC on BLS12381_G2."""
        jwk = JWK.from_dict(BLS_JWK)

        assert isinstance(jwk.key, BLSKey)
        assert jwk.key.curve == BLS12381_G2
        assert jwk.kty == "EC"
        assert len(jwk.public_key_bytes()) == 96

    def test_rsa_members(self):
        """RSA public key bytes are SubjectPublicKeyInfo DER."""
        jwk = JWK.from_dict(RSA_JWK)

        assert isinstance(jwk.key, RSAKey)
        assert jwk.key.e == 65537
        assert jwk.crv is None
        assert jwk.public_key_bytes()[0] == 0x30

    def test_extra_members_ignored(self):
        """Unknown members do not prevent parsing."""
        jwk = JWK.from_dict({**ED25519_JWK, "x5t": "abc"})
        assert jwk.crv == "Ed25519"


class TestParseErrors:
    """Tests for malformed JWK documents."""

    def test_not_json(self):
        """Non-JSON input is an encoding error."""
        with pytest.raises(InvalidEncodingError, match="parse JWK"):
            JWK.from_json("not json")

    def test_missing_kty(self):
        """kty is required."""
        with pytest.raises(InvalidEncodingError):
            JWK.from_dict({"crv": "P-256"})

    def test_unknown_kty(self):
        """Symmetric JWKs are not supported."""
        with pytest.raises(UnsupportedKeyTypeError, match="unsupported kty"):
            JWK.from_dict({"kty": "oct", "k": "AAAA"})

    def test_unknown_crv(self):
        """Unregistered curves are not supported."""
        with pytest.raises(UnsupportedKeyTypeError, match="unsupported crv"):
            JWK.from_dict({**P256_JWK, "crv": "P-192"})

    def test_kty_crv_disagree(self):
        """An OKP curve under kty EC is rejected."""
        with pytest.raises(UnsupportedKeyTypeError):
            JWK.from_dict({**ED25519_JWK, "kty": "EC"})

    def test_missing_y(self):
        """EC keys need both coordinates."""
        document = dict(P256_JWK)
        del document["y"]
        with pytest.raises(InvalidEncodingError, match="missing member 'y'"):
            JWK.from_dict(document)

    def test_bad_base64(self):
        """Coordinates must be base64url."""
        with pytest.raises(InvalidEncodingError, match="not base64url"):
            JWK.from_dict({**P256_JWK, "x": "!!!!"})

    def test_point_not_on_curve(self):
        """Coordinates must name a point on the curve."""
        with pytest.raises(InvalidEncodingError):
            JWK.from_dict({**P256_JWK, "y": P256_JWK["x"]})

    def test_okp_wrong_size(self):
        """OKP keys must be 32 bytes."""
        with pytest.raises(InvalidKeySizeError):
            JWK.from_dict({**X25519_JWK, "x": "AAAA"})

    def test_private_key_mismatch(self):
        """A d that does not match x/y is rejected."""
        other = ec.generate_private_key(ec.SECP256R1())
        d = JWK(key=other, kty="EC", crv="P-256").to_dict()["d"]
        with pytest.raises(InvalidEncodingError, match="does not match"):
            JWK.from_dict({**P256_JWK, "d": d})


class TestPrivateKeys:
    """Tests for JWKs carrying private material."""

    @pytest.mark.parametrize("crypto_curve,crv,size", [
        (ec.SECP256R1(), "P-256", 32),
        (ec.SECP521R1(), "P-521", 66),
        (ec.SECP256K1(), "secp256k1", 32),
    ])
    def test_ec_private(self, crypto_curve, crv, size):
        """EC private JWKs round-trip with a padded d."""
        jwk = JWK(key=ec.generate_private_key(crypto_curve), kty="EC", crv=crv)
        document = jwk.to_dict()

        assert jwk.is_private
        assert len(document["d"]) == len(document["x"])
        assert JWK.from_dict(document) == jwk

    def test_ed25519_private(self):
        """Ed25519 private JWKs round-trip."""
        jwk = JWK(key=ed25519.Ed25519PrivateKey.generate(), kty="OKP", crv="Ed25519")
        assert JWK.from_json(jwk.to_json()) == jwk

    def test_x25519_private(self):
        """X25519 private JWKs round-trip."""
        jwk = JWK(key=x25519.X25519PrivateKey.generate(), kty="OKP", crv="X25519")
        assert JWK.from_json(jwk.to_json()) == jwk

    def test_rsa_private(self):
        """RSA private JWKs carry the CRT members and round-trip."""
        jwk = JWK(key=rsa.generate_private_key(public_exponent=65537, key_size=2048), kty="RSA")
        document = jwk.to_dict()

        assert {"d", "p", "q", "dp", "dq", "qi"} <= set(document)
        assert JWK.from_dict(document) == jwk

    def test_bls_private(self):
        """BLS private JWKs round-trip with a 32-byte d."""
        jwk = JWK(key=BLSKey.generate(), kty="EC", crv="BLS12381_G2")
        assert JWK.from_dict(jwk.to_dict()) == jwk

    def test_public_strips_private(self):
        """public() and include_private=False drop private members."""
        jwk = JWK(key=ec.generate_private_key(ec.SECP256K1()), kty="EC", crv="secp256k1", kid="k1")

        assert "d" not in jwk.to_dict(include_private=False)
        assert not jwk.public().is_private
        assert jwk.public().kid == "k1"
        assert jwk.public().key.curve == SECP256K1


class TestConstruction:
    """Tests for the kty/crv invariant."""

    def test_cryptography_key_converted(self):
        """cryptography key objects become native keys."""
        jwk = JWK(key=ed25519.Ed25519PrivateKey.generate().public_key(), kty="OKP", crv="Ed25519")
        assert isinstance(jwk.key, OKPKey)

    def test_mismatched_crv(self):
        """A crv that disagrees with the key is refused."""
        with pytest.raises(KeyCreationError, match="create JWK"):
            JWK(key=OKPKey(curve=ED25519, x=b"\x01" * 32), kty="OKP", crv="X25519")

    def test_mismatched_kty(self):
        """A kty that disagrees with the key is refused."""
        with pytest.raises(KeyCreationError):
            JWK(key=ed25519.Ed25519PrivateKey.generate(), kty="EC", crv="Ed25519")

    def test_not_a_key(self):
        """Non-key values are refused."""
        with pytest.raises(KeyCreationError, match="unsupported key type str"):
            JWK(key="badKeytype", kty="EC")
