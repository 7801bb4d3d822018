import pytest

from issuer.babyjub import (BASE8, GENERATOR, IDENTITY, SUB_ORDER, Point, add_points,
                            in_curve, in_subgroup, mul_point_scalar, negate_point, to_point)
from issuer.certificate import digest
from issuer.eddsa import (IssuerIdentity, PublicKey, Signature, derive_public_key,
                          generate_keypair, sign, verify, verify_or_raise)
from zk.errors import FieldRangeError, KeyFormatError, SignatureVerificationError
from zk.field import SNARK_SCALAR_FIELD

from conftest import TEST_PRIVATE_KEY


class TestBabyJubjub:

    def test_base_points_on_curve(self):
        assert in_curve(GENERATOR)
        assert in_curve(BASE8)

    def test_base8_is_eight_times_generator(self):
        assert mul_point_scalar(GENERATOR, 8) == BASE8

    def test_base8_has_prime_order(self):
        assert mul_point_scalar(BASE8, SUB_ORDER) == IDENTITY
        assert in_subgroup(BASE8)

    def test_identity_and_negation(self):
        assert add_points(BASE8, IDENTITY) == BASE8
        assert add_points(BASE8, negate_point(BASE8)) == IDENTITY

    def test_scalar_multiplication_is_additive(self):
        assert add_points(mul_point_scalar(BASE8, 3), mul_point_scalar(BASE8, 4)) == \
            mul_point_scalar(BASE8, 7)

    def test_off_curve_point_rejected(self):
        assert not in_curve(Point(1, 1))
        with pytest.raises(FieldRangeError):
            to_point(1, 1)

    def test_negative_scalar_rejected(self):
        with pytest.raises(ValueError):
            mul_point_scalar(BASE8, -1)


class TestKeys:

    def test_derivation_is_deterministic(self):
        assert derive_public_key(TEST_PRIVATE_KEY) == derive_public_key(TEST_PRIVATE_KEY)

    def test_public_key_in_subgroup(self):
        assert in_subgroup(derive_public_key(TEST_PRIVATE_KEY).point)

    def test_generated_keys_differ(self):
        assert generate_keypair().public_key != generate_keypair().public_key

    def test_generate_with_rng(self, rng_factory):
        first = generate_keypair(rng_factory(b"seed"))
        second = generate_keypair(rng_factory(b"seed"))
        assert first == second

    @pytest.mark.parametrize("key", [b"", b"\x01" * 31, b"\x01" * 33])
    def test_wrong_key_length(self, key):
        with pytest.raises(KeyFormatError):
            derive_public_key(key)
        with pytest.raises(KeyFormatError):
            sign(key, 1)

    def test_key_must_be_bytes(self):
        with pytest.raises(KeyFormatError):
            IssuerIdentity.from_private_key("00" * 32)

    def test_private_key_hidden_from_repr(self):
        keypair = generate_keypair()
        assert keypair.private_key.hex() not in repr(keypair)

    def test_public_key_json(self, issuer_identity):
        key = issuer_identity.public_key
        data = key.to_json()
        assert set(data) == {"Ax", "Ay"}
        assert PublicKey.from_json(data) == key


class TestSignatures:

    def test_sign_then_verify(self, issuer_identity):
        for message in (0, 1, 12345, SNARK_SCALAR_FIELD - 1):
            signature = issuer_identity.sign(message)
            assert issuer_identity.verify(message, signature)

    def test_signing_is_deterministic(self):
        assert sign(TEST_PRIVATE_KEY, 99) == sign(TEST_PRIVATE_KEY, 99)

    def test_signature_components_in_range(self, issuer_identity):
        signature = issuer_identity.sign(7)
        assert signature.s < SUB_ORDER
        assert in_curve(signature.r8)

    def test_wrong_key_fails(self, issuer_identity):
        other = IssuerIdentity.generate()
        signature = issuer_identity.sign(5)
        assert not verify(other.public_key, 5, signature)

    def test_tampered_s_fails(self, issuer_identity):
        signature = issuer_identity.sign(5)
        tampered = Signature(signature.r8x, signature.r8y, (signature.s + 1) % SUB_ORDER)
        assert not issuer_identity.verify(5, tampered)

    def test_non_canonical_s_fails(self, issuer_identity):
        signature = issuer_identity.sign(5)
        tampered = Signature(signature.r8x, signature.r8y, signature.s + SUB_ORDER)
        assert not issuer_identity.verify(5, tampered)

    def test_out_of_range_message_fails_fast(self):
        with pytest.raises(FieldRangeError):
            sign(TEST_PRIVATE_KEY, SNARK_SCALAR_FIELD)
        with pytest.raises(FieldRangeError):
            sign(TEST_PRIVATE_KEY, -1)

    def test_out_of_range_message_does_not_verify(self, issuer_identity):
        signature = issuer_identity.sign(1)
        assert not issuer_identity.verify(SNARK_SCALAR_FIELD + 1, signature)

    def test_signature_json(self, issuer_identity):
        signature = issuer_identity.sign(3)
        data = signature.to_json()
        assert set(data) == {"R8x", "R8y", "S"}
        assert Signature.from_json(data) == signature


class TestCertificateSignature:

    def test_pinned_certificate_scenario(self, issuer_identity):
        message_hash = digest(b'{"a":1}')
        assert message_hash == (
            16090163471605058336218158328423137087281417112298648091255114758222859330368)

        signature = issuer_identity.sign(message_hash)
        verify_or_raise(issuer_identity.public_key, message_hash, signature)

        with pytest.raises(SignatureVerificationError):
            verify_or_raise(issuer_identity.public_key, message_hash ^ 1, signature)
