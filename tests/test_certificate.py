import pytest
from Crypto.Hash import keccak

from issuer.certificate import (Certificate, CertificateDigest, canonical_json,
                                digest, split_digest)
from zk.errors import FieldRangeError, MalformedCertificateError
from zk.field import SNARK_SCALAR_FIELD
from zk.poseidon import poseidon_hash

CERT_BYTES = b'{"a":1}'
CERT_KECCAK = "25e7c2a96531eb50246780c1f25742e489bf55210e26981dc02992bb585feb97"
CERT_MESSAGE_HASH = 16090163471605058336218158328423137087281417112298648091255114758222859330368


def keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


@pytest.fixture
def certificate():
    return Certificate(
        subject="0xabc",
        issuer="did:example:issuer",
        type="AgeCredential",
        details={"age": 30},
        issuance_date="2024-01-01T00:00:00+00:00",
    )


class TestDigest:

    def test_deterministic(self):
        assert digest(CERT_BYTES) == digest(CERT_BYTES)

    def test_known_message_hash(self):
        assert keccak256(CERT_BYTES).hex() == CERT_KECCAK
        assert digest(CERT_BYTES) == CERT_MESSAGE_HASH

    def test_keccak_split_then_fold(self):
        result = CertificateDigest().digest_with_trace(CERT_BYTES)
        wide = keccak256(CERT_BYTES)

        assert result.wide_hash == wide
        assert result.chunks.high == int.from_bytes(wide[:16], 'big')
        assert result.chunks.low == int.from_bytes(wide[16:], 'big')
        assert result.message_hash == poseidon_hash([result.chunks.high, result.chunks.low])
        assert 0 <= result.message_hash < SNARK_SCALAR_FIELD

    def test_trace_serializes_as_decimal_strings(self):
        trace = CertificateDigest().digest_with_trace(CERT_BYTES).to_json()
        assert trace['wideHash'] == '0x' + keccak256(CERT_BYTES).hex()
        assert trace['messageHash'] == str(digest(CERT_BYTES))

    def test_different_payloads_differ(self):
        assert digest(b'{"a":1}') != digest(b'{"a":2}')

    def test_alternative_256_bit_hash(self):
        assert digest(CERT_BYTES, algorithm="sha256") != digest(CERT_BYTES)

    def test_hash_width_mismatch(self):
        digester = CertificateDigest(algorithm="sha512")
        with pytest.raises(MalformedCertificateError):
            digester.digest(CERT_BYTES)

    def test_unknown_algorithm(self):
        with pytest.raises(MalformedCertificateError):
            CertificateDigest(algorithm="md5")

    def test_non_bytes_payload(self):
        with pytest.raises(TypeError):
            digest("not bytes")


class TestSplitDigest:

    def test_random_128_bit_halves_always_fit(self, rng):
        for _ in range(200):
            chunks = split_digest(rng(32))
            assert chunks.high < 2 ** 128 and chunks.low < 2 ** 128

    def test_half_at_or_above_prime_rejected(self):
        with pytest.raises(FieldRangeError):
            split_digest(b"\xff" * 64, chunk_bits=256)

    def test_low_half_checked_independently(self):
        wide = (1).to_bytes(32, 'big') + SNARK_SCALAR_FIELD.to_bytes(32, 'big')
        with pytest.raises(FieldRangeError):
            split_digest(wide, chunk_bits=256)

    @pytest.mark.parametrize("chunk_bits", [0, -8, 100])
    def test_bad_chunk_width(self, chunk_bits):
        with pytest.raises(MalformedCertificateError):
            split_digest(b"\x00" * 32, chunk_bits=chunk_bits)

    def test_length_mismatch(self):
        with pytest.raises(MalformedCertificateError):
            split_digest(b"\x00" * 31)


class TestCertificate:

    def test_canonical_json_is_compact_and_sorted(self):
        assert canonical_json({"b": 1, "a": 2}) == b'{"a":2,"b":1}'

    def test_round_trip_through_dict(self, certificate):
        assert Certificate.from_dict(certificate.to_dict()) == certificate

    def test_digest_accepts_certificate(self, certificate):
        assert digest(certificate) == digest(certificate.to_bytes())

    def test_field_order_does_not_change_digest(self, certificate):
        data = certificate.to_dict()
        reordered = dict(reversed(list(data.items())))
        assert digest(Certificate.from_dict(reordered)) == digest(certificate)

    def test_missing_field(self, certificate):
        data = certificate.to_dict()
        del data['issuer']
        with pytest.raises(MalformedCertificateError):
            Certificate.from_dict(data)

    def test_attribute_lookup(self, certificate):
        assert certificate.attribute("age") == 30
        with pytest.raises(KeyError):
            certificate.attribute("name")
