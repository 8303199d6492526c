"""
Tests for key/nonce derivation and scoped key material.

Tests cover:
- Determinism and length invariants
- Domain separation between key and nonce
- Single password and password-pair derivation
- KeyMaterial wiping
"""
import pytest

from envenc.ciphers import CipherAlgorithm
from envenc.exceptions import EnvEncError, InvalidKeyMaterial
from envenc.kdf import (
    DEFAULT_ITERATIONS,
    KeyMaterial,
    Purpose,
    derive,
    derive_key,
    derive_key_and_nonce,
    derive_key_material,
    derive_nonce,
    generate_key_material,
)

# Keeps the suite fast; the default work factor is covered separately.
FAST = 1_000


@pytest.fixture(params=list(CipherAlgorithm), ids=str)
def algorithm(request):
    return request.param


class TestDerive:
    """Tests for derive / derive_key / derive_nonce."""

    def test_default_iterations(self):
        assert DEFAULT_ITERATIONS == 100_000

    def test_deterministic_key(self, algorithm):
        assert derive_key("keypw", algorithm, FAST) == derive_key("keypw", algorithm, FAST)

    def test_deterministic_nonce(self, algorithm):
        assert derive_nonce("noncepw", algorithm, FAST) == derive_nonce("noncepw", algorithm, FAST)

    def test_deterministic_with_default_iterations(self):
        algorithm = CipherAlgorithm.CHACHA20_POLY1305
        assert derive_key("keypw", algorithm) == derive_key("keypw", algorithm)

    @pytest.mark.parametrize("password", ["", "a", "keypw", "x" * 10_000, "pässwörd ✓"])
    def test_lengths(self, algorithm, password):
        assert len(derive_key(password, algorithm, FAST)) == algorithm.key_size
        assert len(derive_nonce(password, algorithm, FAST)) == algorithm.nonce_size

    def test_empty_password_is_accepted(self, algorithm):
        assert derive_key("", algorithm, FAST) != derive_key(" ", algorithm, FAST)

    def test_lone_surrogate_does_not_raise(self, algorithm):
        assert len(derive_key("\ud800", algorithm, FAST)) == algorithm.key_size

    def test_str_and_utf8_bytes_agree(self, algorithm):
        assert derive_key("pässwörd", algorithm, FAST) == derive_key(
            "pässwörd".encode("utf-8"), algorithm, FAST
        )

    def test_different_passwords_differ(self, algorithm):
        assert derive_key("keypw", algorithm, FAST) != derive_key("wrong", algorithm, FAST)

    def test_key_and_nonce_are_separated(self, algorithm):
        key = derive(b"same", Purpose.KEY, algorithm, FAST)
        nonce = derive(b"same", Purpose.NONCE, algorithm, FAST)
        assert key[:algorithm.nonce_size] != nonce

    def test_algorithms_are_separated(self):
        assert derive_key("keypw", CipherAlgorithm.CHACHA20_POLY1305, FAST) != derive_key(
            "keypw", CipherAlgorithm.AES_256_GCM, FAST
        )

    def test_iterations_change_output(self, algorithm):
        assert derive_key("keypw", algorithm, FAST) != derive_key("keypw", algorithm, FAST + 1)

    def test_accepts_algorithm_name(self):
        assert derive_key("keypw", "chacha20", FAST) == derive_key(
            "keypw", CipherAlgorithm.CHACHA20_POLY1305, FAST
        )

    def test_accepts_purpose_value(self, algorithm):
        assert derive("pw", "nonce", algorithm, FAST) == derive_nonce("pw", algorithm, FAST)

    def test_rejects_non_string_password(self, algorithm):
        with pytest.raises(TypeError):
            derive_key(12345, algorithm, FAST)

    def test_rejects_non_positive_iterations(self, algorithm):
        with pytest.raises(ValueError):
            derive_key("keypw", algorithm, 0)


class TestDeriveKeyAndNonce:
    """Tests for combined derivation."""

    def test_password_pair(self, algorithm):
        key, nonce = derive_key_and_nonce(("keypw", "noncepw"), algorithm, FAST)
        assert key == derive_key("keypw", algorithm, FAST)
        assert nonce == derive_nonce("noncepw", algorithm, FAST)

    def test_single_password(self, algorithm):
        key, nonce = derive_key_and_nonce("shared", algorithm, FAST)
        assert key == derive_key("shared", algorithm, FAST)
        assert nonce == derive_nonce("shared", algorithm, FAST)


class TestKeyMaterial:
    """Tests for KeyMaterial lifecycle."""

    def test_derive_key_material(self, algorithm):
        material = derive_key_material(("keypw", "noncepw"), algorithm, FAST)
        assert material.algorithm is algorithm
        assert bytes(material.key) == derive_key("keypw", algorithm, FAST)
        assert bytes(material.nonce) == derive_nonce("noncepw", algorithm, FAST)

    def test_wipe_zeroes_buffers(self, algorithm):
        material = derive_key_material("pw", algorithm, FAST)
        key_buf = material.key
        nonce_buf = material.nonce
        material.wipe()
        assert material.wiped
        assert key_buf == bytearray(algorithm.key_size)
        assert nonce_buf == bytearray(algorithm.nonce_size)

    def test_use_after_wipe(self, algorithm):
        material = derive_key_material("pw", algorithm, FAST)
        material.wipe()
        with pytest.raises(EnvEncError):
            material.key
        with pytest.raises(EnvEncError):
            material.nonce

    def test_wipe_twice(self, algorithm):
        material = derive_key_material("pw", algorithm, FAST)
        material.wipe()
        material.wipe()
        assert material.wiped

    def test_context_manager(self, algorithm):
        with derive_key_material("pw", algorithm, FAST) as material:
            assert not material.wiped
        assert material.wiped

    def test_rejects_wrong_length(self, algorithm):
        with pytest.raises(InvalidKeyMaterial):
            KeyMaterial(algorithm, b"short", b"n" * algorithm.nonce_size)

    def test_repr_hides_material(self, algorithm):
        material = KeyMaterial(algorithm, b"K" * 32, b"N" * 12)
        assert "KKKK" not in repr(material)
        assert "live" in repr(material)

    def test_generate_key_material(self, algorithm):
        first = generate_key_material(algorithm)
        second = generate_key_material(algorithm)
        assert len(first.key) == algorithm.key_size
        assert len(first.nonce) == algorithm.nonce_size
        assert first.key != second.key
