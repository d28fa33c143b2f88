"""Tests for auth/password_manager.py."""

from ypareo.auth.password_manager import PasswordManager


class TestPasswordManager:

    def test_round_trip(self):
        manager = PasswordManager("jdupont", "s3cr3t-é")
        assert manager.has_password()
        assert manager.decrypt() == "s3cr3t-é"

    def test_plaintext_is_not_stored(self):
        manager = PasswordManager("jdupont", "s3cr3t")
        stored = manager._encrypted
        iv_hex, ciphertext_hex = stored.split(":")
        assert len(bytes.fromhex(iv_hex)) == 16
        assert len(bytes.fromhex(ciphertext_hex)) % 16 == 0
        assert "s3cr3t" not in stored

    def test_instances_use_distinct_keys(self):
        """Same username and password still give different key material."""
        a = PasswordManager("jdupont", "s3cr3t")
        b = PasswordManager("jdupont", "s3cr3t")
        assert a._key != b._key
        assert a._encrypted != b._encrypted

    def test_clear_is_final(self):
        manager = PasswordManager("jdupont", "s3cr3t")
        manager.clear()
        assert not manager.has_password()
        assert manager.decrypt() is None

    def test_corrupt_state_decrypts_to_none(self):
        manager = PasswordManager("jdupont", "s3cr3t")
        manager._encrypted = "zz:not-hex"
        assert manager.decrypt() is None
