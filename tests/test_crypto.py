"""Tests for app-user blob decryption."""

import base64
import json

import pytest
from Crypto.Cipher import AES

from custom_components.mrcool.const import APP_USER_CIPHER_IV, APP_USER_CIPHER_KEY
from custom_components.mrcool.exceptions import DecryptionError, ParseError
from custom_components.mrcool.protocol.crypto import (
    decrypt_app_user,
    decrypt_string,
    encrypt_string,
)


# Generated with openssl enc -aes-128-cbc -base64, key and IV both
# 38303830383038303830383038303830 (ASCII "8080808080808080")
REFERENCE_CIPHERTEXT = "8D8znjI1F2ZhNBm028FzoMEZUDB20SDW3zh7QyMnNcrbZnXzSe1bQp3BpEXrM2cd"
REFERENCE_PLAINTEXT = '{"userID":"u-7","accessToken":"t-9"}'

# Same key/IV, plaintext {"userID":"u"}
REFERENCE_NO_TOKEN = "5a4cVUBW+QDZqLsVD+iR7Q=="


def test_key_and_iv_are_fixed_ascii():
    assert APP_USER_CIPHER_KEY == b"8080808080808080"
    assert APP_USER_CIPHER_IV == b"8080808080808080"


def test_decrypt_reference_ciphertext():
    assert decrypt_string(REFERENCE_CIPHERTEXT) == REFERENCE_PLAINTEXT
    assert decrypt_app_user(REFERENCE_CIPHERTEXT) == {"userID": "u-7", "accessToken": "t-9"}


def test_encrypt_matches_reference():
    assert encrypt_string(REFERENCE_PLAINTEXT) == REFERENCE_CIPHERTEXT


def test_decrypt_app_user():
    blob = encrypt_string(json.dumps({"userID": "u-7", "accessToken": "t-9", "x": 1}))
    app_user = decrypt_app_user(blob)
    assert app_user["userID"] == "u-7"
    assert app_user["accessToken"] == "t-9"
    assert app_user["x"] == 1


def test_decrypt_ignores_surrounding_whitespace():
    blob = encrypt_string("hello")
    assert decrypt_string(f"  {blob}\n") == "hello"


def test_ciphertext_is_cbc_with_fixed_iv():
    """Same plaintext always encrypts to the same blob."""
    assert encrypt_string("abc") == encrypt_string("abc")
    raw = base64.b64decode(encrypt_string("abc"))
    assert len(raw) == AES.block_size


class TestDecryptErrors:
    def test_not_base64(self):
        with pytest.raises(DecryptionError):
            decrypt_string("not base64 at all!")

    def test_empty(self):
        with pytest.raises(DecryptionError):
            decrypt_string("")

    def test_length_not_block_multiple(self):
        with pytest.raises(DecryptionError):
            decrypt_string(base64.b64encode(b"12345").decode())

    def test_bad_padding(self):
        cipher = AES.new(APP_USER_CIPHER_KEY, AES.MODE_CBC, iv=APP_USER_CIPHER_IV)
        raw = cipher.encrypt(b"A" * 15 + b"\x00")
        with pytest.raises(DecryptionError):
            decrypt_string(base64.b64encode(raw).decode())

    def test_plaintext_not_json(self):
        with pytest.raises(DecryptionError):
            decrypt_app_user(encrypt_string("<html>"))

    def test_plaintext_not_object(self):
        with pytest.raises(ParseError):
            decrypt_app_user(encrypt_string("[1, 2]"))

    def test_missing_access_token(self):
        with pytest.raises(ParseError, match="accessToken"):
            decrypt_app_user(REFERENCE_NO_TOKEN)
