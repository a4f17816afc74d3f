"""App-user blob decryption for the MrCool web session.

The ``/home/index`` page embeds the signed-in user's identity as a base64
AES-128-CBC ciphertext (PKCS7 padding).  The service encrypts it with a
fixed key and IV, both the ASCII string ``8080808080808080``; the client has
to use the same values to read it.

Plaintext is a JSON object carrying at least ``userID`` and ``accessToken``.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad

from ..const import APP_USER_CIPHER_IV, APP_USER_CIPHER_KEY
from ..exceptions import DecryptionError, ParseError


def decrypt_string(ciphertext: str) -> str:
    """Decrypt a base64 app-user ciphertext to its UTF-8 plaintext."""
    try:
        raw = base64.b64decode(ciphertext.strip(), validate=True)
    except (binascii.Error, ValueError) as err:
        raise DecryptionError("app-user blob is not valid base64") from err

    if not raw or len(raw) % AES.block_size:
        raise DecryptionError(
            f"app-user blob length {len(raw)} is not a multiple of {AES.block_size}"
        )

    cipher = AES.new(APP_USER_CIPHER_KEY, AES.MODE_CBC, iv=APP_USER_CIPHER_IV)
    try:
        plain = unpad(cipher.decrypt(raw), AES.block_size, style="pkcs7")
        return plain.decode("utf-8")
    except (ValueError, UnicodeDecodeError) as err:
        raise DecryptionError("app-user blob failed to decrypt") from err


def encrypt_string(plaintext: str) -> str:
    """Encrypt *plaintext* the way the service does (used by tests and tooling)."""
    cipher = AES.new(APP_USER_CIPHER_KEY, AES.MODE_CBC, iv=APP_USER_CIPHER_IV)
    raw = cipher.encrypt(pad(plaintext.encode("utf-8"), AES.block_size, style="pkcs7"))
    return base64.b64encode(raw).decode("ascii")


def decrypt_app_user(ciphertext: str) -> dict[str, Any]:
    """Decrypt and decode the app-user JSON document.

    Raises ``DecryptionError`` when the plaintext is not JSON and
    ``ParseError`` when it is not an object with ``userID`` and
    ``accessToken``.
    """
    text = decrypt_string(ciphertext)
    try:
        app_user = json.loads(text)
    except ValueError as err:
        raise DecryptionError("app-user plaintext is not JSON") from err

    if not isinstance(app_user, dict):
        raise ParseError("app-user plaintext is not a JSON object")
    missing = [k for k in ("userID", "accessToken") if k not in app_user]
    if missing:
        raise ParseError(f"app-user plaintext missing {', '.join(missing)}")
    return app_user
