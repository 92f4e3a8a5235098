"""
Cryptographic helpers for the D-Link DSP Client
===============================================

HNAP signs everything with HMAC-MD5 rendered as uppercase hex, and hides
the wireless passphrase in SetAPClientSettings with AES-CBC keyed by the
session private key.

"""

import hashlib
import hmac
from typing import Union

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .exceptions import DlinkUnsupportedAlgorithmError

HMAC_MD5 = "HmacMD5"

AES_BLOCK_SIZE = 16
ZERO_IV = bytes(AES_BLOCK_SIZE)

_HASH_ALGORITHMS = {
    HMAC_MD5: hashlib.md5,
}


def _to_bytes(value: Union[str, bytes]) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def hash_with(message: Union[str, bytes], key: Union[str, bytes], algorithm: str = HMAC_MD5) -> str:
    """
    Compute a keyed hash and render it as uppercase hex.

    Args:
        message: Message to authenticate, str values are UTF-8 encoded
        key: MAC key, str values are UTF-8 encoded
        algorithm: Only "HmacMD5" is supported

    Returns:
        32 uppercase hex characters without separators

    Raises:
        DlinkUnsupportedAlgorithmError: For any other algorithm
    """
    digestmod = _HASH_ALGORITHMS.get(algorithm)
    if digestmod is None:
        raise DlinkUnsupportedAlgorithmError(
            f"Unsupported keyed hash algorithm: {algorithm}",
            details={"algorithm": algorithm, "supported": list(_HASH_ALGORITHMS)},
        )

    return hmac.new(_to_bytes(key), _to_bytes(message), digestmod).hexdigest().upper()


def derive_private_key(challenge: str, public_key: str, password: str) -> str:
    """Session private key: HMAC(key=public_key + password, msg=challenge)."""
    return hash_with(challenge, public_key + password)


def derive_login_password(challenge: str, private_key: str) -> str:
    """Login password sent in phase 2: HMAC(key=private_key, msg=challenge)."""
    return hash_with(challenge, private_key)


def _zero_pad(data: bytes) -> bytes:
    remainder = len(data) % AES_BLOCK_SIZE
    if remainder == 0:
        return data
    return data + bytes(AES_BLOCK_SIZE - remainder)


def aes_encrypt128(text: str, key: Union[str, bytes]) -> str:
    """
    Obfuscate a short secret for embedding in an XML field.

    AES in CBC mode with an all-zero IV and zero padding, keyed with the
    UTF-8 bytes of the session private key. The result is rendered the way
    the device firmware expects: uppercase hex bytes joined by dashes.

    Args:
        text: Plain text secret, e.g. a Wi-Fi passphrase
        key: Session private key (16, 24 or 32 bytes once encoded)

    Returns:
        Dash-separated uppercase hex string, empty for an empty input
    """
    data = _zero_pad(text.encode("utf-8"))
    if not data:
        return ""

    encryptor = Cipher(algorithms.AES(_to_bytes(key)), modes.CBC(ZERO_IV)).encryptor()
    encrypted = encryptor.update(data) + encryptor.finalize()
    return "-".join(f"{byte:02X}" for byte in encrypted)


__all__ = [
    "HMAC_MD5",
    "aes_encrypt128",
    "derive_login_password",
    "derive_private_key",
    "hash_with",
]
