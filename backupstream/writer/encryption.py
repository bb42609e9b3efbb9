"""
Cipher layer selection for backup streams.

Only Cipher.NO_CIPHER is supported, which adds no layer. An encrypting
layer would be appended above the compression layer, as the outermost
layer of the stack.
"""

from enum import Enum

from .errors import UnsupportedCipherError


class Cipher(str, Enum):
    NO_CIPHER = 'no-cipher'


def parse_cipher(value) -> Cipher:
    """
    Convert a cipher name to a Cipher.

    Raises:
        UnsupportedCipherError: If the name is not a known cipher
    """
    if isinstance(value, Cipher):
        return value
    try:
        return Cipher(str(value).strip().lower())
    except ValueError:
        raise UnsupportedCipherError(
            f"Invalid cipher: {value}. "
            f"Valid options: {[c.value for c in Cipher]}"
        )


def create_cipher_layer(cipher, inner):
    """
    Wrap inner with the layer for cipher.

    Returns:
        None, since no cipher currently adds a layer

    Raises:
        UnsupportedCipherError: If cipher is unknown
    """
    cipher = parse_cipher(cipher)

    if cipher == Cipher.NO_CIPHER:
        return None

    raise UnsupportedCipherError(f"Cipher not implemented: {cipher.value}")
