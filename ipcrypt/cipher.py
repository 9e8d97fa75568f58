"""Encrypt and decrypt IPv4 addresses and other 4-byte values.

The value and its ciphertext have the same type; see `representation`
for the supported types.

    >>> import ipaddress
    >>> from ipcrypt.cipher import encrypt, decrypt
    >>> key = b"some 16-byte key"
    >>> encrypt("127.0.0.1", key)
    '114.62.227.59'
    >>> decrypt(ipaddress.IPv4Address("114.62.227.59"), key)
    IPv4Address('127.0.0.1')
    >>> encrypt(bytes([127, 0, 0, 1]), key)
    b'r>\\xe3;'
    >>> hex(encrypt(0x01020304, key))
    '0xabee0fc7'

"""
from ipcrypt import representation
from ipcrypt.bitvector.context import Validation
from ipcrypt.primitives.ipcrypt import IpcryptCipher


def encrypt(value, key):
    """Encrypt a 4-byte value with a 16-byte key."""
    state = representation.to_state(value)
    masterkey = representation.to_key(key)
    with Validation(False):
        ciphertext = IpcryptCipher(state, masterkey)
    return representation.from_state(ciphertext, value)


def decrypt(value, key):
    """Decrypt a 4-byte value with a 16-byte key."""
    state = representation.to_state(value)
    masterkey = representation.to_key(key)
    with Validation(False):
        plaintext = IpcryptCipher.decrypt(state, masterkey)
    return representation.from_state(plaintext, value)
