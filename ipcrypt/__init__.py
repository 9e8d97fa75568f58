"""Format-preserving encryption of IPv4 addresses (ipcrypt).

ipcrypt maps a 4-byte value (an IPv4 address, a 32-bit integer in
network byte order or 4 raw bytes) to another 4-byte value under a
16-byte key.

    >>> import ipcrypt
    >>> ipcrypt.encrypt("8.8.8.8", b"some 16-byte key")
    '46.48.51.50'

"""
from ipcrypt.cipher import encrypt, decrypt
from ipcrypt.representation import RepresentationError
