"""Tests for the cipher module."""
import doctest
import ipaddress
import unittest

from hypothesis import given, settings
from hypothesis.strategies import binary, integers

import ipcrypt
from ipcrypt import cipher
from ipcrypt.bitvector.context import Validation
from ipcrypt.cipher import encrypt, decrypt

KEY = b"some 16-byte key"

VECTORS = [
    ("127.0.0.1", "114.62.227.59"),
    ("8.8.8.8", "46.48.51.50"),
    ("1.2.3.4", "171.238.15.199"),
]


class TestCipher(unittest.TestCase):
    """Tests of the public encrypt and decrypt functions."""

    def test_vectors(self):
        for plaintext, ciphertext in VECTORS:
            self.assertEqual(encrypt(plaintext, KEY), ciphertext)
            self.assertEqual(decrypt(ciphertext, KEY), plaintext)

            pt_int = int(ipaddress.IPv4Address(plaintext))
            ct_int = int(ipaddress.IPv4Address(ciphertext))
            self.assertEqual(encrypt(pt_int, KEY), ct_int)
            self.assertEqual(decrypt(ct_int, KEY), pt_int)

            pt_addr = ipaddress.IPv4Address(plaintext)
            self.assertEqual(encrypt(pt_addr, KEY), ipaddress.IPv4Address(ciphertext))

        self.assertEqual(encrypt([127, 0, 0, 1], KEY), [114, 62, 227, 59])
        self.assertEqual(encrypt(bytes([127, 0, 0, 1]), KEY), bytes([114, 62, 227, 59]))
        self.assertEqual(encrypt(bytearray([127, 0, 0, 1]), bytearray(KEY)), bytearray([114, 62, 227, 59]))

    def test_package_exports(self):
        self.assertIs(ipcrypt.encrypt, encrypt)
        self.assertIs(ipcrypt.decrypt, decrypt)
        self.assertTrue(issubclass(ipcrypt.RepresentationError, ValueError))

    def test_invalid_args(self):
        with self.assertRaises(ipcrypt.RepresentationError):
            encrypt("127.0.0.1", b"short key")
        with self.assertRaises(ipcrypt.RepresentationError):
            encrypt("127.0.0.256", KEY)
        with self.assertRaises(ipcrypt.RepresentationError):
            encrypt(b"\x7f\x00\x00", KEY)
        with self.assertRaises(ipcrypt.RepresentationError):
            decrypt(2 ** 32, KEY)
        with self.assertRaises(TypeError):
            encrypt("127.0.0.1", KEY.decode())
        with self.assertRaises(TypeError):
            encrypt(1.5, KEY)

    def test_determinism(self):
        self.assertEqual(encrypt("10.0.0.1", KEY), encrypt("10.0.0.1", bytearray(KEY)))
        self.assertNotEqual(encrypt("10.0.0.1", KEY), encrypt("10.0.0.1", b"other 16-byte ky"))

    def test_validation_restored(self):
        self.assertEqual(encrypt("1.2.3.4", KEY), "171.238.15.199")
        self.assertIs(Validation.current_context, True)
        with self.assertRaises(ipcrypt.RepresentationError):
            decrypt("1.2.3", KEY)
        self.assertIs(Validation.current_context, True)

    @given(integers(min_value=0, max_value=2 ** 32 - 1), binary(min_size=16, max_size=16))
    @settings(deadline=None)
    def test_round_trip(self, value, key):
        ciphertext = encrypt(value, key)
        self.assertTrue(0 <= ciphertext < 2 ** 32)
        self.assertEqual(decrypt(ciphertext, key), value)

        address = ipaddress.IPv4Address(value)
        self.assertEqual(encrypt(str(address), key), str(ipaddress.IPv4Address(ciphertext)))


# noinspection PyUnusedLocal
def load_tests(loader, tests, ignore):
    """Add doctests."""
    tests.addTests(doctest.DocTestSuite(cipher))
    tests.addTests(doctest.DocTestSuite(ipcrypt))
    return tests
