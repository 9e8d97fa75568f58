"""Tests for the ccode module."""
import doctest
import ipaddress
import os
import unittest

from hypothesis import given, settings
from hypothesis.strategies import binary, integers

from ipcrypt import ccode
from ipcrypt.cipher import encrypt, decrypt
from ipcrypt.representation import RepresentationError

KEY = b"some 16-byte key"
SWEEP_BITS = 24
VERBOSE = False

sweep_header = """
unsigned long long ipcrypt_count_round_trip_errors(const uint8_t *key, uint32_t start, unsigned long long count);
"""

sweep_source = """
unsigned long long ipcrypt_count_round_trip_errors(const uint8_t *key, uint32_t start, unsigned long long count){
    unsigned long long errors = 0;
    unsigned long long i;
    for (i = 0; i < count; ++i) {
        uint32_t x = start + (uint32_t) i;
        if (ipcrypt_decrypt(ipcrypt_encrypt(x, key), key) != x)
            errors += 1;
    }
    return errors;
}
"""


class TestCLibrary(unittest.TestCase):
    """Tests of the compiled ipcrypt library."""

    @classmethod
    def setUpClass(cls):
        header, source = ccode.get_ccode()
        cls.library = ccode.compile_library(
            (header + sweep_header, source + sweep_source),
            module_name="_libipcrypttest",
            verbose=VERBOSE
        )

    @classmethod
    def tearDownClass(cls):
        cls.library.cleanup()

    def test_vectors(self):
        lib = self.library.lib
        key = self.library.key_buffer(KEY)

        self.assertEqual(lib.ipcrypt_encrypt(0x7f000001, key), 0x723ee33b)
        self.assertEqual(lib.ipcrypt_decrypt(0x723ee33b, key), 0x7f000001)

        self.assertEqual(self.library.encrypt("8.8.8.8", KEY), "46.48.51.50")
        self.assertEqual(self.library.decrypt("171.238.15.199", KEY), "1.2.3.4")
        self.assertEqual(
            self.library.encrypt(ipaddress.IPv4Address("127.0.0.1"), KEY),
            ipaddress.IPv4Address("114.62.227.59"))
        self.assertEqual(self.library.encrypt([127, 0, 0, 1], KEY), [114, 62, 227, 59])

    def test_invalid_key(self):
        with self.assertRaises(RepresentationError):
            self.library.encrypt("8.8.8.8", KEY[:15])
        with self.assertRaises(RepresentationError):
            self.library.decrypt("8.8.8.8", KEY + b"!")
        with self.assertRaises(TypeError):
            self.library.encrypt("8.8.8.8", KEY.decode())

    @given(integers(min_value=0, max_value=2 ** 32 - 1), binary(min_size=16, max_size=16))
    @settings(deadline=None)
    def test_python_agreement(self, value, key):
        ciphertext = self.library.encrypt(value, key)
        self.assertEqual(ciphertext, encrypt(value, key))
        self.assertEqual(self.library.decrypt(ciphertext, key), value)
        self.assertEqual(self.library.decrypt(value, key), decrypt(value, key))

    def test_sweep(self):
        lib = self.library.lib
        key = self.library.key_buffer(KEY)
        for start in [0, 0x7f000000, 2 ** 32 - 2 ** SWEEP_BITS]:
            self.assertEqual(lib.ipcrypt_count_round_trip_errors(key, start, 2 ** SWEEP_BITS), 0)

    @unittest.skipUnless(os.environ.get("IPCRYPT_EXHAUSTIVE"), "set IPCRYPT_EXHAUSTIVE to sweep all 2^32 values")
    def test_exhaustive_sweep(self):
        lib = self.library.lib
        key = self.library.key_buffer(KEY)
        self.assertEqual(lib.ipcrypt_count_round_trip_errors(key, 0, 2 ** 32), 0)


class TestCCode(unittest.TestCase):
    """Tests of the generated C code."""

    def test_ccode(self):
        header, source = ccode.get_ccode()

        self.assertIn("uint32_t ipcrypt_encrypt(uint32_t v, const uint8_t *key);", header)
        self.assertIn("uint32_t ipcrypt_decrypt(uint32_t v, const uint8_t *key);", header)
        self.assertIn("static void ipcrypt_encrypt_words(uint8_t s0, uint8_t s1, uint8_t s2, uint8_t s3, "
                      "uint8_t k0,", source)
        self.assertEqual(source.count("key[15]"), 2)

    def test_nested_expressions(self):
        from ipcrypt.bitvector.core import Variable
        from ipcrypt.bitvector.operation import Concat

        a, b = Variable("a", 8), Variable("b", 8)
        with self.assertRaises(ValueError):
            ccode.bv2ccode((a + b) ^ a)
        with self.assertRaises(ValueError):
            ccode.bv2ccode(Concat(a, b))


# noinspection PyUnusedLocal
def load_tests(loader, tests, ignore):
    """Add doctests."""
    tests.addTests(doctest.DocTestSuite(ccode))
    return tests
