"""Tests for the ipcrypt cipher."""
import concurrent.futures
import doctest
import threading
import unittest
import warnings

from hypothesis import given, settings
from hypothesis.strategies import binary, integers, tuples

from ipcrypt.bitvector.core import Constant, Variable
from ipcrypt.cipher import encrypt
from ipcrypt.primitives import ipcrypt
from ipcrypt.primitives.ipcrypt import (
    IpcryptPermutation, IpcryptPermutationInverse, IpcryptKeySchedule,
    IpcryptEncryption, IpcryptDecryption, IpcryptCipher
)

KEY = b"some 16-byte key"
SLICE_BITS = 16

word = integers(min_value=0, max_value=2 ** 8 - 1)
state = tuples(word, word, word, word)
key = binary(min_size=16, max_size=16)


def eval_ssa(ssa, values):
    known = {var: Constant(int(v), var.width) for var, v in zip(ssa["input_vars"], values)}
    for var, expr in ssa["assignments"]:
        known[var] = expr.xreplace(known)
    return tuple(known[var] for var in ssa["output_vars"])


class TestIpcrypt(unittest.TestCase):
    """Tests of the ipcrypt primitives."""

    def test_vectors(self):
        IpcryptPermutation.test()
        IpcryptPermutationInverse.test()
        IpcryptCipher.test()

        self.assertEqual(IpcryptCipher([127, 0, 0, 1], KEY), (114, 62, 227, 59))
        self.assertEqual(IpcryptCipher([8, 8, 8, 8], KEY), (46, 48, 51, 50))
        self.assertEqual(IpcryptCipher([1, 2, 3, 4], KEY), (171, 238, 15, 199))
        self.assertEqual(IpcryptCipher.decrypt([114, 62, 227, 59], KEY), (127, 0, 0, 1))

    def test_key_schedule(self):
        round_keys = IpcryptKeySchedule(*KEY)
        self.assertEqual(round_keys, tuple(KEY))

        subkeys = IpcryptCipher.round_subkeys(KEY)
        self.assertEqual(len(subkeys), 4)
        self.assertEqual(subkeys[0], tuple(b"some"))
        self.assertEqual(subkeys[1], tuple(b" 16-"))
        self.assertEqual(subkeys[2], tuple(b"byte"))
        self.assertEqual(subkeys[3], tuple(b" key"))

    def test_zero_key(self):
        zero_key = [0] * 16
        expected = IpcryptPermutation(*IpcryptPermutation(*IpcryptPermutation(1, 2, 3, 4)))
        self.assertEqual(IpcryptCipher([1, 2, 3, 4], zero_key), expected)

    def test_invalid_args(self):
        with self.assertRaises(ValueError):
            IpcryptPermutation(1, 2, 3)
        with self.assertRaises(ValueError):
            IpcryptKeySchedule(*KEY[:15])
        with self.assertRaises(ValueError):
            IpcryptEncryption(1, 2, 3, 4, round_keys=KEY[:15])
        with self.assertRaises(AssertionError):
            IpcryptCipher([1, 2, 3, 256], KEY)

    @given(state)
    def test_permutation_inverse(self, s):
        self.assertEqual(IpcryptPermutationInverse(*IpcryptPermutation(*s)), s)
        self.assertEqual(IpcryptPermutation(*IpcryptPermutationInverse(*s)), s)

    @given(state, key)
    @settings(deadline=None)
    def test_round_trip(self, plaintext, masterkey):
        ciphertext = IpcryptCipher(plaintext, masterkey)
        self.assertEqual(IpcryptCipher.decrypt(ciphertext, masterkey), plaintext)
        self.assertEqual(IpcryptCipher(plaintext, masterkey), ciphertext)

    @given(state, key, integers(min_value=0, max_value=16 * 8 - 1))
    @settings(deadline=None)
    def test_key_sensitivity(self, plaintext, masterkey, bit):
        other_key = bytearray(masterkey)
        other_key[bit // 8] ^= 1 << (bit % 8)

        # each layer is a bijection for a fixed key
        self.assertNotEqual(IpcryptCipher(plaintext, masterkey), IpcryptCipher(plaintext, other_key))

    @given(state, key)
    @settings(deadline=None, max_examples=20)
    def test_ssa(self, plaintext, masterkey):
        round_keys = [Variable("k{}".format(i), 8) for i in range(16)]

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", UserWarning)
            enc_ssa = IpcryptEncryption.ssa(["p0", "p1", "p2", "p3"], "x", round_keys=round_keys)
            dec_ssa = IpcryptDecryption.ssa(["c0", "c1", "c2", "c3"], "y", round_keys=round_keys)

        self.assertEqual([w for w in caught if issubclass(w.category, UserWarning)], [])

        enc_ssa = dict(enc_ssa, input_vars=enc_ssa["input_vars"] + tuple(round_keys))
        dec_ssa = dict(dec_ssa, input_vars=dec_ssa["input_vars"] + tuple(round_keys))

        ciphertext = eval_ssa(enc_ssa, tuple(plaintext) + tuple(masterkey))
        self.assertEqual(ciphertext, IpcryptCipher(plaintext, masterkey))
        self.assertEqual(eval_ssa(dec_ssa, tuple(ciphertext) + tuple(masterkey)), plaintext)

    def test_permutation_ssa(self):
        ssa = IpcryptPermutation.ssa(["a", "b", "c", "d"], "x")
        self.assertEqual(len(ssa["assignments"]), 14)
        self.assertEqual(eval_ssa(ssa, (1, 2, 3, 4)), (0xb7, 0x4a, 0x21, 0x74))

    def test_concurrent_keys(self):
        keys = [bytes([i] * 16) for i in range(8)] + [KEY]
        plaintext = (127, 0, 0, 1)
        expected = [IpcryptCipher(plaintext, k) for k in keys]

        with concurrent.futures.ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(lambda k: IpcryptCipher(plaintext, k), keys))

        self.assertEqual(results, expected)
        self.assertEqual(results[-1], (114, 62, 227, 59))

    def test_concurrent_ssa(self):
        stop = threading.Event()
        ciphertexts = set()

        def encrypt_until_stopped():
            while not stop.is_set():
                ciphertexts.add(encrypt("127.0.0.1", KEY))

        workers = [threading.Thread(target=encrypt_until_stopped) for _ in range(2)]
        for worker in workers:
            worker.start()
        try:
            for _ in range(50):
                ssa = IpcryptPermutation.ssa(["a", "b", "c", "d"], "x")
                self.assertEqual(len(ssa["assignments"]), 14)
                self.assertEqual(eval_ssa(ssa, (1, 2, 3, 4)), (0xb7, 0x4a, 0x21, 0x74))
        finally:
            stop.set()
            for worker in workers:
                worker.join()

        self.assertEqual(ciphertexts, {"114.62.227.59"})

    def test_exhaustive_slice(self):
        ciphertexts = set()
        for i in range(2 ** SLICE_BITS):
            plaintext = (0x0a, 0x02, i >> 8, i & 0xff)
            ciphertext = IpcryptCipher(plaintext, KEY)
            self.assertEqual(IpcryptCipher.decrypt(ciphertext, KEY), plaintext)
            ciphertexts.add(tuple(int(w) for w in ciphertext))

        self.assertEqual(len(ciphertexts), 2 ** SLICE_BITS)


# noinspection PyUnusedLocal
def load_tests(loader, tests, ignore):
    """Add doctests."""
    tests.addTests(doctest.DocTestSuite(ipcrypt))
    return tests
