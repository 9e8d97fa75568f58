"""The ipcrypt cipher.

ipcrypt, designed by Jean-Philippe Aumasson, encrypts 4-byte values
(IPv4 addresses) under 16-byte keys such that the ciphertext is again
a 4-byte value. It is an Even-Mansour construction over a public ARX
permutation of four 8-bit words: the state is whitened with a 4-byte
slice of the key before and after each of the three permutation
layers.

The state is a tuple ``(a, b, c, d)`` of 8-bit words, ``a`` being the
first byte (the most significant byte of the big-endian 32-bit value).

Note:
    ipcrypt has known key-independent differential biases
    (see `ipcrypt.differential`). It is an obfuscation primitive,
    not a general-purpose block cipher.
"""
from ipcrypt.bitvector.core import Constant
from ipcrypt.bitvector.operation import RotateLeft

from ipcrypt.primitives.primitives import BvFunction, KeySchedule, Encryption, Decryption, Cipher

WORD_WIDTH = 8
STATE_WORDS = 4
KEY_WORDS = 16


class IpcryptPermutation(BvFunction):
    """The ARX permutation of ipcrypt.

        >>> from ipcrypt.primitives.ipcrypt import IpcryptPermutation
        >>> IpcryptPermutation(0, 0, 0, 0)
        (0x00, 0x00, 0x00, 0x00)
        >>> IpcryptPermutation(1, 2, 3, 4)
        (0xb7, 0x4a, 0x21, 0x74)

    """
    rounds = 1
    input_widths = [WORD_WIDTH] * STATE_WORDS
    output_widths = [WORD_WIDTH] * STATE_WORDS

    @classmethod
    def eval(cls, a, b, c, d):
        a += b
        c += d
        b = RotateLeft(b, 2)
        d = RotateLeft(d, 5)
        b ^= a
        d ^= c
        a = RotateLeft(a, 4)

        a += d
        c += b
        b = RotateLeft(b, 3)
        d = RotateLeft(d, 7)
        b ^= c
        d ^= a
        c = RotateLeft(c, 4)

        return a, b, c, d

    @classmethod
    def test(cls):
        pt = [Constant(i, WORD_WIDTH) for i in (1, 2, 3, 4)]
        ct = [Constant(i, WORD_WIDTH) for i in (0xb7, 0x4a, 0x21, 0x74)]
        assert cls(*pt) == tuple(ct)


class IpcryptPermutationInverse(BvFunction):
    """The inverse of `IpcryptPermutation`.

    The steps of the permutation are undone in reverse order,
    with subtraction in place of addition and rotations by
    the complementary amount.

        >>> from ipcrypt.primitives.ipcrypt import IpcryptPermutationInverse
        >>> IpcryptPermutationInverse(0xb7, 0x4a, 0x21, 0x74)
        (0x01, 0x02, 0x03, 0x04)

    """
    rounds = 1
    input_widths = [WORD_WIDTH] * STATE_WORDS
    output_widths = [WORD_WIDTH] * STATE_WORDS

    @classmethod
    def eval(cls, a, b, c, d):
        c = RotateLeft(c, 4)
        b ^= c
        d ^= a
        b = RotateLeft(b, 5)
        d = RotateLeft(d, 1)
        a -= d
        c -= b

        a = RotateLeft(a, 4)
        b ^= a
        d ^= c
        b = RotateLeft(b, 6)
        d = RotateLeft(d, 3)
        a -= b
        c -= d

        return a, b, c, d

    @classmethod
    def test(cls):
        ct = [Constant(i, WORD_WIDTH) for i in (0xb7, 0x4a, 0x21, 0x74)]
        pt = [Constant(i, WORD_WIDTH) for i in (1, 2, 3, 4)]
        assert cls(*ct) == tuple(pt)


class IpcryptKeySchedule(KeySchedule):
    """Key schedule function.

    The 16 key bytes are used directly: the i-th round key
    (a whole state) is formed by the bytes ``4i`` to ``4i + 3``.
    The round keys are returned as a flat tuple of 16 words.
    """

    rounds = 4
    input_widths = [WORD_WIDTH] * KEY_WORDS
    output_widths = [WORD_WIDTH] * KEY_WORDS

    @classmethod
    def eval(cls, *master_key):
        return master_key

    @classmethod
    def subkeys(cls, round_keys):
        """Group the flat round keys into ``rounds`` states."""
        assert len(round_keys) == cls.rounds * STATE_WORDS
        return tuple(tuple(round_keys[i:i + STATE_WORDS])
                     for i in range(0, len(round_keys), STATE_WORDS))


def _whiten(state, subkey):
    return tuple(x ^ k for x, k in zip(state, subkey))


class IpcryptEncryption(Encryption):
    """Encryption function.

    ``k0`` is XORed in, followed by the permutation, and so on
    with ``k1`` and ``k2``; the last whitening with ``k3`` is not
    followed by a permutation.
    """

    rounds = 3
    input_widths = [WORD_WIDTH] * STATE_WORDS
    output_widths = [WORD_WIDTH] * STATE_WORDS
    round_key_widths = [WORD_WIDTH] * KEY_WORDS

    @classmethod
    def eval(cls, *state, round_keys):
        k0, k1, k2, k3 = IpcryptKeySchedule.subkeys(round_keys)
        symbolic = not all(isinstance(x, Constant) for x in state + round_keys)

        state = _whiten(state, k0)
        state = IpcryptPermutation(*state, symbolic_inputs=symbolic)
        state = _whiten(state, k1)
        state = IpcryptPermutation(*state, symbolic_inputs=symbolic)
        state = _whiten(state, k2)
        state = IpcryptPermutation(*state, symbolic_inputs=symbolic)
        state = _whiten(state, k3)

        return state


class IpcryptDecryption(Decryption):
    """Decryption function, the mirror of `IpcryptEncryption`."""

    rounds = 3
    input_widths = [WORD_WIDTH] * STATE_WORDS
    output_widths = [WORD_WIDTH] * STATE_WORDS
    round_key_widths = [WORD_WIDTH] * KEY_WORDS

    @classmethod
    def eval(cls, *state, round_keys):
        k0, k1, k2, k3 = IpcryptKeySchedule.subkeys(round_keys)
        symbolic = not all(isinstance(x, Constant) for x in state + round_keys)

        state = _whiten(state, k3)
        state = IpcryptPermutationInverse(*state, symbolic_inputs=symbolic)
        state = _whiten(state, k2)
        state = IpcryptPermutationInverse(*state, symbolic_inputs=symbolic)
        state = _whiten(state, k1)
        state = IpcryptPermutationInverse(*state, symbolic_inputs=symbolic)
        state = _whiten(state, k0)

        return state


class IpcryptCipher(Cipher):
    """The ipcrypt cipher.

    The plaintext is a sequence of 4 words and the master key a
    sequence of 16 words (integers in ``[0, 256)`` or 8-bit `Constant`).

        >>> from ipcrypt.primitives.ipcrypt import IpcryptCipher
        >>> key = list(b"some 16-byte key")
        >>> IpcryptCipher([8, 8, 8, 8], key)
        (0x2e, 0x30, 0x33, 0x32)
        >>> IpcryptCipher.round_subkeys(key)[1]
        (0x20, 0x31, 0x36, 0x2d)

    """

    key_schedule = IpcryptKeySchedule
    encryption = IpcryptEncryption
    decryption = IpcryptDecryption
    rounds = 3

    @classmethod
    def round_subkeys(cls, masterkey):
        """Return the four round keys as four states."""
        return cls.key_schedule.subkeys(cls.key_schedule(*masterkey))

    @classmethod
    def test(cls):
        key = list(b"some 16-byte key")
        vectors = [
            ((127, 0, 0, 1), (114, 62, 227, 59)),
            ((8, 8, 8, 8), (46, 48, 51, 50)),
            ((1, 2, 3, 4), (171, 238, 15, 199)),
        ]
        for plaintext, ciphertext in vectors:
            assert cls(plaintext, key) == ciphertext
            assert cls.decrypt(ciphertext, key) == plaintext
