"""Measure the empirical probability of XOR differentials of ipcrypt.

A pair of inputs ``(x, x ^ input_diff)`` is a *right pair* for the
differential ``(input_diff, output_diff)`` if the ciphertexts satisfy
``E(x) ^ E(x ^ input_diff) == output_diff``. For an ideal 32-bit
cipher the fraction of right pairs is about ``2**-32``; ipcrypt has
differentials with a much higher probability regardless of the key.
The differential `INPUT_DIFF` -> `OUTPUT_DIFF` is such an example.

The pairs are counted by C code compiled with cffi, since the number
of pairs needed to observe a bias is out of reach of the symbolic
Python implementation.
"""
import math
import random

from ipcrypt import ccode
from ipcrypt import representation
from ipcrypt.bitvector.context import Validation
from ipcrypt.primitives.ipcrypt import IpcryptCipher

INPUT_DIFF = (0x0a, 0x02, 0x00, 0x00)
OUTPUT_DIFF = (0x60, 0x70, 0x4d, 0x0c)

DEFAULT_SAMPLES = 2 ** 24


def _get_smart_print(filename=None):
    def smart_print(*msg, **kwargs):
        if filename is not None:
            with open(filename, "a") as fh:
                print(*msg, file=fh, flush=True, **kwargs)
        else:
            print(*msg, flush=True, **kwargs)
    return smart_print


def is_right_pair(value, key, input_diff=INPUT_DIFF, output_diff=OUTPUT_DIFF):
    """Return True if ``(value, value ^ input_diff)`` is a right pair.

    This is the (slow) reference check with the Python implementation.

        >>> from ipcrypt.differential import is_right_pair
        >>> key = list(b"some 16-byte key")
        >>> is_right_pair([1, 2, 3, 4], key, [0, 0, 0, 0], [0, 0, 0, 0])
        True
        >>> is_right_pair([1, 2, 3, 4], key, [0, 0, 0, 0], [0, 0, 0, 1])
        False

    """
    x1 = representation.to_state(value)
    x2 = tuple(x ^ d for x, d in zip(x1, input_diff))
    with Validation(False):
        y1 = IpcryptCipher(x1, key)
        y2 = IpcryptCipher(x2, key)
    return all((a ^ b) == d for a, b, d in zip(y1, y2, output_diff))


count_header_ccode = """
unsigned long long ipcrypt_count_right_pairs(const uint8_t *key, uint32_t input_diff, uint32_t output_diff,
                                             unsigned long long pair_samples, int sequential, unsigned int seed);
"""

count_source_ccode = """
#include <stdlib.h>
#include <time.h>

unsigned long long ipcrypt_count_right_pairs(const uint8_t *key, uint32_t input_diff, uint32_t output_diff,
                                             unsigned long long pair_samples, int sequential, unsigned int seed){
\tunsigned long long num_right_pairs = 0;
\tunsigned long long i = 0;
\tuint32_t x;
\tif (seed == 0) srand((unsigned int) time(NULL));
\telse srand(seed);
\tfor (; i < pair_samples; ++i) {
\t\tif (sequential) x = (uint32_t) i;
\t\telse x = ((uint32_t) rand() << 16) ^ (uint32_t) rand();
\t\tif ((ipcrypt_encrypt(x, key) ^ ipcrypt_encrypt(x ^ input_diff, key)) == output_diff)
\t\t\tnum_right_pairs += 1;
\t}
\treturn num_right_pairs;
}
"""


def compile_counter(verbose=ccode.VERBOSE):
    """Compile the ipcrypt library together with the right pair counter."""
    header, source = ccode.get_ccode()
    return ccode.compile_library(
        (header + count_header_ccode, source + count_source_ccode),
        module_name="_libipcryptdiff",
        verbose=verbose
    )


def count_right_pairs(key, input_diff=INPUT_DIFF, output_diff=OUTPUT_DIFF, pair_samples=DEFAULT_SAMPLES,
                      exhaustive=False, seed=0, library=None):
    """Count the right pairs of a differential under a fixed key.

    Args:
        key: the 16-byte key
        input_diff: the input difference (any 4-byte representation)
        output_diff: the output difference (any 4-byte representation)
        pair_samples: the number of random pairs sampled
        exhaustive: if True, all the ``2**32`` pairs are counted
            and ``pair_samples`` is ignored
        seed: the seed of the sampler (``0`` uses the current time)
        library: a `CLibrary` returned by `compile_counter`
            (compiled on demand if None)

    Return:
        : a pair ``(right_pairs, pair_samples)``

    """
    if not exhaustive and pair_samples <= 0:
        raise ValueError("the number of pair samples must be positive, not {}".format(pair_samples))
    if not 0 <= seed < 2 ** 32:
        raise ValueError("the seed must be a 32-bit unsigned integer, not {}".format(seed))

    own_library = library is None
    if own_library:
        library = compile_counter()

    try:
        input_diff = representation.from_state(representation.to_state(input_diff), 0)
        output_diff = representation.from_state(representation.to_state(output_diff), 0)
        if exhaustive:
            pair_samples = 2 ** 32
        right_pairs = library.lib.ipcrypt_count_right_pairs(
            library.key_buffer(key), input_diff, output_diff, pair_samples, int(exhaustive), seed)
    finally:
        if own_library:
            library.cleanup()

    return right_pairs, pair_samples


def empirical_weight(right_pairs, pair_samples):
    """Return ``-log2`` of the fraction of right pairs.

        >>> from ipcrypt.differential import empirical_weight
        >>> empirical_weight(1, 2 ** 10)
        10.0
        >>> empirical_weight(0, 2 ** 10)
        inf

    """
    if right_pairs == 0:
        return math.inf
    return abs(-math.log2(right_pairs / pair_samples))


def attack(key=None, pair_samples=DEFAULT_SAMPLES, exhaustive=False, seed=0, filename=None):
    """Measure the probability of `INPUT_DIFF` -> `OUTPUT_DIFF` and print a report.

    If ``key`` is None, a random key is used. If ``filename`` is not None,
    the report is appended to the given file rather than printed to stdout.

    Return:
        : the empirical weight of the differential

    """
    smart_print = _get_smart_print(filename)

    if key is None:
        key = bytes(random.SystemRandom().getrandbits(8) for _ in range(representation.KEY_BYTES))

    right_pairs, pair_samples = count_right_pairs(
        key, INPUT_DIFF, OUTPUT_DIFF, pair_samples=pair_samples, exhaustive=exhaustive, seed=seed)
    weight = empirical_weight(right_pairs, pair_samples)

    smart_print("key: {}".format(bytes(key).hex()))
    smart_print("differential: {} -> {}".format(bytes(INPUT_DIFF).hex(), bytes(OUTPUT_DIFF).hex()))
    smart_print("right pairs: {}/{} = {}".format(right_pairs, pair_samples, right_pairs / pair_samples))
    smart_print("empirical weight: {:.2f} (ideal cipher: 32)".format(weight))

    return weight
