"""Convert external values to and from the internal state.

The cipher operates on states, tuples of four 8-bit `Constant`.
Each supported external type is registered with a pair of functions
``(to_state, from_state)``; `to_state` looks the type of the value up
in the registry and `from_state` converts back to the type of a
reference value, so that encrypting a value returns a value of the
same shape.

    >>> import ipaddress
    >>> from ipcrypt.representation import to_state, from_state
    >>> to_state(0x7f000001)
    (0x7f, 0x00, 0x00, 0x01)
    >>> to_state(ipaddress.IPv4Address("8.8.8.8"))
    (0x08, 0x08, 0x08, 0x08)
    >>> from_state(to_state("1.2.3.4"), b"")
    b'\\x01\\x02\\x03\\x04'

Conversion errors are raised as `RepresentationError` before the
cipher is evaluated.
"""
import collections
import ipaddress

from ipcrypt.bitvector.core import Constant
from ipcrypt.bitvector.operation import Concat

STATE_BYTES = 4
KEY_BYTES = 16
WORD_WIDTH = 8

Representation = collections.namedtuple("Representation", ["to_state", "from_state"])


class RepresentationError(ValueError):
    """Raised when a value cannot be interpreted as exactly 4 (or 16) bytes."""


def _words(octets, length, what):
    octets = list(octets)
    if len(octets) != length:
        raise RepresentationError("{} must have {} bytes but {} were given".format(
            what, length, len(octets)))
    for o in octets:
        if not isinstance(o, int) or isinstance(o, bool) or not 0 <= o < 2 ** WORD_WIDTH:
            raise RepresentationError("invalid byte {!r} in {}".format(o, what))
    return tuple(Constant(o, WORD_WIDTH) for o in octets)


def _octets(state):
    return [int(w) for w in state]


def _int_to_state(value):
    if not 0 <= value < 2 ** (WORD_WIDTH * STATE_BYTES):
        raise RepresentationError("{} is not a 32-bit unsigned integer".format(value))
    v = Constant(value, WORD_WIDTH * STATE_BYTES)
    # big-endian: the first word is the most significant byte
    return tuple(v[WORD_WIDTH * (i + 1) - 1:WORD_WIDTH * i] for i in reversed(range(STATE_BYTES)))


def _int_from_state(state, like):
    a, b, c, d = state
    return int(Concat(Concat(Concat(a, b), c), d))


def _bytes_to_state(value):
    return _words(value, STATE_BYTES, "state")


def _bytes_from_state(state, like):
    if hasattr(like, "_make"):
        # namedtuple
        return like._make(_octets(state))
    return type(like)(_octets(state))


def _ipv4_to_state(value):
    return _words(value.packed, STATE_BYTES, "state")


def _ipv4_from_state(state, like):
    return ipaddress.IPv4Address(bytes(_octets(state)))


def _str_to_state(value):
    try:
        address = ipaddress.IPv4Address(value)
    except ipaddress.AddressValueError as e:
        raise RepresentationError("invalid IPv4 address {!r}: {}".format(value, e)) from e
    return _ipv4_to_state(address)


def _str_from_state(state, like):
    return str(_ipv4_from_state(state, like))


_registry = dict([
    (bool, None),
    (int, Representation(_int_to_state, _int_from_state)),
    (bytes, Representation(_bytes_to_state, _bytes_from_state)),
    (bytearray, Representation(_bytes_to_state, _bytes_from_state)),
    (list, Representation(_bytes_to_state, _bytes_from_state)),
    (tuple, Representation(_bytes_to_state, _bytes_from_state)),
    (ipaddress.IPv4Address, Representation(_ipv4_to_state, _ipv4_from_state)),
    (str, Representation(_str_to_state, _str_from_state)),
])


def register(value_type, to_state_func, from_state_func):
    """Register the conversion functions of a new external type.

    ``to_state_func(value)`` must return a state and
    ``from_state_func(state, like)`` a value of type ``value_type``
    (``like`` is the value originally passed to `to_state`).

        >>> import collections
        >>> from ipcrypt.representation import register, to_state, from_state
        >>> Octets = collections.namedtuple("Octets", "a b c d")
        >>> register(Octets, lambda v: to_state(tuple(v)), lambda s, like: Octets(*map(int, s)))
        >>> from_state(to_state(Octets(10, 0, 0, 1)), Octets(0, 0, 0, 0))
        Octets(a=10, b=0, c=0, d=1)

    """
    _registry[value_type] = Representation(to_state_func, from_state_func)


def _lookup(value_type):
    for t in value_type.__mro__:
        if t in _registry:
            representation = _registry[t]
            break
    else:
        representation = None

    if representation is None:
        raise TypeError("cannot convert '{}' to an ipcrypt state".format(value_type.__name__))
    return representation


def to_state(value):
    """Convert an external value to a state.

    Supported values are 32-bit unsigned integers (big-endian),
    sequences of 4 bytes (`bytes`, `bytearray`, `list`, `tuple`),
    `ipaddress.IPv4Address` and dotted-quad strings.
    """
    return _lookup(type(value)).to_state(value)


def from_state(state, like):
    """Convert a state to a value of the same type as *like*."""
    assert len(state) == STATE_BYTES
    return _lookup(type(like)).from_state(state, like)


def to_key(key):
    """Convert a 16-byte key to a tuple of 16 words.

        >>> from ipcrypt.representation import to_key
        >>> to_key(b"some 16-byte key")[:4]
        (0x73, 0x6f, 0x6d, 0x65)
        >>> to_key(b"short key")
        Traceback (most recent call last):
         ...
        ipcrypt.representation.RepresentationError: key must have 16 bytes but 9 were given

    """
    if isinstance(key, str):
        raise TypeError("the key must be raw bytes, not str (encode it first)")
    if isinstance(key, memoryview):
        key = key.tobytes()
    return _words(key, KEY_BYTES, "key")
