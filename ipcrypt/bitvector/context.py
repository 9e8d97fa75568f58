"""Provide context managers to modify the default behaviour."""
import abc
import collections.abc
import contextlib
import threading

import bidict

from ipcrypt.bitvector import core


class _ThreadLocalContext(abc.ABCMeta):
    """Give each context class its own per-thread ``current_context``."""

    def __init__(cls, name, bases, namespace):
        super().__init__(name, bases, namespace)
        cls._local = threading.local()

    @property
    def current_context(cls):
        return getattr(cls._local, "value", cls.default_context)

    @current_context.setter
    def current_context(cls, value):
        cls._local.value = value


class StatefulContext(contextlib.AbstractContextManager, metaclass=_ThreadLocalContext):
    """Base class for context managers with history.

    The current context is stored per thread: entering a context in one
    thread does not change the behaviour of the other threads.

        >>> import threading
        >>> from ipcrypt.bitvector.context import Memoization, MemoizationTable
        >>> seen = []
        >>> with Memoization(MemoizationTable()):
        ...     thread = threading.Thread(target=lambda: seen.append(Memoization.current_context))
        ...     thread.start()
        ...     thread.join()
        >>> seen
        [None]

    """

    default_context = None

    def __init__(self, new_context):
        """Initialize the context."""
        self.new_context = new_context

    def __enter__(self):
        self.previous_context = type(self).current_context
        type(self).current_context = self.new_context

    def __exit__(self, *args):
        type(self).current_context = self.previous_context


class Validation(StatefulContext):
    """Control the Validation context.

    Control whether or not the operands of word operations are validated.
    By default, validation is enabled.

    When it is disabled, Automatic Constant Conversion is no longer
    available (see `Operation`), but evaluating a primitive over
    constants is faster. The public `encrypt` and `decrypt` evaluate
    the cipher with validation disabled.

        >>> from ipcrypt.bitvector.core import Constant
        >>> from ipcrypt.bitvector.context import Validation
        >>> 2 - Constant(1, 8)
        0x01
        >>> with Validation(False):
        ...     2 - Constant(1, 8)
        Traceback (most recent call last):
         ...
        AttributeError: 'int' object has no attribute 'width'

    """

    default_context = True

    def __init__(self, new_context):
        """Initialize the context."""
        assert new_context in [True, False]
        super().__init__(new_context)


class Memoization(StatefulContext):
    """Control the Memoization context.

    In the *memoization mode*, the result of each word operation is
    stored in a `MemoizationTable` under a fresh identifier, and the
    identifier is returned instead of the full expression.
    Evaluating a primitive over variables in this mode yields its
    static single assignment (SSA) program.

        >>> from ipcrypt.bitvector.core import Variable
        >>> from ipcrypt.bitvector.operation import RotateLeft
        >>> from ipcrypt.bitvector.context import Memoization, MemoizationTable
        >>> a, b = Variable("a", 8), Variable("b", 8)
        >>> RotateLeft(a + b, 4) ^ b
        b ^ ((a + b) <<< 4)
        >>> lut = MemoizationTable()
        >>> with Memoization(lut):
        ...     expr = RotateLeft(a + b, 4) ^ b
        >>> expr
        x2
        >>> lut
        MemoizationTable([(x0, a + b), (x1, x0 <<< 4), (x2, b ^ x1)])

    By default, it is disabled.
    """

    default_context = None

    def __init__(self, new_context):
        """Initialize the context."""
        assert new_context is None or isinstance(new_context, MemoizationTable)
        super().__init__(new_context)


class MemoizationTable(collections.abc.Mapping):
    """Store word expressions with unique identifiers.

    Read-only dictionary-like structure mapping each identifier
    (a `Variable`) to the operation it names, filled by `add_op`
    in the memoization mode (see `Memoization`).

        >>> from ipcrypt.bitvector.core import Variable
        >>> from ipcrypt.bitvector.context import Memoization, MemoizationTable
        >>> c, d = Variable("c", 8), Variable("d", 8)
        >>> lut = MemoizationTable(id_prefix="t")
        >>> with Memoization(lut):
        ...     expr = (c + d) ^ d
        >>> lut[Variable("t0", 8)]
        c + d
        >>> lut.get_id(c + d)
        t0
        >>> lut
        MemoizationTable([(t0, c + d), (t1, d ^ t0)])

    """

    def __init__(self, id_prefix="x"):
        """Initialize an empty MemoizationTable."""
        self.table = bidict.OrderedBidict()
        self.counter = 0
        self.id_prefix = id_prefix

    def __getitem__(self, key):
        return self.table.__getitem__(key)

    def __len__(self):
        return self.table.__len__()

    def __iter__(self):
        return self.table.__iter__()

    def __str__(self):
        return '{0}({1})'.format(type(self).__name__, list(self.table.items()))

    __repr__ = __str__

    def add_op(self, expr):
        """Add an operation and return its identifier."""
        from ipcrypt.bitvector import operation
        assert isinstance(expr, operation.Operation)
        assert not self.contain_op(expr)
        name = "{}{}".format(self.id_prefix, self.counter)
        self.counter += 1
        identifier = core.Variable(name, expr.width)
        self.table[identifier] = expr

        return identifier

    def get_id(self, expr):
        """Return the identifier of an operation."""
        return self.table.inv[expr]

    def contain_op(self, expr):
        """Check if the operation is stored."""
        return expr in self.table.inv
