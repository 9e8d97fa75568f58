"""Provide the word operations used by ARX primitives."""
from sympy import default_sort_key
from sympy.printing import precedence as sympy_precedence

from ipcrypt.bitvector import context
from ipcrypt.bitvector import core


class Operation(core.Term):
    """Represent word operations.

    An operation takes some word operands (i.e. `Term`) and some
    scalar operands (i.e. `int`), and returns a single word.
    Operations over constants are evaluated to a `Constant`; operations
    over variables are kept as symbolic expressions.

    This class is not meant to be instantiated but to provide a base
    class for the different types of operations.

    Attributes:
        arity: a pair of numbers specifying the number of word operands
            (at least one) and scalar operands.
        is_symmetric: True if the operator is symmetric with respect to
            its operands; the operands are then sorted.
        is_simple: True if all operands are words of the same width.
            Simple operators allow *Automatic Constant Conversion*,
            that is, plain integers are converted to `Constant`
            of the width of the other operand.

            ::

                >>> from ipcrypt.bitvector.core import Constant
                >>> Constant(250, 8) + 10
                0x04

        operand_types: a list specifying the types of the operands (optional
            if all operands are words)
        infix_symbol: a symbol used when printing (optional)
    """

    is_Atom = False
    precedence = sympy_precedence.PRECEDENCE["Func"]

    is_simple = False

    def __new__(cls, *args, **options):
        val_op = options.pop("validate_operands",
                             context.Validation.current_context)
        st = options.pop("state", context.Memoization.current_context)

        if val_op:
            args = cls._parse_args(*args)

        if st is not None:
            args = [st.get_id(arg) if isinstance(arg, Operation) and st.contain_op(arg) else arg
                    for arg in args]

        width = cls.output_width(*args)

        with context.Memoization(None):
            result = cls.eval(*args)

        if result is not None:
            obj = result
        else:
            obj = super().__new__(cls, *args, width=width)

        if isinstance(obj, Operation) and st is not None:
            for arg in obj.args:
                if isinstance(arg, Operation):
                    raise ValueError("arg {} of {} was not memoized".format(arg, obj))
            if st.contain_op(obj):
                return st.get_id(obj)
            else:
                return st.add_op(obj)

        return obj

    @classmethod
    def _parse_args(cls, *args):
        if cls.is_simple:
            for a in args:
                if isinstance(a, core.Term):
                    w = a.width
                    break
            else:
                msg = "{} expects at least 1 term operand"
                raise TypeError(msg.format(cls.__name__))

            args = [core.Constant(a, w) if isinstance(a, int) else a for a in args]

        operand_types = getattr(cls, "operand_types", [core.Term for _ in args])
        for arg_type, arg in zip(operand_types, args):
            if not isinstance(arg, arg_type):
                msg = "{} expected {} operand but got {}"
                raise TypeError(msg.format(cls.__name__, arg_type.__name__, type(arg).__name__))

        num_terms = sum(1 for a in args if isinstance(a, core.Term))
        num_scalars = sum(1 for a in args if isinstance(a, int))
        assert num_terms + num_scalars == len(args)
        assert tuple(cls.arity) == (num_terms, num_scalars)

        if cls.is_symmetric:
            args = sorted(args, key=default_sort_key)

        assert cls.condition(*args), "{}.condition({}) did not hold".format(cls.__name__, args)

        return args

    @classmethod
    def condition(cls, *args):
        """Check if the operands verify the restrictions of the operator."""
        return True

    @classmethod
    def output_width(cls, *args):
        """Return the bit-width of the resulting word."""
        raise NotImplementedError("subclasses need to override this method")

    @classmethod
    def eval(cls, *args):
        """Evaluate the operator with given operands.

        Return None if no simplification applies. This is an internal
        method; to evaluate an operation, use the operator ``()``.
        """
        raise NotImplementedError("subclasses need to override this method")

    @classmethod
    def class_key(cls):
        return 3, 0, cls.__name__


class BvXor(Operation):
    """Bitwise XOR (exclusive-or) operation.

    It overrides the operator ^ and provides Automatic Constant Conversion.

        >>> from ipcrypt.bitvector.core import Constant, Variable
        >>> from ipcrypt.bitvector.operation import BvXor
        >>> BvXor(Constant(127, 8), Constant(0x73, 8))
        0x0c
        >>> Constant(127, 8) ^ 0x73
        0x0c
        >>> Variable("a", 8) ^ Variable("k0", 8)
        a ^ k0

    """

    arity = [2, 0]
    is_symmetric = True
    is_simple = True
    infix_symbol = "^"

    @classmethod
    def condition(cls, x, y):
        return x.width == y.width

    @classmethod
    def output_width(cls, x, y):
        return x.width

    @classmethod
    def eval(cls, x, y):
        if isinstance(x, core.Constant) and isinstance(y, core.Constant):
            return core.Constant(x.val ^ y.val, x.width)

        zero = core.Constant(0, x.width)

        if x == zero:
            return y
        elif y == zero:
            return x
        elif x == y:
            return zero


class RotateLeft(Operation):
    """Circular left rotation within the word width.

        >>> from ipcrypt.bitvector.core import Constant, Variable
        >>> from ipcrypt.bitvector.operation import RotateLeft
        >>> RotateLeft(Constant(0b10010110, 8), 2)
        0x5a
        >>> RotateLeft(Variable("b", 8), 2)
        b <<< 2
        >>> RotateLeft(RotateLeft(Variable("b", 8), 5), 3)
        b

    """

    arity = [1, 1]
    is_symmetric = False
    infix_symbol = "<<<"
    operand_types = [core.Term, int]

    @classmethod
    def condition(cls, x, r):
        return x.width > r >= 0

    @classmethod
    def output_width(cls, x, r):
        return x.width

    @classmethod
    def eval(cls, x, r):
        def doit(val, r, width):
            mask = 2 ** width - 1
            return ((val << r) | (val >> (width - r))) & mask

        if isinstance(x, core.Constant):
            return core.Constant(doit(x.val, r, x.width), x.width)
        elif r == 0:
            return x
        elif isinstance(x, RotateLeft):
            return RotateLeft(x.args[0], (x.args[1] + r) % x.width)


class Extract(Operation):
    """Extraction of bits.

    ``Extract(t, i, j)`` extracts the bits from position ``i`` down to
    position ``j`` (end points included, position 0 being the least
    significant bit). It overrides the operation [], that is,
    ``Extract(t, i, j)`` is equivalent to ``t[i:j]``.

    Warning:
        As opposed to Python lists, the order of the indices is swapped
        and both end points are included.

    ::

        >>> from ipcrypt.bitvector.core import Constant, Variable
        >>> from ipcrypt.bitvector.operation import Extract
        >>> Extract(Constant(0x7f000001, 32), 31, 24)
        0x7f
        >>> Constant(0x7f000001, 32)[7:0]
        0x01
        >>> Variable("v", 32)[15:8]
        v[15:8]

    """

    arity = [1, 2]
    is_symmetric = False
    operand_types = [core.Term, int, int]

    @classmethod
    def condition(cls, t, i, j):
        return t.width > i >= j >= 0

    @classmethod
    def output_width(cls, t, i, j):
        return i - j + 1

    @classmethod
    def eval(cls, x, i, j):
        if isinstance(x, core.Constant):
            width = cls.output_width(x, i, j)
            return core.Constant((x.val >> j) & (2 ** width - 1), width)
        elif i == x.width - 1 and j == 0:
            return x
        elif isinstance(x, Extract):
            offset = x.args[2]
            return Extract(x.args[0], i + offset, j + offset)
        elif isinstance(x, Concat):
            low = x.args[1].width
            if i < low:
                return Extract(x.args[1], i, j)
            elif j >= low:
                return Extract(x.args[0], i - low, j - low)


class Concat(Operation):
    """Concatenation operation.

    ``Concat(x, y)`` places the bits of ``x`` above the bits of ``y``.
    Four 8-bit words concatenated in order form the big-endian 32-bit
    value of a state.

        >>> from ipcrypt.bitvector.core import Constant, Variable
        >>> from ipcrypt.bitvector.operation import Concat
        >>> Concat(Constant(0x7f, 8), Constant(0x00, 8))
        0x7f00
        >>> Concat(Variable("a", 8), Variable("b", 8))
        a :: b

    """

    arity = [2, 0]
    is_symmetric = False
    infix_symbol = "::"

    @classmethod
    def output_width(cls, x, y):
        return x.width + y.width

    @classmethod
    def eval(cls, x, y):
        if isinstance(x, core.Constant) and isinstance(y, core.Constant):
            return core.Constant((x.val << y.width) | y.val, cls.output_width(x, y))
        elif isinstance(x, Extract) and isinstance(y, Extract):
            # x[15:8] :: x[7:0] = x[15:0]
            if x.args[0] == y.args[0] and x.args[2] == y.args[1] + 1:
                return Extract(x.args[0], x.args[1], y.args[2])


class BvAdd(Operation):
    """Modular addition operation.

    It overrides the operator + and provides Automatic Constant Conversion.
    The result wraps modulo ``2**width``.

        >>> from ipcrypt.bitvector.core import Constant, Variable
        >>> from ipcrypt.bitvector.operation import BvAdd
        >>> BvAdd(Constant(200, 8), Constant(100, 8))
        0x2c
        >>> Constant(200, 8) + 100
        0x2c
        >>> Variable("a", 8) + Variable("b", 8)
        a + b

    """

    arity = [2, 0]
    is_symmetric = True
    is_simple = True
    infix_symbol = "+"

    @classmethod
    def condition(cls, x, y):
        return x.width == y.width

    @classmethod
    def output_width(cls, x, y):
        return x.width

    @classmethod
    def eval(cls, x, y):
        if isinstance(x, core.Constant) and isinstance(y, core.Constant):
            return core.Constant((x.val + y.val) % (2 ** x.width), x.width)

        zero = core.Constant(0, x.width)

        if x == zero:
            return y
        elif y == zero:
            return x
        elif isinstance(x, BvSub) and x.args[1] == y:  # (x0 - x1) + x1
            return x.args[0]
        elif isinstance(y, BvSub) and y.args[1] == x:  # x + (y0 - x)
            return y.args[0]


class BvSub(Operation):
    """Modular subtraction operation.

    It overrides the operator - and provides Automatic Constant Conversion.
    The result wraps modulo ``2**width``.

        >>> from ipcrypt.bitvector.core import Constant, Variable
        >>> from ipcrypt.bitvector.operation import BvSub
        >>> BvSub(Constant(1, 8), Constant(2, 8))
        0xff
        >>> Constant(1, 8) - 2
        0xff
        >>> Variable("a", 8) - Variable("d", 8)
        a - d

    """

    arity = [2, 0]
    is_symmetric = False
    is_simple = True
    infix_symbol = "-"

    @classmethod
    def condition(cls, x, y):
        return x.width == y.width

    @classmethod
    def output_width(cls, x, y):
        return x.width

    @classmethod
    def eval(cls, x, y):
        if isinstance(x, core.Constant) and isinstance(y, core.Constant):
            return core.Constant((x.val - y.val) % (2 ** x.width), x.width)

        zero = core.Constant(0, x.width)

        if y == zero:
            return x
        elif x == y:
            return zero
        elif isinstance(x, BvAdd):  # (x0 + x1) - y
            if x.args[0] == y:
                return x.args[1]
            elif x.args[1] == y:
                return x.args[0]

