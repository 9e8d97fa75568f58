"""Provide the basic word types."""
from sympy import Atom, Basic, preorder_traversal


class Term(Basic):
    """Represent fixed-width words.

    Terms are constants, variables and operations applied to terms.
    They support the operators needed by ARX primitives
    (``^``, ``+``, ``-`` and slicing). See `operation` for more information.

    This class is not meant to be instantiated but to provide a base
    class for the different types of terms.

    .. Implementation details:

        Subclasses must implement ``class_key()`` and, if new attributes
        are defined, ``_hashable_content()``.

            Constant: 1, 0, cls.__name__
            Variable: 2, 0, cls.__name__
            Operation: 3, 0, cls.__name__

    """

    __slots__ = ["_width"]

    def __new__(cls, *args, width):
        assert isinstance(width, int) and 0 < width
        obj = Basic.__new__(cls, *args)
        obj._width = width
        return obj

    def __xor__(self, other):
        """Override ^ operator."""
        from ipcrypt.bitvector import operation
        return operation.BvXor(self, other)

    __rxor__ = __xor__

    def __add__(self, other):
        """Override + operator."""
        from ipcrypt.bitvector import operation
        return operation.BvAdd(self, other)

    __radd__ = __add__

    def __sub__(self, other):
        """Override - operator."""
        from ipcrypt.bitvector import operation
        return operation.BvSub(self, other)

    def __rsub__(self, other):
        """Override reflected - operator."""
        from ipcrypt.bitvector import operation
        return operation.BvSub(other, self)

    def __getitem__(self, key):
        """Override [] operator (``t[i:j]`` extracts bits i down to j)."""
        from ipcrypt.bitvector import operation

        if isinstance(key, slice):
            assert key.step is None or key.step == 1

            i = key.start if key.start is not None else self.width - 1
            if i < 0 or i >= self.width:
                raise IndexError("first index out of range")

            j = key.stop if key.stop is not None else 0
            if j < 0 or j >= self.width or j > i:
                raise IndexError("second index out of range")

            return operation.Extract(self, i, j)
        elif isinstance(key, int):
            if key < 0 or key >= self.width:
                raise IndexError("index out of range")
            return operation.Extract(self, key, key)
        else:
            raise TypeError("invalid index")

    def __iter__(self):
        # __getitem__ would otherwise make terms iterable
        raise AttributeError("Term is not iterable")

    def __str__(self):
        """Return the non-verbose string representation."""
        from ipcrypt.bitvector import printing
        return (printing.BvStrPrinter()).doprint(self)

    __repr__ = __str__

    def _hashable_content(self):
        return self.args + (self.width, )

    @property
    def width(self):
        """The bit-width of the term."""
        return self._width

    def class_key(self):
        """Return the key (identifier) of the class for sorting."""
        raise NotImplementedError("subclasses need to override this method")

    def atoms(self, *types):
        """Return the atoms that form the term.

        Similar to SymPy ``atoms()``, but the scalar (`int`) operands of
        operations such as `RotateLeft` are ignored.
        """
        if types:
            types = tuple(
                [t if isinstance(t, type) else type(t) for t in types])
        nodes = preorder_traversal(self)
        if types:
            result = {node for node in nodes if isinstance(node, types)}
        else:
            result = {node for node in nodes if not isinstance(node, int) and not node.args}
        return result


class Constant(Atom, Term):
    """Represent a word with a known value.

    A constant of width *n* is the unsigned integer ``val`` in
    ``[0, 2**n)``.

        >>> from ipcrypt.bitvector.core import Constant
        >>> Constant(127, 8)
        0x7f
        >>> Constant(0x0a02, 16)
        0x0a02
        >>> Constant(3, 5)
        0b00011

    """

    __slots__ = ["_val"]

    def __new__(cls, val, width):
        assert isinstance(val, int) and 0 <= val < 2 ** width
        obj = Term.__new__(cls, width=width)
        obj._val = val
        return obj

    def __int__(self):
        return self.val

    __index__ = __int__

    def __hash__(self):
        return super().__hash__()

    def __eq__(self, other):
        """Override == operator (ints compare by value)."""
        if isinstance(other, int):
            return self.val == other
        elif isinstance(other, Constant) and self.width == other.width:
            return self.val == other.val
        else:
            return False

    def _hashable_content(self):
        return self.val, self.width

    @classmethod
    def class_key(cls):
        return 1, 0, cls.__name__

    @property
    def val(self):
        """The integer represented by the constant."""
        return self._val

    def bin(self):
        """Return the binary representation.

            >>> from ipcrypt.bitvector.core import Constant
            >>> print(Constant(5, 8).bin())
            0b00000101

        """
        return format(self.val, '0=#{}b'.format(self.width + 2))

    def hex(self):
        """Return the hexadecimal representation.

            >>> from ipcrypt.bitvector.core import Constant
            >>> print(Constant(114, 8).hex())
            0x72

        """
        assert self.width % 4 == 0
        return format(self.val, '0=#{}x'.format(self.width // 4 + 2))


class Variable(Atom, Term):
    """Represent a named symbolic word.

        >>> from ipcrypt.bitvector.core import Variable
        >>> Variable("a", 8)
        a
        >>> Variable("a", 8).width
        8

    """

    __slots__ = ['_name']

    def __new__(cls, name, width):
        assert isinstance(name, str)
        obj = Term.__new__(cls, width=width)
        obj._name = name
        return obj

    def _hashable_content(self):
        return self.name, self.width

    @classmethod
    def class_key(cls):
        return 2, 0, cls.__name__

    @property
    def name(self):
        """The name of the variable."""
        return self._name


def bitvectify(t, width):
    """Convert *t* to a word of bit-width *width*.

        >>> from ipcrypt.bitvector.core import bitvectify
        >>> bitvectify(0, 8)
        0x00
        >>> type(bitvectify("k0", 8)).__name__
        'Variable'

    """
    if isinstance(t, int):
        return Constant(t, width)
    elif isinstance(t, str):
        return Variable(t, width)
    elif isinstance(t, Term):
        assert t.width == width
        return t
    else:
        msg = "cannot convert '{}' to a bit-vector"
        raise TypeError(msg.format(type(t).__name__))
