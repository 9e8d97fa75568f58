"""Manage the text representation of words and word expressions."""
from sympy.printing import str as sympy_str


# noinspection PyPep8Naming,PyMethodMayBeStatic
class BvStrPrinter(sympy_str.StrPrinter):
    """Printing class that handles the `str` method of `Term`.

        >>> from ipcrypt.bitvector.core import Constant, Variable
        >>> from ipcrypt.bitvector.operation import RotateLeft
        >>> a, b = Variable("a", 8), Variable("b", 8)
        >>> print(RotateLeft(a + b, 4) - Constant(1, 8))
        ((a + b) <<< 4) - 0x01
        >>> print(Constant(0b101, 3))
        0b101

    """

    def _need_parentheses(self, bv, parent):
        """Return true if bv needs parentheses when used in infix notation."""
        from ipcrypt.bitvector import core

        assert isinstance(bv, (core.Term, int))

        if isinstance(bv, int):
            return False
        elif len(bv.args) in [0, 1]:
            return False
        elif type(bv) == type(parent) and parent.is_symmetric:
            return False
        else:
            return True

    def _print_Term(self, bv):
        args = [self._print(a) for a in bv.args]
        return "{}({})".format(type(bv).__name__, ", ".join(args))

    def _print_Constant(self, bv):
        if bv.width % 4 == 0:
            return bv.hex()
        else:
            return bv.bin()

    def _print_Variable(self, bv):
        return bv.name

    def _print_Operation(self, bv):
        if not hasattr(bv, "infix_symbol"):
            return self._print_Term(bv)

        args = []
        for a in bv.args:
            if self._need_parentheses(a, bv):
                args.append("({})".format(self._print(a)))
            else:
                args.append(self._print(a))

        return "{} {} {}".format(args[0], bv.infix_symbol, args[1])

    def _print_Extract(self, bv):
        x, i, j = bv.args

        if i == j:
            index = str(i)
        else:
            index = "{}:{}".format(i, j)

        if self._need_parentheses(x, bv):
            x = "({})".format(self._print(x))
        else:
            x = self._print(x)

        return "{}[{}]".format(x, index)

