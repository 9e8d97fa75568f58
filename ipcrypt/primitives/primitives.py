"""Represent symmetric primitives."""
import collections.abc
import warnings

from ipcrypt.bitvector import context
from ipcrypt.bitvector import core
from ipcrypt.bitvector import operation


class BvFunction(object):
    """Represent fixed-width word functions.

    A `BvFunction` takes fixed-width `Constant` operands and returns a
    tuple of fixed-width `Constant`. It is evaluated using the
    operator ``()`` and converts plain integers to `Constant`
    automatically.

        >>> from ipcrypt.primitives.primitives import BvFunction
        >>> from ipcrypt.primitives.ipcrypt import IpcryptPermutation
        >>> issubclass(IpcryptPermutation, BvFunction)
        True
        >>> IpcryptPermutation(1, 2, 3, 4)  # automatic conversion from int to Constant
        (0xb7, 0x4a, 0x21, 0x74)

    Attributes:
        input_widths: a list containing the widths of the inputs
        output_widths: a list containing the widths of the outputs
        rounds: the number of iterations of the main subroutine

    """
    input_widths = None
    output_widths = None
    rounds = None

    def __new__(cls, *args, **options):
        if len(cls.input_widths) != len(args):
            raise ValueError("{} requires {} inputs but {} were given: {}".format(
                cls.__name__, len(cls.input_widths), len(args), args))
        args = [core.bitvectify(arg, width) for arg, width in zip(args, cls.input_widths)]

        symbolic_inputs = options.pop("symbolic_inputs", False)
        if not symbolic_inputs and not all(isinstance(arg, core.Constant) for arg in args):
            raise TypeError("expected bit-vector constant arguments")

        result = cls.eval(*args, **options)

        assert isinstance(result, collections.abc.Sequence)
        assert len(cls.output_widths) == len(result)

        return tuple(core.bitvectify(r, width) for r, width in zip(result, cls.output_widths))

    @classmethod
    def eval(cls, *args):
        """Evaluate the function (internal method)."""
        raise NotImplementedError("subclasses need to override this method")

    @classmethod
    def ssa(cls, input_names, id_prefix, **options):
        """Return a static single assignment program representing the function.

        Args:
            input_names: the names for the input variables
            id_prefix: the prefix to denote the intermediate variables
            options: additional symbolic arguments (e.g., ``round_keys``)

        Return:
            : a dictionary with three keys

            - *input_vars*: a tuple of `Variable` representing the inputs
            - *output_vars*: a tuple of `Variable` representing the outputs
            - *assignments*: an ordered sequence of pairs
              (`Variable`, `Operation`) representing each assignment
              of the SSA program.

        ::

                >>> from ipcrypt.primitives.ipcrypt import IpcryptPermutation
                >>> IpcryptPermutation.ssa(["a", "b", "c", "d"], "x")  # doctest: +NORMALIZE_WHITESPACE
                {'input_vars': (a, b, c, d),
                'output_vars': (x7, x11, x13, x12),
                'assignments': ((x0, a + b), (x1, c + d), (x2, b <<< 2), (x3, d <<< 5), (x4, x0 ^ x2),
                (x5, x1 ^ x3), (x6, x0 <<< 4), (x7, x5 + x6), (x8, x1 + x4), (x9, x4 <<< 3),
                (x10, x5 <<< 7), (x11, x8 ^ x9), (x12, x10 ^ x7), (x13, x8 <<< 4))}

        """
        input_vars = tuple(core.Variable(name, width) for name, width in zip(input_names, cls.input_widths))

        table = context.MemoizationTable(id_prefix=id_prefix)

        with context.Memoization(table):
            output_vars = cls(*input_vars, symbolic_inputs=True, **options)

        ssa_dict = {
            "input_vars": input_vars,
            "output_vars": output_vars,
            "assignments": tuple(table.items())
        }

        for var, expr in ssa_dict["assignments"]:
            for arg in expr.args:
                if isinstance(arg, operation.Operation):
                    raise ValueError("assignment {} <- {} was not decomposed".format(var, expr))

        to_delete = []
        vars_needed = set(output_vars)
        for var, expr in reversed(ssa_dict["assignments"]):
            if var in vars_needed:
                vars_needed.update(expr.atoms(core.Variable))
            else:
                to_delete.append((var, expr))

        input_vars_not_used = [v for v in input_vars if v not in vars_needed]
        if input_vars_not_used:
            warnings.warn("found unused input vars {} in \n{}".format(input_vars_not_used, ssa_dict))

        if to_delete:
            warnings.warn("removing redundant assignments {} in \n{}".format(to_delete, ssa_dict))
            ssa_dict["assignments"] = tuple(a for a in ssa_dict["assignments"] if a not in to_delete)

        round_keys = options.get("round_keys")
        if round_keys is not None:
            rk_not_used = [k for k in round_keys if k not in vars_needed]
            if rk_not_used:
                warnings.warn("found round keys {} not used in {}\n{}".format(rk_not_used, cls.__name__, ssa_dict))

        return ssa_dict


# noinspection PyAbstractClass
class KeySchedule(BvFunction):
    """Represent key schedule functions.

    A key schedule function is a `BvFunction` that takes
    the master key as input and returns the round keys.
    See `BvFunction` for more information.
    """


# noinspection PyAbstractClass
class RoundKeyedFunction(BvFunction):
    """Represent a `BvFunction` parametrized by round keys.

    The round keys are passed with the keyword ``round_keys`` on every
    call and handed to ``eval``; they are never stored in the class,
    so concurrent evaluations under different keys do not interfere.

    Attributes:
        round_key_widths: a list containing the widths of the round keys

    """
    round_key_widths = None

    def __new__(cls, *args, round_keys, **options):
        if len(cls.round_key_widths) != len(round_keys):
            raise ValueError("{} requires {} round keys but {} were given".format(
                cls.__name__, len(cls.round_key_widths), len(round_keys)))
        round_keys = tuple(core.bitvectify(k, w) for k, w in zip(round_keys, cls.round_key_widths))

        if not options.get("symbolic_inputs", False) and \
                not all(isinstance(k, core.Constant) for k in round_keys):
            raise TypeError("expected bit-vector constant round keys")

        return super().__new__(cls, *args, round_keys=round_keys, **options)

    @classmethod
    def eval(cls, *args, round_keys):
        """Evaluate the function with the given round keys (internal method)."""
        raise NotImplementedError("subclasses need to override this method")


# noinspection PyAbstractClass
class Encryption(RoundKeyedFunction):
    """Represent encryption functions.

    An encryption function takes the plaintext and the round keys
    and returns the ciphertext.
    See `RoundKeyedFunction` for more information.
    """


# noinspection PyAbstractClass
class Decryption(RoundKeyedFunction):
    """Represent decryption functions.

    A decryption function takes the ciphertext and the round keys
    and returns the plaintext.
    See `RoundKeyedFunction` for more information.
    """


class Cipher(object):
    """Represent block ciphers.

    A block cipher consists of a `KeySchedule` function that computes
    round keys from a master key, an `Encryption` function that computes
    a ciphertext from a plaintext and the round keys, and the matching
    `Decryption` function.

    Given a ``cipher``, ``cipher(plaintext, masterkey)`` returns the
    ciphertext and ``cipher.decrypt(ciphertext, masterkey)`` the plaintext.

        >>> from ipcrypt.primitives.primitives import Cipher
        >>> from ipcrypt.primitives.ipcrypt import IpcryptCipher
        >>> issubclass(IpcryptCipher, Cipher)
        True
        >>> key = list(b"some 16-byte key")
        >>> IpcryptCipher([127, 0, 0, 1], key)
        (0x72, 0x3e, 0xe3, 0x3b)
        >>> IpcryptCipher.decrypt([114, 62, 227, 59], key)
        (0x7f, 0x00, 0x00, 0x01)

    Attributes:
        key_schedule: the `KeySchedule` function of the cipher
        encryption: the `Encryption` function of the cipher
        decryption: the `Decryption` function of the cipher

    """
    key_schedule = None
    encryption = None
    decryption = None
    rounds = None

    def __new__(cls, plaintext, masterkey, **options):
        assert isinstance(plaintext, collections.abc.Sequence)
        assert isinstance(masterkey, collections.abc.Sequence)

        round_keys = cls.key_schedule(*masterkey, **options)
        return cls.encryption(*plaintext, round_keys=round_keys, **options)

    @classmethod
    def decrypt(cls, ciphertext, masterkey, **options):
        """Return the plaintext of the given ciphertext."""
        assert isinstance(ciphertext, collections.abc.Sequence)
        assert isinstance(masterkey, collections.abc.Sequence)

        round_keys = cls.key_schedule(*masterkey, **options)
        return cls.decryption(*ciphertext, round_keys=round_keys, **options)
