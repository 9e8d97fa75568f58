"""Translate ipcrypt to C and call it through a foreign function interface.

The C functions

    uint32_t ipcrypt_encrypt(uint32_t v, const uint8_t *key);
    uint32_t ipcrypt_decrypt(uint32_t v, const uint8_t *key);

take the value as a 32-bit integer (the first byte of the state being
the most significant byte) and a pointer to (at least) 16 key bytes.
The pointer is not checked: passing fewer than 16 readable bytes is
undefined behaviour. `CLibrary` wraps the compiled functions and
validates its arguments before calling them.

The bodies of the C functions are generated from the SSA programs of
`IpcryptEncryption` and `IpcryptDecryption`, so the compiled library
and the Python implementation cannot diverge.
"""
import importlib.util
import tempfile

import cffi

from ipcrypt import representation
from ipcrypt.bitvector import core, operation
from ipcrypt.primitives.ipcrypt import IpcryptEncryption, IpcryptDecryption, KEY_WORDS, STATE_WORDS

VERBOSE = False

width2type = {
    8: "uint8_t",
    16: "uint16_t",
    32: "uint32_t",
    64: "uint64_t"
}


def bv2ccode(bv):
    """Convert a word expression to C code.

    Args:
        bv: a `Constant`, a `Variable` or an operation over them

    ::

        >>> from ipcrypt.bitvector.core import Variable
        >>> from ipcrypt.bitvector.operation import RotateLeft
        >>> from ipcrypt.ccode import bv2ccode
        >>> a, b = Variable("a", 8), Variable("b", 8)
        >>> bv2ccode(a ^ b)
        'a ^ b'
        >>> bv2ccode(a + b)
        '(a + b) & 255'
        >>> bv2ccode(a - b)
        '(a - b) & 255'
        >>> bv2ccode(RotateLeft(a, 2))
        '((a << 2) | (a >> 6)) & 255'
        >>> bv2ccode(RotateLeft(a, 2) ^ b)
        Traceback (most recent call last):
        ...
        ValueError: nested bit-vector operations are not supported

    """
    # operands are promoted to int in C, so every shift
    # and arithmetic operation requires the result to be masked

    if isinstance(bv, (core.Constant, core.Variable)):
        return str(int(bv)) if isinstance(bv, core.Constant) else str(bv)

    if not all(isinstance(arg, (int, core.Constant, core.Variable)) for arg in bv.args):
        raise ValueError("nested bit-vector operations are not supported")

    mask = 2 ** bv.width - 1

    if type(bv) == operation.BvXor:
        x, y = bv.args
        return "{} ^ {}".format(bv2ccode(x), bv2ccode(y))
    elif type(bv) == operation.BvAdd:
        x, y = bv.args
        return "({} + {}) & {}".format(bv2ccode(x), bv2ccode(y), mask)
    elif type(bv) == operation.BvSub:
        x, y = bv.args
        return "({} - {}) & {}".format(bv2ccode(x), bv2ccode(y), mask)
    elif type(bv) == operation.RotateLeft:
        x, r = bv.args
        return "(({0} << {1}) | ({0} >> {2})) & {3}".format(x, r, x.width - r, mask)
    else:
        raise ValueError("invalid operation: {}".format(type(bv).__name__))


def ssa2ccode(ssa, name):
    """Return the definition of a C function evaluating a function in SSA form.

    The inputs are passed by value and the outputs through pointers.

        >>> from ipcrypt.primitives.ipcrypt import IpcryptPermutation
        >>> from ipcrypt.ccode import ssa2ccode
        >>> ssa = IpcryptPermutation.ssa(["a", "b", "c", "d"], "x")
        >>> print(ssa2ccode(ssa, "permute").splitlines()[0])
        static void permute(uint8_t a, uint8_t b, uint8_t c, uint8_t d, uint8_t* x7, uint8_t* x11, uint8_t* x13, uint8_t* x12){

    """
    input_vars = ssa["input_vars"]
    output_vars = ssa["output_vars"]
    assert not set(input_vars) & set(output_vars)

    input_vars_c = ["{} {}".format(width2type[v.width], v.name) for v in input_vars]
    output_vars_c = ["{}* {}".format(width2type[v.width], v.name) for v in output_vars]

    outvar2outvar_c = {v: core.Variable("*" + v.name, v.width) for v in output_vars}

    ccode = "static void {}({}){{\n".format(name, ', '.join(input_vars_c + output_vars_c))
    for var, expr in ssa["assignments"]:
        expr = expr.xreplace(outvar2outvar_c)
        if var in output_vars:
            ccode += "\t*{} = {};\n".format(var, bv2ccode(expr))
        else:
            ccode += "\t{} {} = {};\n".format(width2type[var.width], var, bv2ccode(expr))
    ccode += "}\n"

    return ccode


header_ccode = """
uint32_t ipcrypt_encrypt(uint32_t v, const uint8_t *key);
uint32_t ipcrypt_decrypt(uint32_t v, const uint8_t *key);
"""

wrapper_ccode = """
uint32_t ipcrypt_{direction}(uint32_t v, const uint8_t *key){{
\tuint8_t s[4];
\tipcrypt_{direction}_words((uint8_t) (v >> 24), (uint8_t) (v >> 16), (uint8_t) (v >> 8), (uint8_t) v,
\t\t{key_words},
\t\t&s[0], &s[1], &s[2], &s[3]);
\treturn ((uint32_t) s[0] << 24) | ((uint32_t) s[1] << 16) | ((uint32_t) s[2] << 8) | (uint32_t) s[3];
}}
"""


def get_ccode():
    """Return the C header and source of the ipcrypt library.

        >>> from ipcrypt.ccode import get_ccode
        >>> header, source = get_ccode()
        >>> print(header.strip())
        uint32_t ipcrypt_encrypt(uint32_t v, const uint8_t *key);
        uint32_t ipcrypt_decrypt(uint32_t v, const uint8_t *key);
        >>> print(source.count("static void ipcrypt_"))
        2

    """
    source = "#include <stdint.h>\n"
    key_words = ", ".join("key[{}]".format(i) for i in range(KEY_WORDS))
    round_keys = [core.Variable("k{}".format(i), 8) for i in range(KEY_WORDS)]

    for direction, function in [("encrypt", IpcryptEncryption), ("decrypt", IpcryptDecryption)]:
        ssa = function.ssa(["s{}".format(i) for i in range(STATE_WORDS)], "x", round_keys=round_keys)
        ssa = dict(ssa, input_vars=ssa["input_vars"] + tuple(round_keys))
        source += ssa2ccode(ssa, "ipcrypt_{}_words".format(direction))
        source += wrapper_ccode.format(direction=direction, key_words=key_words)

    return header_ccode, source


class CLibrary(object):
    """A compiled ipcrypt library.

    Attributes:
        ffi: the cffi ``FFI`` object of the library
        lib: the raw C functions ``ipcrypt_encrypt`` and ``ipcrypt_decrypt``

    """

    def __init__(self, ffi, lib, tmpdir):
        self.ffi = ffi
        self.lib = lib
        self._tmpdir = tmpdir

    def key_buffer(self, key):
        """Return a C buffer with the 16 key bytes (validated)."""
        words = representation.to_key(key)
        return self.ffi.new("uint8_t[]", [int(w) for w in words])

    def _call(self, c_function, value, key):
        v = representation.from_state(representation.to_state(value), 0)
        result = c_function(v, self.key_buffer(key))
        return representation.from_state(representation.to_state(result), value)

    def encrypt(self, value, key):
        """Encrypt a 4-byte value (see `representation`) with the C library."""
        return self._call(self.lib.ipcrypt_encrypt, value, key)

    def decrypt(self, value, key):
        """Decrypt a 4-byte value (see `representation`) with the C library."""
        return self._call(self.lib.ipcrypt_decrypt, value, key)

    def cleanup(self):
        """Remove the temporary directory holding the compiled library."""
        self._tmpdir.cleanup()


def compile_library(ccode=None, module_name="_libipcrypt", verbose=VERBOSE):
    """Compile the C code with cffi and return the loaded `CLibrary`.

    If ``ccode`` is None, the code returned by `get_ccode` is compiled;
    otherwise ``ccode`` is a pair ``(header, source)`` which must
    contain (at least) the ipcrypt library.
    """
    if ccode is None:
        ccode = get_ccode()
    header, source = ccode

    ffibuilder = cffi.FFI()
    ffibuilder.cdef(header)
    ffibuilder.set_source(module_name, source)

    tmpdir = tempfile.TemporaryDirectory()
    lib_path = ffibuilder.compile(tmpdir=tmpdir.name, verbose=verbose)

    spec = importlib.util.spec_from_file_location(module_name, lib_path)
    lib_module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(lib_module)

    return CLibrary(lib_module.ffi, lib_module.lib, tmpdir)
