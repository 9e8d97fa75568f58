"""Manipulate fixed-width words.

The cipher works on 8-bit words. This module represents such words
either numerically (`Constant`) or symbolically (`Variable` and the
operations applied to them), so the same code of a primitive can be
evaluated on concrete values or traced into an SSA program.

"""
