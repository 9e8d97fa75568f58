"""Tests for the context and printing module."""
import unittest
import doctest

import ipcrypt.bitvector.context
import ipcrypt.bitvector.printing


class EmptyTest(unittest.TestCase):
    pass


# noinspection PyUnusedLocal,PyUnusedLocal
def load_tests(loader, tests, ignore):
    """Add doctests."""
    tests.addTests(doctest.DocTestSuite(ipcrypt.bitvector.printing))
    tests.addTests(doctest.DocTestSuite(ipcrypt.bitvector.context))
    return tests
