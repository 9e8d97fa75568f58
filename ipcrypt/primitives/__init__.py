"""Represent the ipcrypt permutation, key schedule and cipher."""
