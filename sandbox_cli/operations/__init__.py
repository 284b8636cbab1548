"""
Operations module for sandbox-cli.

This module encapsulates detailed business logic that powers runtime methods:
origin detection in PAPI rule trees, parsing of command-line values, and
recipe loading and validation.
"""
