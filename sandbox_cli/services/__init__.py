"""
Services module for sandbox-cli.

This module provides the local datastore and client configuration handling,
plus interfaces with external systems such as the sandbox API and the
sandbox client runtime.
"""
