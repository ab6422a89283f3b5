"""
Support layer for shared accountability utilities.

Provides policy configuration loading and data directory resolution used
across CLI, store, and engine modules.
"""
