"""Lifecycle orchestration: capabilities, tokens, signals, guard and controllers.

Import public names from ``coda`` or from the submodules directly.
"""
