"""Implementations of the rz subcommands."""
