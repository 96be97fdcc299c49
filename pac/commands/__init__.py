"""Command implementations behind the CLI.

Each command loads the packfile, does its work, then persists the package
set and regenerates the loader. Rendering is left to ``pac.cli``.
"""
