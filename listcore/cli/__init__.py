"""Command-line interface package for listcore.

The function :func:`main` is re-exported so that ``from listcore.cli import
main`` yields the entry point. Binding it here replaces the package attribute
that importing the submodule :mod:`listcore.cli.main` sets; the submodule
itself stays reachable through ``sys.modules`` for ``listcore.cli.main:main``.
"""

from .main import main

__all__ = ["main"]
