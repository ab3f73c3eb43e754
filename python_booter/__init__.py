"""python-booter.

A small build utility that writes manifest-only "booter" jars (a ``Main-Class``
plus a ``Class-Path``) and finds the archive a module was imported from.
"""

__all__: list[str] = ["__version__"]

__version__: str = "0.1.0"
