"""Budget Tracker core package.

This package turns low-structure financial input (chat commands and bank
statement exports) into validated transactions and goals, and keeps goal
completion estimates up to date.  See ``interpreter.py``, ``importer.py``
and ``projection.py`` for the main entry points.
"""

__version__ = "0.1.0"
