"""cc-grep: fast parallel search through Claude Code conversation logs.

The engine API lives in :mod:`cc_grep.engine`::

    from cc_grep import engine
    from cc_grep.filters import FilterCriteria

    report = engine.search(root, ["authentication"], filters=FilterCriteria.build(project="myapp"))
"""

__version__ = "0.1.0"
