"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API constants and raw calls
    └── {feature}.py      # Parsing and fetch functions (one per concept)

Only GBIF is wired in today (``gbif/``).  A new source should return the
same ``FlattenedRow`` objects so the download stage can consume it
unchanged, and get its own ``tests/test_{name}.py``.
"""
