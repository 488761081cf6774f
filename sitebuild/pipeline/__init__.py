"""Pipeline components of the site build.

Each component reads from the installed upstream dependency and writes to
its own part of the site tree:

- ``importers.artifacts``: library distribution files
- ``importers.docs``: documentation pages
- ``importers.changelog``: the history page
- ``examples``: example copies, example pages and their index
- ``download``: version and size fragments of the download page

``metadata``, ``rewriting`` and ``templating`` are the shared helpers they
are built from; ``updater`` refreshes the dependency itself.
"""
