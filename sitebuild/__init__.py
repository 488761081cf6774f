"""Build pipeline for the mathjs documentation website.

Imports the distribution files, documentation, examples and changelog of
the upstream library into a static site tree and keeps the download page in
step with the current release.
"""

__version__ = "1.0.0"
