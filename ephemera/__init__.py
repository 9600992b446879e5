"""
Ephemera

Bounded-access file sharing backend: files are reachable through an
unguessable token until they expire or run out of downloads, then purged.
"""

__version__ = "1.0.0"
