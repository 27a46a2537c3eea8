"""TorBox torrent finder: search providers, check debrid cache, submit magnets."""

__version__ = "1.0.0"
