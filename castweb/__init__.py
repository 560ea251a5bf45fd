"""castweb: browse a Kodi-style .strm/.url/.nfo tree and cast it with ytcast."""

__version__ = "0.1.0"
