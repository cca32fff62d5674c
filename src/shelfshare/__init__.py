"""shelfshare: a community library tracker backed by a shared spreadsheet."""

__version__ = "0.1.0"
