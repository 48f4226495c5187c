"""orgtree — users and groups arranged in a closure-table hierarchy."""

__version__ = "0.1.0"
