"""Plugins shipped with orgtree and registered by the Directory."""
