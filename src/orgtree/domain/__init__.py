"""Domain layer — node kinds, closure-edge derivation, errors, and request models.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
