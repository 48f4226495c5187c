"""Infrastructure layer — database engine, schema, stores, and migrations.

This layer depends on stdlib, the domain value types, and SQLAlchemy.
It must never import from services, commands, output, or api.
The service layer bridges between domain rules and infrastructure.
"""
