"""Infrastructure layer: database, work queue, batch engine, DNS queue.

This layer depends on stdlib, SQLAlchemy, and the domain record types.
It must never import from services, commands, or output.
"""
