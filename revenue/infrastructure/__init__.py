"""Configuration store implementations.

- **memory_store**: Process-local store used by tests and the memory backend
- **database**: PostgreSQL store on SQLAlchemy 2.0 async with asyncpg
- **dependencies**: FastAPI dependency that yields the configured store
"""
