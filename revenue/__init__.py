"""Revenue Registry - temporal rate configuration for municipal revenue.

Business tax brackets, regulatory fees, land and property assessment tables
and real-property tax rates are all stored as dated versions. The registry
answers which version applies on a given day and keeps every retired version
for audit.

Architecture Overview:
- **API Layer**: FastAPI routers, one per configuration kind
- **Core Layer**: Configuration, errors, logging and tracing
- **Domain Layer**: The registry engine, kind descriptors and overlap rules
- **Infrastructure Layer**: In-memory and PostgreSQL configuration stores
"""
