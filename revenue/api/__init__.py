"""HTTP API layer built on FastAPI.

Key components:
- **main**: Application factory and lifecycle management
- **routes**: One router per configuration kind
- **middleware**: Request context, request logging and error handlers
- **schemas**: Pydantic request, response and error models
- **utils**: orjson response class

The API layer only translates between HTTP and the registry engine; all
validity and overlap rules live in the domain layer.
"""
