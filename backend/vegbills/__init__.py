"""Vegetable purchase bills API.

This package contains the FastAPI backend that records purchase bills
issued against a vegetable catalogue supplied by registered providers.
It includes the SQLAlchemy models, Pydantic schemas, the catalogue
reconciler and pricing rules behind bill creation, a Redis cache-aside
layer and the API routers.

To run the API locally you can execute:

```bash
uvicorn vegbills.api.main:app --reload
```

The default configuration uses a local SQLite database stored in
``vegbills.db``.  You can override configuration values using
environment variables or a ``.env`` file at the project root.
"""

__all__: list[str] = []
