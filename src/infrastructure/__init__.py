"""Infrastructure layer for external system integrations.

Currently this is the document store connector. The API layer only talks
to it through ``DatastoreManager`` and the FastAPI dependencies built on it.
"""
