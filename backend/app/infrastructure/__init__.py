"""Infrastructure Layer — database, directory store, event bus, credentials, logging.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All store failures mapped to DatabaseError
"""
