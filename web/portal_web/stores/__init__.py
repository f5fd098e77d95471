"""
Storage backends for the portal service.

Implementations in this package answer one query shape per method and are
chosen by configuration (`store.mode`), never by the engine itself.
"""
