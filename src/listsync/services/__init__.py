"""Service layer — drag sessions and store-backed board operations.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
