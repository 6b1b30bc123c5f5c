"""Service layer — the lifecycle state machine and its result contract.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
