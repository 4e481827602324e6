"""
Food sharing marketplace backend.

Owners publish surplus-food listings, other users browse them and claim a
listing by requesting it. The package exposes the listing lifecycle and claim
arbitration behind a FastAPI application with swappable store and identity
backends.
"""
