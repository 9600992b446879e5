"""
HTTP API

Versioned REST endpoints and the caller identity supplier.
"""
