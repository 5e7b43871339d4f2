"""
Crystal API - lite client proof service for Accumulate accounts.

Provides REST endpoints for:
- Building account proofs (POST /api/query)
- Health checks (GET /health)
"""

__version__ = "1.0.0"
