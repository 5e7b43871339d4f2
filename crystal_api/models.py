"""
Pydantic models for API requests and responses.

Responses serialize with camelCase aliases, matching the lite client front end.
"""

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model emitting camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Query
# ============================================================================

class QueryRequest(BaseModel):
    """Request to build a proof for an account."""

    account: Optional[str] = Field(None, description="Account URL (acc://...)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "account": "acc://alice.acme/tokens"
                }
            ]
        }
    }


class AccountInfo(CamelModel):
    """Account facts, enriched from the ledger when available."""

    url: str = Field(..., description="Account URL")
    type: str = Field("token", description="Account type")
    token_balance: str = Field("0", description="Token balance")
    credit_balance: int = Field(0, description="Credit balance")
    timestamp: int = Field(..., description="Observation time (epoch seconds)")


class ProofStep(CamelModel):
    """One stage of proof construction."""

    level: int = Field(..., ge=1, description="Step level, starting at 1")
    type: str = Field(..., description="Step type (account/bvn/verification)")
    description: str = Field(..., description="Human readable description")
    hash: str = Field(..., description="Digest referenced by this step (0x...)")
    timestamp: int = Field(..., description="Step time (epoch seconds)")


class ComparisonMetrics(CamelModel):
    """Percentage reductions relative to running a full node."""

    storage_reduction: float
    bandwidth_reduction: float
    sync_time_reduction: float


class PerformanceMetrics(CamelModel):
    """Query latency plus nominal proof size figures."""

    query_time: int = Field(..., ge=0, description="Query latency in milliseconds")
    proof_size: int = Field(..., description="Nominal proof size in bytes")
    bandwidth_used: int = Field(..., description="Nominal bandwidth in bytes")
    comparison_to_full_node: ComparisonMetrics


class ProofData(CamelModel):
    """Assembled account proof."""

    account_hash: str
    main_state_hash: str
    secondary_state_hash: str
    chains_hash: str
    pending_hash: str
    bpt_hash: str = Field(..., description="Root commitment over the four components")
    verified: bool
    steps: list[ProofStep]
    performance: PerformanceMetrics


class QueryResponse(CamelModel):
    """Response to POST /api/query."""

    account: AccountInfo
    proof: ProofData
    timestamp: int = Field(..., description="Response time (epoch milliseconds)")


# ============================================================================
# Upstream account data
# ============================================================================

class ResolvedAccount(BaseModel):
    """
    Account fields extracted from an Accumulate `query` result.

    Every field is optional; a field that is absent or has an unexpected
    type stays None and the caller keeps its default.
    """

    type: Optional[str] = None
    balance: Optional[str] = None
    credit_balance: Optional[int] = None

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "ResolvedAccount":
        """Extract known fields from the loosely structured `result.data`."""
        account_type = data.get("type")
        balance = data.get("balance")
        credits = data.get("creditBalance")

        return cls(
            type=account_type if isinstance(account_type, str) else None,
            balance=_normalize_balance(balance),
            credit_balance=int(credits) if _is_number(credits) else None,
        )


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a JSON number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, int):
        return True
    return math.isfinite(value)


def _normalize_balance(value: Any) -> Optional[str]:
    """Keep string balances as-is; render numbers with zero decimals."""
    if isinstance(value, str):
        return value
    if _is_number(value):
        return f"{value:.0f}"
    return None


# ============================================================================
# Health Check
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="API version")


class ServiceInfoResponse(BaseModel):
    """Static service description served at /."""

    message: str
    endpoints: str
