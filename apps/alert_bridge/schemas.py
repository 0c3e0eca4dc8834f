"""
Schemas for Alert Bridge endpoints.

The webhook response keeps the envelope TradingView users already parse:
``{"success": ..., "message": ..., "data": ...}`` on exchange replies and
``{"success": false, "message": ..., "error": ...}`` on failures.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class WebhookResponse(BaseModel):
    """Response to POST /webhook."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    data: Any = Field(None, description="Exchange 'result' payload")
    ret_code: int | None = Field(None, alias="retCode", description="Exchange retCode on rejection")
    error: Any = Field(None, description="Validation or dispatch error")
    details: Any = Field(None, description="Exchange body preserved from a failed dispatch")


class ConnectionCheckResponse(BaseModel):
    """Response to GET /test-connection."""

    status: Literal["success", "error"]
    message: str
    data: dict[str, Any] | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    testnet: bool
    base_url: str
