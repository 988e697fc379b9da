# marketing_auth/schemas/connection_schema.py
from typing import Dict, List, Optional

from pydantic import BaseModel


class ConnectionSummary(BaseModel):
    userId: str
    connectedAt: str
    expiresAt: Optional[str] = None


class VerifyResponse(BaseModel):
    valid: bool


class DisconnectResponse(BaseModel):
    success: bool


class AuthStatus(BaseModel):
    isAuthenticated: bool
    connectedPlatforms: Dict[str, List[ConnectionSummary]]
