from pydantic import BaseModel
from pydantic import Field


class LoginUrlResponse(BaseModel):
    url: str


class TokenExchangeRequest(BaseModel):
    code: str = Field(min_length=1)


class TokenExchangeResponse(BaseModel):
    success: bool
    token: str


class RateLimitInfo(BaseModel):
    remaining: int
    limit: int
    reset: str | None = None


class AccessCheckResponse(BaseModel):
    """Whether the bearer token works and what it may do."""

    is_authenticated: bool
    scopes: list[str]
    rate_limit: RateLimitInfo | None = None
