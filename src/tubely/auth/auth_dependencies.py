"""Common authentication dependencies for FastAPI routers."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .auth_service import InvalidTokenError, TokenExpiredError, TokenService

security = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    try:
        return request.app.state.token_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("TokenService is not configured") from exc


def require_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    service: TokenService = Depends(get_token_service),
) -> str:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"status": "error", "failure_reason": "missing_token"},
        )

    try:
        return service.validate_token(credentials.credentials)
    except TokenExpiredError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"status": "error", "failure_reason": "token_expired"},
        ) from exc
    except InvalidTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"status": "error", "failure_reason": "invalid_token"},
        ) from exc


__all__ = ["get_token_service", "require_user"]
