"""
api/routes/v1/auth.py -- Registration, login, and logout endpoints.

Routes:
  POST /api/auth/register  -- create an account; 201 + AuthResponse, sets JWT cookie
  POST /api/auth/login     -- verify credentials; 200 + AuthResponse, sets JWT cookie
  POST /api/auth/logout    -- clears the cookie; 200

All three are public. Domain failures (UserExistsError, UserNotFoundError,
InvalidCredentialsError, ...) propagate to the AccountError handler in
api/main.py, which owns the status mapping.

Security:
  register and login are rate-limited per client IP (LOGIN_RATE_LIMIT).
  Cache-Control: no-store on every response that carries a token.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import AuthResponse, LoginRequest, MessageResponse, PublicUserResponse, RegisterRequest
from auth.service import AuthService
from auth.tokens import clear_auth_cookie, create_access_token, set_auth_cookie
from core.config import get_settings
from users.models import PublicUser

_settings = get_settings()

router = APIRouter()


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
@limiter.limit(_settings.login_rate_limit)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Register a new account and sign it in."""
    service: AuthService = request.app.state.auth_service
    user = service.register(body.name, body.email, body.password, role=body.role.value)
    return _auth_response(user, "User registered successfully.", status_code=201)


@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit(_settings.login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set JWT cookie.

    Unknown email -> 404 user_not_found, wrong password -> 401
    invalid_credentials (mapped in api/main.py).
    """
    service: AuthService = request.app.state.auth_service
    user = service.authenticate(body.email, body.password)
    return _auth_response(user, "User signed in successfully.", status_code=200)


@router.post("/auth/logout", response_model=MessageResponse)
async def logout() -> JSONResponse:
    """Clear the JWT cookie and end the session."""
    resp = JSONResponse(content=MessageResponse(message="User signed out successfully.").model_dump())
    clear_auth_cookie(resp)
    return resp


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _auth_response(user: PublicUser, message: str, status_code: int) -> JSONResponse:
    token = create_access_token(user.id, user.email, user.role)
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            message=message,
            user=PublicUserResponse.from_domain(user),
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
        ).model_dump(),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp
