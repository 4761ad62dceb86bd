from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from app.auth.schemas import CurrentUser
from app.auth.security import decode_access_token
from app.core.enums import UserRole


# Tokens are issued by the external auth service; tokenUrl only documents the flow in OpenAPI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
) -> CurrentUser:
    """Resolve the authenticated user from the access token claims."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    user_id = payload.get("user_id") or payload.get("sub")
    role_name = payload.get("role")
    if not user_id or not role_name:
        raise credentials_exception

    try:
        role = UserRole(str(role_name).lower())
    except ValueError:
        raise credentials_exception

    return CurrentUser(id=str(user_id), role=role, email=payload.get("email"))
