from datetime import date

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from app.core.database import SessionLocal
from app.core.security import decode_token
from app.schemas.analytics import CustomRange
from app.services.store import RowStore, SqlRowStore

# Sign-in happens against the hosted auth provider; this only reads its bearer token.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/v1/token")


def get_current_owner_id(token: str = Depends(oauth2_scheme)) -> str:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
    except JWTError:
        raise credentials_exception

    owner_id = payload.get("sub")
    if not owner_id:
        raise credentials_exception
    return str(owner_id)


def get_store() -> RowStore:
    return SqlRowStore(SessionLocal)


def get_custom_range(
    start: date | None = Query(default=None, description="First day, inclusive (custom range only)"),
    end: date | None = Query(default=None, description="Last day, inclusive (custom range only)"),
) -> CustomRange:
    return CustomRange(start=start, end=end)
