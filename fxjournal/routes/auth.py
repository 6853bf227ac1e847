from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
import logging

from fxjournal.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from fxjournal.database import get_storage
from fxjournal.schemas.user_schema import UserCreate, UserLogin
from fxjournal.storage.base import BaseStorage, ConflictError, public_user

logger = logging.getLogger(__name__)

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")


def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def get_current_user(token: str = Depends(oauth2_scheme), storage: BaseStorage = Depends(get_storage)):
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        logger.warning("🚫 JWT validation failed")
        raise HTTPException(status_code=401, detail="Could not validate credentials")

    user_id = payload.get("user_id")
    if user_id is None:
        logger.warning("🚫 Token missing 'user_id' claim")
        raise HTTPException(status_code=401, detail="Invalid token")

    user = storage.get_user(user_id)
    if user is None:
        logger.warning(f"🚫 User not found for id: {user_id}")
        raise HTTPException(status_code=401, detail="User not found")
    return user


@router.post("/register", status_code=201)
def register(user: UserCreate, storage: BaseStorage = Depends(get_storage)):
    try:
        new_user = storage.create_user(user.model_dump())
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "user": public_user(new_user)}


@router.post("/login")
def login(user_login: UserLogin, storage: BaseStorage = Depends(get_storage)):
    logger.info(f"🔐 Login attempt for username: {user_login.username}")

    db_user = storage.authenticate_user(user_login.username, user_login.password)
    if not db_user:
        logger.info("❌ Login failed: Invalid credentials or user not found")
        raise HTTPException(status_code=401, detail="Invalid username or password")

    access_token = create_access_token(
        data={"sub": db_user["username"], "user_id": db_user["id"]},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    logger.info(f"✅ Login successful for {db_user['username']}")

    return {
        "success": True,
        "user": public_user(db_user),
        "access_token": access_token,
        "token_type": "bearer",
    }


@router.get("/me")
def read_current_user(current_user: dict = Depends(get_current_user)):
    return {"success": True, "user": public_user(current_user)}
