from fastapi import APIRouter, HTTPException, Depends, status

from hotel_app.config.database import DatabaseConfig, Collections
from hotel_app.database.db_operations import DBOperations
from hotel_app.dependencies import get_db
from hotel_app.models.user import UserLogin, LoginResponse, UserResponse
from hotel_app.utils.auth import verify_password, create_access_token, get_current_user
from hotel_app.utils.helpers import serialize_doc

router = APIRouter(prefix="/auth", tags=["Auth"])


def _user_response(user: dict) -> dict:
    data = serialize_doc(dict(user))
    data["id"] = data.pop("_id")
    data.pop("password", None)
    return data


@router.post("/login", response_model=LoginResponse)
async def login(credentials: UserLogin, db: DatabaseConfig = Depends(get_db)):
    """Authenticate a user by email and password and return a JWT token"""
    db_ops = DBOperations(db)
    user = await db_ops.get_one(Collections.USERS, {"email": credentials.email.strip().lower()})

    if not user or not verify_password(credentials.password, user.get("password", "")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not user.get("is_active", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated"
        )

    token_data = {
        "sub": str(user["_id"]),
        "email": user["email"],
        "role": user.get("role", "guest"),
        "full_name": user.get("full_name", ""),
    }
    access_token = create_access_token(token_data)

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": _user_response(user),
    }


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: dict = Depends(get_current_user), db: DatabaseConfig = Depends(get_db)):
    """Profile of the signed-in user"""
    user = await DBOperations(db).get_by_id(Collections.USERS, current_user["sub"])
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return _user_response(user)
