from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from campus_scheduler.auth.credentials import CredentialService
from campus_scheduler.auth.dependencies import get_current_user
from campus_scheduler.database import get_db
from campus_scheduler.models.user import User
from campus_scheduler.routes.schemas import ApiModel, UserResponse, envelope

router = APIRouter(tags=['auth'])


class RegisterRequest(ApiModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None
    full_name: str | None = None
    department: str | None = None


class LoginRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None


@router.post('/register', status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    user, token = CredentialService(db).register(
        username=data.username,
        email=data.email,
        password=data.password,
        role=data.role,
        full_name=data.full_name,
        department=data.department,
    )
    return envelope(
        {'user': UserResponse.model_validate(user), 'token': token},
        message='User registered successfully',
    )


@router.post('/login')
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user, token = CredentialService(db).login(data.username or data.email, data.password)
    return envelope(
        {'user': UserResponse.model_validate(user), 'token': token},
        message='Login successful',
    )


@router.get('/profile')
def profile(current_user: User = Depends(get_current_user)):
    return envelope({'user': UserResponse.model_validate(current_user)})
