from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from campus_scheduler.auth.credentials import CredentialService, Principal
from campus_scheduler.core.errors import PermissionDeniedError
from campus_scheduler.database import get_db
from campus_scheduler.models.user import ROLE_PROFESSOR, ROLE_STUDENT, User

security = HTTPBearer(auto_error=False)


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is None:
        return None
    return credentials.credentials


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    return CredentialService(db).resolve_user(_bearer_token(credentials))


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> Principal:
    return CredentialService(db).authenticate(_bearer_token(credentials))


def require_roles(*roles: str):
    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise PermissionDeniedError(f"Access denied. {' or '.join(roles)} role required.")
        return principal

    return dependency


require_professor = require_roles(ROLE_PROFESSOR)
require_student = require_roles(ROLE_STUDENT)
require_party = require_roles(ROLE_STUDENT, ROLE_PROFESSOR)
