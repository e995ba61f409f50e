import pytest

from campus_scheduler.auth import jwt_handler, passwords
from campus_scheduler.auth.credentials import CredentialService, Principal
from campus_scheduler.core.errors import AuthError, ConflictError, RequestValidationFailed
from campus_scheduler.models.user import User

VALID_REGISTRATION = {
    'username': 'studentA1',
    'email': 'StudentA1@College.edu',
    'password': 'password123',
    'role': 'student',
    'full_name': 'Student A1',
    'department': 'Computer Science',
}


@pytest.fixture
def credentials(db) -> CredentialService:
    return CredentialService(db)


def test_register_stores_hashed_password_and_issues_token(db, credentials) -> None:
    user, token = credentials.register(**VALID_REGISTRATION)

    assert user.id is not None
    assert user.email == 'studenta1@college.edu'
    assert user.hashed_password != 'password123'
    assert passwords.verify_password('password123', user.hashed_password)
    claims = jwt_handler.decode_access_token(token)
    assert claims['sub'] == str(user.id)
    assert claims['role'] == user.role
    assert db.query(User).count() == 1


@pytest.mark.parametrize(
    ('overrides', 'message'),
    [
        ({'username': None}, 'All required fields must be provided'),
        ({'role': 'admin'}, 'Role must be either student or professor'),
        ({'username': 'ab'}, 'Username must be between 3 and 30 characters'),
        ({'username': 'bad name!'}, 'Username can only contain letters, numbers and underscores'),
        ({'email': 'not-an-email'}, 'Invalid email format'),
        ({'password': 'letters'}, 'Password must be at least 6 characters and include letters and numbers'),
        ({'password': 'a1'}, 'Password must be at least 6 characters and include letters and numbers'),
        ({'full_name': 'A'}, 'Full name must be between 2 and 100 characters'),
    ],
)
def test_register_validates_input(credentials, overrides: dict, message: str) -> None:
    with pytest.raises(RequestValidationFailed) as exception_info:
        credentials.register(**{**VALID_REGISTRATION, **overrides})

    assert exception_info.value.message == message


@pytest.mark.parametrize(
    'overrides',
    [{'email': 'someone.else@college.edu'}, {'username': 'someone_else', 'email': 'studenta1@COLLEGE.edu'}],
)
def test_register_rejects_duplicate_username_or_email(credentials, overrides: dict) -> None:
    credentials.register(**VALID_REGISTRATION)

    with pytest.raises(ConflictError) as exception_info:
        credentials.register(**{**VALID_REGISTRATION, **overrides})

    assert exception_info.value.message == 'User with this email or username already exists'


@pytest.mark.parametrize('identifier', ['studentA1', 'studenta1@college.edu', 'STUDENTA1@college.edu'])
def test_identify_accepts_username_or_email(credentials, identifier: str) -> None:
    registered, _ = credentials.register(**VALID_REGISTRATION)

    assert credentials.identify(identifier, 'password123').id == registered.id


def test_identify_rejects_wrong_password_and_unknown_user(credentials) -> None:
    credentials.register(**VALID_REGISTRATION)

    for identifier, password in (('studentA1', 'wrong123'), ('nobody', 'password123')):
        with pytest.raises(AuthError) as exception_info:
            credentials.identify(identifier, password)
        assert exception_info.value.message == 'Invalid credentials'


def test_identify_requires_both_fields(credentials) -> None:
    with pytest.raises(RequestValidationFailed):
        credentials.identify('studentA1', None)


def test_authenticate_returns_principal(credentials) -> None:
    user, token = credentials.register(**VALID_REGISTRATION)

    principal = credentials.authenticate(token)

    assert principal == Principal(id=user.id, role='student', username='studentA1')


@pytest.mark.parametrize(
    ('token', 'message'),
    [
        (None, 'Access denied. No token provided.'),
        ('', 'Access denied. No token provided.'),
        ('not-a-jwt', 'Invalid token.'),
    ],
)
def test_authenticate_rejects_missing_or_garbage_token(credentials, token, message: str) -> None:
    with pytest.raises(AuthError) as exception_info:
        credentials.authenticate(token)

    assert exception_info.value.message == message


def test_authenticate_rejects_expired_token(credentials) -> None:
    user, _ = credentials.register(**VALID_REGISTRATION)
    expired = jwt_handler.create_access_token(user.id, user.role, expires_minutes=-5)

    with pytest.raises(AuthError) as exception_info:
        credentials.authenticate(expired)

    assert exception_info.value.message == 'Token expired.'


def test_authenticate_rejects_token_for_missing_user(credentials) -> None:
    token = jwt_handler.create_access_token(4242, 'student')

    with pytest.raises(AuthError) as exception_info:
        credentials.authenticate(token)

    assert exception_info.value.message == 'Invalid token. User not found.'
