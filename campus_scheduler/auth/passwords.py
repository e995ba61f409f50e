import logging

from passlib.context import CryptContext

from campus_scheduler.core import config

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=config.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return str(pwd_context.hash(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return bool(pwd_context.verify(plain_password, hashed_password))
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False
