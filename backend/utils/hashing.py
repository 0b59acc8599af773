# utils/hashing.py
from passlib.context import CryptContext

# Salted PBKDF2-SHA256; stored hashes carry their own salt and rounds
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)


def dummy_verify() -> None:
    # Spend the same time as a real verification when there is no account
    pwd_context.dummy_verify()
