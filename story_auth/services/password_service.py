from fastapi.concurrency import run_in_threadpool
from passlib.context import CryptContext

DEFAULT_BCRYPT_ROUNDS = 12


class PasswordHasher:
    """bcrypt hashing; the work runs in the threadpool so the event loop stays free."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.pwd_context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self.pwd_context.hash, password)

    async def verify(self, plain_password: str, hashed_password: str) -> bool:
        # OAuth-provisioned accounts carry no hash at all
        if not hashed_password:
            return False
        return await run_in_threadpool(self.pwd_context.verify, plain_password, hashed_password)
