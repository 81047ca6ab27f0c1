from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool


class PasswordHasher:
    """bcrypt hashing via passlib; hashing runs off the event loop."""

    def __init__(self, rounds: int = 12):
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self.pwd_context.hash, password)

    async def verify(self, password: str, hashed_password: str) -> bool:
        return await run_in_threadpool(self.pwd_context.verify, password, hashed_password)
