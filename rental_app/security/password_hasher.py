import asyncio
from concurrent.futures import ThreadPoolExecutor

from bcrypt import checkpw, gensalt, hashpw

hash_executor = ThreadPoolExecutor(max_workers=5, thread_name_prefix="bcrypt")


def _hash(raw_password: str) -> str:
    return hashpw(raw_password.encode("utf-8"), gensalt()).decode("utf-8")


def _check(raw_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return checkpw(raw_password.encode("utf-8"), hashed_password.encode("utf-8"))


class PasswordHasher:
    """bcrypt runs on a worker thread so signing calls never wait behind it."""

    async def hash(self, raw_password: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(hash_executor, _hash, raw_password)

    async def verify(self, raw_password: str, hashed_password: str) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            hash_executor, _check, raw_password, hashed_password
        )


password_hasher = PasswordHasher()
