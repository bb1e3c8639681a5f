import re
import time
import uuid

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(name: str, max_len: int = 100) -> str:
    base = (name or "").replace("\\", "/").rsplit("/", 1)[-1]
    base = _UNSAFE.sub("-", base).strip("-.") or "upload"
    return base[-max_len:]


def clothing_key(user_id: str, filename: str, max_len: int = 100) -> str:
    stamp = int(time.time() * 1000)
    return f"u/{user_id}/clothes/{stamp}-{uuid.uuid4().hex[:8]}-{safe_filename(filename, max_len)}"


def key_belongs_to(user_id: str, key: str) -> bool:
    return key.startswith(f"u/{user_id}/clothes/") and ".." not in key
