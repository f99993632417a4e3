"""
api/limiter.py -- Shared slowapi rate limiter, used to slow down password guessing.

api/main.py mounts SlowAPIMiddleware and stores this instance on app.state;
api/routes/auth.py applies login_limit to POST /auth/login. One shared
instance means one shared in-memory counter store.

login_limit is passed as a callable so slowapi reads LOGIN_RATE_LIMIT from
the settings singleton when the limit is evaluated rather than when the
route module is imported.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings


def login_limit() -> str:
    return get_settings().login_rate_limit


limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
