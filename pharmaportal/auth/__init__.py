from pharmaportal.auth.password import hash_password, verify_password
from pharmaportal.auth.session_manager import SessionManager, get_session_manager
from pharmaportal.auth.dependencies import get_current_account_id, get_session_token

__all__ = [
    "hash_password",
    "verify_password",
    "SessionManager",
    "get_session_manager",
    "get_current_account_id",
    "get_session_token",
]
