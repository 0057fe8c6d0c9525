import logging
from typing import Any, Dict, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    """
    Configure the root logger once for the application process
    """
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def log_event(
    action: str,
    details: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None
):
    """
    Log an auth event to the application logger
    """
    log_message = f"Action: {action}"
    if user_id:
        log_message += f" | User: {user_id}"
    if ip_address:
        log_message += f" | IP: {ip_address}"
    if details:
        log_message += f" | Details: {details}"

    logger.info(log_message)


# Event type constants for consistency
class EventTypes:
    USER_REGISTERED = "user_registered"
    USER_LOGIN = "user_login"
    USER_OAUTH_LOGIN = "user_oauth_login"
    USER_LOGOUT = "user_logout"
    TOKEN_REFRESHED = "token_refreshed"

    PROFILE_UPDATED = "profile_updated"
    PASSWORD_CHANGED = "password_changed"

    AUTH_FAILED = "auth_failed"
    TOKEN_CLEANUP_COMPLETED = "token_cleanup_completed"
