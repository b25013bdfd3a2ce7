"""One-time setup and the single local credential check."""
import bcrypt

from app_logger import get_logger
from errors import StateError, ValidationError

logger = get_logger("auth")


def hash_password(password):
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def check_password(password, password_hash):
    return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))


def is_setup_complete(storage):
    return storage.get_user() is not None


def setup(storage, username, password, department_name):
    """Create the local user and its department. Only allowed once."""
    missing = []
    if not (username or "").strip(): missing.append("username")
    if not (password or "").strip(): missing.append("password")
    if not (department_name or "").strip(): missing.append("department name")
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    if is_setup_complete(storage):
        raise StateError("Setup has already been completed")

    user = storage.create_user(username.strip(), hash_password(password))
    department = storage.create_department(department_name.strip(), user["id"])
    logger.info("Created user %s with department %s", user["username"], department["name"])
    return user, department


def login(storage, username, password):
    """Returns (user, department) or None when the credentials do not match."""
    user = storage.get_user_by_name((username or "").strip())
    if not user or not check_password(password or "", user["password_hash"]):
        logger.warning("Failed login for %r", username)
        return None
    return user, storage.get_department_for_user(user["id"])
