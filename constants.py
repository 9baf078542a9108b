import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
RELOAD = _env_flag("RELOAD")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

AVATAR_URL_TEMPLATE = os.getenv("AVATAR_URL_TEMPLATE", "https://ui-avatars.com/api/?background=random&name={name}")

# Surface kicks by non-creators and private chats with vanished users as error_msg
REPORT_IGNORED_ACTIONS = _env_flag("REPORT_IGNORED_ACTIONS")

# Frames queued per connection before further ones are dropped for a slow reader
OUTBOX_MAX_SIZE = int(os.getenv("OUTBOX_MAX_SIZE", 256))
