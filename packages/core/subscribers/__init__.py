from .service import (
    deactivate_subscriber,
    delete_subscriber,
    get_subscriber,
    normalize_email,
    subscribe,
    update_subscriber,
)

__all__ = [
    "deactivate_subscriber",
    "delete_subscriber",
    "get_subscriber",
    "normalize_email",
    "subscribe",
    "update_subscriber",
]
