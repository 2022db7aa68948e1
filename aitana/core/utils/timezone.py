from datetime import datetime

from aitana.core.logging.constants import SHOP_TZ

def now_shop() -> datetime:

    return datetime.now(SHOP_TZ)

def ensure_aware(dt: datetime) -> datetime:
    """Attach the shop timezone to naive datetimes."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=SHOP_TZ)
    return dt
