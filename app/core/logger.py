import logging

from app.core.config import settings

handlers = [logging.StreamHandler()]
if not settings.TESTING:
    handlers.append(logging.FileHandler("app.log"))

logging.basicConfig(
    level=logging.DEBUG if settings.TESTING else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=handlers,
)

logger = logging.getLogger("app")

# Operational tooling tails this logger for provider records that outlived their claim
orphan_logger = logging.getLogger("app.orphans")
