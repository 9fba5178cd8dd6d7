import logging
from dataclasses import dataclass

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from boxoffice.core.config import Settings

logger = logging.getLogger(__name__)

PROMOTION_TABLES = ("promotions", "promotion_redemptions")
SEAT_HOLD_TABLES = ("seat_holds",)


@dataclass(frozen=True)
class SchemaCapabilities:
    """Optional features available on this deployment, resolved once at startup."""

    promotions: bool = True
    seat_holds: bool = True


def detect_capabilities(engine: Engine, settings: Settings) -> SchemaCapabilities:
    """A feature is on when its setting allows it and all of its tables exist."""
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())

    capabilities = SchemaCapabilities(
        promotions=settings.PROMOTIONS_ENABLED and all(t in tables for t in PROMOTION_TABLES),
        seat_holds=settings.SEAT_HOLDS_ENABLED and all(t in tables for t in SEAT_HOLD_TABLES),
    )
    logger.info(
        "Schema capabilities: promotions=%s seat_holds=%s",
        capabilities.promotions,
        capabilities.seat_holds,
    )
    return capabilities
