import json
import logging
from typing import Any

from phoneshop.db.database import SessionLocal
from phoneshop.models.security import AuditLog
from phoneshop.services.events import (
    PRODUCT_CREATED,
    PRODUCT_DELETED,
    PRODUCT_UPDATED,
    STOCK_CHANGED,
    EventChannel,
)

logger = logging.getLogger(__name__)

INVENTORY_TOPICS = (PRODUCT_CREATED, PRODUCT_UPDATED, PRODUCT_DELETED, STOCK_CHANGED)


def record_inventory_event(topic: str, payload: dict[str, Any]) -> None:
    db = SessionLocal()
    try:
        db.add(
            AuditLog(
                event_type=f"inventory.{topic}",
                actor_user_id=payload.get("actor_user_id"),
                entity_type="product",
                entity_id=str(payload.get("product_id")) if payload.get("product_id") is not None else None,
                details=json.dumps(payload, default=str),
            )
        )
        db.commit()
    finally:
        db.close()
    logger.info("%s %s", topic, payload)


def register_audit_handlers(channel: EventChannel) -> list:
    return [channel.subscribe(topic, record_inventory_event) for topic in INVENTORY_TOPICS]
