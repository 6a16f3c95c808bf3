import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from jose import JWTError
from starlette.concurrency import run_in_threadpool

from phoneshop.api.deps import get_store, require_permission
from phoneshop.core.security import decode_token
from phoneshop.db.database import SessionLocal
from phoneshop.models.inventory import Product
from phoneshop.models.user import User
from phoneshop.schemas.inventory import ProductOut, SearchResultsOut
from phoneshop.services.search import SearchSession, compose_product_search, normalize_query
from phoneshop.services.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["Search"])


def search_products(store: RecordStore, raw: str) -> list[ProductOut]:
    query = compose_product_search(raw)
    if query is None:
        return []
    return [ProductOut.model_validate(product) for product in store.find(Product, query)]


def _search_in_new_session(raw: str) -> list[dict]:
    db = SessionLocal()
    try:
        return [product.model_dump(mode="json") for product in search_products(RecordStore(db), raw)]
    finally:
        db.close()


def _socket_user_id(token: str | None) -> int | None:
    if not token:
        return None
    try:
        payload = decode_token(token)
        user_id = int(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        return None
    if payload.get("type") != "access":
        return None
    db = SessionLocal()
    try:
        user = db.get(User, user_id)
        return user.id if user and user.is_active else None
    finally:
        db.close()


@router.get("/products", response_model=SearchResultsOut)
def search_products_once(
    q: str = Query(default=""),
    _: User = Depends(require_permission("inventory:view")),
    store: RecordStore = Depends(get_store),
):
    return SearchResultsOut(query=normalize_query(q), results=search_products(store, q))


@router.websocket("/ws")
async def search_socket(websocket: WebSocket, token: str | None = None):
    user_id = await run_in_threadpool(_socket_user_id, token)
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await websocket.accept()

    async def lookup(query: str) -> list[dict]:
        return await run_in_threadpool(_search_in_new_session, query)

    async def publish(query: str, results: list[dict]) -> None:
        await websocket.send_json({"query": query, "results": results})

    async def publish_error(query: str, message: str) -> None:
        await websocket.send_json({"query": query, "error": message, "retryable": True})

    session = SearchSession(lookup, on_result=publish, on_error=publish_error)
    try:
        while True:
            message = await websocket.receive_json()
            session.submit(str(message.get("q", "")) if isinstance(message, dict) else str(message))
    except WebSocketDisconnect:
        logger.debug("search socket for user %s closed", user_id)
    finally:
        await session.aclose()
