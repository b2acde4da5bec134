"""
API Gateway service for the Game Store backend.
"""

from typing import Dict, Optional

import httpx
from fastapi import Depends, Request

from shared.base_service import BaseService
from shared.config import ServiceConfig
from .adapters.auth_client import AuthClient, UserIdentity
from .adapters.store_client import StoreClient
from .domain.auth_middleware import AuthMiddleware
from .domain.models import ContactMessage, OrderCreate, OrderPayment, ReviewCreate, parse_body
from .domain.responses import FailurePolicy, data_response, error_response, success_response

GAME_COLUMNS = "*,categories(name)"
WISHLIST_COLUMNS = "id,game_id,games(*)"
REVIEW_COLUMNS = "*,users(full_name)"

ORDER_PENDING = "pending"
ORDER_PAID = "paid"

FETCH_GAMES = FailurePolicy("Fetch games error", "Failed to fetch games")
FETCH_GAME = FailurePolicy("Fetch game error", "Server error", not_found_message="Game not found")
FETCH_CATEGORIES = FailurePolicy("Category fetch error", "Failed to fetch categories")
FETCH_WISHLIST = FailurePolicy("Wishlist fetch error", "Failed to fetch wishlist")
ADD_WISHLIST = FailurePolicy("Wishlist insert error", "Failed to add to wishlist")
REMOVE_WISHLIST = FailurePolicy("Wishlist delete error", "Failed to remove from wishlist")
FETCH_REVIEWS = FailurePolicy("Review fetch error", "Failed to fetch reviews")
CREATE_REVIEW = FailurePolicy("Review insert error", "Failed to submit review")
CREATE_ORDER = FailurePolicy("Order create error", "Failed to create order")
PAY_ORDER = FailurePolicy("Order update error", "Failed to update order")
SEND_CONTACT = FailurePolicy("Contact error", "Failed to send message")


class GatewayService(BaseService):
    """API Gateway service implementation.

    The store and identity clients are built once and shared by every
    handler. Tests inject replacements through the constructor.
    """

    def __init__(self, config: Optional[ServiceConfig] = None,
                 store: Optional[StoreClient] = None,
                 auth_client: Optional[AuthClient] = None):
        super().__init__("gateway", config)

        # No timeout: a hung provider or store call holds only its own request
        self.http_client: Optional[httpx.AsyncClient] = None
        if store is None or auth_client is None:
            self.http_client = httpx.AsyncClient(timeout=None)

        self.store = store or StoreClient(
            self.config.supabase_url,
            self.config.supabase_service_role_key,
            self.http_client,
            metrics=self.metrics,
        )
        self.auth_client = auth_client or AuthClient(
            self.config.supabase_url,
            self.config.supabase_service_role_key,
            self.http_client,
        )
        self.auth_middleware = AuthMiddleware(self.auth_client, metrics=self.metrics)

        self._setup_status_routes()
        self._setup_catalog_routes()
        self._setup_wishlist_routes()
        self._setup_review_routes()
        self._setup_order_routes()
        self._setup_contact_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    async def on_shutdown(self):
        await super().on_shutdown()
        if self.http_client is not None:
            await self.http_client.aclose()

    async def _check_dependencies(self) -> Dict[str, str]:
        return {"store": "ok" if await self.store.ping() else "unavailable"}

    def _setup_status_routes(self):
        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {"message": "Backend Running 🚀"}

    def _setup_catalog_routes(self):
        """Games and categories; public."""

        @self.app.get("/api/games")
        @FETCH_GAMES.guard
        async def list_games():
            result = await self.store.select("games", GAME_COLUMNS)
            if not result.ok:
                return FETCH_GAMES.store_failure(result.error)
            return data_response(result.data)

        @self.app.get("/api/games/{game_id}")
        @FETCH_GAME.guard
        async def get_game(game_id: str):
            result = await self.store.select(
                "games", GAME_COLUMNS, filters={"id": game_id}, single=True
            )
            if not result.ok:
                return FETCH_GAME.store_failure(result.error)
            return data_response(result.data)

        @self.app.get("/api/categories")
        @FETCH_CATEGORIES.guard
        async def list_categories():
            result = await self.store.select("categories")
            if not result.ok:
                return FETCH_CATEGORIES.store_failure(result.error)
            return data_response(result.data)

    def _setup_wishlist_routes(self):
        """Wishlist entries, always scoped to the caller."""
        require_user = self.auth_middleware.require_user

        @self.app.get("/api/wishlist")
        @FETCH_WISHLIST.guard
        async def get_wishlist(user: UserIdentity = Depends(require_user)):
            result = await self.store.select(
                "wishlist", WISHLIST_COLUMNS, filters={"user_id": user.id}
            )
            if not result.ok:
                return FETCH_WISHLIST.store_failure(result.error)
            return data_response(result.data)

        @self.app.post("/api/wishlist/{game_id}")
        @ADD_WISHLIST.guard
        async def add_to_wishlist(game_id: str, user: UserIdentity = Depends(require_user)):
            result = await self.store.insert(
                "wishlist", [{"user_id": user.id, "game_id": game_id}]
            )
            if not result.ok:
                return ADD_WISHLIST.store_failure(result.error)
            return success_response(201)

        @self.app.delete("/api/wishlist/{game_id}")
        @REMOVE_WISHLIST.guard
        async def remove_from_wishlist(game_id: str, user: UserIdentity = Depends(require_user)):
            result = await self.store.delete(
                "wishlist", filters={"user_id": user.id, "game_id": game_id}
            )
            if not result.ok:
                return REMOVE_WISHLIST.store_failure(result.error)
            return success_response(200)

    def _setup_review_routes(self):
        """Reviews: public listing, authenticated submission."""
        require_user = self.auth_middleware.require_user

        @self.app.get("/api/reviews/{game_id}")
        @FETCH_REVIEWS.guard
        async def list_reviews(game_id: str):
            result = await self.store.select(
                "reviews",
                REVIEW_COLUMNS,
                filters={"game_id": game_id},
                order=("created_at", False),
            )
            if not result.ok:
                return FETCH_REVIEWS.store_failure(result.error)
            return data_response(result.data)

        @self.app.post("/api/reviews")
        @CREATE_REVIEW.guard
        async def create_review(request: Request, user: UserIdentity = Depends(require_user)):
            body = await parse_body(request, ReviewCreate)
            if body.missing_fields("game_id", "rating"):
                return error_response(400, "Invalid review data")

            row = body.to_row()
            row["user_id"] = user.id
            result = await self.store.insert("reviews", [row])
            if not result.ok:
                return CREATE_REVIEW.store_failure(result.error)
            return success_response(201)

    def _setup_order_routes(self):
        """Orders move from pending to paid; both steps are scoped to the caller."""
        require_user = self.auth_middleware.require_user

        @self.app.post("/api/orders")
        @CREATE_ORDER.guard
        async def create_order(request: Request, user: UserIdentity = Depends(require_user)):
            body = await parse_body(request, OrderCreate)
            if body.missing_fields("billing_name", "billing_email", "total_price"):
                return error_response(400, "Missing required fields")

            row = body.to_row()
            row["user_id"] = user.id
            row["status"] = ORDER_PENDING
            result = await self.store.insert("orders", [row], returning=True, single=True)
            if not result.ok:
                return CREATE_ORDER.store_failure(result.error)

            self.logger.info("Order created", order_id=result.data.get("id"))
            return data_response(result.data, 201)

        @self.app.put("/api/orders/{order_id}")
        @PAY_ORDER.guard
        async def pay_order(order_id: str, request: Request,
                            user: UserIdentity = Depends(require_user)):
            body = await parse_body(request, OrderPayment)
            if body.missing_fields("transaction_id"):
                return error_response(400, "Transaction id required")

            result = await self.store.update(
                "orders",
                {"transaction_id": body.transaction_id, "status": ORDER_PAID},
                filters={"id": order_id, "user_id": user.id},
                returning=True,
                single=True,
            )
            if not result.ok:
                return PAY_ORDER.store_failure(result.error)

            self.logger.info("Order paid", order_id=order_id)
            return data_response(result.data)

    def _setup_contact_routes(self):
        @self.app.post("/api/contact")
        @SEND_CONTACT.guard
        async def send_contact_message(request: Request):
            body = await parse_body(request, ContactMessage)
            if body.missing_fields("name", "email", "message"):
                return error_response(400, "All fields required")

            result = await self.store.insert("contact_message", [body.to_row()])
            if not result.ok:
                return SEND_CONTACT.store_failure(result.error)
            return success_response(201)


def create_app(config: Optional[ServiceConfig] = None,
               store: Optional[StoreClient] = None,
               auth_client: Optional[AuthClient] = None):
    """Create FastAPI application."""
    service = GatewayService(config=config, store=store, auth_client=auth_client)
    return service.app


def main():
    service = GatewayService()
    service.run()


if __name__ == "__main__":
    main()
