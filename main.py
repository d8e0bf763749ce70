import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth import AuthService
from cart import CartService
from checkout import CheckoutEngine, Payment
from config import Settings, get_settings
from database import open_store
from errors import register_error_handlers
from lessons import LessonCatalog
from schemas import AddToCart, CartItem, Credentials, Lesson, Order, OrderRequest, RemoveFromCart
from seed import run_startup
from storage import DocumentStore

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

router = APIRouter()


# Dependencies
def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth(store: DocumentStore = Depends(get_store), settings: Settings = Depends(get_app_settings)) -> AuthService:
    return AuthService(store, settings)


def get_catalog(store: DocumentStore = Depends(get_store)) -> LessonCatalog:
    return LessonCatalog(store)


def get_carts(store: DocumentStore = Depends(get_store)) -> CartService:
    return CartService(store)


def get_checkout(store: DocumentStore = Depends(get_store)) -> CheckoutEngine:
    return CheckoutEngine(store)


def current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth),
) -> str:
    return auth.authenticate(credentials.credentials if credentials else None)


# Health
@router.get("/")
def read_root():
    return {"message": "Afterschool booking backend running"}


@router.get("/health/db")
def database_status(store: DocumentStore = Depends(get_store)):
    return {"backend": "ok", "db": store.name if store.ping() else "error"}


# Lessons
@router.get("/lessons", response_model=List[Lesson])
def list_lessons(
    sort: str = Query("subject"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    catalog: LessonCatalog = Depends(get_catalog),
):
    return catalog.list(sort, descending=order == "desc")


@router.get("/lessons/{lesson_id}", response_model=Lesson)
def get_lesson(lesson_id: str, catalog: LessonCatalog = Depends(get_catalog)):
    return catalog.get(lesson_id)


@router.get("/search", response_model=List[Lesson])
def search_lessons(q: str = "", catalog: LessonCatalog = Depends(get_catalog)):
    return catalog.search(q)


# Auth
@router.post("/register")
def register(creds: Credentials, auth: AuthService = Depends(get_auth)):
    user = auth.register(creds.user, creds.password)
    return {"ok": True, "userId": user.id}


@router.post("/login")
def login(creds: Credentials, auth: AuthService = Depends(get_auth)):
    return {"ok": True, "token": auth.login(creds.user, creds.password)}


# Cart
@router.get("/cart", response_model=List[CartItem])
def get_cart(user_id: str = Depends(current_user), carts: CartService = Depends(get_carts)):
    return carts.items(user_id)


@router.post("/cart/add")
def add_to_cart(payload: AddToCart, user_id: str = Depends(current_user), carts: CartService = Depends(get_carts)):
    carts.add(user_id, payload.lesson_id, payload.qty)
    return {"ok": True}


@router.post("/cart/remove")
def remove_from_cart(
    payload: RemoveFromCart, user_id: str = Depends(current_user), carts: CartService = Depends(get_carts)
):
    carts.remove(user_id, payload.lesson_id)
    return {"ok": True}


# Orders
@router.get("/orders", response_model=List[Order])
def list_orders(user_id: str = Depends(current_user), engine: CheckoutEngine = Depends(get_checkout)):
    return engine.list_orders(user_id)


@router.get("/orders/{order_id}", response_model=Order)
def get_order(order_id: str, user_id: str = Depends(current_user), engine: CheckoutEngine = Depends(get_checkout)):
    return engine.get_order(user_id, order_id)


@router.post("/orders")
def create_order(req: OrderRequest, user_id: str = Depends(current_user), engine: CheckoutEngine = Depends(get_checkout)):
    payment = Payment(
        method=req.payment_method,
        card_number=req.card_number,
        card_name=req.card_name,
        expiry_date=req.expiry_date,
        security_code=req.security_code,
    )
    receipt = engine.checkout(user_id, req.name, req.phone, req.items, payment)
    return {"ok": True, "orderId": receipt.order_id, "total": receipt.total}


def create_app(store: Optional[DocumentStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.store is None:
            app.state.store = open_store(settings)
        if settings.seed_on_startup:
            run_startup(app.state.store, settings)
        yield

    app = FastAPI(title="Afterschool Booking API", lifespan=lifespan)
    app.state.store = store
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", get_settings().port))
    uvicorn.run(app, host="0.0.0.0", port=port)
