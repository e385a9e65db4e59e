from fastapi import APIRouter, Depends, Query
from typing import Optional

from verichain.application.schemas import (
    ApiResponse,
    EventCreate,
    PasswordVerifyRequest,
    PasswordVerifyResponse,
    ProductCreate,
    ShipmentCreate,
    WeatherRead,
)
from verichain.application.service import (
    AuthService,
    ProductService,
    ShipmentService,
    UserService,
    WeatherService,
)
from verichain.domain.models import Product, Shipment, User
from verichain.infrastructure.store import Store, get_store
from verichain.infrastructure.weather import TemperatureVerifier, get_verifier

products_router = APIRouter(prefix="/products", tags=["products"])


@products_router.get("", response_model=ApiResponse[list[Product]])
def list_products(store: Store = Depends(get_store)):
    return ApiResponse.ok(ProductService(store).list())


@products_router.post("", response_model=ApiResponse[Product], status_code=201)
def register_product(payload: ProductCreate, store: Store = Depends(get_store)):
    return ApiResponse.ok(ProductService(store).register(payload))


shipments_router = APIRouter(prefix="/shipments", tags=["shipments"])


@shipments_router.get("", response_model=ApiResponse[list[Shipment]])
def list_shipments(store: Store = Depends(get_store)):
    return ApiResponse.ok(ShipmentService(store).list())


@shipments_router.post("", response_model=ApiResponse[Shipment], status_code=201)
def fund_escrow(payload: ShipmentCreate, store: Store = Depends(get_store)):
    return ApiResponse.ok(ShipmentService(store).fund(payload))


@shipments_router.get("/{shipment_id}", response_model=ApiResponse[Shipment])
def get_shipment(shipment_id: str, store: Store = Depends(get_store)):
    return ApiResponse.ok(ShipmentService(store).get(shipment_id))


@shipments_router.post("/{shipment_id}/events", response_model=ApiResponse[Shipment])
def add_event(
    shipment_id: str,
    payload: EventCreate,
    store: Store = Depends(get_store),
    verifier: TemperatureVerifier = Depends(get_verifier),
):
    return ApiResponse.ok(ShipmentService(store, verifier).add_event(shipment_id, payload))


@shipments_router.post("/{shipment_id}/confirm", response_model=ApiResponse[Shipment])
def confirm_delivery(shipment_id: str, store: Store = Depends(get_store)):
    return ApiResponse.ok(ShipmentService(store).confirm_delivery(shipment_id))


users_router = APIRouter(prefix="/users", tags=["users"])


@users_router.get("", response_model=ApiResponse[list[User]])
def list_users(store: Store = Depends(get_store)):
    return ApiResponse.ok(UserService(store).list())


@users_router.get("/{user_id}/shipments", response_model=ApiResponse[list[Shipment]])
def list_user_shipments(
    user_id: str,
    role: Optional[str] = Query(None),
    store: Store = Depends(get_store),
):
    """Shipments where the user plays ``role``; unknown roles return an empty list."""
    return ApiResponse.ok(ShipmentService(store).list_for_user(user_id, role))


weather_router = APIRouter(prefix="/weather", tags=["weather"])


@weather_router.get("/{location}", response_model=ApiResponse[WeatherRead])
def current_weather(location: str, verifier: TemperatureVerifier = Depends(get_verifier)):
    return ApiResponse.ok(WeatherService(verifier).current(location))


auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/verify", response_model=ApiResponse[PasswordVerifyResponse])
def verify_password(payload: PasswordVerifyRequest):
    result = AuthService().verify(payload)
    return ApiResponse.ok(result, message=result.message)


router = APIRouter(prefix="/api")
router.include_router(products_router)
router.include_router(shipments_router)
router.include_router(users_router)
router.include_router(weather_router)
router.include_router(auth_router)
