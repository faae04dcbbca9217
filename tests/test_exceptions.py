"""Test cases for the exception hierarchy, status mapping and handlers."""

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError

from product_api.core.exceptions import (
    AppError,
    BadRequestError,
    ClientError,
    ConflictError,
    ErrorResponse,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
    ProductAPIError,
    ProductValidationError,
    QueryError,
    ServerError,
    ServiceUnavailableError,
    error_for_status,
    register_exception_handlers,
)


@pytest.fixture
def app() -> FastAPI:
    """Create test FastAPI application."""
    test_app = FastAPI()
    register_exception_handlers(test_app)
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    # Unhandled errors must reach the generic handler instead of the test
    return TestClient(app, raise_server_exceptions=False)


# =============================================================================
# ErrorResponse model
# =============================================================================


def test_error_response_model() -> None:
    error = ErrorResponse(
        error_code="PRODUCT_NOT_FOUND",
        message="Product not found",
        detail={"product_id": "abc"},
        path="/products/abc",
    )

    assert error.success is False
    assert error.error_code == "PRODUCT_NOT_FOUND"
    assert error.detail == {"product_id": "abc"}
    assert error.path == "/products/abc"


def test_error_response_rejects_non_mapping_detail() -> None:
    with pytest.raises(ValidationError):
        ErrorResponse(error_code="TEST", message="Test", detail="invalid_string")


# =============================================================================
# Exception classes raised from routes
# =============================================================================


def test_not_found_error_with_params(app: FastAPI, client: TestClient) -> None:
    @app.get("/products/{product_id}")
    async def route(product_id: str):
        raise NotFoundError(
            message="Product not found", error_code="PRODUCT_NOT_FOUND", detail={"product_id": product_id}
        )

    response = client.get("/products/abc")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    data = response.json()
    assert data["success"] is False
    assert data["error_code"] == "PRODUCT_NOT_FOUND"
    assert data["message"] == "Product not found"
    assert data["detail"] == {"product_id": "abc"}
    assert data["path"] == "/products/abc"


@pytest.mark.parametrize(
    ("error", "status_code", "error_code"),
    [
        (BadRequestError("No updates were specified"), status.HTTP_400_BAD_REQUEST, "BadRequestError"),
        (ForbiddenError("Denied"), status.HTTP_403_FORBIDDEN, "ForbiddenError"),
        (ConflictError("Duplicate key"), status.HTTP_409_CONFLICT, "ConflictError"),
        (InternalServerError("Broken"), status.HTTP_500_INTERNAL_SERVER_ERROR, "InternalServerError"),
        (ServiceUnavailableError("No handler"), status.HTTP_503_SERVICE_UNAVAILABLE, "ServiceUnavailableError"),
    ],
)
def test_error_classes_set_status_and_code(
    app: FastAPI, client: TestClient, error: AppError, status_code: int, error_code: str
) -> None:
    @app.get("/raise")
    async def route():
        raise error

    response = client.get("/raise")

    assert response.status_code == status_code
    assert response.json()["error_code"] == error_code
    assert response.json()["message"] == error.message


def test_error_from_error_response_object(app: FastAPI, client: TestClient) -> None:
    @app.get("/raise")
    async def route():
        raise BadRequestError(
            ErrorResponse(error_code="INVALID_SORT", message="Sort spec is invalid", detail={"sort": "?"})
        )

    response = client.get("/raise")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error_code"] == "INVALID_SORT"
    assert response.json()["detail"] == {"sort": "?"}


def test_default_message_and_detail_omitted(app: FastAPI, client: TestClient) -> None:
    @app.get("/raise")
    async def route():
        raise NotFoundError()

    data = client.get("/raise").json()

    assert data["message"] == "Not found"
    assert data["error_code"] == "NotFoundError"
    assert "detail" not in data


# =============================================================================
# Framework and database errors
# =============================================================================


def test_generic_exception_handler(app: FastAPI, client: TestClient) -> None:
    @app.get("/raise")
    async def route():
        msg = "Unexpected error"
        raise ValueError(msg)

    response = client.get("/raise")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["error_code"] == "InternalServerError"
    assert data["message"] == "An unexpected error occurred"
    assert data["path"] == "/raise"


def test_integrity_error_is_conflict(app: FastAPI, client: TestClient) -> None:
    @app.get("/raise")
    async def route():
        raise IntegrityError("INSERT INTO products", {}, Exception("UNIQUE constraint failed: products.id"))

    response = client.get("/raise")

    assert response.status_code == status.HTTP_409_CONFLICT
    data = response.json()
    assert data["error_code"] == "IntegrityError"
    assert data["detail"] == {"database_error": "UNIQUE constraint failed: products.id"}


def test_validation_error_handler(app: FastAPI, client: TestClient) -> None:
    class PriceChange(BaseModel):
        key: str
        price: float

    @app.post("/validate")
    async def route(data: PriceChange):
        return data

    response = client.post("/validate", json={"key": "tee", "price": "cheap"})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    data = response.json()
    assert data["error_code"] == "ValidationError"
    assert data["message"] == "Request validation failed"
    assert "errors" in data["detail"]


# =============================================================================
# Bus status mapping
# =============================================================================


@pytest.mark.parametrize(
    ("status_code", "error_cls"),
    [
        (400, BadRequestError),
        (403, ForbiddenError),
        (404, NotFoundError),
        (503, ServiceUnavailableError),
    ],
)
def test_error_for_status_known_codes(status_code: int, error_cls: type[AppError]) -> None:
    error = error_for_status(status_code, "message")

    assert type(error) is error_cls
    assert error.status_code == status_code
    assert error.message == "message"


def test_error_for_status_falls_back_by_class() -> None:
    teapot = error_for_status(418, "short and stout")
    gateway = error_for_status(502, "upstream failed")

    assert type(teapot) is ClientError
    assert teapot.status_code == 418
    assert type(gateway) is ServerError
    assert gateway.status_code == 502


def test_exception_to_error_response_conversion() -> None:
    exc = NotFoundError(message="Product not found", error_code="PRODUCT_NOT_FOUND", detail={"id": "abc"})

    error_response = exc.to_error_response(path="/products/abc")

    assert isinstance(error_response, ErrorResponse)
    assert error_response.error_code == "PRODUCT_NOT_FOUND"
    assert error_response.path == "/products/abc"


# =============================================================================
# Domain errors
# =============================================================================


def test_domain_errors_share_base() -> None:
    assert issubclass(QueryError, ProductAPIError)
    assert issubclass(ProductValidationError, ProductAPIError)
    assert not issubclass(ProductAPIError, AppError)


def test_product_validation_error_message() -> None:
    exc = ProductValidationError(
        {"key": "The key is required.", "price": "The price field is required."}
    )

    assert exc.errors == {"key": "The key is required.", "price": "The price field is required."}
    assert str(exc) == (
        "Product validation failed: key: The key is required., price: The price field is required."
    )


def test_structured_detail_is_kept_apart_from_message() -> None:
    exc = ConflictError("Duplicate key", detail={"key": "tee"})

    assert exc.detail == "Duplicate key"
    assert exc.error_detail == {"key": "tee"}
    assert exc.to_error_response().detail == {"key": "tee"}

    from_response = NotFoundError(ErrorResponse(error_code="GONE", message="Gone", detail={"id": "abc"}))

    assert from_response.status_code == status.HTTP_404_NOT_FOUND
    assert from_response.detail == "Gone"
    assert from_response.error_detail == {"id": "abc"}
