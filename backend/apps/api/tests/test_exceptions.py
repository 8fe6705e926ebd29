from rest_framework import status
from rest_framework.exceptions import NotAuthenticated, ValidationError
from rest_framework.test import APIRequestFactory

from apps.api.exceptions import ApplicationError, global_exception_handler
from apps.carts.exceptions import CartConflictError, SpecificationMismatchError

factory = APIRequestFactory()


class DummyView:
    pass


def _context(request):
    return {"request": request, "view": DummyView()}


def test_application_error_returns_structured_response():
    request = factory.get("/api/cart/")
    exc = ApplicationError(
        "CONFLICT",
        "Cart changed",
        message_ar="تغيرت السلة",
        status_code=status.HTTP_409_CONFLICT,
        details={"cartId": 3},
    )
    response = global_exception_handler(exc, _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_409_CONFLICT
    assert payload["code"] == "CONFLICT"
    assert payload["message"] == "Cart changed"
    assert payload["messageAr"] == "تغيرت السلة"
    assert payload["details"] == {"cartId": 3}


def test_arabic_request_gets_arabic_message():
    request = factory.get("/api/cart/", {"lang": "ar"})
    response = global_exception_handler(CartConflictError(), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_409_CONFLICT
    assert payload["message"] == CartConflictError.default_message_ar


def test_domain_error_uses_class_code_and_status():
    request = factory.post("/api/cart/", data={})
    response = global_exception_handler(
        SpecificationMismatchError(details={"specificationId": "7"}), _context(request)
    )
    payload = response.data["error"]
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert payload["code"] == "SPECIFICATION_MISMATCH"
    assert payload["status"] == 422


def test_validation_error_preserves_details():
    request = factory.post("/api/cart/", data={})
    exc = ValidationError({"quantity": ["Ensure this value is greater than or equal to 1."]})
    response = global_exception_handler(exc, _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["message"] == "Validation failed"
    assert payload["messageAr"]
    assert payload["details"] == {
        "quantity": ["Ensure this value is greater than or equal to 1."]
    }


def test_not_authenticated_maps_to_unauthorized():
    request = factory.post("/api/cart/merge/")
    response = global_exception_handler(NotAuthenticated(), _context(request))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.data["error"]["code"] == "UNAUTHORIZED"


def test_unhandled_exception_returns_generic_message():
    request = factory.get("/api/cart/")
    response = global_exception_handler(RuntimeError("boom"), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert payload["code"] == "SERVER_ERROR"
    assert payload["message"] == "Something went wrong"
    assert "details" not in payload
