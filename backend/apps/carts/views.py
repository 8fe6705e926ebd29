from typing import Optional

from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.schemas import ErrorResponseSerializer
from apps.catalog.repositories import StoreRepository
from apps.common import get_logger

from .commands import AddItemCommand, UpdateItemCommand
from .container import build_cart_service
from .identity import (
    requested_guest_id,
    require_user_id,
    resolve_owner,
    resolve_store_id,
    validate_guest_id,
)
from .serializers import (
    AddItemSerializer,
    CartSerializer,
    MergeResultSerializer,
    MergeSerializer,
    TotalsSerializer,
    UpdateItemSerializer,
)

logger = get_logger(__name__).bind(component="carts", layer="view")

STORE_PARAMETERS = [
    OpenApiParameter(
        name=settings.STORE_ID_HEADER,
        type=int,
        location=OpenApiParameter.HEADER,
        required=False,
        description="Store the cart belongs to (or pass storeId as a query parameter)",
    ),
    OpenApiParameter(
        name="storeId", type=int, location=OpenApiParameter.QUERY, required=False
    ),
]

OWNER_PARAMETERS = STORE_PARAMETERS + [
    OpenApiParameter(
        name=settings.GUEST_ID_HEADER,
        type=str,
        location=OpenApiParameter.HEADER,
        required=False,
        description=(
            "Anonymous cart id. Ignored for authenticated users. When missing a new "
            "id is issued and returned in the same response header."
        ),
    ),
]

ERROR_RESPONSES = {
    400: OpenApiResponse(response=ErrorResponseSerializer),
    404: OpenApiResponse(response=ErrorResponseSerializer),
    409: OpenApiResponse(response=ErrorResponseSerializer),
}


def _with_guest_header(response: Response, issued_guest_id: Optional[str]) -> Response:
    if issued_guest_id:
        response[settings.GUEST_ID_HEADER] = issued_guest_id
    return response


class CartView(APIView):
    service = build_cart_service()
    stores = StoreRepository()
    log = logger.bind(view="CartView")

    @extend_schema(
        summary="View cart",
        description=(
            "Returns the caller's cart for the store, creating it on first use. Lines "
            "whose product disappeared, was deactivated or ran out of stock are removed, "
            "and quantities above the available stock are lowered."
        ),
        parameters=OWNER_PARAMETERS,
        responses={200: CartSerializer, **ERROR_RESPONSES},
    )
    def get(self, request):
        store_id = resolve_store_id(request, self.stores)
        owner, issued = resolve_owner(request, store_id)
        dto = self.service.view_cart(owner)
        return _with_guest_header(Response(CartSerializer(dto).data), issued)

    @extend_schema(
        summary="Add item",
        description=(
            "Adds a product configuration. A line with the same product, variant, "
            "specifications and colors has its quantity increased instead."
        ),
        parameters=OWNER_PARAMETERS,
        request=AddItemSerializer,
        responses={
            200: CartSerializer,
            422: OpenApiResponse(response=ErrorResponseSerializer),
            **ERROR_RESPONSES,
        },
    )
    def post(self, request):
        serializer = AddItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store_id = resolve_store_id(request, self.stores)
        owner, issued = resolve_owner(request, store_id)
        command = AddItemCommand.from_raw(serializer.validated_data)
        dto = self.service.add_item(owner, command)
        self.log.info(
            "Cart item added via API",
            cart_id=dto.id,
            product_id=command.product_id,
            quantity=command.quantity,
        )
        return _with_guest_header(Response(CartSerializer(dto).data), issued)

    @extend_schema(
        summary="Clear cart",
        parameters=OWNER_PARAMETERS,
        responses={200: CartSerializer, **ERROR_RESPONSES},
    )
    def delete(self, request):
        store_id = resolve_store_id(request, self.stores)
        owner, issued = resolve_owner(request, store_id)
        dto = self.service.clear_cart(owner)
        return _with_guest_header(Response(CartSerializer(dto).data), issued)


class CartItemView(APIView):
    service = build_cart_service()
    stores = StoreRepository()
    log = logger.bind(view="CartItemView")

    @extend_schema(
        summary="Update item",
        description=(
            "Sets the quantity of the first line for the product; 0 removes it. "
            "Variant, specifications and colors are replaced only when supplied."
        ),
        parameters=[OpenApiParameter("product_id", int, OpenApiParameter.PATH)]
        + OWNER_PARAMETERS,
        request=UpdateItemSerializer,
        responses={
            200: CartSerializer,
            422: OpenApiResponse(response=ErrorResponseSerializer),
            **ERROR_RESPONSES,
        },
    )
    def put(self, request, product_id: int):
        serializer = UpdateItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store_id = resolve_store_id(request, self.stores)
        owner, issued = resolve_owner(request, store_id)
        command = UpdateItemCommand.from_raw(product_id, serializer.validated_data)
        dto = self.service.update_item(owner, command)
        return _with_guest_header(Response(CartSerializer(dto).data), issued)

    @extend_schema(
        summary="Remove item",
        parameters=[OpenApiParameter("product_id", int, OpenApiParameter.PATH)]
        + OWNER_PARAMETERS,
        responses={200: CartSerializer, **ERROR_RESPONSES},
    )
    def delete(self, request, product_id: int):
        store_id = resolve_store_id(request, self.stores)
        owner, issued = resolve_owner(request, store_id)
        dto = self.service.remove_item(owner, int(product_id))
        self.log.info("Cart item removed via API", cart_id=dto.id, product_id=product_id)
        return _with_guest_header(Response(CartSerializer(dto).data), issued)


class CartTotalsView(APIView):
    service = build_cart_service()
    stores = StoreRepository()

    @extend_schema(
        summary="Cart totals",
        description="Subtotal, discount, tax and total at current catalog prices.",
        parameters=OWNER_PARAMETERS,
        responses={200: TotalsSerializer, **ERROR_RESPONSES},
    )
    def get(self, request):
        store_id = resolve_store_id(request, self.stores)
        owner, issued = resolve_owner(request, store_id)
        totals = self.service.cart_totals(owner)
        return _with_guest_header(Response(TotalsSerializer(totals).data), issued)


class CartMergeView(APIView):
    service = build_cart_service()
    stores = StoreRepository()
    log = logger.bind(view="CartMergeView")

    @extend_schema(
        summary="Merge guest cart",
        description=(
            "Moves the guest cart into the authenticated user's cart for the store and "
            "deletes the guest cart. Repeating the call merges nothing."
        ),
        parameters=OWNER_PARAMETERS,
        request=MergeSerializer,
        responses={
            200: MergeResultSerializer,
            401: OpenApiResponse(response=ErrorResponseSerializer),
            **ERROR_RESPONSES,
        },
    )
    def post(self, request):
        user_id = require_user_id(request)
        serializer = MergeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store_id = resolve_store_id(request, self.stores)
        guest_id = validate_guest_id(
            serializer.validated_data.get("guestId") or requested_guest_id(request)
        )
        result = self.service.merge_guest_cart(user_id, guest_id, store_id)
        self.log.info(
            "Guest cart merge requested",
            user_id=user_id,
            guest_id=guest_id,
            store_id=store_id,
            merged=result.merged_count,
        )
        return Response(MergeResultSerializer(result).data, status=status.HTTP_200_OK)


class GuestCartView(APIView):
    service = build_cart_service()
    stores = StoreRepository()

    @extend_schema(
        summary="Recover guest cart",
        description="Read-only view of an anonymous cart; nothing is created or saved.",
        parameters=[OpenApiParameter("guest_id", str, OpenApiParameter.PATH)]
        + STORE_PARAMETERS,
        responses={200: CartSerializer, **ERROR_RESPONSES},
    )
    def get(self, request, guest_id: str):
        store_id = resolve_store_id(request, self.stores)
        dto = self.service.view_guest_cart(validate_guest_id(guest_id), store_id)
        return Response(CartSerializer(dto).data)
