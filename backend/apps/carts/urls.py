from django.urls import path, re_path

from .views import CartItemView, CartMergeView, CartTotalsView, CartView, GuestCartView

urlpatterns = [
    path("", CartView.as_view(), name="api-cart"),
    re_path(r"^items/(?P<product_id>\d+)/?$", CartItemView.as_view(), name="api-cart-item"),
    path("totals/", CartTotalsView.as_view(), name="api-cart-totals"),
    path("merge/", CartMergeView.as_view(), name="api-cart-merge"),
    re_path(
        r"^guest/(?P<guest_id>[A-Za-z0-9_-]{1,64})/?$",
        GuestCartView.as_view(),
        name="api-cart-guest",
    ),
]
