from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.catalog.dtos import ProductSnapshot, SpecificationRecord
from apps.common import get_logger

from .commands import AddItemCommand, UpdateItemCommand
from .dtos import (
    CartDTO,
    CartLine,
    CartOwner,
    CartState,
    MergeResult,
    SelectedSpecification,
    TotalsDTO,
)
from .exceptions import (
    CartConflictError,
    CartNotFoundError,
    CartValidationError,
    StockError,
)
from .mappers import SelectedSpecificationMapper
from .matching import find_matching_line, same_configuration
from .pricing import TotalsCalculator, current_price, quantize_money
from .protocols import (
    CartMapperProtocol,
    CartRepositoryProtocol,
    ProductRepositoryProtocol,
    SpecificationRepositoryProtocol,
    TaxPolicyProtocol,
)
from .reconciliation import CartReconciler, ReconcileResult
from .stock import resolve_selections, stock_for_resolved

logger = get_logger(__name__).bind(component="carts", layer="service")

SpecificationLookups = Dict[str, Optional[SpecificationRecord]]
LineMutator = Callable[[List[CartLine]], List[CartLine]]


class CartService:
    def __init__(
        self,
        carts: CartRepositoryProtocol,
        products: ProductRepositoryProtocol,
        specifications: SpecificationRepositoryProtocol,
        cart_mapper: CartMapperProtocol,
        tax_policy: TaxPolicyProtocol,
        *,
        max_write_attempts: int = 3,
        order_insensitive_matching: bool = False,
    ):
        self.carts = carts
        self.products = products
        self.specifications = specifications
        self.cart_mapper = cart_mapper
        self.reconciler = CartReconciler(products)
        self.totals_calculator = TotalsCalculator(tax_policy)
        self.max_write_attempts = max(1, int(max_write_attempts))
        self.ordered_matching = not order_insensitive_matching
        self.logger = logger.bind(service="CartService")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def get_or_create_cart(self, owner: CartOwner) -> CartState:
        """
        Load the owner's cart for the store, creating an empty one on first use.
        A concurrent creator winning the unique constraint is absorbed by re-reading.
        """
        existing = self.carts.get_for_owner(owner)
        if existing is not None:
            return self.cart_mapper.to_state(existing)
        try:
            with transaction.atomic():
                created = self.carts.create_for_owner(owner)
        except IntegrityError:
            existing = self.carts.get_for_owner(owner)
            if existing is None:
                raise
            self.logger.debug(
                "Cart created by concurrent request",
                store_id=owner.store_id,
                user_id=owner.user_id,
                guest_id=owner.guest_id,
            )
            return self.cart_mapper.to_state(existing)
        self.logger.info(
            "Cart created",
            cart_id=created.id,
            store_id=owner.store_id,
            user_id=owner.user_id,
            guest_id=owner.guest_id,
        )
        return self.cart_mapper.to_state(created)

    # ------------------------------------------------------------------
    # Line operations
    # ------------------------------------------------------------------
    def add_item(self, owner: CartOwner, command: AddItemCommand) -> CartDTO:
        self.logger.info(
            "Adding cart item",
            store_id=owner.store_id,
            user_id=owner.user_id,
            guest_id=owner.guest_id,
            product_id=command.product_id,
            quantity=command.quantity,
        )

        lookups: SpecificationLookups = {}

        def mutate(lines: List[CartLine]) -> List[CartLine]:
            product = self._require_product(command.product_id, owner.store_id)
            specs, stock = self._prepare_selections(
                product, command.specifications, lookups
            )
            if stock <= 0:
                self.logger.warning(
                    "Add rejected: out of stock",
                    product_id=product.id,
                    store_id=owner.store_id,
                )
                raise StockError(
                    "Product is out of stock",
                    "المنتج غير متوفر في المخزون",
                    details={"productId": product.id, "available": 0},
                )
            candidate = CartLine(
                product_id=product.id,
                quantity=command.quantity,
                price_at_add=current_price(product),
                variant=command.variant,
                selected_specifications=specs,
                selected_colors=list(command.colors),
                added_at=timezone.now(),
            )
            index = find_matching_line(lines, candidate, ordered=self.ordered_matching)
            in_cart = lines[index].quantity if index is not None else 0
            if in_cart + command.quantity > stock:
                self.logger.warning(
                    "Add rejected: insufficient stock",
                    product_id=product.id,
                    requested=command.quantity,
                    in_cart=in_cart,
                    available=stock,
                )
                raise StockError(
                    f"Only {stock} available, {in_cart} already in cart",
                    f"الكمية المتوفرة {stock} فقط، ويوجد {in_cart} في السلة",
                    details={
                        "productId": product.id,
                        "available": stock,
                        "inCart": in_cart,
                        "requested": command.quantity,
                    },
                )
            if index is not None:
                lines[index].quantity = in_cart + command.quantity
            else:
                lines.append(candidate)
            return lines

        state = self._mutate(owner, mutate)
        return self._present(state, lookups=lookups)

    def update_item(self, owner: CartOwner, command: UpdateItemCommand) -> CartDTO:
        """
        Targets the first line for ``command.product_id``; quantity 0 removes it.
        Variant, specifications and colors are only overwritten when supplied; if
        that leaves two lines with one configuration they are folded together.
        """
        self.logger.info(
            "Updating cart item",
            store_id=owner.store_id,
            user_id=owner.user_id,
            guest_id=owner.guest_id,
            product_id=command.product_id,
            quantity=command.quantity,
        )

        lookups: SpecificationLookups = {}

        def mutate(lines: List[CartLine]) -> List[CartLine]:
            index = self._line_index(lines, command.product_id)
            if command.quantity == 0:
                del lines[index]
                return lines
            line = lines[index]
            product = self._require_product(command.product_id, owner.store_id)
            requested_specs = (
                command.specifications
                if command.specifications is not None
                else line.selected_specifications
            )
            specs, stock = self._prepare_selections(product, requested_specs, lookups)
            if command.quantity > stock:
                self.logger.warning(
                    "Update rejected: insufficient stock",
                    product_id=product.id,
                    requested=command.quantity,
                    available=stock,
                )
                raise StockError(
                    f"Only {stock} available",
                    f"الكمية المتوفرة {stock} فقط",
                    details={
                        "productId": product.id,
                        "available": stock,
                        "requested": command.quantity,
                    },
                )
            line.quantity = command.quantity
            if command.variant is not None:
                line.variant = command.variant
            if command.specifications is not None:
                line.selected_specifications = specs
            if command.colors is not None:
                line.selected_colors = list(command.colors)
            self._fold_duplicate(lines, index, stock)
            return lines

        state = self._mutate(owner, mutate)
        return self._present(state, lookups=lookups)

    def remove_item(self, owner: CartOwner, product_id: int) -> CartDTO:
        self.logger.info(
            "Removing cart item",
            store_id=owner.store_id,
            user_id=owner.user_id,
            guest_id=owner.guest_id,
            product_id=product_id,
        )

        def mutate(lines: List[CartLine]) -> List[CartLine]:
            del lines[self._line_index(lines, product_id)]
            return lines

        state = self._mutate(owner, mutate)
        return self._present(state)

    def clear_cart(self, owner: CartOwner) -> CartDTO:
        self.logger.info(
            "Clearing cart",
            store_id=owner.store_id,
            user_id=owner.user_id,
            guest_id=owner.guest_id,
        )
        state = self._mutate(owner, lambda lines: [])
        return self._present(state)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def view_cart(self, owner: CartOwner) -> CartDTO:
        self.logger.debug(
            "Viewing cart",
            store_id=owner.store_id,
            user_id=owner.user_id,
            guest_id=owner.guest_id,
        )
        return self._present(self.get_or_create_cart(owner))

    def view_guest_cart(self, guest_id: str, store_id: int) -> CartDTO:
        """Read-only recovery path: never creates the cart, never writes corrections."""
        owner = CartOwner(store_id=store_id, guest_id=guest_id)
        cart = self.carts.get_for_owner(owner)
        if cart is None:
            self.logger.info("Guest cart not found", guest_id=guest_id, store_id=store_id)
            raise CartNotFoundError(
                "Cart not found", "السلة غير موجودة", details={"guestId": guest_id}
            )
        return self._present(self.cart_mapper.to_state(cart), persist=False)

    def cart_totals(self, owner: CartOwner) -> TotalsDTO:
        state = self.get_or_create_cart(owner)
        reconciled = self._reconcile(state, persist=True)
        totals = self.totals_calculator.totals(
            (r.product, r.line.quantity) for r in reconciled.lines
        )
        totals.removed_count = reconciled.removed_count
        totals.adjusted_count = reconciled.adjusted_count
        self.logger.debug(
            "Computed cart totals",
            cart_id=state.id,
            subtotal=quantize_money(totals.subtotal),
            total=quantize_money(totals.total),
            removed=reconciled.removed_count,
        )
        return totals

    # ------------------------------------------------------------------
    # Guest merge
    # ------------------------------------------------------------------
    def merge_guest_cart(self, user_id: int, guest_id: str, store_id: int) -> MergeResult:
        """
        Fold the guest cart into the user's cart once, then delete the guest cart.

        Matching lines are summed without a stock check; the next read clamps or
        prunes them. The guest cart is claimed by a version-guarded delete inside
        the same transaction, so a replayed or concurrent merge finds nothing.
        """
        guest_owner = CartOwner(store_id=store_id, guest_id=guest_id)
        user_owner = CartOwner(store_id=store_id, user_id=user_id)
        guest_cart = self.carts.get_for_owner(guest_owner)
        if guest_cart is None:
            self.logger.debug("No guest cart to merge", guest_id=guest_id, store_id=store_id)
            return MergeResult()
        guest_state = self.cart_mapper.to_state(guest_cart)
        if not guest_state.lines:
            self.logger.debug("Guest cart empty; nothing to merge", guest_id=guest_id)
            return MergeResult()

        result = MergeResult()

        def mutate(lines: List[CartLine]) -> List[CartLine]:
            result.merged_count = result.updated_count = result.skipped_count = 0
            for guest_line in guest_state.lines:
                if guest_line.quantity < 1:
                    result.skipped_count += 1
                    continue
                index = find_matching_line(
                    lines, guest_line, ordered=self.ordered_matching
                )
                if index is not None:
                    lines[index].quantity += guest_line.quantity
                    result.updated_count += 1
                else:
                    lines.append(guest_line.copy())
                    result.merged_count += 1
            return lines

        with transaction.atomic():
            if not self.carts.delete_if_version(guest_state.id, guest_state.version):
                self.logger.info(
                    "Guest cart already merged or changed concurrently",
                    guest_id=guest_id,
                    store_id=store_id,
                )
                return MergeResult()
            self._mutate(user_owner, mutate)
        self.logger.info(
            "Guest cart merged",
            user_id=user_id,
            guest_id=guest_id,
            store_id=store_id,
            merged=result.merged_count,
            updated=result.updated_count,
            skipped=result.skipped_count,
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _mutate(self, owner: CartOwner, mutator: LineMutator) -> CartState:
        """Read-modify-write with a version guard, retried on lost races."""
        for attempt in range(1, self.max_write_attempts + 1):
            state = self.get_or_create_cart(owner)
            lines = mutator([line.copy() for line in state.lines])
            items = self.cart_mapper.lines_to_storage(lines)
            if self.carts.save_items(state.id, items, state.version):
                return CartState(
                    id=state.id, owner=state.owner, lines=lines, version=state.version + 1
                )
            self.logger.warning(
                "Cart write lost a concurrent update; retrying",
                cart_id=state.id,
                attempt=attempt,
                expected_version=state.version,
            )
        raise CartConflictError(details={"attempts": self.max_write_attempts})

    def _require_product(self, product_id: int, store_id: int) -> ProductSnapshot:
        product = self.products.find_active(product_id, store_id)
        if product is None:
            self.logger.warning(
                "Product not found in store", product_id=product_id, store_id=store_id
            )
            raise CartNotFoundError(
                "Product not found in this store",
                "المنتج غير موجود في هذا المتجر",
                details={"productId": product_id},
            )
        if not product.is_active:
            self.logger.warning("Product inactive", product_id=product_id, store_id=store_id)
            raise CartValidationError(
                "Product is not available",
                "المنتج غير متاح",
                details={"productId": product_id},
            )
        return product

    def _line_index(self, lines: List[CartLine], product_id: int) -> int:
        for index, line in enumerate(lines):
            if line.product_id == product_id:
                return index
        raise CartNotFoundError(
            "Product not in cart",
            "المنتج غير موجود في السلة",
            details={"productId": product_id},
        )

    def _fold_duplicate(self, lines: List[CartLine], index: int, stock: int) -> None:
        """Merge another line that now has the same configuration as ``lines[index]``."""
        line = lines[index]
        for other_index, other in enumerate(lines):
            if other_index == index:
                continue
            if not same_configuration(line, other, ordered=self.ordered_matching):
                continue
            combined = line.quantity + other.quantity
            if combined > stock:
                self.logger.warning(
                    "Update rejected: merged line exceeds stock",
                    product_id=line.product_id,
                    requested=line.quantity,
                    in_cart=other.quantity,
                    available=stock,
                )
                raise StockError(
                    f"Only {stock} available, {other.quantity} already in cart",
                    f"الكمية المتوفرة {stock} فقط، ويوجد {other.quantity} في السلة",
                    details={
                        "productId": line.product_id,
                        "available": stock,
                        "inCart": other.quantity,
                        "requested": line.quantity,
                    },
                )
            line.quantity = combined
            del lines[other_index]
            return

    def _prepare_selections(
        self,
        product: ProductSnapshot,
        selections: Iterable[SelectedSpecification],
        lookups: SpecificationLookups,
    ) -> Tuple[List[SelectedSpecification], int]:
        """
        Resolve selections against the product, rewrite them to the product's
        canonical ids and refresh the bilingual display cache. Returns the
        canonical selections and the specification-constrained stock. Catalog rows
        fetched here are recorded in ``lookups`` for the response.
        """
        resolved = resolve_selections(product, list(selections))
        if not resolved:
            return [], stock_for_resolved(product, resolved)
        self._lookup_specifications(
            {entry.specification_id for _, entry in resolved}, lookups
        )
        canonical: List[SelectedSpecification] = []
        for selection, entry in resolved:
            spec = SelectedSpecification(
                specification_id=entry.specification_id,
                value_id=entry.value_id,
                title_ar=selection.title_ar,
                title_en=selection.title_en or entry.title,
                value_ar=selection.value_ar,
                value_en=selection.value_en or entry.value,
            )
            canonical.append(SelectedSpecificationMapper.enrich(spec, lookups))
        return canonical, stock_for_resolved(product, resolved)

    def _reconcile(self, state: CartState, *, persist: bool) -> ReconcileResult:
        reconciled = self.reconciler.reconcile(state.lines, state.owner.store_id)
        if not (persist and reconciled.changed):
            return reconciled
        items = self.cart_mapper.lines_to_storage(reconciled.cart_lines)
        try:
            saved = self.carts.save_items(state.id, items, state.version)
        except Exception as exc:
            self.logger.warning(
                "Persisting cart corrections failed; serving corrected view",
                cart_id=state.id,
                error=str(exc),
            )
            return reconciled
        if saved:
            state.version += 1
            state.lines = reconciled.cart_lines
            self.logger.info(
                "Cart corrected against catalog",
                cart_id=state.id,
                removed=reconciled.removed_count,
                adjusted=reconciled.adjusted_count,
            )
        else:
            self.logger.debug(
                "Cart changed before corrections were saved", cart_id=state.id
            )
        return reconciled

    def _lookup_specifications(
        self, specification_ids: Iterable[str], lookups: SpecificationLookups
    ) -> None:
        missing = {sid for sid in specification_ids if sid not in lookups}
        if not missing:
            return
        found = self.specifications.find_batch(missing)
        for sid in missing:
            lookups[sid] = found.get(sid)

    def _present(
        self,
        state: CartState,
        *,
        persist: bool = True,
        lookups: Optional[SpecificationLookups] = None,
    ) -> CartDTO:
        reconciled = self._reconcile(state, persist=persist)
        records = lookups if lookups is not None else {}
        self._lookup_specifications(
            (
                spec.specification_id
                for r in reconciled.lines
                for spec in r.line.selected_specifications
            ),
            records,
        )
        return self.cart_mapper.to_dto(state, reconciled, records)
