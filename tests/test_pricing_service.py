"""Tests for cart pricing."""

from decimal import Decimal

import pytest

from storefront_ledger.domain.catalog import LineItem, ShippingSelection
from storefront_ledger.domain.orders import OrderLine
from storefront_ledger.domain.pricing import OrderPricingResult
from storefront_ledger.domain.value_objects import TaxCategory
from storefront_ledger.exceptions import (
    InvalidDiscountCodeError,
    InvalidDiscountError,
    InvalidLineItemError,
    UnknownTaxCategoryError,
)
from storefront_ledger.services.pricing import PricingServiceImpl
from storefront_ledger.services.vat import gross_unit_price


def _assert_reconciles(result: OrderPricingResult) -> None:
    for bucket in result.rates.values():
        assert bucket.inc_tax == bucket.ex_tax + bucket.tax
    assert result.products.amounts.inc_tax == (
        result.products.amounts.ex_tax + result.products.amounts.tax
    )
    assert result.shipping.amounts.inc_tax == (
        result.shipping.amounts.ex_tax + result.shipping.amounts.tax
    )
    assert result.total.inc_tax == (
        result.products.amounts.inc_tax
        + result.shipping.amounts.inc_tax
        + result.total.rounding_adjustment
    )


class TestPriceCart:
    def test_single_book_with_domestic_shipping(
        self,
        pricing_service: PricingServiceImpl,
        book_item: LineItem,
        domestic_shipping: ShippingSelection,
    ) -> None:
        result = pricing_service.price_cart([book_item], domestic_shipping)

        reduced = result.bucket(Decimal("0.06"))
        assert (reduced.ex_tax, reduced.tax, reduced.inc_tax) == (94, 6, 100)
        assert result.shipping.rate == Decimal("0.06")
        assert result.shipping.amounts.ex_tax == 37
        assert result.shipping.amounts.tax == 2
        assert result.total.inc_tax == 139
        assert result.total.ex_tax == 131
        assert result.total.tax == 8
        assert result.total.rounding_adjustment == 0
        _assert_reconciles(result)

    def test_merchandise_goes_in_standard_bucket(
        self,
        pricing_service: PricingServiceImpl,
        merch_item: LineItem,
        domestic_shipping: ShippingSelection,
    ) -> None:
        result = pricing_service.price_cart([merch_item], domestic_shipping)

        standard = result.bucket(Decimal("0.25"))
        assert (standard.ex_tax, standard.tax, standard.inc_tax) == (200, 50, 250)
        assert result.bucket(Decimal("0.06")).is_zero
        assert result.shipping.rate == Decimal("0.25")
        assert result.shipping.amounts.ex_tax == 31
        assert result.shipping.amounts.tax == 8
        _assert_reconciles(result)

    def test_mixed_cart_tie_ships_at_reduced_rate(
        self,
        pricing_service: PricingServiceImpl,
        book_item: LineItem,
        merch_item: LineItem,
        eu_shipping: ShippingSelection,
    ) -> None:
        result = pricing_service.price_cart([book_item, merch_item], eu_shipping)

        assert result.shipping.rate == Decimal("0.06")
        assert result.shipping.amounts.ex_tax == 94
        assert result.shipping.amounts.tax == 6
        assert result.total.inc_tax == 100 + 250 + 100
        _assert_reconciles(result)

    def test_non_eu_shipping_is_tax_exempt(
        self,
        pricing_service: PricingServiceImpl,
        merch_item: LineItem,
        world_shipping: ShippingSelection,
    ) -> None:
        result = pricing_service.price_cart([merch_item], world_shipping)

        assert result.shipping.rate == 0
        assert result.shipping.amounts.tax == 0
        assert result.shipping.amounts.ex_tax == world_shipping.price
        _assert_reconciles(result)

    def test_quantity_multiplies_gross_unit_price(
        self,
        pricing_service: PricingServiceImpl,
        domestic_shipping: ShippingSelection,
    ) -> None:
        item = LineItem("book-2", "Bok", 95, 3, TaxCategory.BOOK)

        result = pricing_service.price_cart([item], domestic_shipping)

        unit_gross = gross_unit_price(95, Decimal("0.06"))
        assert unit_gross == 101
        assert result.bucket(Decimal("0.06")).inc_tax == 303
        _assert_reconciles(result)

    def test_legacy_item_without_category_prices_at_reduced_rate(
        self,
        pricing_service: PricingServiceImpl,
        domestic_shipping: ShippingSelection,
    ) -> None:
        item = LineItem("old-1", "Gammal bok", 94, 1, None)

        result = pricing_service.price_cart([item], domestic_shipping)

        assert result.bucket(Decimal("0.06")).inc_tax == 100

    def test_empty_cart_prices_to_zero(
        self,
        pricing_service: PricingServiceImpl,
        domestic_shipping: ShippingSelection,
    ) -> None:
        result = pricing_service.price_cart([], domestic_shipping)

        assert all(bucket.is_zero for bucket in result.rates.values())
        assert result.shipping.amounts.is_zero
        assert result.total.inc_tax == 0
        assert result.discount == 0

    def test_zero_discount_is_present_and_zero(
        self,
        pricing_service: PricingServiceImpl,
        book_item: LineItem,
        domestic_shipping: ShippingSelection,
    ) -> None:
        result = pricing_service.price_cart([book_item], domestic_shipping, 0)

        assert result.discount == 0
        assert result.products.original_inc_tax == result.products.amounts.inc_tax
        assert result.to_dict()["products"]["discount"] == 0

    def test_no_shipping_selected_prices_products_only(
        self, pricing_service: PricingServiceImpl, book_item: LineItem
    ) -> None:
        result = pricing_service.price_cart([book_item], None)

        assert result.shipping.amounts.is_zero
        assert result.total.inc_tax == 100


class TestDiscounts:
    def test_ten_percent_of_one_thousand(
        self, pricing_service: PricingServiceImpl, world_shipping: ShippingSelection
    ) -> None:
        item = LineItem("merch-2", "Affisch", 800, 1, TaxCategory.MERCHANDISE)

        result = pricing_service.price_cart([item], world_shipping, 10)

        assert result.products.original_inc_tax == 1000
        assert result.discount == 100
        assert result.products.amounts.inc_tax == 900
        assert result.products.amounts.ex_tax == 720
        assert result.products.amounts.tax == 180
        _assert_reconciles(result)

    def test_discount_comes_off_aggregate_not_rate_buckets(
        self,
        pricing_service: PricingServiceImpl,
        book_item: LineItem,
        merch_item: LineItem,
        domestic_shipping: ShippingSelection,
    ) -> None:
        result = pricing_service.price_cart([book_item, merch_item], domestic_shipping, 10)

        assert result.bucket(Decimal("0.06")).inc_tax == 100
        assert result.bucket(Decimal("0.25")).inc_tax == 250
        assert result.discount == 35
        assert result.products.amounts.ex_tax == 265
        assert result.products.amounts.tax == 50
        assert result.total.inc_tax == 354
        _assert_reconciles(result)

    @pytest.mark.parametrize("percent", [-1, 101])
    def test_out_of_range_percent_rejected(
        self,
        pricing_service: PricingServiceImpl,
        book_item: LineItem,
        percent: int,
    ) -> None:
        with pytest.raises(InvalidDiscountError):
            pricing_service.price_cart([book_item], None, percent)

    def test_full_discount_leaves_shipping(
        self,
        pricing_service: PricingServiceImpl,
        book_item: LineItem,
        domestic_shipping: ShippingSelection,
    ) -> None:
        result = pricing_service.price_cart([book_item], domestic_shipping, 100)

        assert result.products.amounts.is_zero
        assert result.total.inc_tax == 39
        _assert_reconciles(result)


class TestDiscountCodes:
    def test_code_is_case_insensitive(self, pricing_service: PricingServiceImpl) -> None:
        assert pricing_service.resolve_discount_code("välkommen10") == 10
        assert pricing_service.resolve_discount_code("  VÄLKOMMEN10 ") == 10

    def test_no_code_means_no_discount(self, pricing_service: PricingServiceImpl) -> None:
        assert pricing_service.resolve_discount_code(None) == 0
        assert pricing_service.resolve_discount_code("") == 0

    def test_unknown_code_raises(self, pricing_service: PricingServiceImpl) -> None:
        with pytest.raises(InvalidDiscountCodeError) as exc_info:
            pricing_service.resolve_discount_code("GRATIS")

        assert exc_info.value.status_code == 400


class TestInvalidItems:
    def test_zero_quantity_fails_loudly(self, pricing_service: PricingServiceImpl) -> None:
        item = LineItem("book-1", "Bok", 94, 0, TaxCategory.BOOK)

        with pytest.raises(InvalidLineItemError):
            pricing_service.price_cart([item], None)

    def test_negative_price_fails_loudly(self, pricing_service: PricingServiceImpl) -> None:
        item = LineItem("book-1", "Bok", -1, 1, TaxCategory.BOOK)

        with pytest.raises(InvalidLineItemError):
            pricing_service.price_cart([item], None)

    def test_unknown_category_never_defaults(self) -> None:
        with pytest.raises(UnknownTaxCategoryError):
            LineItem("x", "X", 10, 1, "vinyl")


class TestPriceGrossLines:
    def test_recomputing_from_rounded_gross_lines_is_stable(
        self,
        pricing_service: PricingServiceImpl,
        book_item: LineItem,
        merch_item: LineItem,
        domestic_shipping: ShippingSelection,
    ) -> None:
        items = [book_item, merch_item]
        first = pricing_service.price_cart(items, domestic_shipping, 10)
        gross_lines = [
            OrderLine(
                product_id=item.product_id,
                title=item.title,
                unit_price=gross_unit_price(
                    item.unit_price_ex_tax, pricing_service.rates.rate_for(item.tax_category)
                ),
                quantity=item.quantity,
                tax_category=item.tax_category,
            )
            for item in items
        ]

        second = pricing_service.price_gross_lines(
            gross_lines,
            shipping_gross=first.shipping.amounts.inc_tax,
            shipping_rate=first.shipping.rate,
            discount_amount=first.discount,
        )

        assert second.rates == first.rates
        assert second.products == first.products
        assert second.shipping == first.shipping
        assert second.total == first.total

    def test_breakdown_survives_serialisation(
        self,
        pricing_service: PricingServiceImpl,
        book_item: LineItem,
        eu_shipping: ShippingSelection,
    ) -> None:
        result = pricing_service.price_cart([book_item], eu_shipping, 10)

        assert OrderPricingResult.from_dict(result.to_dict()) == result
