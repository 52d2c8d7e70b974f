from decimal import Decimal

from cardledger.config import MAX_LINE_QTY
from cardledger.services.card_catalog import CardCatalog
from cardledger.services.pricing import DEFAULT_PRICE, PricingResolver


class TestPriceOf:
    def test_rarity_table(self, catalog: CardCatalog) -> None:
        pricing = PricingResolver(catalog)

        assert pricing.price_of("003") == Decimal("3.00")
        assert pricing.price_of("001") == Decimal("2.00")
        assert pricing.price_of("004") == Decimal("1.00")
        assert pricing.price_of("002") == Decimal("0.50")

    def test_unique_and_missing_rarity_price_as_common(self, catalog: CardCatalog) -> None:
        pricing = PricingResolver(catalog)

        assert pricing.price_of("005") == DEFAULT_PRICE
        assert pricing.price_of("006") == DEFAULT_PRICE

    def test_unknown_card_prices_as_common(self, catalog: CardCatalog) -> None:
        assert PricingResolver(catalog).price_of("404") == Decimal("0.50")

    def test_empty_catalog(self) -> None:
        assert PricingResolver(CardCatalog()).price_of("001") == Decimal("0.50")

    def test_lookup_normalizes_ids(self, catalog: CardCatalog) -> None:
        assert PricingResolver(catalog).price_of("1") == Decimal("2.00")


class TestQuote:
    def test_sums_lines(self, catalog: CardCatalog) -> None:
        total = PricingResolver(catalog).quote([("001", 2), ("002", 1)])

        assert total == Decimal("4.50")

    def test_ignores_non_positive(self, catalog: CardCatalog) -> None:
        total = PricingResolver(catalog).quote([("003", 0), ("003", -5), ("004", 1)])

        assert total == Decimal("1.00")

    def test_caps_line_quantity(self, catalog: CardCatalog) -> None:
        total = PricingResolver(catalog).quote([("002", MAX_LINE_QTY + 500)])

        assert total == Decimal("0.50") * MAX_LINE_QTY

    def test_empty_quote(self, catalog: CardCatalog) -> None:
        assert PricingResolver(catalog).quote([]) == Decimal("0.00")
