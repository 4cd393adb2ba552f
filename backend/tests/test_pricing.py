"""Tests for metered pricing helpers and the price table."""

from decimal import Decimal
from types import SimpleNamespace

from usage_billing.repositories.usage_price_repository import UsagePriceRepository
from usage_billing.services.pricing import (
    DEFAULT_METERED_PRICING,
    PriceTable,
    calculate_cost,
    to_minor_units,
)


class TestCalculateCost:
    def test_multiplies_quantity_by_unit_price(self) -> None:
        assert calculate_cost(1000, Decimal("0.001")) == Decimal("1.000")

    def test_zero_quantity_costs_nothing(self) -> None:
        assert calculate_cost(0, Decimal("5.00")) == Decimal("0")


class TestToMinorUnits:
    def test_whole_amount(self) -> None:
        assert to_minor_units(Decimal("5.00")) == 500

    def test_rounds_half_up(self) -> None:
        assert to_minor_units(Decimal("0.005")) == 1
        assert to_minor_units(Decimal("0.015")) == 2

    def test_sub_cent_rounds_to_zero(self) -> None:
        assert to_minor_units(Decimal("0.001")) == 0


class TestPriceTable:
    def test_defaults(self) -> None:
        table = PriceTable()
        assert table.unit_price_for("api_call") == Decimal("0.001")
        assert table.unit_price_for("custom_domain") == Decimal("5.00")
        assert table.as_dict() == DEFAULT_METERED_PRICING

    def test_unknown_event_type_is_free(self) -> None:
        assert PriceTable().unit_price_for("teleport") == Decimal("0")

    def test_explicit_prices_replace_defaults(self) -> None:
        table = PriceTable({"api_call": Decimal("0.5")})
        assert table.unit_price_for("api_call") == Decimal("0.5")
        assert table.unit_price_for("storage_used") == Decimal("0")

    def test_stored_event_price_wins(self) -> None:
        event = SimpleNamespace(event_type="api_call", unit_price=Decimal("0.25"))
        assert PriceTable().resolve_unit_price(event) == Decimal("0.25")  # type: ignore[arg-type]

    def test_falls_back_to_table_price(self) -> None:
        event = SimpleNamespace(event_type="export_generated", unit_price=None)
        assert PriceTable().resolve_unit_price(event) == Decimal("0.05")  # type: ignore[arg-type]

    def test_load_overlays_stored_overrides(self, db_session) -> None:
        repo = UsagePriceRepository(db_session)
        repo.upsert("api_call", Decimal("0.002"))
        repo.upsert("teleport", Decimal("1.5"))

        table = PriceTable.load(db_session)

        assert table.unit_price_for("api_call") == Decimal("0.002")
        assert table.unit_price_for("teleport") == Decimal("1.5")
        assert table.unit_price_for("email_sent") == Decimal("0.001")

    def test_upsert_updates_existing_row(self, db_session) -> None:
        repo = UsagePriceRepository(db_session)
        repo.upsert("api_call", Decimal("0.002"))
        repo.upsert("api_call", Decimal("0.003"))

        rows = repo.get_all()
        assert len(rows) == 1
        assert Decimal(str(rows[0].unit_price)) == Decimal("0.003")
