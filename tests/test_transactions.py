"""
Transaction processor tests

Buy and sell flows against both store backends.
"""

import threading
from decimal import Decimal

import pytest

from config import Settings
from exceptions import InsufficientStockError, NotFoundError, ValidationError
from models import TransactionType
from repositories import InMemoryLedgerStore, SqlLedgerStore
from services import CurrencyService, TransactionProcessor


class TestProcessBuy:
    """Buying currency"""

    def test_weighted_average_after_two_buys(self, processor, store, usd):
        processor.process_buy(usd.id, "100", "80.00")
        processor.process_buy(usd.id, "50", "83.00")

        position = store.get_position(usd.id)
        assert position.amount == Decimal("150")
        assert position.avg_buy_price == Decimal("81.00")
        assert position.total_value == Decimal("12150")

    def test_first_buy_replaces_seed_average(self, processor, store, usd):
        """The creation rate only seeds the average until something is held"""
        processor.process_buy(usd.id, "10", "82.50")

        position = store.get_position(usd.id)
        assert position.avg_buy_price == Decimal("82.50")

    def test_records_buy_transaction(self, processor, usd, clock):
        tx = processor.process_buy(usd.id, "100", "80.00", notes="  counter 2  ")

        assert tx.id is not None
        assert tx.type == TransactionType.BUY
        assert tx.amount == Decimal("100")
        assert tx.rate == Decimal("80.00")
        assert tx.total == Decimal("8000.00")
        assert tx.profit == Decimal("0")
        assert tx.notes == "counter 2"
        assert tx.created_at == clock.now

    def test_blank_notes_stored_as_none(self, processor, usd):
        tx = processor.process_buy(usd.id, "1", "80", notes="   ")
        assert tx.notes is None

    def test_buy_does_not_touch_daily_stat_by_default(self, processor, stats_service, usd):
        processor.process_buy(usd.id, "100", "80")
        assert stats_service.get_today_stat() is None

    def test_buy_counted_when_enabled(self, store, clock, usd):
        settings = Settings(_env_file=None, count_buys_in_daily_stat=True)
        processor = TransactionProcessor(store, settings, clock=clock)

        processor.process_buy(usd.id, "100", "80")
        processor.process_buy(usd.id, "5", "81")

        stat = store.get_daily_stat("2026-03-14")
        assert stat.transaction_count == 2
        assert stat.profit == Decimal("0")

    def test_unknown_currency(self, processor):
        with pytest.raises(NotFoundError) as exc_info:
            processor.process_buy(999, "1", "80")
        assert exc_info.value.entity == "Currency"

    @pytest.mark.parametrize("amount,rate,field", [
        ("0", "80", "amount"),
        ("-3", "80", "amount"),
        ("10", "0", "rate"),
        ("10", "abc", "rate"),
        (None, "80", "amount"),
    ])
    def test_invalid_input_rejected(self, processor, store, usd, amount, rate, field):
        with pytest.raises(ValidationError) as exc_info:
            processor.process_buy(usd.id, amount, rate)

        assert exc_info.value.field == field
        assert store.list_transactions() == []
        assert store.get_position(usd.id).amount == Decimal("0")


class TestProcessSell:
    """Selling currency"""

    def test_sell_keeps_average_and_realizes_profit(self, processor, store, usd):
        processor.process_buy(usd.id, "100", "80.00")

        tx = processor.process_sell(usd.id, "40", "90.00")

        position = store.get_position(usd.id)
        assert position.amount == Decimal("60")
        assert position.avg_buy_price == Decimal("80.00")
        assert position.total_value == Decimal("4800.00")
        assert tx.type == TransactionType.SELL
        assert tx.profit == Decimal("400.00")
        assert tx.total == Decimal("3600.00")

    def test_sell_at_loss(self, processor, usd):
        processor.process_buy(usd.id, "100", "80.00")
        tx = processor.process_sell(usd.id, "10", "78.50")
        assert tx.profit == Decimal("-15.00")

    def test_oversell_leaves_holdings_unchanged(self, processor, store, stats_service, usd):
        processor.process_buy(usd.id, "100", "80.00")
        processor.process_sell(usd.id, "40", "90.00")
        before = store.get_position(usd.id)

        with pytest.raises(InsufficientStockError) as exc_info:
            processor.process_sell(usd.id, "100", "95.00")

        assert exc_info.value.available == Decimal("60")
        after = store.get_position(usd.id)
        assert after.amount == before.amount == Decimal("60")
        assert after.avg_buy_price == before.avg_buy_price
        assert len(store.list_transactions()) == 2
        assert stats_service.get_today_stat().transaction_count == 1

    def test_sell_everything(self, processor, store, usd):
        processor.process_buy(usd.id, "25", "80")
        processor.process_sell(usd.id, "25", "82")

        position = store.get_position(usd.id)
        assert position.amount == Decimal("0")
        assert position.total_value == Decimal("0")

    def test_sell_with_nothing_held(self, processor, store, usd):
        with pytest.raises(InsufficientStockError) as exc_info:
            processor.process_sell(usd.id, "1", "85")

        assert exc_info.value.available == Decimal("0")
        assert exc_info.value.requested == Decimal("1")
        assert store.list_transactions() == []
        assert store.get_position(usd.id).amount == Decimal("0")

    def test_sell_without_position(self, processor):
        with pytest.raises(NotFoundError) as exc_info:
            processor.process_sell(42, "1", "80")
        assert exc_info.value.entity == "InventoryPosition"

    def test_sell_invalid_rate(self, processor, usd):
        processor.process_buy(usd.id, "10", "80")
        with pytest.raises(ValidationError):
            processor.process_sell(usd.id, "1", "-80")


class TestDailyStat:
    """Profit aggregation per day"""

    def test_profit_is_sum_of_sells(self, processor, stats_service, usd):
        processor.process_buy(usd.id, "100", "80.00")
        profits = [
            processor.process_sell(usd.id, amount, rate).profit
            for amount, rate in [("10", "85.00"), ("20", "79.00"), ("5", "80.25")]
        ]

        stat = stats_service.get_today_stat()
        assert stat.profit == sum(profits)
        assert stat.profit == Decimal("50.00") - Decimal("20.00") + Decimal("1.25")
        assert stat.transaction_count == 3

    def test_sells_split_by_date(self, processor, stats_service, usd, clock):
        processor.process_buy(usd.id, "100", "80")
        processor.process_sell(usd.id, "10", "81")
        clock.advance(days=1)
        processor.process_sell(usd.id, "10", "82")

        assert stats_service.get_stat("2026-03-14").profit == Decimal("10")
        assert stats_service.get_stat("2026-03-15").profit == Decimal("20")
        assert stats_service.get_stat("2026-03-15").transaction_count == 1


class TestPartialFailure:
    """A failure inside the unit of work leaves no partial write"""

    def test_failed_transaction_insert_rolls_back_position(self, processor, store, usd, monkeypatch):
        processor.process_buy(usd.id, "100", "80")

        def fail(transaction):
            raise RuntimeError("write failed")

        monkeypatch.setattr(store, "add_transaction", fail)

        with pytest.raises(RuntimeError):
            processor.process_sell(usd.id, "40", "90")

        monkeypatch.undo()
        assert store.get_position(usd.id).amount == Decimal("100")
        assert store.get_daily_stat("2026-03-14") is None


class TestQueriesAndCorrections:
    """Listing and administrative edits"""

    def test_list_newest_first(self, processor, currency_service, usd, clock):
        eur = currency_service.create_currency("EUR", "Euro", "European Union", "90.12").currency
        first = processor.process_buy(usd.id, "10", "80")
        clock.advance(minutes=5)
        second = processor.process_buy(eur.id, "10", "90")
        clock.advance(minutes=5)
        third = processor.process_sell(usd.id, "5", "81")

        assert [tx.id for tx in processor.list_transactions()] == [third.id, second.id, first.id]
        assert [tx.id for tx in processor.list_transactions(currency_id=usd.id)] == [third.id, first.id]
        assert [tx.id for tx in processor.list_transactions(limit=1)] == [third.id]

    def test_update_recomputes_total_only(self, processor, store, usd):
        tx = processor.process_buy(usd.id, "100", "80")

        updated = processor.update_transaction(tx.id, amount="90", notes="typo fixed")

        assert updated.amount == Decimal("90")
        assert updated.total == Decimal("7200")
        assert updated.notes == "typo fixed"
        assert store.get_position(usd.id).amount == Decimal("100")

    def test_update_profit(self, processor, usd):
        processor.process_buy(usd.id, "100", "80")
        sell = processor.process_sell(usd.id, "10", "90")

        updated = processor.update_transaction(sell.id, profit="95.5")
        assert processor.get_transaction(sell.id).profit == Decimal("95.5")
        assert updated.total == sell.total

    def test_delete_leaves_aggregates(self, processor, store, stats_service, usd):
        processor.process_buy(usd.id, "100", "80")
        sell = processor.process_sell(usd.id, "10", "90")

        processor.delete_transaction(sell.id)

        assert len(processor.list_transactions()) == 1
        assert store.get_position(usd.id).amount == Decimal("90")
        assert stats_service.get_today_stat().profit == Decimal("100")

    def test_missing_transaction(self, processor):
        with pytest.raises(NotFoundError):
            processor.get_transaction(404)
        with pytest.raises(NotFoundError):
            processor.update_transaction(404, notes="x")
        with pytest.raises(NotFoundError):
            processor.delete_transaction(404)


class TestConcurrentSells:
    """Sells racing on one currency never oversell"""

    THREADS = 25

    @pytest.fixture(params=["memory", "sql"])
    def shared_store(self, request):
        if request.param == "memory":
            return InMemoryLedgerStore()
        return SqlLedgerStore(request.getfixturevalue("file_engine"))

    def test_parallel_sells_stop_at_zero(self, shared_store, settings, clock):
        currency = CurrencyService(shared_store, settings, clock=clock).create_currency(
            "USD", "US Dollar", "United States", "83.45"
        ).currency
        processor = TransactionProcessor(shared_store, settings, clock=clock)
        processor.process_buy(currency.id, "100", "80")

        barrier = threading.Barrier(self.THREADS)
        sold, rejected, unexpected = [], [], []
        lock = threading.Lock()

        def sell():
            barrier.wait()
            try:
                tx = processor.process_sell(currency.id, "10", "90")
            except InsufficientStockError:
                outcome, bucket = None, rejected
            except Exception as e:
                outcome, bucket = e, unexpected
            else:
                outcome, bucket = tx, sold
            with lock:
                bucket.append(outcome)

        threads = [threading.Thread(target=sell) for _ in range(self.THREADS)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert unexpected == []
        assert len(sold) == 10
        assert len(rejected) == self.THREADS - 10
        assert shared_store.get_position(currency.id).amount == Decimal("0")
        stat = shared_store.get_daily_stat("2026-03-14")
        assert stat.transaction_count == len(sold)
        assert stat.profit == Decimal("1000")
        assert len(shared_store.list_transactions(currency_id=currency.id)) == 11
