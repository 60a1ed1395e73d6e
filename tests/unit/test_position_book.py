from __future__ import annotations

import threading

import pytest

from sentitrade.core.exceptions import (
    InvariantViolationError,
    PositionAlreadyOpenError,
    SizeTooSmallError,
    TradeAlreadyClosedError,
    TradeNotFoundError,
)
from sentitrade.core.types import CloseReason, Direction, RiskSettings, Symbol, TradeStatus
from sentitrade.execution.book import PositionBook

GOLD_RISK = RiskSettings(risk_percentage=1.0, stop_loss_distance=5.0)


def _open_gold(book: PositionBook, direction: Direction = Direction.LONG, entry: float = 2750.0):
    return book.open_trade(
        symbol=Symbol.XAUUSD,
        direction=direction,
        entry_price=entry,
        risk=GOLD_RISK,
        contract_size=100.0,
    )


def test_open_trade_sizes_from_balance() -> None:
    book = PositionBook(initial_balance=50_000.0)
    t = _open_gold(book)

    assert t.status is TradeStatus.OPEN
    assert t.lot_size == 1.0
    assert t.stop_loss_price == 2745.0
    assert t.risk_amount == pytest.approx(500.0)
    assert t.risk_percentage_at_open == 1.0
    assert book.open_trade_for(Symbol.XAUUSD) == t
    # Opening does not move the balance.
    assert book.ledger().balance == 50_000.0


def test_at_most_one_open_trade_per_symbol() -> None:
    book = PositionBook(initial_balance=50_000.0)
    _open_gold(book)

    with pytest.raises(PositionAlreadyOpenError):
        _open_gold(book, Direction.SHORT)
    assert len(book.open_trades()) == 1

    # A different symbol is independent.
    book.open_trade(
        symbol=Symbol.BTCUSD,
        direction=Direction.SHORT,
        entry_price=97_000.0,
        risk=RiskSettings(risk_percentage=1.0, stop_loss_distance=500.0),
        contract_size=1.0,
    )
    assert len(book.open_trades()) == 2


def test_position_already_open_is_an_invariant_violation() -> None:
    assert issubclass(PositionAlreadyOpenError, InvariantViolationError)


def test_close_credits_realized_pnl_exactly_once() -> None:
    book = PositionBook(initial_balance=50_000.0)
    t = _open_gold(book)

    pnl = book.close_trade(t.id, close_price=2744.0, reason=CloseReason.STOP_LOSS)
    assert pnl == pytest.approx(-600.0)
    assert book.ledger().balance == pytest.approx(49_400.0)

    with pytest.raises(TradeAlreadyClosedError):
        book.close_trade(t.id, close_price=2700.0, reason=CloseReason.REVERSAL)
    assert book.ledger().balance == pytest.approx(49_400.0)

    closed = book.get(t.id)
    assert closed is not None
    assert closed.status is TradeStatus.CLOSED
    assert closed.close_price == 2744.0
    assert closed.close_reason is CloseReason.STOP_LOSS
    assert closed.closed_at is not None
    assert book.open_trade_for(Symbol.XAUUSD) is None


def test_close_unknown_trade_is_not_found() -> None:
    book = PositionBook(initial_balance=50_000.0)
    with pytest.raises(TradeNotFoundError):
        book.close_trade("nope", close_price=1.0)


def test_size_too_small_leaves_book_untouched() -> None:
    book = PositionBook(initial_balance=100.0)
    with pytest.raises(SizeTooSmallError):
        _open_gold(book)
    assert book.all_trades() == []
    assert book.open_trade_for(Symbol.XAUUSD) is None


def test_non_positive_entry_price_rejected() -> None:
    book = PositionBook(initial_balance=50_000.0)
    with pytest.raises(ValueError):
        _open_gold(book, entry=0.0)


def test_balance_equals_initial_plus_realized() -> None:
    book = PositionBook(initial_balance=50_000.0)
    realized = 0.0
    for entry, exit_ in [(2750.0, 2760.0), (2760.0, 2755.0), (2755.0, 2755.5)]:
        t = _open_gold(book, entry=entry)
        realized += book.close_trade(t.id, close_price=exit_)
    ledger = book.ledger()
    assert ledger.balance == pytest.approx(50_000.0 + realized)
    assert ledger.balance == pytest.approx(50_000.0 + sum(t.realized_pnl or 0.0 for t in book.all_trades()))


def test_later_trades_size_from_updated_balance() -> None:
    book = PositionBook(initial_balance=50_000.0)
    t = _open_gold(book)
    book.close_trade(t.id, close_price=2700.0)  # -5000
    t2 = _open_gold(book)
    assert t2.risk_amount == pytest.approx(450.0)
    assert t2.lot_size == 0.9


def test_revalue_derives_equity_from_balance_and_floating() -> None:
    book = PositionBook(initial_balance=50_000.0)
    _open_gold(book)

    floating, equity = book.revalue({Symbol.XAUUSD: 2752.0})
    assert floating == pytest.approx(200.0)
    assert equity == pytest.approx(50_200.0)
    assert book.ledger().equity == pytest.approx(50_200.0)

    # No open trades: equity collapses to balance.
    book.close_trade(book.open_trades()[0].id, close_price=2752.0)
    floating, equity = book.revalue({Symbol.XAUUSD: 2800.0})
    assert floating == 0.0
    assert equity == pytest.approx(book.ledger().balance)


def test_trade_history_keeps_open_order() -> None:
    book = PositionBook(initial_balance=50_000.0)
    ids = []
    for _ in range(3):
        t = _open_gold(book)
        ids.append(t.id)
        book.close_trade(t.id, close_price=2750.0)
    assert [t.id for t in book.all_trades()] == ids


def test_racing_closes_settle_exactly_once() -> None:
    book = PositionBook(initial_balance=50_000.0)
    t = _open_gold(book)

    barrier = threading.Barrier(2)
    outcomes: list[str] = []
    lock = threading.Lock()

    def _close(price: float, reason: CloseReason) -> None:
        barrier.wait()
        try:
            book.close_trade(t.id, close_price=price, reason=reason)
            res = f"closed:{reason.value}"
        except TradeAlreadyClosedError:
            res = "rejected"
        with lock:
            outcomes.append(res)

    threads = [
        threading.Thread(target=_close, args=(2744.0, CloseReason.STOP_LOSS)),
        threading.Thread(target=_close, args=(2744.0, CloseReason.REVERSAL)),
    ]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert sorted(o.split(":")[0] for o in outcomes) == ["closed", "rejected"]
    assert book.ledger().balance == pytest.approx(49_400.0)


def test_racing_opens_leave_one_open_trade() -> None:
    book = PositionBook(initial_balance=50_000.0)
    barrier = threading.Barrier(8)
    errors: list[Exception] = []

    def _open() -> None:
        barrier.wait()
        try:
            _open_gold(book)
        except PositionAlreadyOpenError as e:
            errors.append(e)

    threads = [threading.Thread(target=_open) for _ in range(8)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert len(book.open_trades()) == 1
    assert len(errors) == 7


def test_mark_decision_run_is_stamped_in_ledger() -> None:
    book = PositionBook(initial_balance=50_000.0)
    assert book.ledger().last_decision_run_at is None
    book.mark_decision_run()
    assert book.ledger().last_decision_run_at is not None
    assert book.ledger().last_decision_run_at.tzinfo is not None


def test_initial_balance_must_be_positive() -> None:
    with pytest.raises(ValueError):
        PositionBook(initial_balance=0.0)
