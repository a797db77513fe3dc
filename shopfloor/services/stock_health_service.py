from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_FLOOR
from enum import Enum

from shopfloor.services.text_utils import code_sort_key

Quantity = int | Decimal


class StockHealth(str, Enum):
    CRITICAL = 'critical'
    INSUFFICIENT = 'insufficient'
    LOW = 'low'
    HIGH_BUT_NEEDED = 'highButNeeded'
    EXCESS = 'excess'
    HEALTHY = 'healthy'

    @property
    def label(self) -> str:
        return _HEALTH_COPY[self][0]

    @property
    def description(self) -> str:
        return _HEALTH_COPY[self][1]


_HEALTH_COPY: dict[StockHealth, tuple[str, str]] = {
    StockHealth.CRITICAL: ('Critical', 'Out of stock - immediate action required'),
    StockHealth.INSUFFICIENT: ('Insufficient', 'Stock + incoming orders insufficient to meet demand'),
    StockHealth.LOW: ('Low Stock', 'Below reorder level - replenish soon'),
    StockHealth.HIGH_BUT_NEEDED: ('High but Needed', 'Stock is high but required for active orders'),
    StockHealth.HEALTHY: ('Healthy', 'Stock levels are optimal'),
    StockHealth.EXCESS: ('Overstocked', 'Stock levels are high - consider adjusting orders'),
}

# Reorder-level multiple above which stock counts as high.
EXCESS_MULTIPLIER = 3


@dataclass(frozen=True)
class StockPositionInput:
    current_stock: Quantity | None = 0
    reorder_level: Quantity | None = 0
    on_order: Quantity | None = 0
    required: Quantity | None = 0


@dataclass(frozen=True)
class StockPosition:
    health: StockHealth
    current_stock: Quantity
    reorder_level: Quantity
    on_order: Quantity
    required: Quantity
    projected_stock_after_orders: Quantity
    current_shortage: Quantity
    shortfall_after_orders: Quantity
    is_projected_low: bool
    is_projected_negative: bool


@dataclass(frozen=True)
class InventoryLevel:
    component_id: int
    internal_code: str | None
    description: str | None
    quantity_on_hand: int
    reorder_level: int
    location: str | None = None


@dataclass(frozen=True)
class LowStockAlert:
    level: InventoryLevel
    health: StockHealth


@dataclass(frozen=True)
class TransactionInput:
    quantity: int | None
    transaction_date: datetime


@dataclass(frozen=True)
class UsageStats:
    lookback_days: int
    total_used: int
    avg_daily_usage: Decimal
    avg_weekly_usage: Decimal
    days_until_stockout: int | None
    in_critical_window: bool


@dataclass(frozen=True)
class TransactionStats:
    total_transactions: int
    total_added: int
    total_removed: int
    recent_activity: int
    last_transaction: datetime | None


@dataclass(frozen=True)
class StockValuation:
    avg_price: Decimal
    stock_value: Decimal
    required_value: Decimal
    shortfall_value: Decimal


def _qty(value: Quantity | None) -> Quantity:
    return value if value is not None else 0


def classify_stock_health(
    current_stock: Quantity | None,
    reorder_level: Quantity | None,
    on_order: Quantity | None,
    required: Quantity | None,
) -> StockHealth:
    stock = _qty(current_stock)
    reorder = _qty(reorder_level)
    incoming = _qty(on_order)
    demand = _qty(required)

    if stock <= 0:
        return StockHealth.CRITICAL
    if stock + incoming < demand:
        return StockHealth.INSUFFICIENT
    if stock <= reorder:
        return StockHealth.LOW
    # With no reorder level set the high-stock rules never fire.
    is_high = reorder > 0 and stock > reorder * EXCESS_MULTIPLIER
    if is_high and demand > stock:
        return StockHealth.HIGH_BUT_NEEDED
    if is_high:
        return StockHealth.EXCESS
    return StockHealth.HEALTHY


def compute_stock_position(position: StockPositionInput) -> StockPosition:
    stock = _qty(position.current_stock)
    reorder = _qty(position.reorder_level)
    incoming = _qty(position.on_order)
    demand = _qty(position.required)

    projected = stock + incoming - demand
    return StockPosition(
        health=classify_stock_health(stock, reorder, incoming, demand),
        current_stock=stock,
        reorder_level=reorder,
        on_order=incoming,
        required=demand,
        projected_stock_after_orders=projected,
        current_shortage=max(demand - stock, 0),
        shortfall_after_orders=max(demand - stock - incoming, 0),
        is_projected_low=projected <= reorder,
        is_projected_negative=projected < 0,
    )


def compute_usage_stats(
    transactions: list[TransactionInput],
    *,
    current_stock: Quantity | None,
    as_of: datetime,
    lookback_days: int = 90,
    stockout_warning_days: int = 30,
) -> UsageStats:
    """
    Consumption rate over the lookback window, taken from outbound (negative) transactions.
    The average always divides by the full window so sparse usage is not inflated.
    """
    if lookback_days <= 0:
        raise ValueError('Lookback days must be greater than zero')
    window_start = as_of - timedelta(days=lookback_days)
    total_used = abs(
        sum(
            txn.quantity
            for txn in transactions
            if txn.quantity is not None and txn.quantity < 0 and txn.transaction_date >= window_start
        )
    )
    avg_daily = Decimal(total_used) / Decimal(lookback_days)
    avg_weekly = avg_daily * Decimal('7')

    days_until_stockout: int | None = None
    if avg_daily > 0:
        stock = Decimal(_qty(current_stock))
        days_until_stockout = int((stock / avg_daily).to_integral_value(rounding=ROUND_FLOOR))

    return UsageStats(
        lookback_days=lookback_days,
        total_used=total_used,
        avg_daily_usage=avg_daily.quantize(Decimal('0.0001')),
        avg_weekly_usage=avg_weekly.quantize(Decimal('0.0001')),
        days_until_stockout=days_until_stockout,
        in_critical_window=days_until_stockout is not None and days_until_stockout < stockout_warning_days,
    )


def summarize_transactions(
    transactions: list[TransactionInput],
    *,
    as_of: datetime,
    recent_days: int = 30,
) -> TransactionStats:
    recent_start = as_of - timedelta(days=recent_days)
    quantities = [txn.quantity or 0 for txn in transactions]
    ordered = sorted(transactions, key=lambda txn: txn.transaction_date)
    return TransactionStats(
        total_transactions=len(transactions),
        total_added=sum(qty for qty in quantities if qty > 0),
        total_removed=abs(sum(qty for qty in quantities if qty < 0)),
        recent_activity=sum(1 for txn in transactions if txn.transaction_date >= recent_start),
        last_transaction=ordered[-1].transaction_date if ordered else None,
    )


def compute_stock_valuation(
    *,
    current_stock: Quantity | None,
    on_order: Quantity | None,
    required: Quantity | None,
    prices: list[Decimal | None],
) -> StockValuation:
    known = [Decimal(price) for price in prices if price is not None]
    avg_price = sum(known, Decimal('0')) / Decimal(len(known)) if known else Decimal('0')
    stock = Decimal(_qty(current_stock))
    demand = Decimal(_qty(required))
    shortfall = max(demand - stock - Decimal(_qty(on_order)), Decimal('0'))
    cents = Decimal('0.01')
    return StockValuation(
        avg_price=avg_price.quantize(cents),
        stock_value=(stock * avg_price).quantize(cents),
        required_value=(demand * avg_price).quantize(cents),
        shortfall_value=(shortfall * avg_price).quantize(cents),
    )


def select_low_stock(levels: list[InventoryLevel]) -> list[LowStockAlert]:
    """Components at or under a positive reorder level, emptiest first."""
    alerts = [
        LowStockAlert(
            level=level,
            health=classify_stock_health(level.quantity_on_hand, level.reorder_level, 0, 0),
        )
        for level in levels
        if level.reorder_level > 0 and level.quantity_on_hand <= level.reorder_level
    ]
    alerts.sort(key=lambda alert: (alert.level.quantity_on_hand, code_sort_key(alert.level.internal_code)))
    return alerts
