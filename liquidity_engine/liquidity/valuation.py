"""
Valuation Engine

Converts investment holdings into money using the latest market price,
falling back to the purchase price when the feed has no quote for the
symbol. Price staleness is the feed's concern, not ours.
"""

from decimal import Decimal
from typing import Iterable, Mapping

from liquidity_engine.models.ledger import (
    Account,
    Holding,
    MarketPrice,
    Transaction,
    TransactionDirection,
)


PriceMap = Mapping[str, MarketPrice]


def price_map(prices: Iterable[MarketPrice]) -> dict[str, MarketPrice]:
    """Index a feed snapshot by symbol; later entries win."""
    return {p.symbol: p for p in prices}


def market_value(holding: Holding, latest_prices: PriceMap) -> Decimal:
    quote = latest_prices.get(holding.symbol)
    price = quote.price if quote is not None else holding.purchase_price
    return holding.quantity * price


def holdings_value(holdings: Iterable[Holding], latest_prices: PriceMap) -> Decimal:
    return sum((market_value(h, latest_prices) for h in holdings), Decimal("0"))


def withdrawals_from(account_id: str, transactions: Iterable[Transaction]) -> Decimal:
    return sum(
        (
            t.amount for t in transactions
            if t.direction == TransactionDirection.WITHDRAWAL
            and t.source_account_id == account_id
        ),
        Decimal("0"),
    )


def account_value(
    investment_account: Account,
    latest_prices: PriceMap,
    transactions: Iterable[Transaction] = (),
) -> Decimal:
    """Mark-to-market value of the holdings less what was withdrawn from the account."""
    return (
        holdings_value(investment_account.holdings, latest_prices)
        - withdrawals_from(investment_account.id, transactions)
    )
