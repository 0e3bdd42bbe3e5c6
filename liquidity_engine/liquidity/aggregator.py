"""
Liquidity Aggregator

Computes a running balance for every account as its opening balance plus
the signed sum of the transactions that name it, and splits accounts into
liquid (primary operating bank account, cash) and illiquid (investments).

SIGN RULES (per account):
- income credits the account it names
- expense and savings debit the account they name; savings also credits
  its destination when one is named (the institution holding a goal)
- transfer and withdrawal debit the source and credit the destination
- a withdrawal from a saving goal held at no institution only credits its
  destination, mirroring the one-leg contribution

Transactions naming a missing or unknown account are booked against the
cash bucket, so every transaction lands somewhere. Balances are plain sums
and therefore independent of transaction order.

Investment accounts are valued by the valuation engine instead: holdings
at market price less withdrawals recorded against the account.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional

from liquidity_engine.errors import PrimaryAccountConflictError
from liquidity_engine.liquidity.valuation import PriceMap, account_value, withdrawals_from
from liquidity_engine.models.ledger import (
    Account,
    AccountType,
    Transaction,
    TransactionDirection,
)
from liquidity_engine.models.liquidity import AccountBalance


LIQUID_TYPES = (AccountType.CASH,)

CREDITS_SOURCE = (TransactionDirection.INCOME,)
DEBITS_SOURCE = (TransactionDirection.EXPENSE,)


class LiquidityAggregator:
    """
    Aggregates ledger flow into per-account balances.

    Args:
        cash_account_id: Bucket for transactions with missing/unknown accounts
        primary_account_id: Fallback primary operating account when no
            account carries the is_primary flag
    """

    def __init__(self, cash_account_id: str = "cash", primary_account_id: Optional[str] = None):
        self._cash_account_id = cash_account_id
        self._primary_account_id = primary_account_id

    @property
    def cash_account_id(self) -> str:
        return self._cash_account_id

    def _with_cash_bucket(self, accounts: Iterable[Account]) -> dict[str, Account]:
        index = {a.id: a for a in accounts}
        if self._cash_account_id not in index:
            index[self._cash_account_id] = Account(
                id=self._cash_account_id,
                name="Cash in Hand",
                account_type=AccountType.CASH,
            )
        return index

    def primary_account(self, accounts: Iterable[Account]) -> Optional[Account]:
        """
        The single primary operating account, if any.

        Raises:
            PrimaryAccountConflictError: more than one account is flagged primary
        """
        accounts = list(accounts)
        flagged = [a for a in accounts if a.is_primary]
        if len(flagged) > 1:
            raise PrimaryAccountConflictError(
                f"Only one primary operating account allowed, found {[a.id for a in flagged]}"
            )
        if flagged:
            return flagged[0]
        for account in accounts:
            if account.id == self._primary_account_id and not account.is_investment:
                return account
        return None

    def signed_flows(self, transaction: Transaction) -> list[tuple[Optional[str], Decimal]]:
        """(account id, signed amount) pairs for one transaction, before bucketing."""
        amount = transaction.amount
        source = transaction.source_account_id
        if transaction.direction in CREDITS_SOURCE:
            return [(source, amount)]
        if transaction.direction in DEBITS_SOURCE:
            return [(source, -amount)]
        if transaction.direction == TransactionDirection.SAVINGS:
            destination = transaction.destination_account_id
            if destination is None:
                return [(source, -amount)]
            return [(source, -amount), (destination, amount)]
        if (
            transaction.direction == TransactionDirection.WITHDRAWAL
            and source is None
            and transaction.saving_goal_id is not None
        ):
            return [(transaction.destination_account_id, amount)]
        return [(source, -amount), (transaction.destination_account_id, amount)]

    def balances(
        self,
        accounts: Iterable[Account],
        transactions: Iterable[Transaction],
        latest_prices: Optional[PriceMap] = None,
    ) -> dict[str, AccountBalance]:
        """
        Balance of every account, plus the cash bucket.

        Args:
            accounts: Registered accounts
            transactions: The ledger (order does not matter)
            latest_prices: Symbol -> MarketPrice, for investment accounts

        Returns:
            account id -> AccountBalance
        """
        index = self._with_cash_bucket(accounts)
        transactions = list(transactions)
        primary = self.primary_account(index.values())
        latest_prices = latest_prices or {}

        flows: dict[str, Decimal] = defaultdict(Decimal)
        for txn in transactions:
            for account_id, delta in self.signed_flows(txn):
                if account_id is None or account_id not in index:
                    account_id = self._cash_account_id
                flows[account_id] += delta

        result: dict[str, AccountBalance] = {}
        for account in index.values():
            is_primary = primary is not None and account.id == primary.id
            if account.is_investment:
                withdrawn = withdrawals_from(account.id, transactions)
                result[account.id] = AccountBalance(
                    account_id=account.id,
                    name=account.name,
                    account_type=account.account_type,
                    opening_balance=account.opening_balance,
                    flow=-withdrawn,
                    balance=account_value(account, latest_prices, transactions),
                    is_liquid=False,
                )
                continue

            flow = flows.get(account.id, Decimal("0"))
            result[account.id] = AccountBalance(
                account_id=account.id,
                name=account.name,
                account_type=account.account_type,
                opening_balance=account.opening_balance,
                flow=flow,
                balance=account.opening_balance + flow,
                is_liquid=is_primary or account.account_type in LIQUID_TYPES,
                is_primary=is_primary,
            )
        return result

    @staticmethod
    def liquid_funds(balances: dict[str, AccountBalance]) -> Decimal:
        return sum((b.balance for b in balances.values() if b.is_liquid), Decimal("0"))

    @staticmethod
    def portfolio_value(balances: dict[str, AccountBalance]) -> Decimal:
        return sum(
            (b.balance for b in balances.values() if b.account_type == AccountType.INVESTMENT),
            Decimal("0"),
        )
