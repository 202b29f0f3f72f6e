"""
Holdings and their valuation against current market prices.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional

from shared.errors import InvalidArgumentError
from shared.logging import get_logger

from ..market_data.models import MarketRecord

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..market_data.service import MarketDataGateway


@dataclass(frozen=True)
class Holding:
    """A position the user recorded: how much of a coin and at what price."""

    id: str
    symbol: str
    name: str
    amount: float
    purchase_price: float
    date_added: str

    @classmethod
    def create(
        cls,
        symbol: str,
        amount: float,
        purchase_price: float,
        *,
        name: Optional[str] = None,
        holding_id: Optional[str] = None,
        date_added: Optional[str] = None,
    ) -> "Holding":
        """Validate user input and build a new holding."""
        if symbol is not None and not isinstance(symbol, str):
            raise InvalidArgumentError("symbol must be a string", {"symbol": symbol})
        if name is not None and not isinstance(name, str):
            raise InvalidArgumentError("name must be a string", {"name": name})
        symbol = (symbol or "").strip().upper()
        if not symbol:
            raise InvalidArgumentError("symbol must be a non-empty string")
        amount = _as_float(amount, "amount")
        purchase_price = _as_float(purchase_price, "purchase_price")
        if amount <= 0:
            raise InvalidArgumentError("amount must be > 0", {"amount": amount})
        if purchase_price < 0:
            raise InvalidArgumentError("purchase_price must be >= 0", {"purchase_price": purchase_price})

        return cls(
            id=holding_id or uuid.uuid4().hex,
            symbol=symbol,
            name=(name or "").strip() or symbol,
            amount=amount,
            purchase_price=purchase_price,
            date_added=date_added or datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )

    def with_changes(self, **changes: Any) -> "Holding":
        """Return an edited copy; id and date_added are preserved."""
        changes.pop("id", None)
        changes.pop("date_added", None)
        merged = {
            "symbol": self.symbol,
            "amount": self.amount,
            "purchase_price": self.purchase_price,
            "name": self.name,
        }
        merged.update(changes)
        return Holding.create(
            merged["symbol"],
            merged["amount"],
            merged["purchase_price"],
            name=merged["name"],
            holding_id=self.id,
            date_added=self.date_added,
        )

    @property
    def cost_basis(self) -> float:
        return self.amount * self.purchase_price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "amount": self.amount,
            "purchase_price": self.purchase_price,
            "date_added": self.date_added,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Holding":
        """Rehydrate a holding from persisted JSON state."""
        return cls.create(
            payload["symbol"],
            payload["amount"],
            payload["purchase_price"],
            name=payload.get("name"),
            holding_id=str(payload["id"]) if payload.get("id") is not None else None,
            date_added=payload.get("date_added"),
        )


@dataclass(frozen=True)
class HoldingValuation:
    holding: Holding
    current_price: float
    current_value: float
    cost_basis: float
    profit_loss: float
    profit_loss_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "holding": self.holding.to_dict(),
            "current_price": self.current_price,
            "current_value": self.current_value,
            "cost_basis": self.cost_basis,
            "profit_loss": self.profit_loss,
            "profit_loss_percentage": self.profit_loss_percentage,
        }


@dataclass(frozen=True)
class PortfolioSummary:
    valuations: List[HoldingValuation] = field(default_factory=list)
    total_value: float = 0.0
    total_cost: float = 0.0
    total_profit_loss: float = 0.0
    total_profit_loss_percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valuations": [valuation.to_dict() for valuation in self.valuations],
            "total_value": self.total_value,
            "total_cost": self.total_cost,
            "total_profit_loss": self.total_profit_loss,
            "total_profit_loss_percentage": self.total_profit_loss_percentage,
        }


def _as_float(value: Any, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"{name} must be a number", {name: value}) from None
    if not math.isfinite(number):
        raise InvalidArgumentError(f"{name} must be a finite number", {name: value})
    return number


def _percentage(profit_loss: float, cost_basis: float) -> float:
    return (profit_loss / cost_basis) * 100 if cost_basis > 0 else 0.0


def value_holding(holding: Holding, prices: Mapping[str, float]) -> HoldingValuation:
    """Value a holding at current prices. Unpriced symbols are valued at zero."""
    current_price = prices.get(holding.symbol) or 0.0
    current_value = holding.amount * current_price
    cost_basis = holding.cost_basis
    profit_loss = current_value - cost_basis
    return HoldingValuation(
        holding=holding,
        current_price=current_price,
        current_value=current_value,
        cost_basis=cost_basis,
        profit_loss=profit_loss,
        profit_loss_percentage=_percentage(profit_loss, cost_basis),
    )


def summarize_portfolio(holdings: Iterable[Holding], prices: Mapping[str, float]) -> PortfolioSummary:
    """Value every holding and aggregate the totals."""
    valuations = [value_holding(holding, prices) for holding in holdings]
    total_value = sum(v.current_value for v in valuations)
    total_cost = sum(v.cost_basis for v in valuations)
    total_profit_loss = total_value - total_cost
    return PortfolioSummary(
        valuations=valuations,
        total_value=total_value,
        total_cost=total_cost,
        total_profit_loss=total_profit_loss,
        total_profit_loss_percentage=_percentage(total_profit_loss, total_cost),
    )


def prices_from_market(records: Iterable[MarketRecord]) -> Dict[str, float]:
    """Map upper-case symbol to current price.

    Several coins can share a ticker; the first (highest market cap) wins.
    """
    prices: Dict[str, float] = {}
    for record in records:
        if record.current_price is None or not record.symbol:
            continue
        prices.setdefault(record.symbol.upper(), record.current_price)
    return prices


class PortfolioValuator:
    """Values holdings using prices from the market data gateway."""

    def __init__(self, gateway: "MarketDataGateway", *, pages: int = 1, page_size: int = 250):
        if pages < 1:
            raise InvalidArgumentError("pages must be >= 1", {"pages": pages})
        self.gateway = gateway
        self.pages = pages
        self.page_size = page_size
        self.logger = get_logger("gateway.portfolio")

    async def current_prices(self) -> Dict[str, float]:
        records: List[MarketRecord] = []
        for page in range(1, self.pages + 1):
            records.extend(await self.gateway.get_market_list(page, self.page_size))
        return prices_from_market(records)

    async def value(self, holdings: Iterable[Holding]) -> PortfolioSummary:
        holdings = list(holdings)
        prices = await self.current_prices()
        missing = sorted({h.symbol for h in holdings if h.symbol not in prices})
        if missing:
            self.logger.warning("No market price for holdings", symbols=missing)
        return summarize_portfolio(holdings, prices)
