from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value in (None, "", "NaN"):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return None


@dataclass(frozen=True)
class TokenTransfer:
    """One token movement inside an indexed transaction."""

    mint: str
    from_user_account: Optional[str]
    to_user_account: Optional[str]
    token_amount: Decimal

    @classmethod
    def from_payload(cls, item: Dict[str, Any]) -> Optional["TokenTransfer"]:
        mint = item.get("mint")
        amount = _to_decimal(item.get("tokenAmount"))
        if not mint or amount is None:
            return None
        return cls(
            mint=str(mint),
            from_user_account=item.get("fromUserAccount") or None,
            to_user_account=item.get("toUserAccount") or None,
            token_amount=amount,
        )


@dataclass(frozen=True)
class IndexedTransaction:
    signature: str
    timestamp: int
    token_transfers: List[TokenTransfer] = field(default_factory=list)

    @classmethod
    def from_payload(cls, item: Dict[str, Any]) -> Optional["IndexedTransaction"]:
        signature = item.get("signature")
        if not signature:
            return None
        try:
            timestamp = int(item.get("timestamp") or 0)
        except (TypeError, ValueError):
            timestamp = 0

        transfers: List[TokenTransfer] = []
        for raw in item.get("tokenTransfers") or []:
            if not isinstance(raw, dict):
                continue
            parsed = TokenTransfer.from_payload(raw)
            if parsed is not None:
                transfers.append(parsed)
        return cls(signature=str(signature), timestamp=timestamp, token_transfers=transfers)


@dataclass(frozen=True)
class Transfer:
    """An enriched transfer of the watched token, as persisted and announced."""

    signature: str
    from_address: str
    to_address: str
    amount: Decimal
    timestamp: int
    wallet_balance_at_time: Decimal
    sol_price: Decimal
    token_price: Decimal

    @property
    def usd_value(self) -> Decimal:
        return self.amount * self.token_price

    def is_sell(self, wallet: str) -> bool:
        return self.from_address == wallet
