from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


@dataclass(frozen=True)
class Token:
    chain_id: int
    address: str
    decimals: int
    symbol: str | None = None

    @property
    def key(self) -> str:
        return self.address.lower()

    def sorts_before(self, other: "Token") -> bool:
        if self.chain_id != other.chain_id:
            raise ValueError("Tokens must be on the same chain.")
        if self.key == other.key:
            raise ValueError("Tokens must have different addresses.")
        return self.key < other.key


def sort_tokens(token_a: Token, token_b: Token) -> tuple[Token, Token]:
    if token_a.sorts_before(token_b):
        return token_a, token_b
    return token_b, token_a


@dataclass(frozen=True)
class TokenAmount:
    token: Token
    raw: int


def try_parse_amount(value: str | None, token: Token) -> TokenAmount | None:
    if not value:
        return None
    try:
        scaled = Decimal(str(value)) * (Decimal(10) ** token.decimals)
        raw = int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        return None
    if raw == 0:
        return None
    return TokenAmount(token=token, raw=raw)
