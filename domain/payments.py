"""
Domain: payment breakdown normalization.

Sales store their payment breakdown in one of two shapes:
- Structured: a list of {"method", "amount"} pairs (older rows use the keys
  "forma"/"valor"), either as jsonb or as a JSON-encoded string.
- Legacy text: free text such as "Voucher SEDUC R$ 100,00 + Cartão de Débito R$ 32,00".

`classify_payment_data` resolves a stored value into exactly one of the two
variants, and `normalize_payments` turns either variant into canonical
`PaymentEntry` values. Nothing downstream branches on the storage format.

Guarantees:
- Never raises on bad data: unparseable amounts become 0, unknown methods
  become "NÃO INFORMADO".
- Deterministic canonical names; idempotent on its own output.
- Duplicate methods inside one sale are kept; aggregation merges them.
"""

from __future__ import annotations

import json
import logging
import re
import unicodedata
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

NOT_INFORMED = "NÃO INFORMADO"
VOUCHER_SEDUC = "Voucher SEDUC"

_CENTS = Decimal("0.01")
_ZERO = Decimal("0.00")

# Folded (accent-free, lowercase, single-spaced) name -> canonical label.
METHOD_SYNONYMS: Mapping[str, str] = {
    "pix": "Pix",
    "dinheiro": "Dinheiro",
    "especie": "Dinheiro",
    "cartao credito": "Cartão de Crédito",
    "cartao de credito": "Cartão de Crédito",
    "credito": "Cartão de Crédito",
    "cartao debito": "Cartão de Débito",
    "cartao de debito": "Cartão de Débito",
    "debito": "Cartão de Débito",
    "voucher": VOUCHER_SEDUC,
    "voucher seduc": VOUCHER_SEDUC,
    "nao informado": NOT_INFORMED,
}

# Brazilian thousands grouping (1.234,56) first, then plain decimals (1234.56 / 100,00).
_NUMBER_RE = re.compile(r"\d{1,3}(?:\.\d{3})+(?:,\d+)?|\d+(?:[.,]\d+)?")
_THOUSANDS_ONLY_RE = re.compile(r"\d{1,3}(?:\.\d{3})+")
_CURRENCY_AMOUNT_RE = re.compile(r"R\$\s*[\d.,]+", re.IGNORECASE)
_CURRENCY_MARKER_RE = re.compile(r"R\$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class PaymentEntry:
    """One part of a sale's payment breakdown."""

    method: str
    amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {"method": self.method, "amount": float(self.amount)}


@dataclass(frozen=True, slots=True)
class StructuredPayments:
    entries: Tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class LegacyPaymentText:
    text: str


PaymentData = Union[StructuredPayments, LegacyPaymentText]


def fold_method_name(name: Optional[str]) -> str:
    """Strip accents and punctuation, collapse whitespace and lowercase."""

    if not name:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(name))
    no_accents = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    alnum_only = re.sub(r"[^a-zA-Z0-9\s]", " ", no_accents)
    return re.sub(r"\s+", " ", alnum_only).strip().lower()


def canonical_method_name(name: Optional[str]) -> str:
    """
    Map a free-form payment method name to its canonical label.

    Example:
        canonical_method_name("  cartao de  CREDITO ")  # "Cartão de Crédito"
        canonical_method_name("transferência")          # "Transferencia"
        canonical_method_name("")                       # "NÃO INFORMADO"
    """

    folded = fold_method_name(name)
    if not folded:
        return NOT_INFORMED
    mapped = METHOD_SYNONYMS.get(folded)
    if mapped is not None:
        return mapped
    return " ".join(word[:1].upper() + word[1:] for word in folded.split(" "))


def parse_number(text: str) -> Decimal:
    """
    Parse one numeric literal in Brazilian or plain notation.

    "1.234,56" -> 1234.56, "100,00" -> 100.00, "1234.56" -> 1234.56,
    "1.234" -> 1234 (a dot followed by exactly three digits is a thousands separator).
    Returns 0 when the text is not a number.
    """

    literal = text.strip()
    if "," in literal:
        literal = literal.replace(".", "").replace(",", ".")
    elif _THOUSANDS_ONLY_RE.fullmatch(literal):
        literal = literal.replace(".", "")
    try:
        value = Decimal(literal)
    except InvalidOperation:
        return _ZERO
    return _clean_amount(value)


def _clean_amount(value: Decimal) -> Decimal:
    if not value.is_finite() or value < 0:
        return _ZERO
    try:
        return value.quantize(_CENTS)
    except InvalidOperation:
        # More digits than the decimal context holds.
        return _ZERO


def coerce_amount(value: Any) -> Decimal:
    """Best-effort conversion of a stored amount; anything unusable becomes 0."""

    if value is None or isinstance(value, bool):
        return _ZERO
    if isinstance(value, Decimal):
        return _clean_amount(value)
    if isinstance(value, (int, float)):
        try:
            return _clean_amount(Decimal(str(value)))
        except InvalidOperation:
            return _ZERO
    text = str(value).strip()
    if not text:
        return _ZERO
    try:
        return _clean_amount(Decimal(text))
    except InvalidOperation:
        matches = _NUMBER_RE.findall(text)
        return parse_number(matches[-1]) if matches else _ZERO


def parse_legacy_token(token: str) -> PaymentEntry:
    """
    Parse one "+"-separated piece of a legacy payment string.

    The last number in the token is the amount; the rest, minus currency markers
    and digits, is the method name.
    """

    text = token.strip()
    matches = _NUMBER_RE.findall(text)
    amount = parse_number(matches[-1]) if matches else _ZERO

    name = _CURRENCY_AMOUNT_RE.sub(" ", text)
    name = _NUMBER_RE.sub(" ", name)
    name = _CURRENCY_MARKER_RE.sub(" ", name)
    name = re.sub(r"[+\-]", " ", name)
    name = re.sub(r"\s+", " ", name).strip()

    if not name:
        name = text.split("R$")[0].strip() or text

    return PaymentEntry(method=canonical_method_name(name), amount=amount)


def classify_payment_data(raw: Any) -> PaymentData:
    """Resolve a stored payment value into its structured or legacy-text variant."""

    if raw is None:
        return StructuredPayments(entries=())
    if isinstance(raw, (PaymentEntry, Mapping)):
        return StructuredPayments(entries=(raw,))
    if isinstance(raw, (list, tuple)):
        return StructuredPayments(entries=tuple(raw))

    text = str(raw).strip()
    if not text:
        return StructuredPayments(entries=())

    if text[0] in "[{":
        try:
            decoded = json.loads(text)
        except ValueError:
            decoded = None
        if isinstance(decoded, list):
            return StructuredPayments(entries=tuple(decoded))
        if isinstance(decoded, dict):
            return StructuredPayments(entries=(decoded,))

    return LegacyPaymentText(text=text)


def _entry_from_structured(item: Any) -> List[PaymentEntry]:
    if isinstance(item, PaymentEntry):
        return [PaymentEntry(method=canonical_method_name(item.method), amount=coerce_amount(item.amount))]
    if isinstance(item, Mapping):
        method = item.get("method") or item.get("forma") or item.get("form") or ""
        amount = item.get("amount", item.get("valor"))
        return [PaymentEntry(method=canonical_method_name(str(method).strip()), amount=coerce_amount(amount))]
    if isinstance(item, str):
        return [parse_legacy_token(token) for token in item.split("+") if token.strip()]

    logger.warning(
        "Unreadable payment entry coerced to NÃO INFORMADO",
        extra={"raw_value": repr(item)[:100]},
    )
    return [PaymentEntry(method=NOT_INFORMED, amount=_ZERO)]


def normalize_payments(raw: Any) -> List[PaymentEntry]:
    """
    Normalize any stored payment representation into canonical entries.

    Example:
        normalize_payments("Pix R$ 30,00 + Dinheiro R$ 20,00")
        # [PaymentEntry("Pix", Decimal("30.00")), PaymentEntry("Dinheiro", Decimal("20.00"))]
    """

    data = classify_payment_data(raw)

    if isinstance(data, LegacyPaymentText):
        return [parse_legacy_token(token) for token in data.text.split("+") if token.strip()]

    entries: List[PaymentEntry] = []
    for item in data.entries:
        entries.extend(_entry_from_structured(item))
    return entries


def total_paid(entries: List[PaymentEntry]) -> Decimal:
    return sum((entry.amount for entry in entries), _ZERO)


__all__ = [
    "NOT_INFORMED",
    "VOUCHER_SEDUC",
    "METHOD_SYNONYMS",
    "PaymentEntry",
    "StructuredPayments",
    "LegacyPaymentText",
    "fold_method_name",
    "canonical_method_name",
    "parse_number",
    "coerce_amount",
    "parse_legacy_token",
    "classify_payment_data",
    "normalize_payments",
    "total_paid",
]
