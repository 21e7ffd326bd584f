"""
Address value object - a wallet identifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from string import hexdigits

MAX_HEX_DIGITS = 40


@dataclass(frozen=True, eq=False)
class Address:
    """
    Hexadecimal wallet address.

    Business rules:
    - Optional '0x' prefix followed by 1-40 hex digits
    - Case-insensitive: two addresses are equal iff they are equal after lowercasing
    - Keeps the spelling it was created with (checksummed addresses stay readable)
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value:
            raise ValueError("Wallet address cannot be empty")

        digits = self.value[2:] if self.value[:2].lower() == "0x" else self.value
        if not digits or len(digits) > MAX_HEX_DIGITS:
            raise ValueError(f"Invalid wallet address length: {len(digits)}")
        if not all(character in hexdigits for character in digits):
            raise ValueError(f"Wallet address contains invalid characters: {self.value!r}")

    @classmethod
    def parse(cls, value: str | Address) -> Address:
        return value if isinstance(value, Address) else cls(value.strip())

    @property
    def normalized(self) -> str:
        return self.value.lower()

    def truncated(self) -> str:
        """Short form used in page headers, e.g. '0x246f...BF1C'."""
        if len(self.value) <= 12:
            return self.value
        return f"{self.value[:6]}...{self.value[-4:]}"

    def __str__(self) -> str:
        return self.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self.normalized == other.normalized

    def __hash__(self) -> int:
        return hash(self.normalized)
