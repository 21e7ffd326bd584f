"""
Wallet provider boundary.

A wallet can list its accounts and sign messages with them. Both calls can suspend for as long as the user
takes to click through the wallet's prompt.
"""

from typing import Protocol, Self

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

from shatranj.auth.address import Address
from shatranj.core.exceptions import UserRejectedError


class WalletProvider(Protocol):
    """What the login flow needs from a wallet (browser extension, hardware wallet, local key...)."""

    async def request_accounts(self) -> list[str]:
        """Addresses the user allows this page to see. Empty when the wallet is locked."""
        ...

    async def sign_message(self, address: str, message: bytes) -> str:
        """
        EIP-191 personal-sign `message` with the key of `address`. Returns the 0x-prefixed hex signature.

        Raises UserRejectedError when the user declines, WalletUnavailableError when the wallet went away.
        """
        ...


class LocalAccountWallet:
    """Wallet backed by a private key held in memory. For development and tests."""

    def __init__(
        self, account: LocalAccount, unlocked: bool = True, approve: bool = True
    ) -> None:
        self.account = account
        self.unlocked = unlocked
        self.approve = approve

    @classmethod
    def from_key(cls, private_key: str | bytes, **kwargs: bool) -> Self:
        return cls(Account.from_key(private_key), **kwargs)

    @classmethod
    def create(cls, **kwargs: bool) -> Self:
        """New wallet with a random key."""
        return cls(Account.create(), **kwargs)

    @property
    def address(self) -> str:
        return self.account.address

    async def request_accounts(self) -> list[str]:
        if not self.unlocked:
            return []
        return [self.account.address]

    async def sign_message(self, address: str, message: bytes) -> str:
        if Address(address) != Address(self.account.address):
            raise UserRejectedError(f"unknown account {address}")
        if not self.approve:
            raise UserRejectedError("User denied message signature.")
        signed = self.account.sign_message(encode_defunct(primitive=message))
        return "0x" + bytes(signed.signature).hex()
