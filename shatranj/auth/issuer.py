"""
Wallet login: turns a wallet signature into a session token.

Flow
----
1. open a flow (a fresh id becomes the *active* flow, superseding whatever was pending)
2. ask the wallet for its accounts and build a challenge message with a random nonce
3. await the wallet's signature  <-- the only suspension point
4. complete the flow: ignore it if it was superseded or already completed, otherwise recover the signer,
   compare it to the account that started the flow, and mint a SessionToken.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Optional
from uuid import UUID, uuid4

from shatranj.auth.address import Address
from shatranj.auth.token import SessionToken, TokenCodec
from shatranj.auth.verifier import SignatureVerifier
from shatranj.auth.wallet import WalletProvider
from shatranj.core.clock import Clock, utc_now
from shatranj.core.exceptions import (
    AddressMismatchError,
    AuthError,
    UserRejectedError,
    WalletUnavailableError,
)

logger = logging.getLogger(__name__)

DEFAULT_VALIDITY = timedelta(hours=24)


def _positive(validity: timedelta) -> timedelta:
    if validity <= timedelta(0):
        raise ValueError(f"Session validity must be positive, got {validity}")
    return validity


class FlowStatus(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AuthFlow:
    """One login attempt: the account that started it and the challenge it has to sign."""

    flow_id: UUID
    account: Address
    message: str
    validity: timedelta


@dataclass(frozen=True)
class AuthResult:
    flow_id: UUID
    status: FlowStatus
    token: Optional[SessionToken] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.status == FlowStatus.SUCCESS


def build_challenge(
    account: Address, nonce: str, issued_at: datetime, expires_at: datetime
) -> str:
    """Human readable message the wallet shows before signing."""
    return (
        "Shatranj wants you to sign in with your wallet.\n"
        "\n"
        f"Address: {account}\n"
        f"Nonce: {nonce}\n"
        f"Issued At: {issued_at.isoformat()}\n"
        f"Expiration Time: {expires_at.isoformat()}"
    )


class SessionTokenIssuer:
    """Runs login flows against a wallet and mints session tokens."""

    def __init__(
        self,
        codec: TokenCodec,
        verifier: SignatureVerifier,
        validity: timedelta = DEFAULT_VALIDITY,
        clock: Clock = utc_now,
    ) -> None:
        self.codec = codec
        self.verifier = verifier
        self.validity = _positive(validity)
        self.clock = clock
        self._active_flow_id: Optional[UUID] = None
        self._active_completed = False

    @property
    def active_flow_id(self) -> Optional[UUID]:
        return self._active_flow_id

    async def issue(
        self, wallet: Optional[WalletProvider], validity: Optional[timedelta] = None
    ) -> AuthResult:
        """Full login: challenge, signature, token. Never raises AuthError, it is returned in the result."""
        validity = self._validity(validity)
        flow_id = self._open_flow()
        try:
            flow = await self._challenge(flow_id, wallet, validity)
            # for the typechecker: _challenge raises when there is no wallet
            assert wallet is not None
            signature = await self._request_signature(wallet, flow)
        except AuthError as error:
            if flow_id != self._active_flow_id:
                logger.info("Login flow %s failed after being superseded; ignored.", flow_id)
                return AuthResult(flow_id, FlowStatus.CANCELLED)
            logger.info("Login flow %s failed: %s", flow_id, error.message)
            return AuthResult(flow_id, FlowStatus.FAILURE, error=error)

        return self.complete_flow(flow, signature)

    async def start_flow(
        self, wallet: Optional[WalletProvider], validity: Optional[timedelta] = None
    ) -> AuthFlow:
        """
        First half of `issue`, for wallets that hand back the signature out-of-band.
        Feed the signature into `complete_flow` when it arrives.

        Raises AuthError if the wallet cannot be reached or exposes no account, ValueError for a non-positive validity.
        """
        validity = self._validity(validity)
        return await self._challenge(self._open_flow(), wallet, validity)

    def pending(self, flow: AuthFlow) -> AuthResult:
        """Status of a flow that has not been completed yet (or was superseded meanwhile)."""
        if flow.flow_id != self._active_flow_id or self._active_completed:
            return AuthResult(flow.flow_id, FlowStatus.CANCELLED)
        return AuthResult(flow.flow_id, FlowStatus.PENDING)

    def complete_flow(self, flow: AuthFlow, signature: str) -> AuthResult:
        """
        Turn the wallet's signature into a token.

        Some signing backends report completion twice; the second one is a no-op (CANCELLED), as is the
        completion of a flow that a newer login attempt superseded.
        """
        if flow.flow_id != self._active_flow_id:
            logger.info("Login flow %s was superseded; stale completion ignored.", flow.flow_id)
            return AuthResult(flow.flow_id, FlowStatus.CANCELLED)

        if self._active_completed:
            logger.debug("Login flow %s already produced a token; duplicate completion ignored.", flow.flow_id)
            return AuthResult(flow.flow_id, FlowStatus.CANCELLED)

        signer = self.verifier.recover(flow.message, signature)
        if signer is None:
            error: AuthError = UserRejectedError("Wallet returned an invalid signature.")
            logger.info("Login flow %s failed: %s", flow.flow_id, error.message)
            return AuthResult(flow.flow_id, FlowStatus.FAILURE, error=error)

        if signer != flow.account:
            error = AddressMismatchError(expected=str(flow.account), signer=str(signer))
            logger.info("Login flow %s failed: %s", flow.flow_id, error.message)
            return AuthResult(flow.flow_id, FlowStatus.FAILURE, error=error)

        token = self.codec.encode(
            address=signer,
            message=flow.message,
            signature=signature,
            issued_at=self.clock(),
            validity=flow.validity,
        )
        self._active_completed = True
        logger.info("Issued session token for %s (expires %s)", signer.truncated(), token.expires_at.isoformat())
        return AuthResult(flow.flow_id, FlowStatus.SUCCESS, token=token)

    # -- Internal helpers --
    def _validity(self, validity: Optional[timedelta]) -> timedelta:
        return self.validity if validity is None else _positive(validity)

    def _open_flow(self) -> UUID:
        flow_id = uuid4()
        if self._active_flow_id is not None and not self._active_completed:
            logger.debug("Login flow %s supersedes pending flow %s", flow_id, self._active_flow_id)
        self._active_flow_id = flow_id
        self._active_completed = False
        return flow_id

    async def _challenge(
        self, flow_id: UUID, wallet: Optional[WalletProvider], validity: timedelta
    ) -> AuthFlow:
        if wallet is None:
            raise WalletUnavailableError()

        try:
            accounts = await wallet.request_accounts()
        except AuthError:
            raise
        except Exception as error:
            raise AuthError(str(error)) from error

        if not accounts:
            raise UserRejectedError(
                "Have you unlocked your wallet and connected it to this page?"
            )
        try:
            account = Address.parse(accounts[0])
        except ValueError as error:
            raise AuthError(f"Wallet reported an invalid account: {error}") from error

        issued_at = self.clock()
        message = build_challenge(
            account,
            nonce=secrets.token_hex(16),
            issued_at=issued_at,
            expires_at=issued_at + validity,
        )
        return AuthFlow(flow_id=flow_id, account=account, message=message, validity=validity)

    async def _request_signature(self, wallet: WalletProvider, flow: AuthFlow) -> str:
        try:
            return await wallet.sign_message(str(flow.account), flow.message.encode("utf-8"))
        except AuthError:
            raise
        except Exception as error:
            # Anything else the wallet throws is surfaced with its own message.
            raise AuthError(str(error)) from error
