"""
registry.py - Administrator-controlled token registries

Three pieces of configuration, all writable only by the administrator fixed
at construction:

    - the ordered list of tokens eligible for lending
    - the ordered list of tokens eligible for borrowing
    - the single global collateral token

Lists are append-only. There is no removal or update: a mis-registered token
can only be superseded by appending a corrected entry, and the stale entry
stays visible. Re-adding an address already listed is accepted.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

from .core import Address, TokenListing, Unauthorized, InvalidToken


class TokenRegistry:
    """
    Lending/borrowing token lists plus the collateral token setting.

    The administrator is a stored identifier compared by equality on every
    privileged call; it cannot be changed after construction.
    """

    def __init__(self, admin: Address):
        if not admin:
            raise ValueError("Registry administrator cannot be empty")
        self._admin = admin
        self._lending: List[TokenListing] = []
        self._borrowing: List[TokenListing] = []
        self._collateral_token: Optional[Address] = None

    @property
    def admin(self) -> Address:
        return self._admin

    @property
    def collateral_token(self) -> Optional[Address]:
        """Address of the collateral token, or None until the administrator sets it."""
        return self._collateral_token

    # ========================================================================
    # MUTATIONS (administrator only)
    # ========================================================================

    def add_tokens_for_lending(self, caller: Address, name: str, token_address: Address) -> TokenListing:
        listing = self._new_listing(caller, name, token_address)
        self._lending.append(listing)
        return listing

    def add_tokens_for_borrowing(self, caller: Address, name: str, token_address: Address) -> TokenListing:
        listing = self._new_listing(caller, name, token_address)
        self._borrowing.append(listing)
        return listing

    def set_collateral_token(self, caller: Address, token_address: Address) -> None:
        """Set the global collateral token. Callable repeatedly; last write wins."""
        self._require_admin(caller)
        self._require_address(token_address)
        self._collateral_token = token_address

    def _new_listing(self, caller: Address, name: str, token_address: Address) -> TokenListing:
        self._require_admin(caller)
        self._require_address(token_address)
        if not isinstance(name, str):
            raise InvalidToken(f"Token name must be a string, got {type(name).__name__}")
        return TokenListing(name=name, token_address=token_address)

    def _require_admin(self, caller: Address) -> None:
        if caller != self._admin:
            raise Unauthorized(f"{caller} is not the administrator")

    @staticmethod
    def _require_address(token_address: Address) -> None:
        if not isinstance(token_address, str) or not token_address.strip():
            raise InvalidToken(f"Invalid token address: {token_address!r}")

    # ========================================================================
    # READS
    # ========================================================================

    def get_tokens_for_lending_array(self) -> Tuple[TokenListing, ...]:
        return tuple(self._lending)

    def get_tokens_for_borrowing_array(self) -> Tuple[TokenListing, ...]:
        return tuple(self._borrowing)

    def is_lending_token(self, token_address: Address) -> bool:
        return any(l.token_address == token_address for l in self._lending)

    def is_borrowing_token(self, token_address: Address) -> bool:
        return any(l.token_address == token_address for l in self._borrowing)

    def require_lending_token(self, token_address: Address) -> None:
        if not self.is_lending_token(token_address):
            raise InvalidToken(f"{token_address} is not listed for lending")

    def require_borrowing_token(self, token_address: Address) -> None:
        if not self.is_borrowing_token(token_address):
            raise InvalidToken(f"{token_address} is not listed for borrowing")

    def require_collateral_token(self) -> Address:
        """
        Return the collateral token address.

        Raises:
            InvalidToken: If the administrator has not set one yet.
        """
        if self._collateral_token is None:
            raise InvalidToken("Collateral token has not been set")
        return self._collateral_token

    def listed_tokens(self) -> List[Address]:
        """Every distinct address appearing on either list or as collateral."""
        seen = {l.token_address for l in self._lending}
        seen.update(l.token_address for l in self._borrowing)
        if self._collateral_token is not None:
            seen.add(self._collateral_token)
        return sorted(seen)

    # ========================================================================
    # SNAPSHOT
    # ========================================================================

    def snapshot(self) -> Dict[str, Any]:
        return {
            'lending': list(self._lending),
            'borrowing': list(self._borrowing),
            'collateral_token': self._collateral_token,
        }

    def restore(self, snap: Dict[str, Any]) -> None:
        self._lending = list(snap['lending'])
        self._borrowing = list(snap['borrowing'])
        self._collateral_token = snap['collateral_token']
