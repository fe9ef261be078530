"""User profiles: the Ethereum address linked to each account."""

from __future__ import annotations

from typing import Hashable

from medchain.primitives import EthereumAddress, Event, Origin, System, ensure_signed
from medchain.traits import UserProfileProvider

PALLET = "UserProfile"


class UserProfile(UserProfileProvider):
    """Keeps a two-way mapping between accounts and Ethereum addresses."""

    def __init__(self, system: System) -> None:
        self.system = system
        self._eth_address_by_account_id: dict[Hashable, EthereumAddress] = {}
        self._account_id_by_eth_address: dict[EthereumAddress, Hashable] = {}

    def set_eth_address(self, origin: Origin, eth_address: EthereumAddress) -> None:
        """Link the signer's account to ``eth_address`` and emit ``EthAddressSet``."""
        who = ensure_signed(origin)
        self.set_eth_address_by_account_id(who, eth_address)
        self.system.deposit_event(Event(PALLET, "EthAddressSet", (eth_address, who)))

    def set_eth_address_by_account_id(
        self, account_id: Hashable, eth_address: EthereumAddress
    ) -> None:
        self._eth_address_by_account_id[account_id] = eth_address
        self._account_id_by_eth_address[eth_address] = account_id

    def get_eth_address_by_account_id(self, account_id: Hashable) -> EthereumAddress | None:
        return self._eth_address_by_account_id.get(account_id)

    def get_account_id_by_eth_address(self, eth_address: EthereumAddress) -> Hashable | None:
        return self._account_id_by_eth_address.get(eth_address)