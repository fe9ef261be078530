"""The runtime: the pallets of the chain wired together over shared state."""

from __future__ import annotations

from typing import Hashable

from medchain.hospital_certifications import HospitalCertifications
from medchain.hospitals import Hospitals
from medchain.labs import Labs
from medchain.orders import Orders
from medchain.primitives import System
from medchain.services import Services
from medchain.traits import CertificationsProvider, GeneticTestingProvider
from medchain.user_profile import UserProfile
from medchain.version import VERSION, RuntimeVersion


class Runtime:
    """All pallets of the chain, configured to use one another."""

    version: RuntimeVersion = VERSION

    def __init__(
        self,
        escrow_key: Hashable,
        genetic_testing: GeneticTestingProvider,
        certifications: CertificationsProvider | None = None,
    ) -> None:
        self.system = System()
        self.user_profile = UserProfile(self.system)
        self.labs = Labs(self.system, self.user_profile, certifications=certifications)
        self.services = Services(self.system, self.labs)
        self.labs.services = self.services
        self.orders = Orders(self.system, self.services, genetic_testing, escrow_key)
        self.hospitals = Hospitals(self.system, self.user_profile)
        self.hospital_certifications = HospitalCertifications(self.system, self.hospitals)
        self.hospitals.certifications = self.hospital_certifications

    def account_nonce(self, account_id: Hashable) -> int:
        """The number of transactions the account has made."""
        return self.system.account_nonce(account_id)