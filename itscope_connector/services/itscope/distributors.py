# itscope_connector/services/itscope/distributors.py

from typing import Dict, List, Optional

from itscope_connector.core.config import Settings
from itscope_connector.schemas.itscope import SupplierProduct


class DistributorRegistry:
    """
    Allowed distributors and the buyer customer number we hold with each.

    Configured through ``DISTRIBUTOR_CUSTOMER_IDS`` as ``pattern:customer_id``
    pairs; a distributor matches when its name contains the pattern
    (case-insensitive).
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.patterns: Dict[str, str] = dict(settings.DISTRIBUTOR_CUSTOMER_IDS)

    def get_customer_id(self, distributor_name: str) -> Optional[str]:
        lower = (distributor_name or "").lower()
        for pattern, customer_id in self.patterns.items():
            if pattern and pattern in lower:
                return customer_id
        return None

    def is_allowed(self, distributor_name: str) -> bool:
        return self.get_customer_id(distributor_name) is not None

    def buyer_party_id(self, distributor_name: str) -> str:
        """Customer number for the distributor, falling back to the account-wide ids."""
        return (
            self.get_customer_id(distributor_name)
            or self.settings.ITSCOPE_CUSTOMER_ID
            or self.settings.ITSCOPE_ACCOUNT_ID
        )

    def filter_product(self, product: SupplierProduct) -> SupplierProduct:
        """Copy of ``product`` keeping only offers from allowed distributors."""
        offers: List = [o for o in product.offers if self.is_allowed(o.distributor_name)]
        return product.model_copy(update={"offers": offers})
