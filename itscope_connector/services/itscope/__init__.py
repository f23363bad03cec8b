from itscope_connector.services.itscope.client import ItScopeClient
from itscope_connector.services.itscope.distributors import DistributorRegistry
from itscope_connector.services.itscope.order_document import build_order_xml, own_order_ids

__all__ = ["ItScopeClient", "DistributorRegistry", "build_order_xml", "own_order_ids"]
