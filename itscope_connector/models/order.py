# itscope_connector/models/order.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func

from itscope_connector.database import Base
from itscope_connector.core.enums import OrderStatus


class Order(Base):
    """
    A purchase order forwarded to one distributor for one Shopify order.

    The (shop, shopify_order_id, distributor_id) unique constraint is the claim
    lock used by order forwarding: inserting the pending row must fail on a
    duplicate key, so it has to stay a real database constraint.
    """
    __tablename__ = "itscope_orders"
    __table_args__ = (
        UniqueConstraint("shop", "shopify_order_id", "distributor_id", name="uq_itscope_orders_claim"),
    )

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    shop = Column(String, nullable=False, index=True)
    shopify_order_id = Column(String, nullable=False)  # gid://shopify/Order/...
    shopify_order_number = Column(String)
    distributor_id = Column(String, nullable=False)

    itscope_own_order_id = Column(String(18), nullable=False)
    itscope_deal_id = Column(String)

    status = Column(String, nullable=False, default=OrderStatus.PENDING.value, index=True)
    error_message = Column(String)
    tracking_number = Column(String)
    serial_numbers = Column(JSON)
    dropship = Column(Boolean, nullable=False, default=False)
    last_status_check = Column(DateTime(timezone=True))

    @property
    def order_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    def __repr__(self):
        return f"<Order(id={self.id}, own_order_id={self.itscope_own_order_id}, status={self.status})>"
