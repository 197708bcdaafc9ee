# backend/ticketdesk/db/models/sale.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint
from ticketdesk.db.base import BaseModel, generate_id


class Sale(BaseModel):
    """
    One sale of one voucher. The unique voucher_id makes a second Sale for
    the same voucher impossible at the store level. amount and the voucher_*
    columns are snapshots taken at sale time.
    """
    __tablename__ = "sales"
    __table_args__ = (
        CheckConstraint(
            "payment_method IN ('CASH', 'AUTOMATIC')",
            name="sales_payment_method_check",
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    voucher_id = Column(String(36), ForeignKey("vouchers.id"), nullable=False, unique=True)
    tenant_id = Column(String(100), ForeignKey("tenants.id"), nullable=False, index=True)
    seller_id = Column(String(36), nullable=False, index=True)
    seller_name = Column(String(255), nullable=True)

    voucher_username = Column(String(255), nullable=False)
    voucher_profile = Column(String(100), nullable=False)
    voucher_time_limit = Column(String(100), nullable=False)

    amount = Column(Integer, nullable=False)
    sold_at = Column(DateTime, nullable=False, index=True)
    payment_method = Column(String(20), nullable=False, default="CASH")
    customer_phone = Column(String(50), nullable=True)
