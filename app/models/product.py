from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Float, String

from app.database.connection import Base, new_id


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("mrp >= 0", name="ck_products_mrp_non_negative"),
        CheckConstraint("dp >= 0", name="ck_products_dp_non_negative"),
        CheckConstraint("nlc >= 0", name="ck_products_nlc_non_negative"),
        CheckConstraint("percentage >= 0 AND percentage <= 100", name="ck_products_percentage_range"),
    )

    id = Column(String(32), primary_key=True, default=new_id)
    item_code = Column(String, nullable=False, unique=True, index=True)
    item_description = Column(String, nullable=False)
    unit = Column(String, nullable=False)

    mrp = Column(Float, nullable=False)
    dp = Column(Float, nullable=False)
    nlc = Column(Float, nullable=False)
    percentage = Column(Float, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
