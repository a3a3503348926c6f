import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


class DuplicateItemCodeError(ValueError):
    def __init__(self, item_code: str):
        super().__init__("Product with this item code already exists")
        self.item_code = item_code


@dataclass
class BulkInsertResult:
    inserted: List[Product] = field(default_factory=list)
    failed_keys: List[str] = field(default_factory=list)


# --------------------------
# LOOKUPS
# --------------------------
def get_product(db: Session, product_id: str) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()


def get_product_by_item_code(db: Session, item_code: str) -> Optional[Product]:
    return db.query(Product).filter(Product.item_code == item_code).first()


def list_products(db: Session) -> List[Product]:
    return db.query(Product).order_by(Product.created_at).all()


def existing_item_codes(db: Session, item_codes: Iterable[str]) -> Set[str]:
    """Which of the given codes are already stored, in one query."""
    codes = {code for code in item_codes if code}
    if not codes:
        return set()
    rows = db.query(Product.item_code).filter(Product.item_code.in_(codes)).all()
    return {row[0] for row in rows}


# --------------------------
# CREATE PRODUCT
# --------------------------
def create_product(db: Session, data: ProductCreate) -> Product:
    if get_product_by_item_code(db, data.item_code):
        raise DuplicateItemCodeError(data.item_code)

    product = Product(**data.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


# --------------------------
# UPDATE PRODUCT
# --------------------------
def update_product(db: Session, product_id: str, data: ProductUpdate) -> Optional[Product]:
    product = get_product(db, product_id)
    if not product:
        return None

    changes = data.changes()
    new_code = changes.get("item_code")
    if new_code and new_code != product.item_code and get_product_by_item_code(db, new_code):
        raise DuplicateItemCodeError(new_code)

    for key, value in changes.items():
        setattr(product, key, value)

    db.commit()
    db.refresh(product)
    return product


# --------------------------
# DELETE PRODUCT
# --------------------------
def delete_product(db: Session, product_id: str) -> bool:
    product = get_product(db, product_id)
    if not product:
        return False

    db.delete(product)
    db.commit()
    return True


# --------------------------
# BULK INSERT
# --------------------------
def bulk_insert_products(db: Session, items: List[dict]) -> BulkInsertResult:
    """
    Best-effort insert: a record that violates a constraint is reported in
    failed_keys and never stops the rest from being stored.

    The whole batch is tried in one commit first; if the store rejects it,
    every record is retried in its own commit.
    """
    result = BulkInsertResult()
    if not items:
        return result

    products = [Product(**item) for item in items]
    db.add_all(products)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Bulk insert of %d products rejected, retrying one by one", len(items))
        return _insert_one_by_one(db, items)

    for product in products:
        db.refresh(product)
    result.inserted = products
    return result


def _insert_one_by_one(db: Session, items: List[dict]) -> BulkInsertResult:
    result = BulkInsertResult()
    for item in items:
        product = Product(**item)
        db.add(product)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning("Product %s not inserted: %s", item.get("item_code"), e.orig)
            result.failed_keys.append(item.get("item_code"))
            continue
        db.refresh(product)
        result.inserted.append(product)
    return result
