import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from sqlalchemy.orm import Session

from app.core.errors import APIError, bad_request, not_found
from app.database.connection import get_db
from app.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from app.services.import_service import (
    EmptySpreadsheetError,
    ImportValidationError,
    import_products_from_file,
)
from app.services.product_service import (
    DuplicateItemCodeError,
    create_product,
    delete_product,
    get_product,
    list_products,
    update_product,
)
from app.services.uploads import UploadRejected, remove_upload, save_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])


# LIST
@router.get("")
def list_all(db: Session = Depends(get_db)):
    products = list_products(db)
    return {
        "success": True,
        "count": len(products),
        "data": [ProductResponse.model_validate(p) for p in products],
    }


# CREATE
@router.post("", status_code=status.HTTP_201_CREATED)
def create(data: ProductCreate, db: Session = Depends(get_db)):
    try:
        product = create_product(db, data)
    except DuplicateItemCodeError as e:
        raise bad_request(str(e))
    return {"success": True, "data": ProductResponse.model_validate(product)}


# IMPORT FROM SPREADSHEET
@router.post("/import-excel")
def import_excel(
    request: Request,
    excel_file: Optional[UploadFile] = File(None, alias="excelFile"),
    db: Session = Depends(get_db),
):
    if excel_file is None or not excel_file.filename:
        raise bad_request("Please upload an Excel file")

    settings = request.app.state.settings
    try:
        path = save_upload(excel_file, settings.UPLOAD_DIR, settings.MAX_UPLOAD_SIZE)
    except UploadRejected as e:
        raise bad_request(str(e))

    try:
        report = import_products_from_file(db, path)
    except EmptySpreadsheetError as e:
        raise bad_request(str(e))
    except ImportValidationError as e:
        raise bad_request(str(e), details=e.errors)
    except Exception as e:
        logger.exception("Error processing Excel file %s", excel_file.filename)
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error processing Excel file",
            details=str(e),
        )
    finally:
        remove_upload(path)

    body = {
        "success": True,
        "count": len(report.inserted),
        "data": [ProductResponse.model_validate(p) for p in report.inserted],
        "skipped": len(report.skipped),
        "skippedDetails": report.skipped,
    }
    if report.errors:
        body["errors"] = report.errors
    return body


# GET BY ID
@router.get("/{product_id}")
def get(product_id: str, db: Session = Depends(get_db)):
    product = get_product(db, product_id)
    if not product:
        raise not_found("Product not found")
    return {"success": True, "data": ProductResponse.model_validate(product)}


# UPDATE
@router.put("/{product_id}")
def update(product_id: str, data: ProductUpdate, db: Session = Depends(get_db)):
    try:
        product = update_product(db, product_id, data)
    except DuplicateItemCodeError as e:
        raise bad_request(str(e))
    if not product:
        raise not_found("Product not found")
    return {"success": True, "data": ProductResponse.model_validate(product)}


# DELETE
@router.delete("/{product_id}")
def delete(product_id: str, db: Session = Depends(get_db)):
    if not delete_product(db, product_id):
        raise not_found("Product not found")
    return {"success": True, "data": {}}
