import io
import os

from openpyxl import Workbook

from app.services import spreadsheet

IMPORT_URL = "/api/products/import-excel"
HEADER = "Item Code,Item Description,Unit,MRP,DP,NLC,Percentage\n"


def _csv(*lines):
    return (HEADER + "".join(line + "\n" for line in lines)).encode("utf-8")


def _upload(client, content, filename="products.csv", content_type="text/csv"):
    return client.post(IMPORT_URL, files={"excelFile": (filename, content, content_type)})


def _xlsx(rows):
    wb = Workbook()
    ws = wb.active
    ws.append(["itemCode", "itemDescription", "unit", "mrp", "dp", "nlc", "percentage"])
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def test_import_csv_inserts_valid_rows(client, upload_dir):
    resp = _upload(client, _csv("P-1,Socket 6A,Nos,85,70,65,7.5", "P-2,Switch 16A,Nos,60,50,45,5"))

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["count"] == 2
    assert [p["itemCode"] for p in body["data"]] == ["P-1", "P-2"]
    assert body["data"][0]["mrp"] == 85
    assert body["skipped"] == 0
    assert body["skippedDetails"] == []
    assert "errors" not in body
    assert os.listdir(upload_dir) == []

    listing = client.get("/api/products").json()
    assert listing["count"] == 2


def test_import_xlsx(client, upload_dir):
    content = _xlsx([[5001, "Fan regulator", "Nos", 450, 400, 380, 9]])

    resp = _upload(
        client,
        content,
        filename="stock.xlsx",
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

    assert resp.status_code == 200
    assert resp.json()["data"][0]["itemCode"] == "5001"
    assert os.listdir(upload_dir) == []


def test_duplicate_rows_in_file_are_skipped(client):
    resp = _upload(client, _csv("D-1,First,Nos,10,9,8,1", "D-1,Second,Nos,11,9,8,1"))

    body = resp.json()
    assert body["count"] == 1
    assert body["data"][0]["itemDescription"] == "First"
    assert body["skipped"] == 1
    assert body["skippedDetails"] == [{"itemCode": "D-1", "reason": "Duplicate in Excel file"}]


def test_rows_already_stored_are_skipped(client, product_payload):
    client.post("/api/products", json=product_payload("S-1"))

    resp = _upload(client, _csv("S-1,Again,Nos,10,9,8,1", "S-2,New,Nos,10,9,8,1"))

    body = resp.json()
    assert body["count"] == 1
    assert body["skippedDetails"] == [{"itemCode": "S-1", "reason": "Already exists in database"}]
    assert client.get("/api/products").json()["count"] == 2


def test_row_errors_reported_alongside_inserted_rows(client):
    resp = _upload(client, _csv("G-1,Good,Nos,10,9,8,1", "G-2,Bad,Nos,10,9,8,150"))

    body = resp.json()
    assert resp.status_code == 200
    assert body["count"] == 1
    assert body["errors"] == ["Row 2: Invalid Percentage value (must be between 0 and 100)"]


def test_all_rows_invalid_fails_request(client, upload_dir):
    resp = _upload(client, _csv(",No code,Nos,1,1,1,1", "B-1,Bad,Nos,-1,1,1,1"))

    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "error": "Validation errors in Excel file",
        "details": ["Row 1: Item Code is required", "Row 2: Invalid MRP value"],
    }
    assert client.get("/api/products").json()["count"] == 0
    assert os.listdir(upload_dir) == []


def test_empty_file_rejected_and_removed(client, upload_dir):
    resp = _upload(client, HEADER.encode("utf-8"))

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Excel file is empty"}
    assert os.listdir(upload_dir) == []


def test_processing_failure_is_reported_and_file_removed(client, upload_dir, monkeypatch):
    def broken(path):
        assert os.path.exists(path)
        raise ValueError("unreadable workbook")

    monkeypatch.setattr(spreadsheet, "read_rows", broken)

    resp = _upload(client, _csv("P-1,Socket,Nos,1,1,1,1"))

    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "error": "Error processing Excel file",
        "details": "unreadable workbook",
    }
    assert os.listdir(upload_dir) == []


def test_missing_file_field(client):
    resp = client.post(IMPORT_URL, data={"other": "x"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Please upload an Excel file"


def test_non_spreadsheet_rejected_before_processing(client, upload_dir):
    resp = _upload(client, b"hello", filename="notes.txt", content_type="text/plain")

    assert resp.status_code == 400
    assert resp.json()["error"] == "Only Excel files are allowed! Received mimetype: text/plain"
    assert os.listdir(upload_dir) == []


def test_oversized_upload_rejected(application, client, upload_dir):
    application.state.settings = application.state.settings.model_copy(update={"MAX_UPLOAD_SIZE": 64})

    resp = _upload(client, _csv(*["P-%d,Item,Nos,1,1,1,1" % i for i in range(20)]))

    assert resp.status_code == 400
    assert resp.json()["error"] == "File too large"
    assert os.listdir(upload_dir) == []


def test_placeholder_looking_values_are_imported(client):
    resp = _upload(client, _csv("NA,Socket,Nos,10,9,8,1", "P-2,N/A,Nos,10,9,8,1", "P-3,Fan,NULL,10,9,8,1"))

    body = resp.json()
    assert resp.status_code == 200
    assert "errors" not in body
    assert body["count"] == 3
    assert [(p["itemCode"], p["itemDescription"], p["unit"]) for p in body["data"]] == [
        ("NA", "Socket", "Nos"),
        ("P-2", "N/A", "Nos"),
        ("P-3", "Fan", "NULL"),
    ]


def test_zero_byte_xlsx_is_empty_file(client, upload_dir):
    resp = _upload(
        client,
        b"",
        filename="stock.xlsx",
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Excel file is empty"}
    assert os.listdir(upload_dir) == []
