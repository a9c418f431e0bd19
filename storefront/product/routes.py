from io import BytesIO
from datetime import datetime

from flask import request, send_file, url_for

from ..errors import ValidationError
from ..services import product_service
from ..utils.api import ok
from . import bp

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

def _ep(name: str) -> str:
    return f"{bp.name}.{name}"

# ---------- routes ----------
# GET /api/products
@bp.get("")
def list_products():
    """
    Query params:
      search -> substring match on name/description
      sort   -> id, -id, name, -name, price, -price (default newest first)
    """
    products = product_service.list_products(
        search=request.args.get("search") or request.args.get("q"),
        sort=request.args.get("sort"),
    )
    items = [p.as_api() for p in products]
    return ok(f"Successfully retrieved {len(items)} products", items, count=len(items))

# GET /api/products/count
@bp.get("/count")
def count_products():
    return ok("Product count retrieved successfully", {"count": product_service.count_products()})

# GET /api/products/<id>
@bp.get("/<int:pid>")
def get_product(pid):
    product = product_service.get_product(pid)
    return ok("Product retrieved successfully", product.as_api())

# POST /api/products
@bp.post("")
def create_product():
    product = product_service.create_product(request.get_json(silent=True) or {})
    resp = ok("Product created successfully", product.as_api(), status=201)
    resp.headers["Location"] = url_for(_ep("get_product"), pid=product.id, _external=True)
    return resp

# PUT /api/products/<id>
@bp.put("/<int:pid>")
def update_product(pid):
    product = product_service.update_product(pid, request.get_json(silent=True) or {})
    return ok("Product updated successfully", product.as_api())

# DELETE /api/products/<id>
@bp.delete("/<int:pid>")
def delete_product(pid):
    product_service.delete_product(pid)
    return ok("Product deleted successfully", {"id": pid})

@bp.get("/export")
def export_products():
    """Export all products as an Excel file."""
    content = product_service.export_products()
    return send_file(
        BytesIO(content),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=f"products_{datetime.utcnow():%Y%m%d_%H%M%S}.xlsx",
    )

@bp.post("/import")
def import_products():
    file = request.files.get("file")
    if not file or not file.filename:
        raise ValidationError("file is required", errors=[{"field": "file", "message": "Upload an .xlsx file"}])
    created = product_service.import_products(file)
    return ok(f"{created} products imported", {"created": created}, status=201)
