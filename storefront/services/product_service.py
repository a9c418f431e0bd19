from __future__ import annotations

import logging
from io import BytesIO

import pandas as pd
from flask import current_app
from sqlalchemy import asc, desc, func, or_, select

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..model import Product
from ..utils.money import MAX_MONEY, round_money
from ..utils.validators import MAX_INT, FieldErrors, is_url, parse_decimal

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["ID", "Name", "Description", "Price", "Image URL", "Created At", "Updated At"]

_SORTS = {
    "id": asc(Product.id), "-id": desc(Product.id),
    "name": asc(Product.name), "-name": desc(Product.name),
    "price": asc(Product.price), "-price": desc(Product.price),
}


def _clean_product_fields(data: dict, *, partial: bool) -> dict:
    """Validate product input and return the column values to assign."""
    errors = FieldErrors()
    out = {}

    if "name" in data or not partial:
        name = data.get("name")
        name = name.strip() if isinstance(name, str) else ""
        if not name:
            errors.add("name", "Product name is required")
        elif not 2 <= len(name) <= 100:
            errors.add("name", "Name must be between 2 and 100 characters")
        else:
            out["name"] = name

    if "price" in data or not partial:
        price = parse_decimal(data.get("price"))
        if price is None or price < 0:
            errors.add("price", "Price must be a positive number")
        elif price > MAX_MONEY:
            errors.add("price", f"Price cannot exceed {MAX_MONEY}")
        else:
            out["price"] = round_money(price)

    if "description" in data:
        desc_ = data.get("description")
        if desc_ is not None and not isinstance(desc_, str):
            errors.add("description", "Description must be a string")
        elif desc_ and len(desc_) > 500:
            errors.add("description", "Description cannot exceed 500 characters")
        else:
            out["description"] = desc_ or None

    if "imageUrl" in data:
        url = data.get("imageUrl")
        if url and not is_url(url):
            errors.add("imageUrl", "Image URL must be valid")
        else:
            out["image_url"] = url or None

    errors.raise_if_any()
    return out


def list_products(search=None, sort=None):
    stmt = select(Product)
    search = (search or "").strip()
    if search:
        like = f"%{search}%"
        stmt = stmt.where(or_(Product.name.ilike(like), Product.description.ilike(like)))
    order = _SORTS.get((sort or "").strip())
    if order is None:
        stmt = stmt.order_by(desc(Product.created_at), desc(Product.id))
    else:
        stmt = stmt.order_by(order)
    return db.session.execute(stmt).scalars().all()


def count_products() -> int:
    return db.session.execute(select(func.count(Product.id))).scalar_one()


def get_product(pid, session=None) -> Product:
    product = None
    if 0 < pid <= MAX_INT:
        product = (db.session if session is None else session).get(Product, pid)
    if product is None:
        raise NotFoundError(f"Product with ID {pid} not found")
    return product


def _write():
    # catalog writes share the cart's transaction boundary: deletes cascade into CartItems
    return current_app.extensions["cart_service"].transaction()


def create_product(data: dict) -> Product:
    fields = _clean_product_fields(data if isinstance(data, dict) else {}, partial=False)
    with _write() as session:
        product = Product(**fields)
        session.add(product)
        session.flush()
    logger.info("catalog: product %s created (%s)", product.id, product.name)
    return product


def update_product(pid, data: dict) -> Product:
    # existing cart lines keep the subtotal they were priced at
    fields = _clean_product_fields(data if isinstance(data, dict) else {}, partial=True)
    with _write() as session:
        product = get_product(pid, session)
        for key, value in fields.items():
            setattr(product, key, value)
    logger.info("catalog: product %s updated (%s)", pid, ", ".join(sorted(fields)) or "no fields")
    return product


def delete_product(pid) -> None:
    with _write() as session:
        session.delete(get_product(pid, session))
    logger.info("catalog: product %s deleted", pid)


# ---- spreadsheet import / export -----------------------------------------------
def export_products() -> bytes:
    rows = [{
        "ID": p.id,
        "Name": p.name,
        "Description": p.description,
        "Price": float(p.price),
        "Image URL": p.image_url,
        "Created At": p.created_at,
        "Updated At": p.updated_at,
    } for p in list_products(sort="id")]
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)

    buf = BytesIO()
    df.to_excel(buf, index=False)
    return buf.getvalue()


def import_products(file) -> int:
    """Create one product per spreadsheet row. All rows commit or none do."""
    try:
        df = pd.read_excel(file)
    except Exception as e:
        raise ValidationError(f"Unreadable spreadsheet: {e}") from e
    df.columns = df.columns.str.strip()

    missing = [c for c in ("Name", "Price") if c not in df.columns]
    if missing:
        raise ValidationError(f"Missing columns: {', '.join(missing)}")

    created = []
    errors = []
    for idx, row in df.iterrows():
        payload = {
            "name": row.get("Name") if pd.notnull(row.get("Name")) else None,
            "price": row.get("Price") if pd.notnull(row.get("Price")) else None,
        }
        if "Description" in df.columns and pd.notnull(row.get("Description")):
            payload["description"] = str(row["Description"])
        if "Image URL" in df.columns and pd.notnull(row.get("Image URL")):
            payload["imageUrl"] = str(row["Image URL"])
        try:
            created.append(Product(**_clean_product_fields(payload, partial=False)))
        except ValidationError as e:
            for item in e.errors or []:
                errors.append({"field": f"row {idx + 2}.{item['field']}", "message": item["message"]})

    if errors:
        raise ValidationError("Import failed; no products were created", errors=errors)

    with _write() as session:
        session.add_all(created)
    logger.info("catalog: imported %d product(s)", len(created))
    return len(created)
