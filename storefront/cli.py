# storefront/cli.py
from decimal import Decimal

import click
from flask import current_app

from .model import CartItem, Product
from .services import product_service

SAMPLE_PRODUCTS = [
    {"name": "Wireless Bluetooth Headphones", "price": "299.99",
     "description": "Premium over-ear wireless headphones with active noise cancellation and 30-hour battery life.",
     "image_url": "https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=500&h=500&fit=crop"},
    {"name": "Smart Fitness Watch", "price": "249.99",
     "description": "Fitness tracker with heart rate monitoring, GPS, sleep tracking and 7-day battery life.",
     "image_url": "https://images.unsplash.com/photo-1523275335684-37898b6baf30?w=500&h=500&fit=crop"},
    {"name": "USB-C Laptop Charger", "price": "49.99",
     "description": "Universal 65W USB-C laptop charger with fast charging.",
     "image_url": "https://images.unsplash.com/photo-1583394838336-acd977736f90?w=500&h=500&fit=crop"},
    {"name": "Mechanical Gaming Keyboard", "price": "159.99",
     "description": "RGB backlit mechanical keyboard with custom switches.",
     "image_url": "https://images.unsplash.com/photo-1541140532154-b024d705b90a?w=500&h=500&fit=crop"},
    {"name": "Wireless Mouse", "price": "79.99",
     "description": "Ergonomic wireless mouse with precision tracking and long-lasting battery.",
     "image_url": "https://images.unsplash.com/photo-1527864550417-7fd91fc51a46?w=500&h=500&fit=crop"},
    {"name": "Portable Phone Stand", "price": "24.99",
     "description": "Adjustable aluminum phone stand for phones and tablets up to 11 inches.",
     "image_url": "https://images.unsplash.com/photo-1512820790803-83ca734da794?w=500&h=500&fit=crop"},
    {"name": "Wireless Charging Pad", "price": "39.99",
     "description": "15W fast wireless charging pad with LED indicator.",
     "image_url": "https://images.unsplash.com/photo-1609091839311-d5365f9ff1c5?w=500&h=500&fit=crop"},
    {"name": "Bluetooth Speaker", "price": "89.99",
     "description": "Portable waterproof speaker with 360-degree sound and 12-hour battery.",
     "image_url": "https://images.unsplash.com/photo-1608043152269-423dbba4e7e1?w=500&h=500&fit=crop"},
    {"name": "Laptop Stand", "price": "69.99",
     "description": "Adjustable aluminum laptop stand with cooling design.",
     "image_url": "https://images.unsplash.com/photo-1527906190468-7a720c80a3b8?w=500&h=500&fit=crop"},
    {"name": "Cable Management Kit", "price": "19.99",
     "description": "Clips, ties and holders to keep a workspace organized.",
     "image_url": "https://images.unsplash.com/photo-1558618666-fcd25c85cd64?w=500&h=500&fit=crop"},
]

@click.command("seed")
@click.option(
    "--append", is_flag=True,
    help="Add the samples without clearing the catalog or the cart. Each run adds ten more products.",
)
def seed(append):
    """Replace the catalog with the sample products and empty the cart."""
    with current_app.extensions["cart_service"].transaction() as session:
        if not append:
            session.query(CartItem).delete()
            session.query(Product).delete()
        session.add_all(Product(**{**p, "price": Decimal(p["price"])}) for p in SAMPLE_PRODUCTS)
    click.echo(f"{len(SAMPLE_PRODUCTS)} sample products have been added to the database successfully.")

@click.command("export-products")
@click.argument("path", type=click.Path(dir_okay=False, writable=True))
def export_products_cmd(path):
    with open(path, "wb") as fh:
        fh.write(product_service.export_products())
    click.echo(f"Products have been exported to Excel at {path}")

@click.command("import-products")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def import_products_cmd(path):
    created = product_service.import_products(path)
    click.echo(f"{created} products have been imported successfully from {path}")

def register_cli(app):
    app.cli.add_command(seed)
    app.cli.add_command(export_products_cmd)
    app.cli.add_command(import_products_cmd)
