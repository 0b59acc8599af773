import os
import sys
import random

import pandas as pd

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from config import settings
from database import SessionLocal, init_db
from models.category import Category
from models.product import Product
from models.supplier import Supplier
from models.users import User
from services import ledger
from services.entity_store import categories, normalize_sku, products, suppliers
from services.users import ensure_admin

# Configuration
DATA_DIR = os.path.join(os.path.dirname(__file__), "data_source")
PRODUCTS_CSV = os.path.join(DATA_DIR, "products.csv")
DEMO_CATEGORIES = [
    ("Electronics", "Devices, cables and accessories"),
    ("Office Supplies", "Paper, pens and desk equipment"),
    ("Cleaning", "Cleaning agents and tools"),
]
DEMO_SUPPLIERS = [
    ("Northwind Traders", "Anne Dodsworth", "orders@northwind.example.com"),
    ("Contoso Wholesale", "Rafael Ortiz", "sales@contoso.example.com"),
]
# End Configuration


def seed_reference_data(session):
    """Create demo categories and suppliers when the tables are empty."""
    if session.query(Category).count() == 0:
        for name, description in DEMO_CATEGORIES:
            categories.create(session, {"name": name, "description": description})
    if session.query(Supplier).count() == 0:
        for name, contact, email in DEMO_SUPPLIERS:
            suppliers.create(session, {"name": name, "contact_person": contact, "email": email})


def load_products_frame(path: str) -> pd.DataFrame:
    """Read products from CSV, or generate a small random catalogue."""
    if os.path.exists(path):
        frame = pd.read_csv(path)
        frame.columns = [c.strip().lower().replace(" ", "_") for c in frame.columns]
        return frame

    rows = []
    for i in range(1, 21):
        rows.append({
            "sku": f"DEMO-{i:03d}",
            "name": f"Demo Product {i}",
            "cost_price": round(random.uniform(1.0, 80.0), 2),
            "selling_price": round(random.uniform(90.0, 150.0), 2),
            "current_stock": random.randint(0, 60),
            "min_stock": random.choice([5, 10, 15]),
        })
    return pd.DataFrame(rows)


def _opt(value):
    return None if value is None or pd.isna(value) else value


def import_products(session, frame: pd.DataFrame) -> int:
    category_ids = [c.id for c in session.query(Category).all()]
    supplier_ids = [s.id for s in session.query(Supplier).all()]
    count = 0

    for _, row in frame.iterrows():
        sku = normalize_sku(str(row["sku"]))
        if not sku or session.query(Product.id).filter(Product.sku == sku).first():
            continue
        products.create(session, {
            "sku": sku,
            "name": row["name"],
            "description": _opt(row.get("description")),
            "category_id": random.choice(category_ids) if category_ids else None,
            "supplier_id": random.choice(supplier_ids) if supplier_ids else None,
            "cost_price": _opt(row.get("cost_price")),
            "selling_price": _opt(row.get("selling_price")),
            # Opening balance, later changes go through the ledger
            "current_stock": int(_opt(row.get("current_stock")) or 0),
            "min_stock": int(_opt(row.get("min_stock")) or 0),
            "barcode": str(row["barcode"]) if _opt(row.get("barcode")) is not None else None,
        })
        count += 1
    return count


def seed_movements(session, admin: User, limit: int = 10):
    """Record a few sample movements so the ledger is not empty."""
    for product in session.query(Product).order_by(Product.id.asc()).limit(limit).all():
        ledger.record_movement(session, product.id, "incoming", random.randint(1, 20),
                               actor_id=admin.id, reason="Initial delivery")


def load_all_data():
    init_db()
    session = SessionLocal()
    try:
        ensure_admin(session, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, settings.ADMIN_NAME)
        admin = session.query(User).filter(User.role == "admin").order_by(User.id.asc()).first()

        seed_reference_data(session)
        created = import_products(session, load_products_frame(PRODUCTS_CSV))
        print(f"Imported {created} products.")

        if created and admin is not None:
            seed_movements(session, admin)
            print("Sample stock movements recorded.")
    finally:
        session.close()


if __name__ == "__main__":
    load_all_data()
