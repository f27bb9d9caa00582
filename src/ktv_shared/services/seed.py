"""
Starter data for a fresh venue database.

Every section only runs when its table is empty, so loading twice is harmless.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ktv_shared.constants import MovementType, RoomStatus
from ktv_shared.logging_config import get_logger
from ktv_shared.models import Category, Employee, Product, Room, StockMovement, TaxSetting
from ktv_shared.services.chat_service import get_or_create_general

logger = get_logger(__name__)

ROOMS = [
    ("101", "VIP Room 1", "vip", 10, 500000, RoomStatus.AVAILABLE),
    ("102", "VIP Room 2", "vip", 10, 500000, RoomStatus.AVAILABLE),
    ("201", "Regular Room 1", "regular", 6, 250000, RoomStatus.AVAILABLE),
    ("202", "Regular Room 2", "regular", 6, 250000, RoomStatus.AVAILABLE),
    ("203", "Regular Room 3", "regular", 6, 250000, RoomStatus.MAINTENANCE),
    ("301", "Suite Room 1", "suite", 15, 750000, RoomStatus.AVAILABLE),
    ("302", "Suite Room 2", "suite", 15, 750000, RoomStatus.MAINTENANCE),
    ("401", "Party Room 1", "party", 20, 1000000, RoomStatus.AVAILABLE),
    ("402", "Party Room 2", "party", 20, 1000000, RoomStatus.MAINTENANCE),
    ("501", "Standard Room 1", "standard", 4, 150000, RoomStatus.AVAILABLE),
    ("502", "Standard Room 2", "standard", 4, 150000, RoomStatus.MAINTENANCE),
]

CATEGORIES = [
    ("Minuman", "Beverages"),
    ("Makanan", "Food"),
    ("Paket", "Packages"),
]

# sku, name_id, name_en, category index, price, cost, stock, min stock
PRODUCTS = [
    ("BEV001", "Coca Cola", "Coca Cola", 0, 25000, 15000, 100, 20),
    ("BEV002", "Sprite", "Sprite", 0, 25000, 15000, 100, 20),
    ("BEV003", "Air Mineral", "Mineral Water", 0, 15000, 8000, 150, 30),
    ("FOOD001", "Kentang Goreng", "French Fries", 1, 35000, 20000, 50, 10),
    ("FOOD002", "Sayap Ayam", "Chicken Wings", 1, 45000, 25000, 50, 10),
    ("PKG001", "Paket Hemat 1", "Value Package 1", 2, 150000, 90000, 30, 5),
]

EMPLOYEES = [
    ("RINI KURNIAWATI", "MANAGER", "081376769907"),
    ("RISKA ANDRIANI", "ACCOUNTING", "081260296823"),
    ("JEFRY ANDRIZAL", "KAPTEN", "081376871996"),
    ("DELIMA OKTAVIANI HUTAJULU", "KASIR", "085362910175"),
    ("DESI HANDAYANI", "KASIR", "085262582338"),
    ("EDWINSYAH", "WAITERS", "085194409449"),
    ("ZULFIKAR", "WAITERS", "089636561419"),
    ("KAI RAHMAT", "OB", "083853283373"),
    ("ERIK WIJAYA", "DJ", None),
    ("ADE SURYA MUCHTAR", "SECURTY", "082160703883"),
    ("ISWANTO", "SOUNDMEN", "083197681356"),
    ("LUTHFI ROZIQIN", "BAR", "081263497433"),
]


def _is_empty(session: Session, model) -> bool:
    return session.execute(select(func.count(model.id))).scalar_one() == 0


def load_seed_data(session: Session) -> None:
    if _is_empty(session, TaxSetting):
        session.add(TaxSetting(name="PPN", rate=Decimal("11"), tax_type="ppn", is_active=True))
        logger.info("[SEED] Default PPN 11% tax setting")

    if _is_empty(session, Room):
        for number, name, room_type, capacity, rate, status in ROOMS:
            session.add(
                Room(
                    room_number=number,
                    room_name=name,
                    room_type=room_type,
                    capacity=capacity,
                    hourly_rate=Decimal(rate),
                    status=status.value,
                )
            )
        logger.info(f"[SEED] {len(ROOMS)} rooms")

    if _is_empty(session, Category):
        categories = [
            Category(name_id=name_id, name_en=name_en, type="product")
            for name_id, name_en in CATEGORIES
        ]
        session.add_all(categories)
        session.flush()

        if _is_empty(session, Product):
            for sku, name_id, name_en, cat, price, cost, stock, min_stock in PRODUCTS:
                product = Product(
                    sku=sku,
                    name_id=name_id,
                    name_en=name_en,
                    category_id=categories[cat].id,
                    price=Decimal(price),
                    cost=Decimal(cost),
                    stock_quantity=stock,
                    min_stock_level=min_stock,
                )
                session.add(product)
                session.flush()
                session.add(
                    StockMovement(
                        product_id=product.id,
                        movement_type=MovementType.ADJUSTMENT.value,
                        quantity=stock,
                        notes="Opening stock",
                    )
                )
            logger.info(f"[SEED] {len(CATEGORIES)} categories, {len(PRODUCTS)} products")

    if _is_empty(session, Employee):
        sequence: dict[str, int] = {}
        for name, division, phone in EMPLOYEES:
            sequence[division] = sequence.get(division, 0) + 1
            session.add(
                Employee(
                    employee_id=f"{division[:3]}-{sequence[division]:03d}",
                    name=name,
                    division=division,
                    phone=phone,
                )
            )
        logger.info(f"[SEED] {len(EMPLOYEES)} employees")

    get_or_create_general(session)
    session.flush()
