import pytest

from ktv_shared.services import inventory_service, purchase_order_service
from ktv_shared.supabase.storage import SupabaseStorage
from ktv_shared.validation import ConflictError, PermissionDeniedError, ValidationError


def test_opening_stock_is_logged_as_a_movement(product):
    movements = inventory_service.list_stock_movements(product["id"])
    assert [(m["movement_type"], m["quantity"]) for m in movements] == [("adjustment", 20)]


def test_duplicate_sku_is_refused(product):
    with pytest.raises(ConflictError):
        inventory_service.create_product(
            {
                "name_id": "Teh",
                "name_en": "Tea",
                "sku": "DRK-001",
                "category_id": product["category_id"],
                "price": 1000,
                "cost": 500,
            }
        )


def test_adjustments_and_low_stock(product):
    updated = inventory_service.adjust_stock(product["id"], -16, notes="Stock take")
    assert updated["stock_quantity"] == 4
    assert updated["is_low_stock"] is True
    assert [p["id"] for p in inventory_service.low_stock_products()] == [product["id"]]

    with pytest.raises(ConflictError):
        inventory_service.adjust_stock(product["id"], -5)
    with pytest.raises(ValidationError):
        inventory_service.adjust_stock(product["id"], -1, movement_type="return")
    with pytest.raises(ValidationError):
        inventory_service.adjust_stock(product["id"], 3, movement_type="sale")


def test_update_never_touches_stock(product):
    updated = inventory_service.update_product(
        product["id"], {"price": 17000, "stock_quantity": 999}
    )
    assert updated["price"] == 17000
    assert updated["stock_quantity"] == 20


def test_deactivated_products_drop_out_of_active_listing(product):
    inventory_service.deactivate_product(product["id"])
    assert inventory_service.list_products(active_only=True) == []
    assert [p["sku"] for p in inventory_service.list_products(search="drk")] == ["DRK-001"]


def test_category_with_products_cannot_be_deleted(product):
    with pytest.raises(ConflictError):
        inventory_service.delete_category(product["category_id"])


def test_image_upload_points_product_at_public_url(product, monkeypatch):
    uploads = []
    monkeypatch.setattr(
        SupabaseStorage,
        "upload_bytes",
        classmethod(lambda cls, bucket, path, content, content_type=None: uploads.append((bucket, path, content_type))),
    )
    monkeypatch.setattr(
        SupabaseStorage,
        "get_public_url",
        classmethod(lambda cls, bucket, path: f"https://cdn.example.com/{bucket}/{path}"),
    )

    updated = inventory_service.upload_product_image(product["id"], "tea.png", b"\x89PNG", "product-images")
    bucket, path, content_type = uploads[0]
    assert bucket == "product-images"
    assert path.startswith(f"products/{product['id']}/")
    assert content_type == "image/png"
    assert updated["image_url"] == f"https://cdn.example.com/product-images/{path}"

    with pytest.raises(ValidationError):
        inventory_service.upload_product_image(product["id"], "notes.txt", b"hello", "product-images")


def test_purchase_order_flow(product, make_user):
    accountant = make_user("accountant")
    manager = make_user("manager")

    order = purchase_order_service.create_purchase_order(
        {
            "supplier_name": "CV Sumber Segar",
            "items": [{"product_id": product["id"], "quantity": 24, "unit_cost": 7500}],
        },
        accountant.id,
    )
    assert order["po_number"].startswith("PO-")
    assert order["po_number"].endswith("-0001")
    assert order["total_amount"] == 180000
    assert order["status"] == "pending"

    with pytest.raises(ConflictError):
        purchase_order_service.complete_purchase_order(order["id"])
    with pytest.raises(PermissionDeniedError):
        purchase_order_service.approve_purchase_order(order["id"], accountant.id)

    purchase_order_service.approve_purchase_order(order["id"], manager.id)
    completed = purchase_order_service.complete_purchase_order(order["id"], accountant.id)
    assert completed["status"] == "completed"
    assert inventory_service.get_product(product["id"])["stock_quantity"] == 44

    with pytest.raises(ConflictError):
        purchase_order_service.reject_purchase_order(order["id"], manager.id)


def test_po_numbers_count_up_within_the_day(product, make_user):
    data = {
        "supplier_name": "CV Sumber Segar",
        "items": [{"product_id": product["id"], "quantity": 1, "unit_cost": 7500}],
    }
    purchase_order_service.create_purchase_order(data, None)
    second = purchase_order_service.create_purchase_order(data, None)
    assert second["po_number"].endswith("-0002")


def test_purchase_order_needs_items():
    with pytest.raises(ValidationError):
        purchase_order_service.create_purchase_order({"supplier_name": "X", "items": []}, None)
