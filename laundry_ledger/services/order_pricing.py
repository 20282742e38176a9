import re
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from laundry_ledger.core.config import settings
from laundry_ledger.core.errors import InvalidInput
from laundry_ledger.models.product import Product
from laundry_ledger.services.ledger_store import require_positive
from laundry_ledger.services.money import MAX_AMOUNT, ZERO, money_sum, to_decimal, to_money


SERVICE_NORMAL = "normal"
SERVICE_DRY_CLEAN = "dry_clean"
SERVICES = {SERVICE_NORMAL, SERVICE_DRY_CLEAN}

_TRAILING_VARIANT = re.compile(r"\s*\([^)]*\)$")


def _find_product(db: Session, item: dict) -> Product | None:
    product_id = item.get("product_id")
    if product_id is not None:
        return db.query(Product).filter(Product.id == product_id).first()

    name = (item.get("name") or "").strip()
    if not name:
        return None

    product = db.query(Product).filter(func.lower(Product.name) == name.lower()).first()
    if product:
        return product

    # "Shirt (Hanging)" is priced as "Shirt"
    base_name = _TRAILING_VARIANT.sub("", name).strip()
    if base_name and base_name != name:
        return db.query(Product).filter(func.lower(Product.name) == base_name.lower()).first()

    return None


def _unit_price(product: Product | None, item: dict, service: str) -> Decimal:
    if product is None:
        if item.get("unit_price") is None:
            raise InvalidInput(f"Unknown product '{item.get('name') or item.get('product_id')}'")
        return require_positive(item["unit_price"], "Unit price")

    if service == SERVICE_DRY_CLEAN:
        if product.dry_clean_price is None:
            raise InvalidInput(f"Dry cleaning is not offered for '{product.name}'")
        return to_money(product.dry_clean_price)

    return to_money(product.price)


def price_items(db: Session, items: list[dict], urgent: bool = False, discount_percent=0):
    """Price order lines from the current price list.

    Returns ``(lines, total_amount, final_amount)`` where ``total_amount`` is
    the subtotal after the urgent multiplier and ``final_amount`` is that
    total after the order discount.
    """
    if not items:
        raise InvalidInput("An order needs at least one item")

    try:
        discount = to_decimal(discount_percent or 0)
    except ValueError:
        raise InvalidInput("Discount percent is not a valid number")

    if not discount.is_finite() or discount < 0 or discount > 100:
        raise InvalidInput("Discount percent must be between 0 and 100")

    lines = []
    for item in items:
        quantity = item.get("quantity") or 0
        if not isinstance(quantity, int) or quantity <= 0 or quantity >= MAX_AMOUNT:
            raise InvalidInput("Item quantity must be a positive whole number")

        service = (item.get("service") or SERVICE_NORMAL).strip().lower()
        if service not in SERVICES:
            raise InvalidInput(f"Unknown service '{service}'")

        product = _find_product(db, item)
        unit_price = _unit_price(product, item, service)
        line_total = to_money(unit_price * quantity)

        lines.append({
            "product_id": product.id if product else None,
            "name": product.name if product else item.get("name"),
            "quantity": quantity,
            "service": service,
            # JSON column, so money is stored as text
            "unit_price": str(unit_price),
            "line_total": str(line_total),
        })

    subtotal = money_sum(line["line_total"] for line in lines)
    if urgent:
        subtotal = to_money(subtotal * settings.URGENT_MULTIPLIER)

    final_amount = to_money(subtotal * (Decimal("100") - discount) / Decimal("100"))
    if final_amount < ZERO:
        final_amount = ZERO

    if subtotal >= MAX_AMOUNT:
        raise InvalidInput("Order total is too large")

    return lines, subtotal, final_amount
