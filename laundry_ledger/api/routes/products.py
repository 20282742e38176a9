from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from laundry_ledger.core.dependencies import MANAGERS, STAFF, get_db, require_role
from laundry_ledger.core.errors import Conflict, InvalidInput, NotFound
from laundry_ledger.models.product import Product
from laundry_ledger.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from laundry_ledger.services.audit_service import log_action
from laundry_ledger.services.money import MAX_AMOUNT, ZERO, to_money

router = APIRouter(prefix="/products", tags=["Products"])


def _checked_price(value, label: str):
    if value is None:
        return None
    try:
        price = to_money(value)
    except ValueError:
        raise InvalidInput(f"{label} is not a valid number")
    if price < ZERO:
        raise InvalidInput(f"{label} cannot be negative")
    if price >= MAX_AMOUNT:
        raise InvalidInput(f"{label} is too large")
    return price


# ---------------- PRICE LIST ----------------

@router.get("", response_model=list[ProductResponse])
def get_products(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    query = db.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active == True)
    return query.order_by(Product.name.asc()).all()


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product: ProductCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(MANAGERS))
):
    name = (product.name or "").strip()
    if not name:
        raise InvalidInput("Product name is required")

    if db.query(Product).filter(func.lower(Product.name) == name.lower()).first():
        raise Conflict(f"Product '{name}' already exists")

    new_product = Product(
        name=name,
        price=_checked_price(product.price, "Price"),
        dry_clean_price=_checked_price(product.dry_clean_price, "Dry clean price"),
        is_active=True,
    )
    db.add(new_product)
    db.commit()
    db.refresh(new_product)

    log_action(
        db=db,
        user_id=user.id,
        action="CREATE_PRODUCT",
        entity=new_product,
        details=f"Product '{new_product.name}' priced {new_product.price}"
    )

    return new_product


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(MANAGERS))
):
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFound(f"Product {product_id} not found")

    changes = payload.model_dump(exclude_unset=True)
    if "price" in changes:
        if changes["price"] is None:
            raise InvalidInput("Price cannot be cleared")
        product.price = _checked_price(changes["price"], "Price")
    if "dry_clean_price" in changes:
        product.dry_clean_price = _checked_price(changes["dry_clean_price"], "Dry clean price")
    if changes.get("is_active") is not None:
        product.is_active = changes["is_active"]

    db.commit()
    db.refresh(product)

    # Existing orders keep the prices they were created with
    log_action(
        db=db,
        user_id=user.id,
        action="UPDATE_PRODUCT",
        entity=product,
        details=f"Price: {product.price} | Dry clean: {product.dry_clean_price}"
    )

    return product
