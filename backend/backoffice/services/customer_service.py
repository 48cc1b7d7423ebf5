# Overview: Service-layer operations for customers; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Customer, Sale
from ..models.catalog import CUSTOMER_CATEGORY_COUNTER
from ..validation import NotFoundError, ValidationError, clean_text
from .concurrency import run_in_transaction


CUSTOMER_MUTABLE_FIELDS = {"name", "category", "document", "phone"}


def list_customers() -> list[Customer]:
    return db.session.query(Customer).order_by(Customer.name.asc(), Customer.id.asc()).all()


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found")
    return customer


def add_or_update_customer(
    name: str | None,
    category: str | None = None,
    document: str | None = None,
    phone: str | None = None,
) -> Customer:
    """
    Create a customer, or update the one already registered with the same
    document id.

    Raises:
        ValidationError: If name is empty
    """
    name = clean_text("name", name)
    if not name:
        raise ValidationError("Customer name is required")

    category = clean_text("category", category) or CUSTOMER_CATEGORY_COUNTER
    document = clean_text("document", document)
    phone = clean_text("phone", phone)

    def _op():
        customer = None
        if document is not None:
            customer = db.session.query(Customer).filter_by(document=document).first()

        if customer is None:
            customer = Customer(document=document)
            db.session.add(customer)

        customer.name = name
        customer.category = category
        customer.phone = phone
        db.session.flush()
        return customer

    return run_in_transaction(_op)


def delete_customer(customer_id: int) -> None:
    """
    Delete a customer. Their sales stay on record as counter sales
    (customer_id set to NULL); nothing cascades.

    Raises:
        NotFoundError: If the customer does not exist
    """
    def _op():
        customer = db.session.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found")

        db.session.query(Sale).filter(Sale.customer_id == customer_id).update(
            {Sale.customer_id: None}, synchronize_session="fetch"
        )
        db.session.delete(customer)

    run_in_transaction(_op)
