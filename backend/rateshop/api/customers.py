"""
Customer API endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
from rateshop.db.database import get_db
from rateshop.models import Customer
from rateshop.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse

router = APIRouter()


def _get_customer_or_404(db: Session, customer_id: UUID) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Customer {customer_id} not found"
        )
    return customer


@router.post("/", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    db: Session = Depends(get_db)
):
    """Create a new customer."""
    # Check if customer with same name exists
    existing = db.query(Customer).filter(Customer.name == customer_data.name).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Customer with name '{customer_data.name}' already exists"
        )

    customer = Customer(**customer_data.model_dump())
    db.add(customer)
    db.commit()
    db.refresh(customer)

    return customer


@router.get("/", response_model=List[CustomerResponse])
async def list_customers(
    db: Session = Depends(get_db)
):
    """List all customers."""
    customers = db.query(Customer).order_by(Customer.name).all()
    return customers


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: UUID,
    db: Session = Depends(get_db)
):
    """Get a specific customer."""
    return _get_customer_or_404(db, customer_id)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: UUID,
    customer_data: CustomerUpdate,
    db: Session = Depends(get_db)
):
    """Update contact details or pricing overrides."""
    customer = _get_customer_or_404(db, customer_id)
    for field, value in customer_data.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)
    db.commit()
    db.refresh(customer)
    return customer
