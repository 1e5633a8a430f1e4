"""
Script to create a sample customer with pricing overrides for testing.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from rateshop.db.database import SessionLocal, Base, engine
from rateshop.models import Customer

SAMPLE_CUSTOMER = "Northern Fresh Foods"


def create_sample_customer():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        existing = db.query(Customer).filter(Customer.name == SAMPLE_CUSTOMER).first()
        if existing:
            print(f"Customer '{SAMPLE_CUSTOMER}' already exists with ID: {existing.id}")
            return

        customer = Customer(
            name=SAMPLE_CUSTOMER,
            contact_name="Dana",
            contact_email="dana@northernfresh.example",
            margin_percentage=18,
            minimum_profit=75,
        )
        db.add(customer)
        db.commit()
        db.refresh(customer)
        print(f"Created customer: {customer.name} (ID: {customer.id})")
    except Exception as e:
        print(f"Error: {e}")
        db.rollback()
    finally:
        db.close()

if __name__ == "__main__":
    create_sample_customer()
