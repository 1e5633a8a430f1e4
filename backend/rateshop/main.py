"""
Main FastAPI application entry point.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rateshop.api import quotes, carriers, customers, quote_runs
from rateshop.db.database import engine, Base

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Rate Shop Freight Quoting API",
    description="Batch and spot freight quoting across LTL, volume LTL and reefer networks",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # React dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(customers.router, prefix="/api/customers", tags=["customers"])
app.include_router(quotes.router, prefix="/api/quotes", tags=["quotes"])
app.include_router(carriers.router, prefix="/api/carriers", tags=["carriers"])
app.include_router(quote_runs.router, prefix="/api/quote-runs", tags=["quote-runs"])


@app.get("/")
async def root():
    return {"message": "Rate Shop Freight Quoting API"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
