import logging
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text, create_engine
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

from config import DB_URL, DEFAULT_GOAL, DEFAULT_SETTINGS

logger = logging.getLogger(__name__)

# Database Setup
engine = create_engine(DB_URL, connect_args={"check_same_thread": False} if "sqlite" in DB_URL else {})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# --- Models ---

class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    target = Column(Float, nullable=False)
    saved = Column(Float, nullable=False, default=0.0)
    monthly_contribution = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.now)

class Receipt(Base):
    __tablename__ = "receipts"

    id = Column(Integer, primary_key=True, index=True)
    image_uri = Column(String, nullable=False) # local path or s3:// reference
    store = Column(String, nullable=True)
    amount = Column(Float, nullable=False)
    date = Column(String(10), nullable=False) # YYYY-MM-DD, kept as text
    extracted_text = Column(Text, nullable=True) # raw OCR output
    created_at = Column(DateTime, default=datetime.now)

    transactions = relationship("Transaction", back_populates="receipt")

class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (CheckConstraint("type IN ('income', 'expense')", name="ck_transaction_type"),)

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, nullable=False) # 'income' or 'expense'
    amount = Column(Float, nullable=False) # always positive, sign comes from type
    category = Column(String, nullable=True)
    date = Column(String(10), nullable=False)
    receipt_id = Column(Integer, ForeignKey("receipts.id"), nullable=True)
    note = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

    receipt = relationship("Receipt", back_populates="transactions")

class Setting(Base):
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=True)

# --- Init DB ---
def seed_defaults(db: Session):
    """Insert the starter goal and default settings if they are missing."""
    if db.get(Goal, DEFAULT_GOAL["id"]) is None:
        db.add(Goal(**DEFAULT_GOAL))
    for key, value in DEFAULT_SETTINGS.items():
        if db.get(Setting, key) is None:
            db.add(Setting(key=key, value=value))
    db.commit()

def init_db(bind=None):
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    db = Session(bind=bind)
    try:
        seed_defaults(db)
    finally:
        db.close()
    logger.info("Database ready at %s", bind.url)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
