"""
ledger.py
---------
Queries and updates against the local store: the savings goal,
income/expense transactions, scanned receipts and app settings.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import date, timedelta
from typing import Dict, List, Optional

import pandas as pd
from sqlalchemy import func
from sqlalchemy.orm import Session

from config import UNCATEGORIZED
from database import Goal, Receipt, Setting, Transaction

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ("income", "expense")
CSV_COLUMNS = ["id", "type", "amount", "category", "date", "note", "created_at"]


def _row_to_dict(row) -> dict:
    data = {c.name: getattr(row, c.name) for c in row.__table__.columns}
    if data.get("created_at") is not None:
        data["created_at"] = data["created_at"].isoformat(sep=" ", timespec="seconds")
    return data


# --- Goal ---

def get_goal(db: Session) -> Optional[Goal]:
    return db.query(Goal).order_by(Goal.id).first()


def update_goal_saved(db: Session, goal_id: int, saved: float):
    db.query(Goal).filter(Goal.id == goal_id).update({Goal.saved: saved})
    db.commit()


def goal_summary(goal: Goal) -> Dict[str, float]:
    """Remaining amount, percent saved and months left at the planned pace."""
    remaining = max(0.0, goal.target - goal.saved)
    progress = (goal.saved / goal.target) * 100 if goal.target > 0 else 0.0
    months = math.ceil(remaining / goal.monthly_contribution) if goal.monthly_contribution > 0 else 0
    return {
        "saved": float(goal.saved),
        "target": float(goal.target),
        "remaining": float(remaining),
        "progress": float(progress),
        "months_to_goal": int(months),
    }


# --- Transactions ---

def get_transactions(db: Session, limit: int = 50) -> List[Transaction]:
    return (
        db.query(Transaction)
        .order_by(Transaction.date.desc(), Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .all()
    )


def get_transaction(db: Session, transaction_id: int) -> Optional[Transaction]:
    return db.get(Transaction, transaction_id)


def add_transaction(
    db: Session,
    type: str,
    amount: float,
    date: str,
    category: Optional[str] = None,
    receipt_id: Optional[int] = None,
    note: Optional[str] = None,
    commit: bool = True,
) -> int:
    if type not in TRANSACTION_TYPES:
        raise ValueError(f"Transaction type must be one of {TRANSACTION_TYPES}, got {type!r}")
    if amount is None or amount <= 0:
        raise ValueError("Transaction amount must be positive")

    txn = Transaction(
        type=type,
        amount=float(amount),
        category=category,
        date=date,
        receipt_id=receipt_id,
        note=note,
    )
    db.add(txn)
    if commit:
        db.commit()
    else:
        db.flush()
    return txn.id


def adjust_goal_saved(db: Session, delta: float):
    goal = get_goal(db)
    if goal is not None:
        goal.saved = goal.saved + delta


def record_income(db: Session, amount: float, note: Optional[str] = None, on: Optional[str] = None) -> int:
    """Book income dated today (or ``on``) and add it to the goal's savings."""
    txn_id = add_transaction(
        db, "income", amount, on or date.today().isoformat(), note=note or None, commit=False
    )
    adjust_goal_saved(db, amount)
    db.commit()
    return txn_id


def record_expense(
    db: Session,
    amount: float,
    category: str,
    note: Optional[str] = None,
    on: Optional[str] = None,
) -> int:
    """Book an expense and take it out of the goal's savings."""
    txn_id = add_transaction(
        db, "expense", amount, on or date.today().isoformat(), category=category, note=note or None, commit=False
    )
    adjust_goal_saved(db, -amount)
    db.commit()
    return txn_id


def delete_transaction(db: Session, transaction_id: int):
    db.query(Transaction).filter(Transaction.id == transaction_id).delete()
    db.commit()


# --- Receipts ---

def get_receipts(db: Session) -> List[Receipt]:
    return db.query(Receipt).order_by(Receipt.date.desc(), Receipt.id.desc()).all()


def get_receipt(db: Session, receipt_id: int) -> Optional[Receipt]:
    return db.get(Receipt, receipt_id)


def add_receipt(
    db: Session,
    image_uri: str,
    amount: float,
    date: str,
    store: Optional[str] = None,
    extracted_text: Optional[str] = None,
    commit: bool = True,
) -> int:
    receipt = Receipt(image_uri=image_uri, store=store, amount=float(amount), date=date, extracted_text=extracted_text)
    db.add(receipt)
    if commit:
        db.commit()
    else:
        db.flush()
    return receipt.id


def delete_receipt(db: Session, receipt_id: int):
    """Delete a receipt together with the transactions booked from it."""
    db.query(Transaction).filter(Transaction.receipt_id == receipt_id).delete()
    db.query(Receipt).filter(Receipt.id == receipt_id).delete()
    db.commit()


# --- Settings ---

def get_setting(db: Session, key: str) -> Optional[str]:
    setting = db.get(Setting, key)
    return setting.value if setting else None


def set_setting(db: Session, key: str, value: str):
    db.merge(Setting(key=key, value=value))
    db.commit()


# --- Aggregates ---

def _expense_total(db: Session, since: Optional[str] = None) -> float:
    query = db.query(func.coalesce(func.sum(Transaction.amount), 0.0)).filter(Transaction.type == "expense")
    if since is not None:
        query = query.filter(Transaction.date >= since)
    return float(query.scalar())


def get_category_totals(db: Session) -> List[Dict[str, float]]:
    category = func.coalesce(Transaction.category, UNCATEGORIZED)
    rows = (
        db.query(category.label("category"), func.sum(Transaction.amount).label("total"))
        .filter(Transaction.type == "expense")
        .group_by(category)
        .all()
    )
    return [{"category": row.category, "total": float(row.total)} for row in rows]


def get_spending_by_period(db: Session, today: Optional[date] = None) -> Dict[str, float]:
    today = today or date.today()
    week_start = today - timedelta(days=7)
    month_start = today.replace(day=1)
    return {
        "today": _expense_total(db, today.isoformat()),
        "week": _expense_total(db, week_start.isoformat()),
        "month": _expense_total(db, month_start.isoformat()),
    }


def get_total_income(db: Session) -> float:
    total = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0.0))
        .filter(Transaction.type == "income")
        .scalar()
    )
    return float(total)


def get_total_expenses(db: Session) -> float:
    return _expense_total(db)


# --- Maintenance & export ---

def clear_all_data(db: Session):
    """Remove every transaction and receipt and reset goal savings to zero."""
    db.query(Transaction).delete()
    db.query(Receipt).delete()
    db.query(Goal).update({Goal.saved: 0.0})
    db.commit()
    logger.info("Cleared all transactions and receipts")


def export_data_as_json(db: Session) -> str:
    payload = {
        "goals": [_row_to_dict(g) for g in db.query(Goal).order_by(Goal.id).all()],
        "transactions": [_row_to_dict(t) for t in db.query(Transaction).order_by(Transaction.id).all()],
        "receipts": [_row_to_dict(r) for r in db.query(Receipt).order_by(Receipt.id).all()],
        "settings": {s.key: s.value for s in db.query(Setting).all()},
    }
    return json.dumps(payload, indent=2)


def export_data_as_csv(db: Session) -> str:
    txns = db.query(Transaction).order_by(Transaction.id).all()
    df = pd.DataFrame([_row_to_dict(t) for t in txns], columns=CSV_COLUMNS)
    return df.to_csv(index=False)
