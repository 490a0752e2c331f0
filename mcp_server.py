"""Lightweight MCP-aligned server exposing GoalPulse tools over FastAPI."""

from datetime import date
from typing import Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

import ledger
from config import CATEGORIES, RECEIPT_CATEGORY, setup_logging
from daily_challenge import get_todays_challenge
from database import get_db, init_db
from receipt_extractor import ExtractedReceipt, extract_from_receipt_text
from scan import ScanResult, save_scanned_receipt

app = FastAPI(title="GoalPulse MCP Server", version="0.1.0")


# --- Receipt extraction ---

class ExtractRequest(BaseModel):
    text: str = Field("", description="Raw OCR text of a receipt")


@app.post("/tools/extract_receipt", response_model=ExtractedReceipt)
async def extract_receipt(req: ExtractRequest):
    return extract_from_receipt_text(req.text)


class ChallengeResponse(BaseModel):
    day: date
    monthly_goal: float
    amount: float


@app.get("/tools/daily_challenge", response_model=ChallengeResponse)
async def daily_challenge(db: Session = Depends(get_db)):
    today = date.today()
    goal = ledger.get_goal(db)
    monthly = goal.monthly_contribution if goal else 0.0
    amount = get_todays_challenge(monthly, today.year, today.month, today.day) if goal else 0.0
    return ChallengeResponse(day=today, monthly_goal=monthly, amount=amount)


# --- Goal ---

class GoalResponse(BaseModel):
    id: int
    name: str
    target: float
    saved: float
    monthly_contribution: float
    remaining: float
    progress: float
    months_to_goal: int


class GoalSavedRequest(BaseModel):
    saved: float


def _goal_response(db: Session) -> GoalResponse:
    goal = ledger.get_goal(db)
    if goal is None:
        raise HTTPException(status_code=404, detail="No goal configured")
    summary = ledger.goal_summary(goal)
    return GoalResponse(
        id=goal.id,
        name=goal.name,
        monthly_contribution=goal.monthly_contribution,
        **summary,
    )


@app.get("/goal", response_model=GoalResponse)
async def read_goal(db: Session = Depends(get_db)):
    return _goal_response(db)


@app.put("/goal/saved", response_model=GoalResponse)
async def write_goal_saved(req: GoalSavedRequest, db: Session = Depends(get_db)):
    goal = ledger.get_goal(db)
    if goal is None:
        raise HTTPException(status_code=404, detail="No goal configured")
    ledger.update_goal_saved(db, goal.id, req.saved)
    return _goal_response(db)


# --- Transactions ---

class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    amount: float
    category: Optional[str]
    date: str
    receipt_id: Optional[int]
    note: Optional[str]


class TransactionIn(BaseModel):
    type: Literal["income", "expense"]
    amount: float = Field(gt=0)
    category: Optional[str] = None
    date: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    note: Optional[str] = None


@app.get("/transactions", response_model=List[TransactionOut])
async def list_transactions(limit: int = 50, db: Session = Depends(get_db)):
    return ledger.get_transactions(db, limit=limit)


@app.post("/transactions", response_model=TransactionOut, status_code=201)
async def create_transaction(req: TransactionIn, db: Session = Depends(get_db)):
    if req.type == "income":
        txn_id = ledger.record_income(db, req.amount, note=req.note, on=req.date)
    else:
        category = req.category or CATEGORIES[0]
        txn_id = ledger.record_expense(db, req.amount, category, note=req.note, on=req.date)
    return ledger.get_transaction(db, txn_id)


@app.delete("/transactions/{transaction_id}", status_code=204)
async def remove_transaction(transaction_id: int, db: Session = Depends(get_db)):
    ledger.delete_transaction(db, transaction_id)
    return Response(status_code=204)


# --- Receipts ---

class ReceiptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    image_uri: str
    store: Optional[str]
    amount: float
    date: str
    extracted_text: Optional[str]


class ReceiptIn(BaseModel):
    image_uri: str
    receipt: ExtractedReceipt
    extracted_text: Optional[str] = None
    category: str = RECEIPT_CATEGORY


@app.get("/receipts", response_model=List[ReceiptOut])
async def list_receipts(db: Session = Depends(get_db)):
    return ledger.get_receipts(db)


@app.post("/receipts", response_model=ReceiptOut, status_code=201)
async def create_receipt(req: ReceiptIn, db: Session = Depends(get_db)):
    result = ScanResult(image_ref=req.image_uri, receipt=req.receipt, raw_text=req.extracted_text or "")
    receipt_id = save_scanned_receipt(db, result, category=req.category)
    return ledger.get_receipt(db, receipt_id)


@app.get("/receipts/{receipt_id}", response_model=ReceiptOut)
async def read_receipt(receipt_id: int, db: Session = Depends(get_db)):
    receipt = ledger.get_receipt(db, receipt_id)
    if receipt is None:
        raise HTTPException(status_code=404, detail="Receipt not found")
    return receipt


@app.delete("/receipts/{receipt_id}", status_code=204)
async def remove_receipt(receipt_id: int, db: Session = Depends(get_db)):
    if ledger.get_receipt(db, receipt_id) is None:
        raise HTTPException(status_code=404, detail="Receipt not found")
    ledger.delete_receipt(db, receipt_id)
    return Response(status_code=204)


# --- Settings ---

class SettingValue(BaseModel):
    key: str
    value: Optional[str]


class SettingIn(BaseModel):
    value: str


@app.get("/settings/{key}", response_model=SettingValue)
async def read_setting(key: str, db: Session = Depends(get_db)):
    value = ledger.get_setting(db, key)
    if value is None:
        raise HTTPException(status_code=404, detail=f"Setting '{key}' not found")
    return SettingValue(key=key, value=value)


@app.put("/settings/{key}", response_model=SettingValue)
async def write_setting(key: str, req: SettingIn, db: Session = Depends(get_db)):
    ledger.set_setting(db, key, req.value)
    return SettingValue(key=key, value=req.value)


# --- Summary & export ---

class SummaryResponse(BaseModel):
    spending: Dict[str, float]
    total_income: float
    total_expenses: float
    categories: List[Dict[str, object]]


@app.get("/summary", response_model=SummaryResponse)
async def summary(db: Session = Depends(get_db)):
    return SummaryResponse(
        spending=ledger.get_spending_by_period(db),
        total_income=ledger.get_total_income(db),
        total_expenses=ledger.get_total_expenses(db),
        categories=ledger.get_category_totals(db),
    )


@app.get("/export/json")
async def export_json(db: Session = Depends(get_db)):
    return Response(content=ledger.export_data_as_json(db), media_type="application/json")


@app.get("/export/csv", response_class=PlainTextResponse)
async def export_csv(db: Session = Depends(get_db)):
    return PlainTextResponse(ledger.export_data_as_csv(db), media_type="text/csv")


@app.post("/data/clear", status_code=204)
async def clear_data(db: Session = Depends(get_db)):
    ledger.clear_all_data(db)
    return Response(status_code=204)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    init_db()
    uvicorn.run("mcp_server:app", host="0.0.0.0", port=8001, reload=True)
