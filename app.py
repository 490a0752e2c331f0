import hashlib
import sys
from datetime import date, datetime
from pathlib import Path

import pandas as pd
import streamlit as st
from pydantic import ValidationError

# Add current directory to path
sys.path.append(str(Path(__file__).parent))

import ledger
from app_lock import LOCK_ENABLED_SETTING, PASSCODE_SETTING, AppLock, hash_passcode
from config import APP_NAME, CATEGORIES, RECEIPT_CATEGORY, setup_logging
from daily_challenge import get_todays_challenge
from dashboard import cat_spend, category_table, goal_card, spending_kpis, top_categories
from database import SessionLocal, init_db
from ocr import TesseractOCRProvider
from receipt_extractor import ExtractedReceipt
from scan import ReceiptScanner, ScanError, capture_keys, reset_capture, save_scanned_receipt
from storage import load_receipt_image

# --- Configuration ---
setup_logging()
st.set_page_config(page_title=APP_NAME, layout="wide", page_icon="🎯")

# --- Database Session ---
init_db()

if "db" not in st.session_state:
    st.session_state.db = SessionLocal()

def get_db():
    return st.session_state.db

# --- App Lock ---
def get_app_lock() -> AppLock:
    if "app_lock" not in st.session_state:
        st.session_state.app_lock = AppLock.from_settings(get_db())
    return st.session_state.app_lock

def reload_app_lock():
    was_locked = st.session_state.get("app_lock") and st.session_state.app_lock.locked
    st.session_state.app_lock = AppLock.from_settings(get_db())
    # Changing settings from inside the app never locks the current user out
    st.session_state.app_lock.locked = bool(was_locked)

def check_unlock():
    lock = get_app_lock()
    if not lock.locked:
        return True

    st.title(APP_NAME)
    st.caption("Enter your passcode to unlock")
    passcode = st.text_input("Passcode", type="password", key="unlock_passcode")
    if st.button("Unlock", type="primary", use_container_width=True):
        if lock.unlock(passcode):
            st.rerun()
        else:
            st.error("Wrong passcode. Please try again.")
    return False

if not check_unlock():
    st.stop()

def format_short_date(value: str) -> str:
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
        return f"{parsed:%b} {parsed.day}"
    except ValueError:
        return value

# --- Sidebar ---
PAGES = ["🏠 Home", "➖ Add Expense", "➕ Add Income", "📷 Scan Receipt", "🧾 Receipts", "📊 Categories", "⚙️ Settings"]

with st.sidebar:
    st.header(APP_NAME)
    page = st.radio("Navigate", PAGES, key="page")
    st.divider()
    if get_app_lock().needs_auth and st.button("🔒 Lock now", use_container_width=True):
        get_app_lock().on_app_state_change("inactive")
        st.rerun()

db = get_db()

# --- Home ---
def render_home():
    st.title(APP_NAME)
    today = date.today()
    st.caption(f"{today:%A, %B} {today.day}")

    goal = ledger.get_goal(db)
    if goal:
        goal_card(goal.name, ledger.goal_summary(goal))
        challenge = get_todays_challenge(goal.monthly_contribution, today.year, today.month, today.day)
        if challenge > 0:
            st.info(f"**Today's Challenge:** save **${challenge:,.2f}** today to stay on track")

    st.divider()
    spending_kpis(
        ledger.get_spending_by_period(db),
        ledger.get_total_income(db),
        ledger.get_total_expenses(db),
    )

    totals = ledger.get_category_totals(db)
    top = top_categories(totals)
    if not top.empty:
        st.subheader("Top Categories")
        col_chart, col_list = st.columns([2, 1])
        col_chart.plotly_chart(cat_spend(totals), use_container_width=True)
        for _, row in top.iterrows():
            col_list.markdown(f"**{row['Category']}**: ${row['Total']:,.2f} ({row['Share']:.0f}%)")

    st.subheader("Recent Transactions")
    render_transactions(ledger.get_transactions(db, limit=10), allow_delete=False)

def render_transactions(transactions, allow_delete: bool = True):
    if not transactions:
        st.info("No transactions yet.")
        return
    for t in transactions:
        sign = "+" if t.type == "income" else "-"
        label = t.category or t.note or t.type.title()
        col_a, col_b, col_c = st.columns([3, 1, 1])
        col_a.markdown(f"**{label}**  \n{format_short_date(t.date)}")
        col_b.markdown(f"{sign}${t.amount:,.2f}")
        if allow_delete and col_c.button("🗑️", key=f"del_txn_{t.id}"):
            ledger.delete_transaction(db, t.id)
            st.success(f"Removed {sign}${t.amount:,.2f}")
            st.rerun()

# --- Add Expense / Income ---
def render_add_expense():
    st.header("➖ Add Expense")
    with st.form("add_expense", clear_on_submit=True):
        amount = st.number_input("Amount ($)", min_value=0.0, step=1.0, format="%.2f")
        category = st.selectbox("Category", CATEGORIES)
        note = st.text_input("Note (optional)")
        if st.form_submit_button("Save Expense", type="primary"):
            if amount <= 0:
                st.error("Enter an amount greater than zero.")
            else:
                ledger.record_expense(db, amount, category, note=note)
                st.success(f"Added expense of ${amount:,.2f}")

def render_add_income():
    st.header("➕ Add Income")
    with st.form("add_income", clear_on_submit=True):
        amount = st.number_input("Amount ($)", min_value=0.0, step=10.0, format="%.2f")
        note = st.text_input("Note (optional)")
        if st.form_submit_button("Save Income", type="primary"):
            if amount <= 0:
                st.error("Enter an amount greater than zero.")
            else:
                ledger.record_income(db, amount, note=note)
                st.success(f"Added income of ${amount:,.2f}")

# --- Scan ---
def reset_scan():
    reset_capture(st.session_state)

def render_scan():
    st.header("📷 Scan Receipt")
    scanner = ReceiptScanner(TesseractOCRProvider(), app_lock=get_app_lock())

    camera_key, upload_key = capture_keys(st.session_state)

    with scanner.session():
        source = st.camera_input("Take a photo of the receipt", key=camera_key) or st.file_uploader(
            "...or upload a receipt image", type=["jpg", "jpeg", "png"], key=upload_key
        )
        if source is not None:
            data = source.getvalue()
            digest = hashlib.sha1(data).hexdigest()
            if st.session_state.get("scan_digest") != digest:
                with st.spinner("Reading receipt..."):
                    try:
                        st.session_state.scan_result = scanner.scan(data)
                        st.session_state.scan_digest = digest
                    except ScanError as e:
                        reset_scan()
                        st.error(str(e))
                        return

        result = st.session_state.get("scan_result")
        if result is None:
            return

        col_img, col_form = st.columns([1, 1])
        image_bytes = load_receipt_image(result.image_ref)
        if image_bytes:
            col_img.image(image_bytes, use_container_width=True)

        with col_form.form("confirm_receipt"):
            store = st.text_input("Store", value=result.receipt.store)
            amount = st.number_input("Amount ($)", min_value=0.0, value=float(result.receipt.total), format="%.2f")
            receipt_date = st.text_input("Date (YYYY-MM-DD)", value=result.receipt.date)
            category = st.selectbox("Category", CATEGORIES, index=CATEGORIES.index(RECEIPT_CATEGORY))
            with st.expander("Recognised text"):
                st.text(result.raw_text or "(none)")
            save = st.form_submit_button("Save Receipt", type="primary")

        if col_form.button("Retake"):
            reset_scan()
            st.rerun()

        if save:
            try:
                confirmed = ExtractedReceipt(total=amount, date=receipt_date.strip(), store=store.strip())
            except ValidationError:
                st.error("Check the fields: store must not be empty and the date must look like YYYY-MM-DD.")
                return
            save_scanned_receipt(db, result, confirmed, category=category)
            reset_scan()
            st.success(f"Saved receipt from {confirmed.store}")

# --- Receipts ---
def render_receipts():
    st.header("🧾 Receipts")
    receipts = ledger.get_receipts(db)
    if not receipts:
        st.info("No receipts yet. Scan one from the Scan Receipt page.")
        return

    df = pd.DataFrame([
        {"ID": r.id, "Store": r.store or "Unknown", "Amount": r.amount, "Date": r.date}
        for r in receipts
    ])
    st.dataframe(df, use_container_width=True, hide_index=True,
                 column_config={"Amount": st.column_config.NumberColumn(format="$%.2f")})

    options = {f"{r.store or 'Unknown'} · {r.date} · ${r.amount:,.2f}": r.id for r in receipts}
    choice = st.selectbox("Receipt details", list(options))
    receipt = ledger.get_receipt(db, options[choice])
    if receipt is None:
        return

    col_img, col_info = st.columns([1, 1])
    image_bytes = load_receipt_image(receipt.image_uri)
    if image_bytes:
        col_img.image(image_bytes, use_container_width=True)
    else:
        col_img.caption("Image not available")
    col_info.metric("Store", receipt.store or "Unknown")
    col_info.metric("Amount", f"${receipt.amount:,.2f}")
    col_info.metric("Date", receipt.date)

    confirm = col_info.checkbox("I want to delete this receipt", key=f"confirm_del_{receipt.id}")
    if col_info.button("Delete Receipt", disabled=not confirm):
        ledger.delete_receipt(db, receipt.id)
        st.success("Receipt deleted.")
        st.rerun()

# --- Categories ---
def render_categories():
    st.header("📊 Categories")
    st.dataframe(category_table(ledger.get_category_totals(db)), use_container_width=True, hide_index=True)
    st.subheader("Recent Transactions")
    render_transactions(ledger.get_transactions(db, limit=20))

# --- Settings ---
def render_settings():
    st.header("⚙️ Settings")
    lock = get_app_lock()

    st.subheader("Security")
    has_passcode = bool(ledger.get_setting(db, PASSCODE_SETTING))
    with st.form("passcode_form", clear_on_submit=True):
        new_code = st.text_input("New passcode", type="password")
        repeat = st.text_input("Repeat passcode", type="password")
        if st.form_submit_button("Set Passcode"):
            if len(new_code) < 4:
                st.error("Use at least 4 characters.")
            elif new_code != repeat:
                st.error("Passcodes do not match.")
            else:
                ledger.set_setting(db, PASSCODE_SETTING, hash_passcode(new_code))
                reload_app_lock()
                st.success("Passcode saved.")
                has_passcode = True

    lock_enabled = st.toggle("App lock", value=lock.enabled, disabled=not has_passcode,
                             help="Set a passcode first to enable the lock.")
    if lock_enabled != lock.enabled:
        ledger.set_setting(db, LOCK_ENABLED_SETTING, "true" if lock_enabled else "false")
        reload_app_lock()
        st.rerun()

    st.subheader("Notifications")
    notifications = ledger.get_setting(db, "notifications_enabled") != "false"
    notify = st.toggle("Daily challenge reminders", value=notifications)
    if notify != notifications:
        ledger.set_setting(db, "notifications_enabled", "true" if notify else "false")

    st.subheader("Data")
    col1, col2 = st.columns(2)
    col1.download_button("Export CSV", ledger.export_data_as_csv(db),
                         file_name="goalpulse_transactions.csv", mime="text/csv")
    col2.download_button("Export JSON", ledger.export_data_as_json(db),
                         file_name="goalpulse_backup.json", mime="application/json")

    with st.expander("⚠️ Clear all data"):
        st.caption("Deletes every transaction and receipt and resets goal savings to zero.")
        if st.checkbox("I understand this cannot be undone") and st.button("Clear Data", type="primary"):
            ledger.clear_all_data(db)
            st.success("All data has been cleared.")

RENDERERS = {
    PAGES[0]: render_home,
    PAGES[1]: render_add_expense,
    PAGES[2]: render_add_income,
    PAGES[3]: render_scan,
    PAGES[4]: render_receipts,
    PAGES[5]: render_categories,
    PAGES[6]: render_settings,
}

if page != PAGES[3] and "scan_result" in st.session_state:
    reset_scan()
RENDERERS[page]()
