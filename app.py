"""
Currency Ledger - Streamlit Application
Currency inventory, buy/sell entry and daily profit dashboard.
"""

import streamlit as st
import pandas as pd
import logging
from dotenv import load_dotenv

from config import get_settings
from exceptions import LedgerError, InsufficientStockError
from repositories import create_ledger_store
from services import (
    CurrencyService,
    TransactionProcessor,
    StatsService,
    ReconciliationService,
    MarketRateService,
)

# Load environment variables
load_dotenv()

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Configure Streamlit page
st.set_page_config(
    page_title="Currency Ledger",
    page_icon="💱",
    layout="wide"
)


@st.cache_resource
def get_store():
    """Create the ledger store once per server process."""
    store = create_ledger_store(settings)
    if settings.seed_default_currencies:
        CurrencyService(store, settings).seed_defaults()
    return store


store = get_store()
currency_service = CurrencyService(store, settings)
processor = TransactionProcessor(store, settings)
stats_service = StatsService(store)
reconciliation_service = ReconciliationService(store, settings)

if "confirm_reset" not in st.session_state:
    st.session_state.confirm_reset = False
if "flash" not in st.session_state:
    st.session_state.flash = None


# ==================== HELPER FUNCTIONS ====================
def fmt(value, places: int = 2) -> str:
    """Format a Decimal for display only."""
    return f"{value:,.{places}f}"


def currency_options() -> dict:
    """Map display labels to currency IDs for select boxes."""
    return {f"{c.code} - {c.name}": c.id for c in currency_service.list_currencies()}


def flash_and_rerun(message: str):
    """Keep a success message across the rerun that refreshes the page."""
    st.session_state.flash = message
    st.rerun()


def show_flash():
    message = st.session_state.flash
    if message:
        st.success(message)
        st.session_state.flash = None


# ==================== DASHBOARD ====================
def render_summary():
    """Render today's profit and inventory totals."""
    st.subheader("📊 Today")

    summary = stats_service.get_inventory_summary()
    base = settings.base_currency

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Today's Profit", f"{base} {fmt(summary.today_profit)}")
    with col2:
        st.metric("Sell Transactions Today", f"{summary.today_transaction_count}")
    with col3:
        st.metric("Inventory Value (cost)", f"{base} {fmt(summary.total_cost_value)}")
    with col4:
        st.metric(
            "Unrealized P&L",
            f"{base} {fmt(summary.total_unrealized_profit)}",
            help="Holdings valued at current rates minus their average cost"
        )

    if stats_service.get_today_stat() is None:
        st.caption("No stats yet for today.")


def render_inventory():
    """Render the currency inventory table."""
    st.subheader("💰 Inventory")

    summary = stats_service.get_inventory_summary()
    if not summary.positions:
        st.info("No currencies yet. Add one below.")
        return

    df = pd.DataFrame([
        {
            "Code": v.code,
            "Amount": fmt(v.amount, 4),
            "Avg Buy Price": fmt(v.avg_buy_price, 4),
            "Current Rate": fmt(v.current_rate, 4),
            "Value (cost)": fmt(v.cost_value),
            "P/L %": f"{v.unrealized_pct:+.2f}%",
        }
        for v in summary.positions
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)


def render_trade_forms():
    """Render buy and sell forms."""
    options = currency_options()
    if not options:
        return

    col_buy, col_sell = st.columns(2)

    with col_buy:
        with st.form("buy_form"):
            st.markdown("### 🟢 Buy")
            label = st.selectbox("Currency", options=list(options.keys()), key="buy_currency")
            amount = st.text_input("Amount", key="buy_amount")
            rate = st.text_input("Rate", key="buy_rate")
            notes = st.text_input("Notes", key="buy_notes")
            if st.form_submit_button("Record Buy", use_container_width=True):
                try:
                    tx = processor.process_buy(options[label], amount, rate, notes)
                    flash_and_rerun(f"✅ Bought {tx.amount} for {fmt(tx.total)}")
                except LedgerError as e:
                    st.error(f"❌ {e}")

    with col_sell:
        with st.form("sell_form"):
            st.markdown("### 🔴 Sell")
            label = st.selectbox("Currency", options=list(options.keys()), key="sell_currency")
            amount = st.text_input("Amount", key="sell_amount")
            rate = st.text_input("Rate", key="sell_rate")
            notes = st.text_input("Notes", key="sell_notes")
            if st.form_submit_button("Record Sell", use_container_width=True):
                try:
                    tx = processor.process_sell(options[label], amount, rate, notes)
                    flash_and_rerun(f"✅ Sold {tx.amount}, profit {fmt(tx.profit)}")
                except InsufficientStockError as e:
                    st.error(f"❌ Not enough currency in stock. Available: {e.available}")
                except LedgerError as e:
                    st.error(f"❌ {e}")


def render_recent_transactions():
    """Render the most recent transactions."""
    st.subheader("📜 Recent Transactions")

    codes = {c.id: c.code for c in currency_service.list_currencies()}
    transactions = processor.list_transactions(limit=20)
    if not transactions:
        st.info("No transactions recorded.")
        return

    df = pd.DataFrame([
        {
            "Time": tx.created_at.strftime("%Y-%m-%d %H:%M"),
            "Type": tx.type.value,
            "Currency": codes.get(tx.currency_id, tx.currency_id),
            "Amount": fmt(tx.amount, 4),
            "Rate": fmt(tx.rate, 4),
            "Total": fmt(tx.total),
            "Profit": fmt(tx.profit) if tx.type.value == "SELL" else "",
            "Notes": tx.notes or "",
        }
        for tx in transactions
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)


# ==================== SIDEBAR ====================
def render_sidebar():
    """Render currency management and administrative actions."""
    st.sidebar.title("⚙️ Manage")

    st.sidebar.subheader("➕ Add Currency")
    with st.sidebar.form("add_currency_form"):
        code = st.text_input("Code", placeholder="e.g., USD")
        name = st.text_input("Name", placeholder="e.g., US Dollar")
        country = st.text_input("Country", placeholder="e.g., United States")
        rate = st.text_input(f"Current Rate ({settings.base_currency})")
        if st.form_submit_button("Add Currency", use_container_width=True):
            try:
                holding = currency_service.create_currency(code, name, country, rate)
                flash_and_rerun(f"✅ Added {holding.currency.code}")
            except LedgerError as e:
                st.error(f"❌ {e}")

    options = currency_options()
    if options:
        st.sidebar.subheader("🔄 Update Rate")
        label = st.sidebar.selectbox("Currency", options=list(options.keys()), key="rate_currency")
        new_rate = st.sidebar.text_input("New Rate", key="rate_value")
        col1, col2 = st.sidebar.columns(2)
        with col1:
            if st.button("Set", use_container_width=True):
                try:
                    currency_service.update_rate(options[label], new_rate)
                    st.rerun()
                except LedgerError as e:
                    st.sidebar.error(f"❌ {e}")
        with col2:
            if st.button("Fetch Live", use_container_width=True):
                with st.spinner("Fetching rate..."):
                    updated = currency_service.refresh_rate(options[label], MarketRateService)
                if updated is None:
                    st.sidebar.warning("No live quote available.")
                else:
                    st.rerun()

    st.sidebar.subheader("🧾 Reconciliation")
    if st.sidebar.button("Check Consistency", use_container_width=True):
        report = reconciliation_service.find_drift()
        if report.is_consistent:
            st.sidebar.success("✓ Positions and stats match the transaction log")
        else:
            for drift in report.drifts:
                st.sidebar.warning(drift.description)

    st.sidebar.subheader("⚠️ Reset")
    if not st.session_state.confirm_reset:
        if st.sidebar.button("Reset Inventory", use_container_width=True):
            st.session_state.confirm_reset = True
            st.rerun()
    else:
        st.sidebar.error("This deletes all transactions and zeroes every position.")
        col1, col2 = st.sidebar.columns(2)
        with col1:
            if st.button("Confirm", use_container_width=True):
                st.session_state.confirm_reset = False
                try:
                    reconciliation_service.reset_all()
                except LedgerError as e:
                    st.sidebar.error(f"❌ Reset failed: {e}")
                else:
                    flash_and_rerun("✅ Inventory reset")
        with col2:
            if st.button("Cancel", use_container_width=True):
                st.session_state.confirm_reset = False
                st.rerun()


# ==================== MAIN ====================
def main():
    st.title("💱 Currency Ledger")
    st.markdown("*Currency inventory with weighted-average cost and daily profit*")

    show_flash()
    render_sidebar()
    render_summary()
    render_inventory()
    render_trade_forms()
    render_recent_transactions()


main()
