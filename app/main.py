import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import logging
from datetime import date
from decimal import Decimal
from uuid import uuid4

import streamlit as st
import pandas as pd
import numpy as np
import plotly.graph_objects as go
import plotly.express as px

from treasury.async_reports import yearly_totals
from treasury.config import load_config
from treasury.domain import ALL, INFLOW, MONTH_NAMES, OUTFLOW, FilterCriteria, Profile, Transaction
from treasury.export import ExportError
from treasury.ledger import TransactionLedger
from treasury.notifications import CollectingNotifier
from treasury.profile import initials, level_progress, load_profile, save_profile
from treasury.progression import ProgressionTracker
from treasury.reports import format_currency, period_description, type_label
from treasury.services import PDF, XLSX, ReportService
from treasury.session import Session
from treasury.store import JsonFileStore
from treasury.transforms import (
    available_years,
    inflow_transactions,
    load_seed,
    outflow_transactions,
    transactions_from_frame,
)

config = load_config()
logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("treasury.app")

st.set_page_config(page_title="Treasury Dashboard", layout="wide")

PALETTE = [
    "#3b82f6", "#ef4444", "#10b981", "#f59e0b", "#8b5cf6",
    "#ec4899", "#06b6d4", "#f97316", "#14b8a6", "#6366f1",
]
TYPE_COLORS = {INFLOW: "#10b981", OUTFLOW: "#ef4444"}

# presentation only, joined with the persisted achievements at render time
ACHIEVEMENT_ICONS = {
    "1": "🏆",
    "2": "📊",
    "3": "📑",
    "4": "⭐",
    "5": "🎖️",
}


@st.cache_resource
def get_store(path: str) -> JsonFileStore:
    return JsonFileStore(path)


@st.cache_data
def get_seed(path: str):
    return load_seed(path)


store = get_store(str(config.store_file))

st.sidebar.markdown("### 👤 User")
user_id = st.sidebar.text_input("User id", value=st.session_state.get("user_id", ""))
user_name = st.sidebar.text_input("Name", value=st.session_state.get("user_name", ""))
user_email = st.sidebar.text_input("Email", value=st.session_state.get("user_email", ""))
st.session_state["user_id"] = user_id
st.session_state["user_name"] = user_name
st.session_state["user_email"] = user_email

if not user_id:
    st.title("Treasury Dashboard")
    st.info("Enter a user id in the sidebar to start.")
    st.stop()

if "session" not in st.session_state or st.session_state.session.user_id != user_id:
    session = Session(
        user_id=user_id,
        store=store,
        name=user_name,
        email=user_email,
        notifier=CollectingNotifier(),
        key_prefix=config.key_prefix,
    )
    tracker = ProgressionTracker(session)
    tracker.subscribe()
    st.session_state.session = session
    st.session_state.tracker = tracker
    st.session_state.ledger = TransactionLedger(session, seed=get_seed(str(config.seed_file)))
    st.session_state.reports = ReportService(session, top_n=config.top_categories)
    st.session_state.ledger.load()
    tracker.start()
    logger.info("Session started for user %s", user_id)

session: Session = st.session_state.session
tracker: ProgressionTracker = st.session_state.tracker
ledger: TransactionLedger = st.session_state.ledger
reports: ReportService = st.session_state.reports


def flush_notifications():
    for n in session.notifier.drain():
        icon = "⚠️" if n.variant == "destructive" else "✅"
        st.toast(f"**{n.title}**  \n{n.description}", icon=icon)


@st.fragment(run_every=config.poll_interval)
def poll_progress():
    # other tabs or windows may have written to the store meanwhile
    tracker.poll()
    flush_notifications()
    st.caption(f"Level {tracker.stats.level} · {tracker.stats.xp} XP")


poll_progress()

transactions = ledger.load()


def tx_to_df(tx_list):
    rows = []
    for t in tx_list:
        rows.append({
            "Date": pd.to_datetime(t.date),
            "Type": type_label(t.type),
            "Amount": float(t.amount),
            "Description": t.description,
            "Category": t.category,
            "Responsible": t.responsible,
            "Notes": t.notes,
        })
    df = pd.DataFrame(rows, columns=["Date", "Type", "Amount", "Description", "Category", "Responsible", "Notes"])
    if not df.empty:
        df["Date"] = df["Date"].dt.strftime("%d/%m/%Y")
    return df


menu = st.sidebar.radio("Menu", ["📑 Report", "🧾 Transactions", "👤 Profile"])

if menu == "📑 Report":
    st.title("📑 General Report")

    filter_keys = ("f_search", "f_year", "f_month", "f_start", "f_end")
    if st.button("Clear filters", key="btn_clear_filters"):
        for k in filter_keys:
            st.session_state.pop(k, None)

    search = st.text_input("Search transactions...", key="f_search")
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        years = sorted(set(available_years(transactions)) | {date.today().year})
        year = st.selectbox("Year", [ALL] + years, key="f_year")
    with col2:
        month = st.selectbox(
            "Month",
            [ALL] + list(range(1, 13)),
            format_func=lambda m: "All" if m == ALL else MONTH_NAMES[m - 1],
            key="f_month",
        )
    with col3:
        start = st.date_input("Start date", value=None, format="DD/MM/YYYY", key="f_start")
    with col4:
        end = st.date_input("End date", value=None, format="DD/MM/YYYY", key="f_end")

    criteria = FilterCriteria(year=year, month=month, start_date=start, end_date=end, search_text=search or "")
    view = reports.view(transactions, criteria)
    st.caption(f"Period: {period_description(criteria)} · {len(view.transactions)} transactions")

    k1, k2, k3 = st.columns(3)
    with k1:
        st.metric("Total Inflows", format_currency(view.totals.inflow))
    with k2:
        st.metric("Total Outflows", format_currency(view.totals.outflow))
    with k3:
        st.metric("Balance", format_currency(view.totals.balance))

    e1, e2 = st.columns(2)
    for col, fmt, label in ((e1, XLSX, "📊 Export Excel"), (e2, PDF, "📄 Export PDF")):
        with col:
            if st.button(label, key=f"btn_export_{fmt}"):
                try:
                    st.session_state[f"export_{fmt}"] = reports.export(fmt, transactions, criteria)
                except ExportError as e:
                    st.error(f"Export failed: {e}")
            exported = st.session_state.get(f"export_{fmt}")
            if exported is not None:
                st.download_button(
                    f"⬇ {exported.filename}",
                    exported.data,
                    file_name=exported.filename,
                    mime=exported.mime,
                    key=f"dl_{fmt}",
                )

    tab_table, tab_charts, tab_years = st.tabs(["Table", "Charts", "Year comparison"])

    with tab_table:
        if view.transactions:
            st.dataframe(tx_to_df(view.transactions), use_container_width=True, hide_index=True)
        else:
            st.info("No transactions found. Adjust the filters or add transactions.")

    with tab_charts:
        chart = st.radio("Chart", ["By category", "By type", "Top categories", "Monthly"], horizontal=True)
        empty_msg = "Adjust the filters or add transactions to see the chart."

        if chart == "By category":
            if view.categories:
                df_cat = pd.DataFrame([{"Category": c.name, "Amount": float(c.amount)} for c in view.categories])
                fig = px.pie(df_cat, values="Amount", names="Category", color_discrete_sequence=PALETTE)
                st.plotly_chart(fig, use_container_width=True)
            else:
                st.info(empty_msg)

        elif chart == "By type":
            if view.transactions:
                df_type = pd.DataFrame([{"Type": s.name, "Amount": float(s.amount), "kind": s.type} for s in view.types])
                fig = px.pie(
                    df_type, values="Amount", names="Type", color="kind",
                    color_discrete_map=TYPE_COLORS,
                )
                st.plotly_chart(fig, use_container_width=True)
            else:
                st.info(empty_msg)

        elif chart == "Top categories":
            if view.top_categories:
                df_top = pd.DataFrame([{"Category": c.name, "Amount": float(c.amount)} for c in view.top_categories])
                fig = px.bar(df_top, x="Category", y="Amount", color="Category", color_discrete_sequence=PALETTE)
                fig.update_layout(showlegend=False)
                st.plotly_chart(fig, use_container_width=True)
            else:
                st.info(empty_msg)

        else:
            if view.monthly:
                labels = [p.label for p in view.monthly]
                inflows = np.array([float(p.inflow) for p in view.monthly])
                outflows = np.array([float(p.outflow) for p in view.monthly])
                fig = go.Figure()
                fig.add_trace(go.Scatter(x=labels, y=inflows, mode="lines+markers", name="Inflows",
                                         line=dict(color=TYPE_COLORS[INFLOW])))
                fig.add_trace(go.Scatter(x=labels, y=outflows, mode="lines+markers", name="Outflows",
                                         line=dict(color=TYPE_COLORS[OUTFLOW])))
                fig.add_trace(go.Scatter(x=labels, y=np.cumsum(inflows - outflows), mode="lines",
                                         name="Running balance", line=dict(dash="dot")))
                fig.update_layout(margin=dict(t=30, b=10, l=10, r=10))
                st.plotly_chart(fig, use_container_width=True)
            else:
                st.info(empty_msg)

    with tab_years:
        years_present = list(available_years(transactions))
        if years_present:
            per_year = asyncio.run(yearly_totals(transactions, years_present))
            df_years = pd.DataFrame([
                {
                    "Year": y,
                    "Inflows": format_currency(t.inflow),
                    "Outflows": format_currency(t.outflow),
                    "Balance": format_currency(t.balance),
                }
                for y, t in per_year.items()
            ])
            st.table(df_years)
        else:
            st.info("No transactions yet.")

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")

    k1, k2, k3 = st.columns(3)
    k1.metric("Transactions", len(transactions))
    k2.metric("Inflows", len(inflow_transactions(transactions)))
    k3.metric("Outflows", len(outflow_transactions(transactions)))

    st.subheader("➕ Add New Transaction")
    with st.form("input_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            tx_date = st.date_input("Date", format="DD/MM/YYYY")
            tx_type = st.selectbox("Type", [INFLOW, OUTFLOW], format_func=type_label)
            amount = st.number_input("Amount (R$)", min_value=0.0, step=10.0, format="%.2f")
        with col2:
            category = st.text_input("Category")
            responsible = st.text_input("Responsible", value=user_name)
            description = st.text_input("Description")
        notes = st.text_area("Notes (optional)")
        submitted = st.form_submit_button("Add Transaction")

        if submitted:
            if not description or not category:
                st.warning("Description and category are required.")
            else:
                new_tx = Transaction(
                    id=str(uuid4()),
                    date=tx_date,
                    type=tx_type,
                    amount=Decimal(str(amount)).quantize(Decimal("0.01")),
                    description=description,
                    category=category,
                    responsible=responsible,
                    notes=notes or "",
                )
                transactions = ledger.add(new_tx)
                st.success("✅ Transaction added!")

    st.subheader("📥 Import Sheet")
    uploaded = st.file_uploader(
        "CSV or Excel with columns date, type, amount, description, category, responsible, notes",
        type=["csv", "xlsx"],
    )
    if uploaded is not None and st.button("Import", key="btn_import_sheet"):
        try:
            if uploaded.name.endswith(".csv"):
                df_sheet = pd.read_csv(uploaded)
            else:
                df_sheet = pd.read_excel(uploaded, engine="openpyxl")
            imported = transactions_from_frame(df_sheet, id_prefix=uploaded.name.rsplit(".", 1)[0])
        except ValueError as e:
            st.error(f"Could not read the sheet: {e}")
        else:
            transactions = ledger.import_sheet(imported)
            st.success(f"Imported {len(imported)} rows from {uploaded.name}")

    st.divider()

    if transactions:
        st.subheader("📋 Recorded Transactions")
        ordered = reports.view(transactions, FilterCriteria.cleared()).transactions
        st.dataframe(tx_to_df(ordered), use_container_width=True, hide_index=True)

        labels = {t.id: f"{t.date.strftime('%d/%m/%Y')} · {t.description} · {format_currency(t.amount)}" for t in ordered}
        to_remove = st.selectbox("Remove transaction", list(labels), format_func=labels.get)
        if st.button("🗑 Remove", key="btn_remove_tx"):
            transactions = ledger.remove(to_remove)
            st.success("Transaction removed")
    else:
        st.info("No transactions recorded yet.")

elif menu == "👤 Profile":
    st.title("👤 My Profile")
    profile = load_profile(session)
    stats = tracker.stats

    tab_profile, tab_achievements, tab_stats = st.tabs(["Profile", "Achievements", "Statistics"])

    with tab_profile:
        col_avatar, col_info = st.columns([1, 3])
        with col_avatar:
            if profile.photo_url:
                st.image(profile.photo_url, width=120)
            else:
                st.markdown(f"## {initials(profile.name) or '?'}")
        with col_info:
            st.subheader(profile.name or user_id)
            st.caption(profile.email)
            st.write(profile.bio)
            st.progress(level_progress(stats) / 100, text=f"Level {stats.level} · {stats.xp}/{stats.next_level_xp} XP")

        with st.form("profile_form"):
            name = st.text_input("Name", value=profile.name)
            email = st.text_input("Email", value=profile.email)
            username = st.text_input("Username", value=profile.username)
            bio = st.text_area("Bio", value=profile.bio)
            photo_url = st.text_input("Photo URL", value=profile.photo_url)
            if st.form_submit_button("💾 Save"):
                save_profile(session, Profile(name=name, email=email, username=username, bio=bio, photo_url=photo_url))
                st.success("Profile updated")

    with tab_achievements:
        unlocked = sum(1 for a in tracker.achievements if a.unlocked)
        st.caption(f"{unlocked} of {len(tracker.achievements)} unlocked")
        for a in tracker.achievements:
            icon = ACHIEVEMENT_ICONS.get(a.id, "🏅")
            col_icon, col_text = st.columns([1, 8])
            with col_icon:
                st.markdown(f"## {icon if a.unlocked else '🔒'}")
            with col_text:
                st.markdown(f"**{a.title}**: {a.description}")
                st.progress(min(1.0, a.progress / a.max_progress), text=f"{a.progress}/{a.max_progress}")

    with tab_stats:
        s1, s2, s3, s4 = st.columns(4)
        s1.metric("Transactions", stats.transactions_created)
        s2.metric("Reports", stats.reports_generated)
        s3.metric("Sheets", stats.sheets_managed)
        s4.metric("Days active", stats.days_active)
        df_stats = pd.DataFrame({
            "Activity": ["Transactions", "Reports", "Sheets", "Days active"],
            "Count": [stats.transactions_created, stats.reports_generated, stats.sheets_managed, stats.days_active],
        })
        fig = px.bar(df_stats, x="Activity", y="Count", color="Activity", color_discrete_sequence=PALETTE)
        fig.update_layout(showlegend=False)
        st.plotly_chart(fig, use_container_width=True)

flush_notifications()
