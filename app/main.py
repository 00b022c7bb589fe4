import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import streamlit as st

import pandas as pd
import plotly.express as px

from ledger.config import get_settings
from ledger.log import configure_logging
from ledger.services import LedgerService

st.set_page_config(page_title="Pocket Ledger", layout="centered")

settings = get_settings()


@st.cache_resource
def get_service() -> LedgerService:
    configure_logging(settings.log_level, settings.log_json)
    return LedgerService.from_settings(settings)


service = get_service()


def euros(value) -> str:
    return f"{value:,.2f} €"


menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "🔁 Debts", "💶 New Paycheck"]
)

if menu == "🏠 Dashboard":
    dash = service.dashboard()

    st.title("🏠 Dashboard")
    k1, k2, k3 = st.columns(3)
    with k1:
        st.metric("Net Worth", euros(dash["net_worth"]))
    with k2:
        st.metric("Open Debts", len(dash["debts"]))
    with k3:
        st.metric("Fixed Charges", euros(dash["fixed_charges_total"]))

    st.subheader("🏦 Accounts")
    for item in dash["accounts"]:
        col_name, col_balance = st.columns([2, 1])
        with col_name:
            st.write(f"**{item.name}**")
            if item.has_debt:
                color = "red" if item.virtual_balance < item.balance else "orange"
                st.caption(f":{color}[True available: {euros(item.virtual_balance)}]")
        with col_balance:
            if item.readonly:
                st.metric(item.name, euros(item.balance), label_visibility="collapsed")
            else:
                new_value = st.number_input(
                    item.name,
                    value=float(item.balance),
                    step=10.0,
                    format="%.2f",
                    key=f"bal_{item.id}",
                    label_visibility="collapsed",
                )
                if round(new_value, 2) != float(item.balance):
                    service.edit_balance(item.id, new_value)
                    st.rerun()

    st.subheader(f"👛 Pockets ({service.aggregate_account})")
    for item in dash["pockets"]:
        col_name, col_balance = st.columns([2, 1])
        with col_name:
            st.write(f"**{item.name}**")
            if item.has_debt:
                color = "red" if item.virtual_balance < item.balance else "orange"
                st.caption(f":{color}[True available: {euros(item.virtual_balance)}]")
        with col_balance:
            new_value = st.number_input(
                item.name,
                value=float(item.balance),
                step=10.0,
                format="%.2f",
                key=f"bal_{item.id}",
                label_visibility="collapsed",
            )
            if round(new_value, 2) != float(item.balance):
                service.edit_balance(item.id, new_value)
                st.rerun()

    if any(p.balance > 0 for p in dash["pockets"]):
        fig = px.pie(
            names=[p.name for p in dash["pockets"]],
            values=[float(p.balance) for p in dash["pockets"]],
            title="Pocket Balances",
            template="plotly_dark",
        )
        st.plotly_chart(fig, use_container_width=True)

    with st.expander("✏️ Rename a container"):
        with st.form("rename_form", clear_on_submit=True):
            old = st.selectbox("Container", dash["debt_sources"])
            new = st.text_input("New name")
            if st.form_submit_button("Rename"):
                if service.rename(old, new):
                    st.success(f"Renamed {old} to {new}; debts and percentages follow.")
                    st.rerun()
                else:
                    st.error("Rename refused (empty, duplicate or read-only name).")

elif menu == "🔁 Debts":
    dash = service.dashboard()
    sources = list(dash["debt_sources"])

    st.title("🔁 Debts & Transfers")

    with st.form("debt_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            borrow_from = st.selectbox("Borrowed from", sources, index=0)
            amount = st.text_input("Amount (€)", placeholder="0.00")
        with col2:
            to_fund = st.selectbox("To fund", sources, index=min(1, len(sources) - 1))
            note = st.text_input("Note (optional)")
        submitted = st.form_submit_button("Add Debt")

        if submitted:
            result = service.add_debt(borrow_from, to_fund, amount, note)
            if result.is_left():
                st.error(result.get_error()["message"])
            else:
                st.success("✅ Debt added")
                st.rerun()

    st.subheader("📜 History")
    if not dash["debts"]:
        st.info("No open debts 🎉")
    else:
        for debt in dash["debts"]:
            col_info, col_amount, col_settle = st.columns([3, 1, 1])
            with col_info:
                st.write(f"**{debt.to_fund}** ⇄ {debt.borrow_from}")
                st.caption(f"{debt.date}" + (f" • {debt.note}" if debt.note else ""))
            with col_amount:
                st.write(f"**{euros(debt.amount)}**")
            with col_settle:
                if st.button("Settle", key=f"settle_{debt.id}"):
                    service.remove_debt(debt.id)
                    st.rerun()

        debt_df = pd.DataFrame([
            {"date": d.date, "borrowed from": d.borrow_from, "to fund": d.to_fund, "amount": float(d.amount), "note": d.note}
            for d in dash["debts"]
        ])
        st.dataframe(debt_df, use_container_width=True, hide_index=True)

elif menu == "💶 New Paycheck":
    dash = service.dashboard()

    st.title("💶 New Paycheck")

    income = st.text_input("How much did you receive? (€)", placeholder="e.g. 1500")
    preview = service.preview_paycheck(income or "0")

    if preview.is_left():
        st.error(preview.get_error()["message"])
        st.stop()

    dist = preview.get_or_else(None)

    col1, col2 = st.columns(2)
    with col1:
        st.metric(f"True available {service.primary_account}", euros(dist.true_available))
    with col2:
        st.metric("Fixed charges", f"-{euros(dash['fixed_charges_total'])}")

    charges_df = pd.DataFrame([{"charge": c.name, "amount": float(c.amount)} for c in dash["fixed_charges"]])
    st.dataframe(charges_df, use_container_width=True, hide_index=True)

    if dist.deficit > 0:
        st.error(f"⚠️ Missing {euros(dist.deficit)} to cover the fixed charges")
    else:
        st.success("✅ Fixed charges covered")

    if dist.total_available > dist.true_available or dist.excess > 0:
        st.subheader("🐷 The Splitter")
        total_pct = dash["percentage_total"]
        if total_pct != 100:
            st.error(f"Percentages total {total_pct}%, they must total exactly 100%")
        else:
            st.caption(f"Total: {total_pct}%")

        st.metric("Excess to distribute", euros(dist.excess))

        for pocket, pct in dash["percentages"].items():
            amount = dist.increment_for(pocket)
            new_pct = st.slider(
                f"{pocket}: {euros(amount if amount is not None else 0)}",
                min_value=0,
                max_value=100,
                value=int(pct),
                key=f"pct_{pocket}",
            )
            if new_pct != pct:
                service.set_percentage(pocket, new_pct)
                st.rerun()

        if dist.applied and dist.excess > 0:
            fig = px.bar(
                x=[name for name, _ in dist.increments],
                y=[float(v) for _, v in dist.increments],
                labels={"x": "Pocket", "y": "Amount (€)"},
                title="Split Preview",
                template="plotly_dark",
            )
            st.plotly_chart(fig, use_container_width=True)

        if dist.errors:
            for err in dist.errors:
                st.warning(err)

        if st.button("✅ Confirm distribution", disabled=not dist.applied, key="btn_apply_paycheck"):
            result = service.apply_paycheck(income or "0")
            if result.is_right() and result.get_or_else(None).applied:
                st.success("Distribution applied")
                st.rerun()
            else:
                st.error("Distribution refused")

if service.alerts:
    st.sidebar.markdown("### ⚠️ Alerts")
    for alert in reversed(list(service.alerts)[-5:]):
        st.sidebar.warning(alert["alert"])
    if st.sidebar.button("Clear Alerts", key="btn_clear_alerts"):
        service.alerts.clear()
        st.rerun()
