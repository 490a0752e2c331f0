# dashboard.py: goal card, spending KPIs and category charts for the home tab

from typing import Dict, List

import pandas as pd
import plotly.express as px
import streamlit as st

from config import CATEGORIES

CATEGORY_COLORS = {
    "Food & Drinks": "#F97316",
    "Smoking / Alcohol": "#A78BFA",
    "Fuel / Gas": "#EF4444",
    "Groceries": "#14B8A6",
    "Shopping / Clothes": "#EC4899",
    "Bills & Utilities": "#8B5CF6",
    "Taxi": "#14B8A6",
    "Health": "#EF4444",
    "Entertainment": "#F97316",
    "Other Expenses": "#9CA3AF",
}


def category_frame(totals: List[Dict[str, float]]) -> pd.DataFrame:
    """
    One row per known category (zero if unused) with its share of spending.
    """
    by_cat = {row["category"]: row["total"] for row in totals}
    known = list(CATEGORIES) + [c for c in by_cat if c not in CATEGORIES]

    df = pd.DataFrame({"Category": known, "Total": [float(by_cat.get(c, 0.0)) for c in known]})
    grand_total = df["Total"].sum()
    df["Share"] = (df["Total"] / grand_total * 100) if grand_total > 0 else 0.0
    return df


def top_categories(totals: List[Dict[str, float]], n: int = 3) -> pd.DataFrame:
    df = category_frame(totals)
    return df[df["Total"] > 0].sort_values("Total", ascending=False).head(n).reset_index(drop=True)


def cat_spend(totals: List[Dict[str, float]]):
    """
    Donut chart of spending by category.
    """
    df = category_frame(totals)
    df = df[df["Total"] > 0]

    fig = px.pie(
        df,
        values="Total",
        names="Category",
        hole=0.4,
        title="Spending by Category",
        color="Category",
        color_discrete_map=CATEGORY_COLORS,
    )
    fig.update_traces(textposition="inside", textinfo="percent+label")
    return fig


def goal_card(goal_name: str, summary: Dict[str, float]):
    """
    Displays the savings goal with progress and months left.
    """
    st.subheader(f"🎯 {goal_name}")
    st.progress(min(1.0, max(0.0, summary["progress"] / 100)))
    st.caption(f"{summary['progress']:.1f}%")

    col1, col2, col3 = st.columns(3)
    col1.metric("Saved", f"${summary['saved']:,.2f}")
    col2.metric("Target", f"${summary['target']:,.2f}")
    col3.metric("Remaining", f"${summary['remaining']:,.2f}")
    st.caption(f"{summary['months_to_goal']} months to reach goal")


def spending_kpis(spending: Dict[str, float], income: float, expenses: float):
    col1, col2, col3 = st.columns(3)
    col1.metric("Today", f"${spending['today']:,.2f}")
    col2.metric("This Week", f"${spending['week']:,.2f}")
    col3.metric("This Month", f"${spending['month']:,.2f}")

    col4, col5 = st.columns(2)
    col4.metric("💰 Total Income", f"${income:,.2f}")
    col5.metric("💸 Total Expenses", f"${expenses:,.2f}", delta=f"-${expenses:,.2f}", delta_color="inverse")


def category_table(totals: List[Dict[str, float]]) -> pd.DataFrame:
    df = category_frame(totals)
    df["Total"] = df["Total"].map(lambda v: f"${v:,.2f}")
    df["Share"] = df["Share"].map(lambda v: f"{v:.1f}%")
    return df
