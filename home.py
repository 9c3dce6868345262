from __future__ import annotations

import streamlit as st
import pandas as pd

from core.config import get_settings
from core.db import get_conn, ensure_schema
from core.services.reports import inventory_metrics
from core.utils import fmt_money

st.title("🏪 Inventory Dashboard")
st.caption("Stock levels, alerts and the last 7 days of sales.")

settings = get_settings()
conn = get_conn(settings.db_path)
ensure_schema(conn)

with st.sidebar:
    st.subheader("Environment")
    st.write(f"**Data directory:** `{settings.data_dir}`")
    st.write(f"**Database:** `{settings.db_path.name}`")

m = inventory_metrics(conn, low_stock_threshold=settings.low_stock_threshold)

c1, c2, c3, c4, c5 = st.columns(5)
c1.metric("Total products", f"{m['total_products']}")
c2.metric("Low stock", f"{m['low_stock_items']}")
c3.metric("Out of stock", f"{m['out_of_stock_items']}")
c4.metric("Stock value", f"{settings.currency} {fmt_money(m['total_value'])}")
c5.metric("Orders (7 days)", f"{m['recent_orders']}")

left, right = st.columns(2, gap="large")

with left:
    st.subheader("Stock alerts")
    if m["stock_alerts"]:
        st.dataframe(pd.DataFrame(m["stock_alerts"]), use_container_width=True, hide_index=True)
    else:
        st.caption("No stock alerts at the moment.")

with right:
    st.subheader("Top selling (7 days)")
    if m["top_selling_products"]:
        st.dataframe(pd.DataFrame(m["top_selling_products"]), use_container_width=True, hide_index=True)
    else:
        st.caption("No sales in the last 7 days.")

if m["total_products"] == 0:
    st.info(
        "The catalog is empty. Start with **🧪 Data Management** to load demo data, then try **Recipes**, **Production** and **Point of Sale**.",
        icon="ℹ️",
    )
