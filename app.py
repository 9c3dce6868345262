from __future__ import annotations

import streamlit as st

from core.config import get_settings
from core.logging import setup_logging

st.set_page_config(page_title="POS & Production", page_icon="🏪", layout="wide")

settings = get_settings()
setup_logging(settings.log_level, json=settings.log_json)

pages = [
    st.Page("home.py", title="Dashboard", icon="🏠"),
    st.Page("pages/1_🛒_Point_of_Sale.py", title="Point of Sale", icon="🛒"),
    st.Page("pages/2_🗂️_Catalog.py", title="Catalog", icon="🗂️"),
    st.Page("pages/3_📥_Purchases.py", title="Purchases", icon="📥"),
    st.Page("pages/4_🧾_Recipes.py", title="Recipes", icon="🧾"),
    st.Page("pages/5_🏭_Production.py", title="Production", icon="🏭"),
    st.Page("pages/6_📊_Reports.py", title="Reports", icon="📊"),
    st.Page("pages/7_🧪_Data_Management.py", title="Data Management", icon="🧪"),
]

st.navigation(pages).run()
