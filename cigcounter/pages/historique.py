# cigcounter/pages/historique.py
# -*- coding: utf-8 -*-

# --- bootstrap import path (page streamlit dans cigcounter/pages) ---
import os, sys
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
# -------------------------------------------------------------

import datetime as dt
import io
import pandas as pd
import streamlit as st
import altair as alt

from cigcounter.persistence.db import init_db
from cigcounter.persistence.repositories.types_repo import SmokingTypeRepository
from cigcounter.persistence.repositories.summary_repo import DailySummaryRepository

# Boot DB
init_db(drop_and_recreate=False)
types_repo = SmokingTypeRepository()
summaries = DailySummaryRepository()

st.set_page_config(page_title="Historique — cigcounter", page_icon="📜", layout="wide")
st.title("📜 Historique")

# --- Filtres ---
st.sidebar.header("Filtres")
today = dt.datetime.now(dt.timezone.utc).date()
default_start = today - dt.timedelta(days=30)

discord_id = st.sidebar.text_input("Discord ID (vide = tous)", value="", max_chars=20) or None
start = st.sidebar.date_input("Du", value=default_start)
end = st.sidebar.date_input("Au", value=today)

labels = types_repo.labels()
type_choice = st.sidebar.selectbox("Type", options=["(tous)"] + list(labels.keys()))
type_name = None if type_choice == "(tous)" else type_choice

if start > end:
    st.warning("Vérifie les bornes : la date de début doit être ≤ à la date de fin.")
    st.stop()

rows = summaries.query(discord_id=discord_id, start=start, end=end, type_name=type_name)

if not rows:
    st.info("Aucune donnée dans cette période.")
    st.stop()

df = pd.DataFrame([{
    "date": r.smoke_date,
    "discord_id": r.discord_id,
    "utilisateur": r.username,
    "type": labels.get(r.type_name, r.type_name),
    "total": r.total_quantity,
} for r in rows]).sort_values(["date", "discord_id", "type"])

# KPIs
per_day = df.groupby("date", as_index=False)["total"].sum()
col1, col2, col3 = st.columns(3)
with col1:
    st.metric("Nb. jours", len(per_day))
with col2:
    st.metric("Total période", int(df["total"].sum()))
with col3:
    st.metric("Moyenne / jour", f"{per_day['total'].mean():.1f}")

# Barres empilées par type
df_chart = df.groupby(["date", "type"], as_index=False)["total"].sum()
df_chart["day"] = pd.to_datetime(df_chart["date"])

chart = (
    alt.Chart(df_chart)
    .mark_bar()
    .encode(
        x=alt.X("yearmonthdate(day):T",
                title="Jour",
                axis=alt.Axis(format="%Y-%m-%d", labelAngle=-45)),
        y=alt.Y("total:Q", title="Quantité"),
        color=alt.Color("type:N", title=""),
        tooltip=[alt.Tooltip("day:T", title="Jour", format="%Y-%m-%d"),
                 "type:N", alt.Tooltip("total:Q")]
    )
    .properties(height=300)
)

st.subheader("Consommation par jour (UTC)")
st.altair_chart(chart, use_container_width=True)

with st.expander("Voir le détail"):
    st.dataframe(df, use_container_width=True)

# Export CSV
csv_buf = io.StringIO()
df.to_csv(csv_buf, index=False)
st.download_button("⬇️ Export CSV", data=csv_buf.getvalue(), file_name="historique_cigcounter.csv", mime="text/csv")
