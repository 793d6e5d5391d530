# cigcounter/main.py
# -*- coding: utf-8 -*-
# --- bootstrap import path (run as script via streamlit) ---
import os, sys
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
# -----------------------------------------------------------
import streamlit as st
from sqlalchemy.exc import IntegrityError

# DB init (assure que le schéma existe)
from cigcounter.persistence.db import init_db
from cigcounter.persistence.repositories.users_repo import UserRepository
from cigcounter.persistence.repositories.types_repo import SmokingTypeRepository
from cigcounter.persistence.repositories.summary_repo import DailySummaryRepository
from cigcounter.services.tally import TallyError, record_smoke, confirmation_message, totals_by_type
from cigcounter.persistence.models import utcnow

# ---------------------------------------------------------------------
# Bootstrapping
# ---------------------------------------------------------------------
init_db(drop_and_recreate=False)
users_repo = UserRepository()
types_repo = SmokingTypeRepository()
summary_repo = DailySummaryRepository()

st.set_page_config(page_title="cigcounter", page_icon="🚬", layout="centered")

# ---------------------------------------------------------------------
# Sidebar – utilisateur courant
# ---------------------------------------------------------------------
st.sidebar.title("👤 Utilisateur")
default_id = os.getenv("CIGCOUNTER_DEFAULT_DISCORD_ID", "000000000000000000")
discord_id = st.sidebar.text_input("Discord ID", value=default_id, max_chars=20)
username = st.sidebar.text_input("Nom", value=os.getenv("CIGCOUNTER_DEFAULT_USERNAME", "demo"), max_chars=100)

if st.sidebar.button("Charger/Créer l'utilisateur"):
    u = users_repo.upsert(discord_id, username)
    st.sidebar.success(f"OK : {u.username} ({u.discord_id})")

# ---------------------------------------------------------------------
# Boutons de comptage (un par type)
# ---------------------------------------------------------------------
st.title("🚬 喫煙カウント")

smoking_types = types_repo.list_all()
labels = types_repo.labels()

cols = st.columns(max(1, len(smoking_types)))
for col, t in zip(cols, smoking_types):
    with col:
        if st.button(labels.get(t.type_name, t.type_name), key=f"type_{t.id}", use_container_width=True):
            try:
                res = record_smoke(discord_id, username, t.id, quantity=1)
            except (TallyError, IntegrityError) as e:
                st.error(f"Enregistrement refusé : {e}")
            else:
                st.success(confirmation_message(res.today, labels))

# ---------------------------------------------------------------------
# Récapitulatif du jour
# ---------------------------------------------------------------------
st.subheader("Aujourd'hui (UTC)")
today_rows = summary_repo.for_day(discord_id, utcnow())
if not today_rows:
    st.info("Rien d'enregistré aujourd'hui.")
else:
    totals = totals_by_type(today_rows)
    metric_cols = st.columns(len(totals))
    for col, (type_name, n) in zip(metric_cols, totals.items()):
        with col:
            st.metric(labels.get(type_name, type_name), f"{n}本")
