# streamlit_app/dashboard.py
from __future__ import annotations
import sys
import time
from pathlib import Path

import pandas as pd
import streamlit as st

# streamlit ejecuta este fichero como script: la raíz del proyecto va al path
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

from controllers.session_controller import SessionClient
from enums.session_state import SessionState
from streamlit_app.views import eventos, tesoreria
from utils.config import Settings
from views.session_view import MemoryView

load_dotenv()

st.set_page_config(page_title="ARSV Treasury", layout="wide")
st.title("💱 ARSV Treasury")


def _get_client() -> SessionClient:
    if "client" not in st.session_state:
        client = SessionClient(settings=Settings.from_env(), view=MemoryView())
        st.session_state["client"] = client
        # igual que al cargar la página: conectar de inmediato
        client.connect()
    return st.session_state["client"]


client = _get_client()
view: MemoryView = client.view  # type: ignore[assignment]

# Sidebar
st.sidebar.header("Opciones")
auto_refresh = st.sidebar.checkbox("Auto-refresh", value=True)
interval_s   = st.sidebar.number_input("Intervalo (seg)", min_value=2, max_value=60, value=5, step=1)
if st.sidebar.button("Reconectar"):
    client.connect()
if st.sidebar.button("Actualizar balances", disabled=client.state is not SessionState.READY):
    client.update_balances()

# --------------------------
# Estado y cuenta
# --------------------------
st.caption(f"Estado: {view.status or '—'}")
st.write(f"**Cuenta:** `{view.account or '—'}`")

c1, c2 = st.columns(2)
c1.metric("USDT", view.usdt_balance if view.usdt_balance is not None else "—")
c2.metric("ARSV", view.arsv_balance if view.arsv_balance is not None else "—")

# --------------------------
# Compra / venta
# --------------------------
with st.form("swap"):
    amount = st.text_input("Cantidad", value="")
    b1, b2 = st.columns(2)
    buy = b1.form_submit_button("Comprar ARSV")
    sell = b2.form_submit_button("Vender ARSV")

if buy:
    with st.spinner("Comprando ARSV..."):
        client.buy_arsv(amount)
elif sell:
    with st.spinner("Vendiendo ARSV..."):
        client.sell_arsv(amount)

for msg in view.pop_alerts():
    st.warning(msg)
if buy or sell:
    st.info(view.status)

tab1, tab2 = st.tabs(["Eventos", "Tesorería"])
with tab1:
    eventos.render(pd.DataFrame({"evento": view.events_snapshot()}))
with tab2:
    tesoreria.render(client)

# --------------------------
# Auto-refresh
# --------------------------
if auto_refresh:
    time.sleep(float(interval_s))
    st.rerun()
