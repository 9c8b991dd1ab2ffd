"""
Streamlit view for the read-only treasury figures (balances held by the
contract, prices, fees and configured addresses).
"""

from __future__ import annotations

import pandas as pd
import streamlit as st  # type: ignore


def render(client) -> None:
    """Render the treasury overview on demand."""
    st.subheader("Vistas del contrato")
    if not st.button("Consultar tesorería"):
        return
    overview = client.treasury_overview()
    if overview is None:
        st.info("No disponible: conecta la wallet o revisa el log.")
        return
    st.dataframe(pd.DataFrame(overview.as_rows()), use_container_width=True)
