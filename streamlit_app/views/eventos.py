"""
Streamlit view for the treasury event log.

Lines are shown in arrival order, newest last, exactly as the session client
appended them.
"""

from __future__ import annotations

import pandas as pd
import streamlit as st  # type: ignore


def render(df: pd.DataFrame) -> None:
    """Render the event log."""
    st.subheader("Eventos de la tesorería")
    if df.empty:
        st.info("Aún no se han recibido eventos.")
        return
    st.dataframe(df, use_container_width=True)
