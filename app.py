import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from core import charts
from core.auth import AuthError, FirebaseAuthClient
from core.config import get_settings
from core.envelope import ParameterError, SourceError
from core.service import run_path
from core.session import SessionWatchdog

alt.data_transformers.disable_max_rows()
settings = get_settings()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_page_header(title: str, breadcrumb: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        btn_cols = st.columns(2)
        if btn_cols[0].button("Refresh"):
            load.clear()
            st.rerun()
        if export_df is not None and not export_df.empty:
            btn_cols[1].download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )


# ---------- Data ----------
@st.cache_data(ttl=3600, show_spinner=False)
def load(path: str, **params: Any) -> List[Dict[str, Any]]:
    payload = run_path(path, {k: None if v is None else str(v) for k, v in params.items()})
    return payload["data"]


def load_or_warn(path: str, **params: Any) -> List[Dict[str, Any]]:
    try:
        return load(path, **params)
    except ParameterError as exc:
        st.warning(str(exc))
    except SourceError as exc:
        st.error(f"{exc.message}: {exc.details or ''}")
    return []


# ---------- Session ----------
def current_watchdog() -> Optional[SessionWatchdog]:
    return st.session_state.get("watchdog")


def logout(message: Optional[str] = None):
    watchdog = current_watchdog()
    if watchdog is not None:
        watchdog.stop()
    for key in ("user", "watchdog"):
        st.session_state.pop(key, None)
    if message:
        st.session_state["login_notice"] = message


def render_login_page():
    inject_base_styles()
    st.title("Fuel & Vehicle Dashboard")
    st.caption("Sign in to continue.")
    notice = st.session_state.pop("login_notice", None)
    if notice:
        st.info(notice)
    with st.form("login"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in")
    if submitted:
        try:
            user = FirebaseAuthClient(settings.firebase_api_key).sign_in(email, password)
        except AuthError as exc:
            st.error(str(exc))
            return
        watchdog = SessionWatchdog.from_settings(settings)
        watchdog.start()
        st.session_state["user"] = user
        st.session_state["watchdog"] = watchdog
        st.rerun()


# ---------- Pages ----------
def render_infrastructure_page():
    stations = load_or_warn("fuel-stations")
    render_page_header(
        "Infrastructure", "Home / Infrastructure", export_df=pd.DataFrame(stations), export_name="fuel_stations.csv"
    )
    if not stations:
        st.info("No station data available.")
        return
    codes = sorted({s["fuel_type"] for s in stations})
    chosen = st.multiselect("Fuel types", options=codes, default=codes)
    shown = [s for s in stations if s["fuel_type"] in chosen]
    cols = st.columns([3, 2])
    with cols[0]:
        with card(f"Stations ({len(shown):,})"):
            st.altair_chart(charts.station_map(shown), use_container_width=True)
    with cols[1]:
        with card("Fuel-type breakdown"):
            st.altair_chart(charts.fuel_type_breakdown(shown), use_container_width=True)


def render_vehicles_page():
    render_page_header("Vehicles", "Home / Vehicles")
    cols = st.columns(2)
    with cols[0]:
        with card("CNG vehicles"):
            rows = load_or_warn("cng-vehicle-data-line-chart")
            st.altair_chart(charts.vehicle_lines(rows, title="CNG"), use_container_width=True)
    with cols[1]:
        with card("Electric vehicles"):
            rows = load_or_warn("electric-vehicle-data-line-chart")
            st.altair_chart(charts.vehicle_lines(rows, title="Electric"), use_container_width=True)


def render_predictions_page():
    render_page_header("Predictions", "Home / Predictions")
    fuel = st.radio("Fuel", ["cng", "electric"], horizontal=True, format_func=str.upper)
    summary = load_or_warn("vehicle-min-max-summary", fuel=fuel)
    extremes = load_or_warn("forecast-extremes", fuel=fuel)
    states = sorted({r["state"] for r in summary if r.get("state")})
    state = st.selectbox("State", options=states) if states else None
    with card("Predicted vehicles: min / max by year"):
        st.altair_chart(charts.min_max_band(summary, state=state), use_container_width=True)
    with card(f"Forecast extremes from {settings.forecast_current_year}"):
        picked = [r for r in extremes if state is None or r["state"] == state]
        st.altair_chart(charts.extremes_points(picked), use_container_width=True)
        st.dataframe(pd.DataFrame(picked), hide_index=True)


def render_production_page():
    render_page_header("Production", "Home / Production")
    with card("Production vs consumption"):
        rows = load_or_warn("production-vs-consumption-bar-graph")
        st.altair_chart(
            charts.grouped_bars(rows, "year", ["total_production", "total_consumption"], y_title="Volume"),
            use_container_width=True,
        )
    with card("Vehicle consumption"):
        rows = load_or_warn("vehicle-consumption-bar-graph")
        st.altair_chart(charts.grouped_bars(rows, "year", ["total_vehicle_consumption"]), use_container_width=True)


def render_emissions_page():
    render_page_header("Emissions", "Home / Emissions")
    state = st.text_input("State (blank for all)", "").strip().upper()
    rows = load_or_warn("emission-bar-graph-statewise", state=state) if state else load_or_warn("emission-bar-graph")
    with card("Emission certifications by model year"):
        st.altair_chart(charts.emissions_bars(rows), use_container_width=True)


PAGES = {
    "Infrastructure": render_infrastructure_page,
    "Vehicles": render_vehicles_page,
    "Predictions": render_predictions_page,
    "Production": render_production_page,
    "Emissions": render_emissions_page,
}


# ---------- UI setup ----------
st.set_page_config(page_title="Fuel & Vehicle Dashboard", layout="wide")
inject_base_styles()

watchdog = current_watchdog()
if watchdog is not None and watchdog.check():
    logout("Your session expired. Please sign in again.")

if "user" not in st.session_state:
    render_login_page()
    st.stop()

with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", list(PAGES), index=0)
    st.markdown("---")
    st.caption(f"Signed in as {st.session_state['user'].email}")
    remaining = current_watchdog().remaining() if current_watchdog() else None
    if remaining is not None:
        st.caption(f"Session ends in {int(remaining // 3600)}h {int(remaining % 3600 // 60)}m")
    if st.button("Sign out"):
        logout()
        st.rerun()

PAGES[nav_choice]()
