"""Streamlit operator dashboard for the hotel operations API."""

from __future__ import annotations

import datetime
import os
from typing import Any, Dict, List, Optional

import pandas as pd
import requests
import streamlit as st

# ==========================================
# Configuration & Constants
# ==========================================
API_BASE_URL = os.getenv("HOTELOPS_API_URL", "http://127.0.0.1:8000")
HOTEL_ID = os.getenv("DEMO_HOTEL_ID", "demo-hotel")

st.set_page_config(
    page_title="Hotel Operations",
    page_icon="🏨",
    layout="wide",
)


# ==========================================
# API Helper Functions
# ==========================================
def _headers() -> Dict[str, str]:
    token = st.session_state.get("access_token")
    return {"Authorization": f"Bearer {token}"} if token else {}


def _hotel_url(path: str) -> str:
    return f"{API_BASE_URL}/hotels/{HOTEL_ID}{path}"


def api_get(path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
    try:
        response = requests.get(_hotel_url(path), params=params, headers=_headers(), timeout=10)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Backend request failed: {e}")
        return None


def api_post(path: str, payload: Dict[str, Any]) -> Optional[Any]:
    try:
        response = requests.post(_hotel_url(path), json=payload, headers=_headers(), timeout=10)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.HTTPError as e:
        detail = e.response.json().get("detail", str(e)) if e.response is not None else str(e)
        st.error(f"Request rejected: {detail}")
        return None
    except requests.exceptions.RequestException as e:
        st.error(f"Backend request failed: {e}")
        return None


def login(admin_token: str) -> bool:
    try:
        response = requests.post(f"{API_BASE_URL}/login", json={"admin_token": admin_token}, timeout=5)
        response.raise_for_status()
        st.session_state["access_token"] = response.json()["access_token"]
        return True
    except requests.exceptions.RequestException as e:
        st.error(f"Login failed: {e}")
        return False


# ==========================================
# UI Page Functions
# ==========================================
def render_rooms_page() -> None:
    st.header("🛏️ Rooms")
    rooms = api_get("/rooms")
    if not rooms:
        st.info("No rooms found.")
        return

    df = pd.DataFrame(
        [
            {
                "Room": room["number"],
                "Category": room["type"],
                "Status": room["displayStatus"],
                "Guest": room.get("guestName") or "",
                "Stay ID": room.get("stayId") or "",
            }
            for room in rooms
        ]
    )
    status_counts = df["Status"].value_counts()
    cols = st.columns(max(len(status_counts), 1))
    for col, (label, count) in zip(cols, status_counts.items()):
        col.metric(label, int(count))
    st.dataframe(df, use_container_width=True)

    with st.expander("Raise a service request"):
        occupied = [room for room in rooms if room.get("stayId")]
        if occupied:
            room = st.selectbox("Room", occupied, format_func=lambda item: item["number"])
            service = st.text_input("Service", "Extra towels")
            category = st.text_input("Category", "Housekeeping Services")
            price = st.number_input("Price", min_value=0.0, value=0.0)
            if st.button("Submit request"):
                created = api_post(
                    "/service_requests",
                    {
                        "room_number": room["number"],
                        "stay_id": room["stayId"],
                        "service": service,
                        "category": category,
                        "price": price,
                        "created_by": "dashboard",
                    },
                )
                if created:
                    st.success(f"Request {created['id']} created")
        else:
            st.caption("No checked-in rooms.")

    movements = api_get("/movements")
    if movements:
        col_a, col_b = st.columns(2)
        with col_a:
            st.subheader("Arrivals today")
            st.dataframe(pd.DataFrame(movements["arrivals"]), use_container_width=True)
        with col_b:
            st.subheader("Departures today")
            st.dataframe(pd.DataFrame(movements["departures"]), use_container_width=True)


def render_folio_page() -> None:
    st.header("🧾 Folio")
    stay_id = st.text_input("Stay ID")
    include_group = st.checkbox("Include whole group booking")
    if st.button("Load folio", type="primary") and stay_id:
        folio = api_get(f"/folio/{stay_id.strip()}", params={"include_group": include_group})
        if folio:
            col1, col2, col3 = st.columns(3)
            col1.metric("Subtotal", f"{folio['subtotal']:.2f}")
            col2.metric("Total", f"{folio['total']:.2f}")
            col3.metric("Balance", f"{folio['balance']:.2f}")
            rows: List[Dict[str, Any]] = [{"Item": folio["room_label"], "Amount": folio["room_total"]}]
            rows.extend(
                {"Item": charge["service"], "Amount": charge.get("price", 0.0)}
                for charge in folio["service_charges"]
            )
            rows.extend(
                [
                    {"Item": "Discount", "Amount": -folio["discount_amount"]},
                    {"Item": "Service charge", "Amount": folio["service_charge_amount"]},
                    {"Item": "GST", "Amount": folio["gst_amount"]},
                    {"Item": "Paid", "Amount": -folio["paid_amount"]},
                ]
            )
            st.table(pd.DataFrame(rows))


def render_analytics_page() -> None:
    st.header("📈 Analytics")
    today = datetime.date.today()
    col1, col2 = st.columns(2)
    with col1:
        date_from = st.date_input("From", today.replace(day=1))
    with col2:
        date_to = st.date_input("To", today)
    params = {"date_from": str(date_from), "date_to": str(date_to)}

    revenue = api_get("/analytics/revenue", params=params)
    if revenue:
        st.subheader(revenue["filter_label"])
        metric_cols = st.columns(4)
        metric_cols[0].metric("Total revenue", f"{revenue['total_revenue']:.2f}")
        metric_cols[1].metric("Room revenue", f"{revenue['room_revenue']:.2f}")
        metric_cols[2].metric("Corporate", f"{revenue['corporate_revenue']:.2f}")
        metric_cols[3].metric("ADR", f"{revenue['adr']:.2f}")
        chart = pd.DataFrame(revenue["chart_data"]).set_index("date")
        st.bar_chart(chart)

    services = api_get("/analytics/services", params=params)
    if services and services["service_analytics"]:
        st.subheader("Services")
        st.dataframe(pd.DataFrame(services["service_analytics"]), use_container_width=True)

    occupancy = api_get("/analytics/occupancy", params=params)
    if occupancy:
        st.subheader("Occupancy %")
        st.line_chart(pd.DataFrame(occupancy).set_index("date"))


def render_notifications_page() -> None:
    st.header("🚨 Notifications")
    notifications = api_get("/notifications")
    if not notifications:
        st.success("No open emergencies or SLA breaches.")
        return
    for item in notifications:
        if item["type"] == "sos":
            st.error(f"**{item['message']}**: {item['details']}")
        else:
            st.warning(f"**{item['message']}**: {item['details']}")


# ==========================================
# Main App Router
# ==========================================
def main() -> None:
    st.sidebar.title("Hotel Operations")
    st.sidebar.markdown("---")

    admin_token = st.sidebar.text_input("Admin token", type="password")
    if st.sidebar.button("Login") and admin_token:
        if login(admin_token):
            st.sidebar.success("Logged in")

    page = st.sidebar.radio(
        "Navigation",
        ["Rooms", "Folio", "Analytics", "Notifications"],
    )
    st.sidebar.markdown("---")
    st.sidebar.caption(f"Hotel: {HOTEL_ID}")

    if page == "Rooms":
        render_rooms_page()
    elif page == "Folio":
        render_folio_page()
    elif page == "Analytics":
        render_analytics_page()
    elif page == "Notifications":
        render_notifications_page()


if __name__ == "__main__":
    main()
