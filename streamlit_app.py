from __future__ import annotations

import base64
import binascii
import json
import os
from datetime import date, datetime, time, timezone

import requests
import streamlit as st

st.set_page_config(page_title="Medical Universe", layout="wide")

API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8000")

BLOOD_GROUPS = ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]



# JWT helpers (UI only, signature not checked)

def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def jwt_payload(token: str) -> dict:
    parts = token.split(".")
    if len(parts) != 3:
        return {}
    try:
        payload = json.loads(_b64url_decode(parts[1]).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def jwt_is_expired(token: str) -> bool:
    exp = jwt_payload(token).get("exp")
    if not isinstance(exp, (int, float)):
        return False
    now = int(datetime.now(tz=timezone.utc).timestamp())
    return now >= (int(exp) - 5)


def jwt_role(token: str) -> str:
    return str(jwt_payload(token).get("role") or "patient")


def jwt_email(token: str) -> str:
    return str(jwt_payload(token).get("email") or "user")



# HTTP client (with JWT)

class ApiError(RuntimeError):
    pass


def _check(r: requests.Response) -> dict | list:
    if r.status_code == 401:
        raise PermissionError("401 Unauthorized (invalid or expired token, or the backend was restarted).")
    if not r.ok:
        try:
            detail = r.json().get("detail")
        except ValueError:
            detail = r.text
        raise ApiError(f"{r.status_code}: {detail}")
    return r.json()


def _headers(token: str | None) -> dict:
    return {"Authorization": f"Bearer {token}"} if token else {}


def api_get(path: str, token: str | None = None, params: dict | None = None) -> dict | list:
    return _check(requests.get(f"{API_BASE}{path}", headers=_headers(token), params=params, timeout=10))


def api_post(path: str, payload: dict | None = None, token: str | None = None) -> dict:
    return _check(requests.post(f"{API_BASE}{path}", headers=_headers(token), json=payload or {}, timeout=30))


def api_patch(path: str, payload: dict, token: str | None = None) -> dict:
    return _check(requests.patch(f"{API_BASE}{path}", headers=_headers(token), json=payload, timeout=10))


def api_delete(path: str, token: str | None = None) -> dict:
    return _check(requests.delete(f"{API_BASE}{path}", headers=_headers(token), timeout=10))


def api_login(email: str, password: str) -> str:
    # OAuth2PasswordRequestForm => x-www-form-urlencoded
    r = requests.post(
        f"{API_BASE}/api/auth/login",
        data={"username": email, "password": password},
        timeout=10,
    )
    return _check(r)["access_token"]


def is_logged_in() -> bool:
    token = st.session_state.get("token")
    return bool(token) and isinstance(token, str)


def do_logout() -> None:
    st.session_state.pop("token", None)
    st.session_state.pop("auth_error", None)
    st.rerun()


def require_auth(role: str | None = None) -> str | None:
    token = st.session_state.get("token")
    if not token:
        st.warning("Please log in from the sidebar.")
        return None
    if jwt_is_expired(token):
        st.error("Session expired. Log out from the sidebar and log in again.")
        return None
    if role and jwt_role(token) != role:
        st.info(f"This section is for {role}s.")
        return None
    return token


def show_error(e: Exception) -> None:
    if isinstance(e, PermissionError):
        st.session_state["auth_error"] = str(e)
        st.error("Invalid session. Log out and log in again.")
    else:
        st.error(str(e))



# Sidebar login / register

with st.sidebar:
    st.header("Account")

    if not is_logged_in():
        mode = st.radio("Mode", ["Login", "Register"], horizontal=True, key="auth_mode")
        email = st.text_input("Email (admins: username)", key="login_user")
        password = st.text_input("Password", type="password", key="login_pass")

        if mode == "Register":
            full_name = st.text_input("Full name", key="reg_name")
            phone = st.text_input("Phone", key="reg_phone")
            if st.button("Create account", key="reg_btn"):
                try:
                    api_post(
                        "/api/auth/register",
                        {"email": email, "password": password, "full_name": full_name, "phone": phone or None},
                    )
                    st.success("Account created. You can log in now.")
                except (ApiError, requests.RequestException) as e:
                    st.error(str(e))
        elif st.button("Login", key="login_btn"):
            try:
                st.session_state["token"] = api_login(email.strip().lower(), password)
                st.session_state.pop("auth_error", None)
                st.rerun()
            except (ApiError, PermissionError, requests.RequestException):
                st.error("Invalid credentials.")
    else:
        token = st.session_state["token"]
        st.write(f"User: **{jwt_email(token)}** ({jwt_role(token)})")
        if st.session_state.get("auth_error"):
            st.error(st.session_state["auth_error"])
        if st.button("Logout", key="logout_btn"):
            do_logout()

    st.divider()
    st.caption(f"API: {API_BASE}")



# UI

st.title("Medical Universe")

tabs = st.tabs(["Pharmacy", "Orders", "Doctors", "Blood support", "Hospital beds", "Doctor desk", "Admin"])


@st.cache_data(ttl=10)
def load_medicines(search: str, category: str) -> list[dict]:
    return api_get("/api/medicines", params={"search": search or None, "category": category or None})


@st.cache_data(ttl=30)
def load_categories() -> list[str]:
    return api_get("/api/medicines/categories")


@st.cache_data(ttl=10)
def load_doctors() -> list[dict]:
    return api_get("/api/doctors")


@st.cache_data(ttl=10)
def load_beds() -> list[dict]:
    return api_get("/api/hospital/beds")



# TAB - Pharmacy

with tabs[0]:
    st.subheader("Medicines")
    c1, c2 = st.columns(2)
    search = c1.text_input("Search", key="med_search")
    try:
        category = c2.selectbox("Category", ["all"] + load_categories(), key="med_cat")
        medicines = load_medicines(search, category)
    except (ApiError, requests.RequestException) as e:
        st.error(f"API unreachable or error: {e}")
        st.stop()

    token = st.session_state.get("token")
    for m in medicines:
        col_a, col_b = st.columns([4, 1])
        col_a.write(f"**{m['name']}** | {m['category']} | {m['price']:.2f} | stock {m['stock']}")
        if token and col_b.button("Add to cart", key=f"add_{m['id']}"):
            try:
                api_post("/api/cart/items", {"medicine_id": m["id"], "quantity": 1}, token=token)
                st.success(f"{m['name']} added to cart.")
            except (ApiError, PermissionError) as e:
                show_error(e)

    st.divider()
    st.subheader("Cart & checkout")
    token = require_auth()
    if token:
        try:
            cart = api_get("/api/cart", token=token)
            if not cart["items"]:
                st.info("Your cart is empty.")
            for it in cart["items"]:
                col_a, col_b = st.columns([4, 1])
                col_a.write(f"- {it['medicine']['name'] if it['medicine'] else '-'} x {it['quantity']}")
                if col_b.button("Remove", key=f"rm_{it['id']}"):
                    api_delete(f"/api/cart/items/{it['id']}", token=token)
                    st.rerun()
            st.write(f"Total: **{cart['total']:.2f}**")

            address = st.text_area("Delivery address", key="co_address")
            phone = st.text_input("Phone number", key="co_phone")
            if st.button("Place order", key="co_btn", disabled=not cart["items"]):
                res = api_post("/api/orders", {"address": address, "phone": phone}, token=token)
                st.success(f"Order placed. Tracking number: {res['tracking_number']}")
        except (ApiError, PermissionError) as e:
            show_error(e)



# TAB - Orders

with tabs[1]:
    st.subheader("Track your orders")
    token = require_auth()
    if token:
        try:
            orders = api_get("/api/orders", token=token)
            if not orders:
                st.info("No orders found.")
            for o in orders:
                with st.expander(f"{o['tracking_number']} | {o['status']} | {o['total_price']:.2f}"):
                    for it in o["items"]:
                        name = it["medicine"]["name"] if it["medicine"] else it["medicine_id"]
                        st.write(f"- {name} x {it['quantity']} @ {it['price']:.2f}")
                    for h in api_get(f"/api/orders/{o['id']}/history", token=token):
                        st.caption(f"{h['created_at']}: {h['status_message']}")
        except (ApiError, PermissionError) as e:
            show_error(e)



# TAB - Doctors & appointments

with tabs[2]:
    st.subheader("Book a consultation")
    try:
        doctors = load_doctors()
    except (ApiError, requests.RequestException) as e:
        st.error(str(e))
        doctors = []

    token = require_auth()
    if token and doctors:
        doctor = st.selectbox(
            "Doctor",
            options=doctors,
            format_func=lambda d: f"{d['doctor_name']} ({d['specialization']}) - {d['availability_status']}",
            key="ap_doctor",
        )
        c1, c2 = st.columns(2)
        day = c1.date_input("Date", value=date.today(), key="ap_date")
        at = c2.time_input("Time", value=time(10, 0), key="ap_time")
        patient_name = st.text_input("Patient name", key="ap_name")
        reason = st.text_area("Reason / symptoms", key="ap_reason")
        meeting_type = st.radio("Consultation", ["online", "offline"], horizontal=True, key="ap_type")
        address = st.text_input("Address (offline)", key="ap_address") if meeting_type == "offline" else None

        if st.button("Book appointment", key="ap_btn"):
            payload = {
                "doctor_id": doctor["id"],
                "appointment_date": datetime.combine(day, at).isoformat(),
                "patient_name": patient_name,
                "reason": reason,
                "meeting_type": meeting_type,
                "meeting_address": address,
            }
            try:
                res = api_post("/api/appointments", payload, token=token)
                st.success(f"Appointment booked ({res['status']}).")
            except (ApiError, PermissionError) as e:
                show_error(e)

        st.divider()
        st.write("My appointments:")
        try:
            for a in api_get("/api/appointments", token=token):
                link = f" | [Join]({a['meeting_link']})" if a.get("meeting_link") else ""
                st.write(f"- {a['appointment_date']} | {a.get('doctor_name') or '-'} | {a['status']}{link}")
        except (ApiError, PermissionError) as e:
            show_error(e)



# TAB - Blood support

with tabs[3]:
    st.subheader("Blood support")
    token = require_auth()
    if token:
        donor_tab, request_tab = st.tabs(["Become a donor", "Request blood"])
        with donor_tab:
            name = st.text_input("Name", key="bd_name")
            age = st.number_input("Age", min_value=18, max_value=65, value=25, key="bd_age")
            group = st.selectbox("Blood group", BLOOD_GROUPS, key="bd_group")
            mobile = st.text_input("Mobile number", key="bd_mobile")
            aadhar = st.text_input("Aadhaar number (12 digits)", key="bd_aadhar")
            address = st.text_area("Address", key="bd_address")
            if st.button("Register as donor", key="bd_btn"):
                try:
                    api_post(
                        "/api/blood/donors",
                        {"name": name, "age": int(age), "blood_group": group, "mobile_number": mobile,
                         "aadhar_number": aadhar, "address": address},
                        token=token,
                    )
                    st.success("Application submitted. An admin will review it.")
                except (ApiError, PermissionError) as e:
                    show_error(e)

        with request_tab:
            name = st.text_input("Full name", key="br_name")
            group = st.selectbox("Blood group", BLOOD_GROUPS, key="br_group")
            phone = st.text_input("Phone number", key="br_phone")
            aadhar = st.text_input("Aadhaar number (12 digits)", key="br_aadhar")
            address = st.text_area("Delivery address", key="br_address")
            level = st.selectbox("Emergency level", ["normal", "urgent", "critical"], key="br_level")
            if st.button("Send request", key="br_btn"):
                try:
                    api_post(
                        "/api/blood/requests",
                        {"full_name": name, "blood_group": group, "phone_number": phone,
                         "aadhar_number": aadhar, "address": address, "emergency_level": level},
                        token=token,
                    )
                    st.success("Request submitted.")
                except (ApiError, PermissionError) as e:
                    show_error(e)

            st.write("Approved receipts:")
            try:
                for r in api_get("/api/blood/receipts", token=token):
                    st.write(f"- {r['blood_group']} | {r['admin_response'] or '-'}")
            except (ApiError, PermissionError) as e:
                show_error(e)



# TAB - Hospital beds

with tabs[4]:
    st.subheader("Bed availability")
    try:
        beds = load_beds()
        for b in beds:
            st.write(f"- **{b['bed_type']}**: {b['available_beds']}/{b['total_beds']} available")
    except (ApiError, requests.RequestException) as e:
        st.error(str(e))
        beds = []

    token = require_auth()
    if token and beds:
        st.divider()
        name = st.text_input("Patient name", key="bb_name")
        c1, c2 = st.columns(2)
        age = c1.number_input("Age", min_value=0, max_value=150, value=30, key="bb_age")
        gender = c2.selectbox("Gender", ["male", "female", "other"], key="bb_gender")
        disease = st.text_area("Disease / condition", key="bb_disease")
        bed_type = st.selectbox("Bed type", [b["bed_type"] for b in beds], key="bb_type")
        emergency = st.checkbox("Emergency", key="bb_emergency")
        if st.button("Book bed", key="bb_btn"):
            try:
                res = api_post(
                    "/api/hospital/bookings",
                    {"patient_name": name, "patient_age": int(age), "patient_gender": gender,
                     "disease": disease, "bed_type": bed_type, "is_emergency": emergency},
                    token=token,
                )
                st.success(f"Booking {res['booking_id']} created. Complete the payment below.")
            except (ApiError, PermissionError) as e:
                show_error(e)

        st.write("My bookings:")
        try:
            for b in api_get("/api/hospital/bookings", token=token):
                col_a, col_b = st.columns([4, 1])
                col_a.write(f"- {b['booking_id']} | {b['preferred_bed_type']} | {b['admission_status']} | {b['payment_status']}")
                if b["payment_status"] == "pending" and col_b.button("Pay (demo)", key=f"pay_{b['booking_id']}"):
                    api_post(f"/api/hospital/bookings/{b['booking_id']}/pay", token=token)
                    st.rerun()
        except (ApiError, PermissionError) as e:
            show_error(e)



# TAB - Doctor desk (doctors only)

with tabs[5]:
    st.subheader("Doctor desk")
    token = require_auth("doctor")
    if token:
        try:
            status = st.selectbox(
                "Availability", ["Available", "Busy", "On Break", "In Surgery", "Emergency", "Off Duty"], key="dd_status"
            )
            if st.button("Update status", key="dd_status_btn"):
                requests.put(
                    f"{API_BASE}/api/doctor/availability", headers=_headers(token), json={"status": status}, timeout=10
                ).raise_for_status()
                st.success("Status updated.")

            for a in api_get("/api/doctor/appointments", token=token):
                with st.expander(f"{a['appointment_date']} | {a['patient_name']} | {a['status']} | {a['meeting_type']}"):
                    st.write(a.get("notes") or "-")
                    c1, c2, c3 = st.columns(3)
                    if a["meeting_type"] == "online" and c1.button("Send meet link", key=f"ml_{a['id']}"):
                        res = api_post(f"/api/doctor/appointments/{a['id']}/meet-link", token=token)
                        st.info(f"Link: {res['meeting_link']} | email sent: {res['email_sent']}")
                    if c2.button("Confirm", key=f"cf_{a['id']}"):
                        api_patch(f"/api/doctor/appointments/{a['id']}/status", {"status": "confirmed"}, token=token)
                        st.rerun()
                    if c3.button("End meeting", key=f"end_{a['id']}"):
                        api_post(f"/api/doctor/appointments/{a['id']}/end", token=token)
                        st.rerun()
        except (ApiError, PermissionError, requests.RequestException) as e:
            show_error(e)



# TAB - Admin moderation

with tabs[6]:
    st.subheader("Admin")
    token = require_auth("admin")
    if token:
        try:
            stats = api_get("/api/admin/stats", token=token)
            cols = st.columns(5)
            for i, (k, v) in enumerate(stats.items()):
                cols[i % 5].metric(k.replace("_", " ").title(), v)

            st.write("Doctor verification requests:")
            for r in api_get("/api/admin/doctor-requests", token=token):
                c1, c2, c3 = st.columns([4, 1, 1])
                c1.write(f"- {r['full_name']} | {r['specialization']} | {r['medical_license']}")
                if c2.button("Approve", key=f"dr_ok_{r['id']}"):
                    api_post(f"/api/admin/doctor-requests/{r['id']}/approve", token=token)
                    st.rerun()
                if c3.button("Reject", key=f"dr_no_{r['id']}"):
                    api_post(f"/api/admin/doctor-requests/{r['id']}/reject", token=token)
                    st.rerun()

            st.write("Pending blood requests:")
            for r in api_get("/api/admin/blood/requests", token=token, params={"status": "pending"}):
                c1, c2, c3 = st.columns([4, 1, 1])
                c1.write(f"- {r['full_name']} | {r['blood_group']} | {r['emergency_level']}")
                for col, action in ((c2, "approved"), (c3, "rejected")):
                    if col.button(action.title(), key=f"brq_{action}_{r['id']}"):
                        api_post(f"/api/admin/blood/requests/{r['id']}/moderate", {"action": action}, token=token)
                        st.rerun()

            st.write("Pending donors:")
            for d in api_get("/api/admin/blood/donors", token=token, params={"status": "pending"}):
                c1, c2, c3 = st.columns([4, 1, 1])
                c1.write(f"- {d['name']} | {d['blood_group']} | age {d['age']}")
                for col, action in ((c2, "approved"), (c3, "rejected")):
                    if col.button(action.title(), key=f"dn_{action}_{d['id']}"):
                        api_post(f"/api/admin/blood/donors/{d['id']}/moderate", {"action": action}, token=token)
                        st.rerun()

            st.write("Orders:")
            for o in api_get("/api/admin/orders", token=token):
                st.write(f"- {o['tracking_number']} | {o['phone_number']} | {o['status']} | {o['total_price']:.2f}")
        except (ApiError, PermissionError) as e:
            show_error(e)
