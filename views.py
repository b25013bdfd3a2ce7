import streamlit as st
import pandas as pd
import plotly.express as px
import time
import os
from datetime import datetime
import cv2
import numpy as np
from pyzbar.pyzbar import decode

import config
import reports
from app_logger import get_logger
from errors import AssetTrackerError, user_message

logger = get_logger("views")

# --- SETUP: PHOTOS FOLDER ---
if not os.path.exists(config.PHOTOS_DIR):
    os.makedirs(config.PHOTOS_DIR)


def show_error(exc):
    logger.error("%s: %s", type(exc).__name__, exc, exc_info=exc)
    st.error(user_message(exc))


# --- HELPER: PHOTO STORAGE ---
def save_photo(asset_id, uploaded_file):
    name = getattr(uploaded_file, "name", None) or "photo.jpg"
    file_path = os.path.join(config.PHOTOS_DIR, f"{asset_id}_{name}")
    with open(file_path, "wb") as f:
        f.write(uploaded_file.getbuffer())
    return file_path


# --- HELPER: WEBCAM DECODE ---
def decode_codes(image_bytes):
    cv_image = cv2.imdecode(np.frombuffer(image_bytes, np.uint8), cv2.IMREAD_COLOR)
    if cv_image is None:
        return []
    return [obj.data.decode("utf-8") for obj in decode(cv_image)]


# --- COMPONENT: ASSET DETAILS POPUP ---
@st.dialog("Asset Details")
def show_asset_dialog(asset, svc):
    st.header(asset['name'])
    st.caption(f"RFID: {asset['rfid_code']} | ID: {asset['id']}")

    d_tab1, d_tab2 = st.tabs(["✏️ Edit", "📷 Photo"])

    with d_tab1:
        with st.form(f"edit_{asset['id']}"):
            name = st.text_input("Name *", value=asset['name'])
            serial = st.text_input("Serial Number *", value=asset['serial_number'])
            c1, c2 = st.columns(2)
            quantity = c1.number_input("Quantity *", min_value=1, step=1, value=int(asset['quantity']))
            location = c2.text_input("Location *", value=asset['location'])
            rfid = st.text_input("RFID Code *", value=asset['rfid_code'])
            if st.form_submit_button("💾 Save Changes", type="primary"):
                try:
                    svc.catalog.update_asset(asset['id'], name=name, serial_number=serial,
                                             quantity=quantity, location=location, rfid_code=rfid)
                    st.success("Asset updated")
                    time.sleep(1); st.rerun()
                except AssetTrackerError as e:
                    show_error(e)

        st.divider()
        if st.button("🗑️ Delete Asset", key=f"del_{asset['id']}", type="secondary"):
            try:
                svc.catalog.delete_asset(asset['id'])
                st.rerun()
            except AssetTrackerError as e:
                show_error(e)

    with d_tab2:
        if asset['photo_uri'] and os.path.exists(asset['photo_uri']):
            st.image(asset['photo_uri'], width=250)
        else:
            st.info("No photo attached.")
        uploaded = st.file_uploader("Replace Photo", type=["png", "jpg", "jpeg"], key=f"up_{asset['id']}")
        if uploaded and st.button("Save Photo", key=f"save_{asset['id']}"):
            try:
                svc.catalog.update_asset(asset['id'], photo_uri=save_photo(asset['id'], uploaded))
                st.success("Photo saved")
                time.sleep(1); st.rerun()
            except (AssetTrackerError, OSError) as e:
                show_error(e)


# --- VIEW 1: ASSETS ---
def show_assets(svc, department):
    st.title(f"📦 {department['name']} Assets")

    search = st.text_input("🔍 Search", placeholder="Name, serial, RFID, location...")
    try:
        assets = svc.catalog.search_assets(department['id'], search)
    except AssetTrackerError as e:
        show_error(e); return

    if not assets:
        st.warning("No results." if search else "No assets registered yet.")
        return

    st.caption(f"{len(assets)} assets")
    df = reports.assets_frame(assets)
    event = st.dataframe(df, on_select="rerun", selection_mode="single-row",
                         use_container_width=True, hide_index=True)
    rows = event.selection.rows
    if rows:
        show_asset_dialog(assets[rows[0]], svc)


# --- VIEW 2: ADD ASSET ---
def show_add_asset(svc, department):
    st.title("➕ Add New Asset")
    st.caption("Fields marked with * are required.")

    with st.form("new_asset", clear_on_submit=True):
        c1, c2 = st.columns(2)
        with c1: name = st.text_input("Name *", placeholder="e.g., Office Chair")
        with c2: serial = st.text_input("Serial Number *", placeholder="SN-12345")
        c3, c4 = st.columns(2)
        with c3: quantity = st.number_input("Quantity *", min_value=1, step=1, value=1)
        with c4: location = st.text_input("Location *", placeholder="e.g., Room 101")
        rfid = st.text_input("RFID Code *", placeholder="Scan the tag or type the code")
        photo = st.file_uploader("Photo", type=["png", "jpg", "jpeg"])

        if st.form_submit_button("Save Asset", type="primary", use_container_width=True):
            try:
                asset = svc.catalog.create_asset(department['id'], name=name, serial_number=serial,
                                                 quantity=quantity, location=location, rfid_code=rfid)
                if photo:
                    svc.catalog.update_asset(asset['id'], photo_uri=save_photo(asset['id'], photo))
                st.success("Asset successfully added!")
            except (AssetTrackerError, OSError) as e:
                show_error(e)


# --- VIEW 3: INVENTORY ---
def show_result(result):
    counts = result.counts
    r1, r2, r3, r4 = st.columns(4)
    r1.metric("Assets", counts["total"])
    r2.metric("Found", counts["found"])
    r3.metric("Missing", counts["missing"])
    r4.metric("Unknown Codes", counts["unknown"])

    df = reports.result_frame(result)
    if not df.empty:
        st.dataframe(df, use_container_width=True, hide_index=True)
        st.download_button("⬇ Download Result (CSV)", data=df.to_csv(index=False).encode("utf-8"),
                           file_name=f"inventory_result_{datetime.now().strftime('%Y%m%d_%H%M')}.csv",
                           mime="text/csv")


def show_inventory(svc, department):
    st.title("📋 Inventory")
    sessions = svc.sessions
    current = sessions.current

    if current is None:
        if st.session_state.get('last_result') is not None:
            st.subheader("Last Result")
            show_result(st.session_state.last_result)
            st.divider()

        with st.form("start_session"):
            label = st.text_input("Inventory Name", placeholder=f"Count {datetime.now():%Y-%m-%d}")
            if st.form_submit_button("▶ Start Inventory", type="primary"):
                try:
                    sessions.start_session(label, department['id'])
                    st.session_state.last_result = None
                    st.rerun()
                except AssetTrackerError as e:
                    show_error(e)

        with st.expander("🗂️ Past Sessions"):
            try:
                history = sessions.list_sessions(department['id'])
            except AssetTrackerError as e:
                show_error(e); return
            if history:
                st.dataframe(pd.DataFrame(history, columns=["name", "date", "closed_at"]),
                             use_container_width=True, hide_index=True)
                labels = {f"{s['name']} ({s['date']:%Y-%m-%d %H:%M})": s for s in history}
                picked = st.selectbox("Reconcile again", [""] + list(labels))
                if picked:
                    try:
                        show_result(svc.engine.reconcile(labels[picked]['id'], department['id']))
                    except AssetTrackerError as e:
                        show_error(e)
            else:
                st.caption("No inventory sessions yet.")
        return

    st.info(f"Session **{current['name']}** started {current['date']:%Y-%m-%d %H:%M}")

    def on_scan(code):
        try:
            svc.scan_log.record_scan(current['id'], code)
            asset = svc.catalog.find_by_rfid(code)
            if asset: st.toast(f"Found: {asset['name']}")
            else: st.toast(f"Unknown: {code}")
        except AssetTrackerError as e:
            show_error(e)

    c_input, c_report = st.columns([2, 1])
    with c_input:
        st.write("👉 **Scanner / Manual Entry**")

        def text_callback():
            code = st.session_state.rfid_input.strip()
            if code:
                on_scan(code)
            st.session_state.rfid_input = ""

        st.text_input("RFID Input", key="rfid_input", on_change=text_callback, label_visibility="collapsed")

        st.write("👉 **Webcam**")
        cam = st.camera_input("Read tag label")
        if cam:
            codes = decode_codes(cam.getvalue())
            if codes:
                for code in codes:
                    if st.button(f"Record {code}", key=f"proc_{code}"):
                        on_scan(code)
                        st.rerun()
            else:
                st.caption("No code detected in image.")

        st.write("---")
        st.subheader("Live Session Log")
        try:
            scans = svc.scan_log.list_scans(current['id'])
        except AssetTrackerError as e:
            show_error(e); return
        if scans:
            log = pd.DataFrame(scans, columns=["timestamp", "rfid_code"]).iloc[::-1]
            st.dataframe(log, use_container_width=True, hide_index=True)

    with c_report:
        st.info("📊 **Session**")
        r1, r2 = st.columns(2)
        r1.metric("Scans", len(scans))
        r2.metric("Unique", len({s['rfid_code'] for s in scans}))

        if st.button("⏹ End Inventory", type="primary", use_container_width=True):
            try:
                st.session_state.last_result = svc.engine.reconcile(current['id'], department['id'])
                sessions.close_session(current['id'])
            except AssetTrackerError as e:
                show_error(e); return
            sessions.end_session()
            st.rerun()


# --- VIEW 4: REPORTS ---
def show_reports(svc, department):
    st.title("📈 Reports")
    try:
        assets = svc.catalog.list_assets(department['id'])
    except AssetTrackerError as e:
        show_error(e); return

    stats = reports.summary(assets)
    c1, c2 = st.columns(2)
    c1.metric("Total Assets", stats["total_assets"])
    c2.metric("Total Quantity", stats["total_quantity"])

    st.subheader("Top Locations")
    if stats["top_locations"]:
        df_loc = pd.DataFrame(stats["top_locations"], columns=["Location", "Assets"])
        fig = px.bar(df_loc, x="Assets", y="Location", orientation="h")
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("No data available.")

    st.subheader("Export")
    if assets:
        st.download_button("⬇ Export Assets (CSV)", data=reports.export_csv(assets),
                           file_name=f"assets_{department['name']}_{datetime.now():%Y%m%d_%H%M}.csv",
                           mime="text/csv", type="primary")
    else:
        st.caption("There are no assets to export.")
