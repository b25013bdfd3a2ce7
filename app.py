import streamlit as st
from types import SimpleNamespace

import auth
import config
import views
from app_logger import get_logger
from catalog import AssetCatalog
from errors import AssetTrackerError
from inventory import ReconciliationEngine, ScanLog, SessionManager
from storage import open_storage

logger = get_logger("app")

# Page Configuration
st.set_page_config(
    page_title=config.APP_TITLE,
    page_icon="📦",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_storage():
    return open_storage()


storage = get_storage()

# --- SESSION STATE MANAGEMENT ---
if 'logged_in' not in st.session_state: st.session_state.logged_in = False
if 'user' not in st.session_state: st.session_state.user = None
if 'department' not in st.session_state: st.session_state.department = None
if 'inventory' not in st.session_state: st.session_state.inventory = SessionManager(storage)
if 'last_result' not in st.session_state: st.session_state.last_result = None

svc = SimpleNamespace(
    catalog=AssetCatalog(storage),
    sessions=st.session_state.inventory,
    scan_log=ScanLog(storage),
    engine=ReconciliationEngine(storage),
)


def sign_in(user, department):
    st.session_state.logged_in = True
    st.session_state.user = user
    st.session_state.department = department
    st.rerun()


try:
    setup_done = auth.is_setup_complete(storage)
except AssetTrackerError as e:
    views.show_error(e)
    st.stop()

# --- FIRST RUN SETUP ---
if not setup_done:
    col1, col2, col3 = st.columns([1, 1, 1])
    with col2:
        st.header("Initial Setup")
        st.caption("Create the local account and the department whose assets you will track.")
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        dept_name = st.text_input("Department Name")

        if st.button("Create Account", type="primary", use_container_width=True):
            try:
                user, department = auth.setup(storage, username, password, dept_name)
                sign_in(user, department)
            except AssetTrackerError as e:
                views.show_error(e)

# --- AUTHENTICATION FLOW ---
elif not st.session_state.logged_in:
    col1, col2, col3 = st.columns([1, 1, 1])
    with col2:
        st.header("Login")
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")

        if st.button("Login", type="primary", use_container_width=True):
            try:
                found = auth.login(storage, username, password)
            except AssetTrackerError as e:
                views.show_error(e)
            else:
                if found:
                    sign_in(*found)
                else:
                    st.error("Invalid Credentials")
else:
    # --- MAIN APP LAYOUT ---
    department = st.session_state.department
    st.sidebar.title(f"📦 {config.APP_TITLE}")
    st.sidebar.caption(f"Version {config.APP_VERSION}")
    st.sidebar.info(f"User: **{st.session_state.user['username']}**\nDepartment: **{department['name']}**")
    st.sidebar.divider()

    choice = st.sidebar.radio("Navigation", ["Assets", "Add Asset", "Inventory", "Reports"])
    st.sidebar.markdown("---")

    if st.sidebar.button("Logout", type="secondary"):
        svc.sessions.end_session()
        st.session_state.logged_in = False
        st.session_state.user = None
        st.session_state.department = None
        st.session_state.last_result = None
        st.rerun()

    if choice == "Assets": views.show_assets(svc, department)
    elif choice == "Add Asset": views.show_add_asset(svc, department)
    elif choice == "Inventory": views.show_inventory(svc, department)
    elif choice == "Reports": views.show_reports(svc, department)
