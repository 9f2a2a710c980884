"""
BYC assessment Streamlit UI, main entry point.

Run with: ``streamlit run byc/ui/app.py``
"""

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so ``from byc.xxx`` imports work.
# Streamlit replaces sys.path[0] with the script directory (byc/ui/),
# which removes the project root needed for absolute ``byc.*`` imports.
# ---------------------------------------------------------------------------
import sys  # noqa: E402
from pathlib import Path  # noqa: E402

_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st  # noqa: E402

from byc.core.config import get_settings  # noqa: E402

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="BYC Assessment",
    page_icon="\U0001f3ac",
    layout="wide",
)

# ---------------------------------------------------------------------------
# Session state defaults
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "api_base_url": get_settings().api_base_url,
    "interview_error": None,
    "interview_next_route": None,
}

for key, value in _DEFAULTS.items():
    if key not in st.session_state:
        st.session_state[key] = value

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("\U0001f3ac BYC Assessment")
    st.caption("Diagnostic assessment: video interview")
    st.divider()
    st.session_state.api_base_url = st.text_input(
        "Backend API URL",
        value=st.session_state.api_base_url,
        help="URL of the FastAPI backend server (default: http://localhost:8000)",
    )

    # Connection status indicator
    from byc.ui.api_client import APIError, get_api_client  # noqa: E402

    _client = get_api_client(st.session_state.api_base_url)
    _conn_ok, _conn_msg = _client.check_connection()
    if _conn_ok:
        st.success(f"Backend: {_conn_msg}")
        try:
            _progress = _client.get_progress()["assessment_progress"]
            st.metric("Overall progress", f"{_progress['overall_progress']}%")
            st.caption(f"Current phase: {_progress['current_phase']}")
        except APIError as exc:
            st.caption(exc.message)
    else:
        st.error(f"Backend: {_conn_msg}")

# ---------------------------------------------------------------------------
# Navigation (multipage)
# ---------------------------------------------------------------------------
interview_page = st.Page(
    "pages/01_video_interview.py",
    title="Video Interview",
    icon="\U0001f3a5",
    default=True,
)

nav = st.navigation([interview_page])
nav.run()
