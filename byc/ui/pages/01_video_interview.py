"""
Video interview page: record one answer per prompt, then submit.

UX flow: idle -> countdown -> recording -> stopped -> reviewing
"""

# Ensure project root is on sys.path (Streamlit page files need this).
import sys as _sys; from pathlib import Path as _Path; _r = str(_Path(__file__).resolve().parents[3]); _r in _sys.path or _sys.path.insert(0, _r)  # noqa: E702,I001

import streamlit as st  # noqa: E402

from byc.ui.components.interview_panel import render_interview  # noqa: E402

st.header("Video Interview")
render_interview()
