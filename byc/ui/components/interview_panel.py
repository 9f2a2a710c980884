"""
Interview panel: renders one session snapshot and its controls.

States: idle -> countdown -> recording -> stopped -> reviewing
The backend owns all timers; while a countdown or recording is running the
page polls once per second.
"""

import logging
import time

import streamlit as st

from byc.ui.api_client import APIError, get_api_client
from byc.ui.utils import format_time, question_progress

logger = logging.getLogger(__name__)

_POLL_STATES = ("countdown", "recording")


def _client():
    return get_api_client(st.session_state.api_base_url)


def _run(action) -> None:  # noqa: ANN001
    """Call a client action and surface API errors in the page."""
    try:
        action()
    except APIError as exc:
        st.session_state.interview_error = exc.message
    st.rerun()


def render_interview() -> None:
    """Render the full interview page based on the backend session state."""
    if st.session_state.get("interview_error"):
        st.error(st.session_state.pop("interview_error"))

    try:
        snapshot = _client().get_session()
    except APIError as exc:
        st.error(exc.message)
        return

    if snapshot is None:
        _render_start()
        return

    _render_header(snapshot)
    left, right = st.columns([3, 2])
    with left:
        _render_stage(snapshot)
        _render_controls(snapshot)
    with right:
        _render_question(snapshot)
        _render_navigation(snapshot)

    if snapshot["state"] in _POLL_STATES:
        time.sleep(1.0)
        st.rerun()


def _render_start() -> None:
    st.subheader("Video Interview")
    st.write(
        "Record short answers to behavioral questions. "
        "Keep your webcam and microphone ready."
    )
    if st.session_state.get("interview_next_route"):
        st.success("Interview submitted. Your assessment is complete.")
    if st.button("Begin Interview", type="primary"):
        _run(lambda: _client().start_session())


def _render_header(snapshot: dict) -> None:
    cols = st.columns([3, 1])
    with cols[0]:
        st.markdown("**Video Interview** · Phase 4 of 4")
    with cols[1]:
        device = "\U0001f3a5 \U0001f3a4" if snapshot["device_available"] else "camera off"
        st.markdown(
            f"{device} · Q{snapshot['question_index'] + 1}/{snapshot['question_count']}"
        )
    if not snapshot["device_available"]:
        st.warning(
            "Camera or microphone unavailable"
            + (f": {snapshot['device_error']}" if snapshot.get("device_error") else "")
            + ". You can read the questions, but recording is disabled."
        )
    if snapshot.get("capture_error"):
        st.error(f"Recording failed: {snapshot['capture_error']}")


def _render_stage(snapshot: dict) -> None:
    """Live preview, countdown, recording timer, or playback."""
    state = snapshot["state"]
    if state == "countdown":
        st.markdown(f"# {snapshot['countdown_remaining']}")
        st.caption("Get ready...")
    elif state == "recording":
        timer = f"{format_time(snapshot['elapsed_seconds'])} / {format_time(snapshot['time_limit'])}"
        if snapshot["is_low_time"]:
            st.error(f"\U0001f534 REC  {timer}")
        else:
            st.info(f"\U0001f534 REC  {timer}")
    elif state == "reviewing":
        _render_playback(snapshot)
        return

    if snapshot["preview"]["source"] == "live":
        frame = _client().preview_frame()
        if frame is not None:
            st.image(frame, use_container_width=True)
        elif state == "idle":
            st.caption("Position your face in the centre of the frame.")


def _render_playback(snapshot: dict) -> None:
    artifact = snapshot.get("artifact") or {}
    tracks = artifact.get("tracks", [])
    index = snapshot["question_index"]
    if "video" in tracks:
        data = _client().download_artifact(index, "video")
        if data:
            st.video(data, format="video/mp4")
    if "audio" in tracks:
        data = _client().download_artifact(index, "audio")
        if data:
            st.audio(data, format="audio/wav")


def _render_controls(snapshot: dict) -> None:
    state = snapshot["state"]
    cols = st.columns(3)
    if state == "idle":
        with cols[0]:
            if st.button("Start Recording", disabled=not snapshot["can_start"], type="primary"):
                _run(lambda: _client().start_countdown())
    if state == "recording":
        with cols[0]:
            if st.button("Stop", type="primary"):
                _run(lambda: _client().stop_recording())
    if state in ("stopped", "reviewing"):
        with cols[0]:
            if st.button("Re-record"):
                _run(lambda: _client().re_record())
        if state == "stopped":
            with cols[1]:
                if st.button("Review", disabled=not snapshot["can_review"]):
                    _run(lambda: _client().review())


def _render_question(snapshot: dict) -> None:
    question = snapshot["question"]
    st.caption(
        f"Question {snapshot['question_index'] + 1} · {format_time(question['time_limit'])} max"
    )
    st.subheader(question["prompt"])

    st.markdown("**\U0001f4a1 Tips for a great response**")
    for tip in question.get("tips", []):
        st.markdown(f"- {tip}")

    if snapshot["statuses"][snapshot["question_index"]] == "recorded":
        st.success("Response recorded ✓")
    else:
        st.caption("Not yet recorded")


def _render_navigation(snapshot: dict) -> None:
    st.progress(question_progress(snapshot["question_index"], snapshot["question_count"]))
    st.caption(f"{snapshot['recorded_count']}/{snapshot['question_count']} recorded")

    is_last = snapshot["question_index"] >= snapshot["question_count"] - 1
    if not is_last:
        if st.button("Next Question →", disabled=not snapshot["can_advance"]):
            _run(lambda: _client().advance())
    elif st.button("Complete ✓", disabled=not snapshot["can_submit"], type="primary"):
        try:
            result = _client().submit()
            st.session_state.interview_next_route = result["next_route"]
            logger.info("Interview submitted; next route %s", result["next_route"])
        except APIError as exc:
            st.session_state.interview_error = exc.message
        st.rerun()

    if st.button("Leave Interview"):
        _run(lambda: _client().end_session())
