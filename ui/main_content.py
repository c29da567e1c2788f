# Main page for the Repolaunch setup assistant. Run: streamlit run ui/main_content.py
import json
import os
import time

import requests
import streamlit as st

API_BASE = os.getenv("API_BASE", "http://localhost:5000")
POLL_INTERVAL_SECONDS = 2
POLL_MAX_SECONDS = 180
TOKEN_PREFIXES = ("ghp_", "github_pat_")

STEP_ICONS = {"in_progress": "⏳", "completed": "✅", "failed": "❌"}


def _status_badge(label: str, color: str) -> None:
    """Render a colored status badge (amber = running, green = done, red = failed)."""
    st.markdown(
        f'<div style="background:{color};color:white;padding:6px 14px;border-radius:6px;'
        'display:inline-block;font-weight:500;">{}</div>'.format(label),
        unsafe_allow_html=True,
    )


def post_json(path: str, payload: dict):
    """POST JSON payload to API path."""
    url = f"{API_BASE}{path}"
    return requests.post(url, json=payload, timeout=30)


def get_json(path: str):
    """GET API path and return the response."""
    return requests.get(f"{API_BASE}{path}", timeout=30)


def pretty_json(obj):
    """Return a pretty-printed JSON string for display."""
    return json.dumps(obj, indent=2, ensure_ascii=False)


def render_steps(job: dict) -> None:
    """Render the job's step history, one line per step, with the error under any failed step."""
    for s in job.get("steps") or []:
        icon = STEP_ICONS.get(s.get("status"), "•")
        st.markdown(f"{icon} **{s.get('step', '')}** · `{s.get('timestamp', '')}`")
        if s.get("error"):
            st.error(s["error"])


def render_job(job: dict) -> None:
    status = job.get("status", "")
    if status == "completed":
        _status_badge("Completed", "#28a745")
    elif status == "failed":
        _status_badge("Failed", "#dc3545")
    else:
        _status_badge(status.replace("_", " ").capitalize() or "Pending", "#e0a800")
    st.write("")
    render_steps(job)
    if job.get("githubRepo"):
        st.markdown(f"Repository: [{job['githubRepo']}]({job['githubRepo']})")
    if job.get("downloadUrl"):
        st.markdown(f"Artifacts: [{job['downloadUrl']}]({job['downloadUrl']})")


def poll_job(job_id: str, placeholder) -> dict:
    """Poll /api/status/{job_id} until the job completes or fails (or POLL_MAX_SECONDS pass), re-rendering each time."""
    deadline = time.time() + POLL_MAX_SECONDS
    job: dict = {}
    while time.time() < deadline:
        r = get_json(f"/api/status/{job_id}")
        if r.status_code != 200:
            placeholder.error(f"Status check failed ({r.status_code}): {r.text}")
            return job
        job = r.json()
        with placeholder.container():
            render_job(job)
        if job.get("status") in ("completed", "failed"):
            return job
        time.sleep(POLL_INTERVAL_SECONDS)
    placeholder.warning("Still running; check the job list below later.")
    return job


def render_setup_form() -> None:
    st.subheader("Create repository")
    with st.form("setup"):
        token = st.text_input("GitHub token", type="password", help="Needs the repo scope (ghp_... or github_pat_...)")
        name = st.text_input("Repository name", value="musketeer-stockfish")
        description = st.text_input("Description (optional)")
        submitted = st.form_submit_button("🚀 Create and upload")

    if not submitted:
        return
    if not token or not name:
        st.error("GitHub token and repository name are required.")
        return
    if not token.startswith(TOKEN_PREFIXES):
        st.error('Token should start with "ghp_" or "github_pat_".')
        return

    r = post_json(
        "/api/setup-repository",
        {"githubToken": token, "repositoryName": name, "description": description or None},
    )
    if r.status_code >= 400:
        detail = r.json().get("detail") if r.headers.get("content-type", "").startswith("application/json") else r.text
        st.error(f"Setup rejected: {detail}")
        return

    data = r.json()
    st.session_state["last_job_id"] = data["jobId"]
    st.caption(f"Job `{data['jobId']}`")
    poll_job(data["jobId"], st.empty())


def render_package_download() -> None:
    st.subheader("Integration package")
    if st.button("📦 Fetch package"):
        r = requests.get(f"{API_BASE}/api/download-package", timeout=30)
        if r.status_code == 404:
            st.warning("Integration package not found on the server.")
        elif r.ok:
            st.download_button("Save archive", data=r.content, file_name="integration-files.tar.gz", mime="application/gzip")
        else:
            st.error(f"Download failed ({r.status_code})")


def render_recent_jobs() -> None:
    st.subheader("Recent jobs")
    r = get_json("/api/jobs")
    if r.status_code != 200:
        st.error(f"Could not load jobs ({r.status_code})")
        return
    jobs = r.json().get("jobs") or []
    if not jobs:
        st.caption("No jobs yet.")
        return
    for job in jobs:
        with st.expander(f"{job.get('repositoryName') or job['id']} · {job['status']}"):
            render_job(job)
            st.code(pretty_json(job), language="json")


st.set_page_config(page_title="Repolaunch", page_icon="🚀")
st.title("Repolaunch")
render_setup_form()
render_package_download()
render_recent_jobs()
