#!/usr/bin/env python3
"""Print effective Repolaunch settings (from env / .env). Run from repo root: python scripts/print_settings.py"""
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from repolaunch.core.config import settings


def main():
    """Print server, GitHub, upload retry, build simulation and job sweep settings."""
    print("Repolaunch settings")
    print("-------------------")
    print(f"  PORT                        = {settings.port}")
    print(f"  GITHUB_API_URL              = {settings.github_api_url}")
    print(f"  STAGING_DIR                 = {settings.staging_dir} (tree pushed to each new repo)")
    print(f"  PACKAGE_PATH                = {settings.package_path} (served by /api/download-package)")
    print(f"  HTTP_TIMEOUT_SECONDS        = {settings.http_timeout_seconds}")
    print(f"  REQUEST_TIMEOUT_SECONDS     = {settings.request_timeout_seconds}")
    print(f"  UPLOAD_MAX_ATTEMPTS         = {settings.upload_max_attempts}")
    print(f"  UPLOAD_RETRY_DELAY_SECONDS  = {settings.upload_retry_delay_seconds} (x attempt number)")
    print(f"  BUILD_START_DELAY_SECONDS   = {settings.build_start_delay_seconds}")
    print(f"  BUILD_FINISH_DELAY_SECONDS  = {settings.build_finish_delay_seconds}")
    print(f"  JOB_SWEEP_INTERVAL_SECONDS  = {settings.job_sweep_interval_seconds}")
    print(f"  FAILED_JOB_MAX_AGE_SECONDS  = {settings.failed_job_max_age_seconds}")
    print(f"  JOBS_LIST_LIMIT             = {settings.jobs_list_limit}")
    print(f"  SHUTDOWN_GRACE_SECONDS      = {settings.shutdown_grace_seconds} (wait for running setups on shutdown)")
    print("")
    print("Env: see .env.example")


if __name__ == "__main__":
    main()
