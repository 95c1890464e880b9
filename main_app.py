"""
Movie Catalog Reconciler - Streamlit page
Checks the shared movie sheet for duplicates and verifies titles against TMDB
"""

import streamlit as st
import pandas as pd
import logging
import sys
import os

# =============================================================================
# IMPORTS AND SETUP
# =============================================================================

# Add src directory to path for imports
current_dir = os.path.dirname(os.path.abspath(__file__))
src_dir = os.path.join(current_dir, 'src')

if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from config import ConfigurationError, load_config_from_secrets
from metadata_client import TMDbClient
from reconciliation import ReconciliationPipeline
from sheet_source import SourceError, fetch_sheet_rows, get_gsheet_client
from utils import AMBIGUITY_POLICIES

# =============================================================================
# DATA LOADING
# =============================================================================

@st.cache_data(ttl=300, show_spinner=False)
def load_sheet_rows(sheet_id, worksheet, skip_header):
    """Read the catalog sheet using the service account in secrets."""
    if "gcp_service_account" not in st.secrets:
        raise SourceError("Google Cloud service account credentials not found in Streamlit secrets")
    client = get_gsheet_client(credentials_info=dict(st.secrets["gcp_service_account"]))
    return fetch_sheet_rows(client, sheet_id, worksheet, skip_header=skip_header)

def report_table(report, rows):
    """
    Build a per-row summary table for display.

    Args:
        report: ReconciliationReport
        rows: Normalized CatalogRows

    Returns:
        pandas DataFrame with one line per catalog row
    """
    records = []
    for row in rows:
        match = report.match_results.get(row.index)
        check = report.verifications.get(row.index)
        records.append({
            "row": row.index + 1,
            "title": row.title,
            "year": row.year,
            "tmdb_id": row.identifier,
            "match": type(match).__name__ if match is not None else "",
            "verification": type(check).__name__ if check is not None else "",
        })
    return pd.DataFrame(records)

# =============================================================================
# RENDERING
# =============================================================================

def render_line(line):
    """Show one diagnostic line with a colour matching its severity."""
    if line.level >= logging.ERROR:
        st.error(line.text)
    elif line.level >= logging.WARNING:
        st.warning(line.text)
    elif line.kind in ("found", "verified"):
        st.success(line.text)
    else:
        st.info(line.text)

def render_report(report, rows):
    if report.fatal:
        st.error("❌ Reconciliation stopped. Fix the rows below and run again.")
        for line in report.lines:
            render_line(line)
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Rows", len(rows))
    col2.metric("Unresolved", report.unresolved_count)
    col3.metric("Title mismatches", report.mismatch_count)

    st.dataframe(report_table(report, rows), use_container_width=True, hide_index=True)

    with st.expander("Diagnostics", expanded=report.mismatch_count > 0):
        for line in report.lines:
            render_line(line)

# =============================================================================
# MAIN APPLICATION
# =============================================================================

def main():
    """Main application function."""
    st.set_page_config(page_title="Movie Catalog Reconciler", page_icon="🎬", layout="wide")
    st.title("🎬 Movie Catalog Reconciler")

    try:
        config = load_config_from_secrets(st.secrets)
    except ConfigurationError as e:
        st.error(f"❌ {e}")
        st.info("💡 Add TMDB_API_KEY and a [reconciler] table with sheet_id to your Streamlit secrets.")
        return

    policy = st.selectbox(
        "Ambiguous matches",
        AMBIGUITY_POLICIES,
        index=AMBIGUITY_POLICIES.index(config.ambiguity_policy),
    )
    config = config.with_overrides(ambiguity_policy=policy)

    if not st.button("Run reconciliation", type="primary"):
        return

    try:
        with st.spinner("📄 Reading catalog sheet..."):
            raw_rows = load_sheet_rows(config.sheet_id, config.worksheet, config.skip_header)
    except SourceError as e:
        st.error(f"❌ {e}")
        return

    pipeline = ReconciliationPipeline(TMDbClient.from_config(config), config)
    with st.spinner(f"🔍 Checking {len(raw_rows)} rows against TMDB..."):
        report = pipeline.run(raw_rows)

    render_report(report, pipeline.prepare_rows(raw_rows))

if __name__ == "__main__":
    main()
