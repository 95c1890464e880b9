"""
Movie Catalog Reconciler - Source Package

This package contains the core functionality for reconciling the movie sheet against TMDB:
- row_normalizer: Title-casing and row construction from raw cells
- duplicate_detection: Exact-row and TMDB id duplicate checks
- metadata_client: TMDB search and lookup with timeouts and retries
- movie_matching: Search result classification and ambiguity policies
- consistency_check: Stored title vs TMDB title verification
- reconciliation: Pipeline orchestration and diagnostic report
- sheet_source: Google Sheets, CSV and text row sources
- config: Explicit reconciler settings
- utils: Utility functions and configuration constants
"""
