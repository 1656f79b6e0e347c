"""Core (UI-agnostic) dashboard logic.

This package contains:
- row sources (BigQuery / bundled CSV) and the logical query catalog
- the view registry and the normalizer that applies it
- the endpoint catalog and the service that runs it (JSON-serializable payloads)
- CSV export, sign-in and the session watchdog
- Altair chart builders for the Streamlit pages
"""
