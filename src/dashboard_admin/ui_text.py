# This file stores headings, button labels and empty-state messages for the admin tables dashboard.
# It exists so wording stays consistent across every table screen.

from __future__ import annotations

APP_TITLE = "Contest Admin Tables"
APP_SUBTITLE = "Search, filter and export platform records."

TABLE_PICKER_LABEL = "Table"
EMPTY_TABLE = "No rows match the current search and filters."
LOADING_TABLE = "Loading rows..."
REFRESHING_TABLE = "Refreshing..."
SEARCHING_TABLE = "Searching..."
FETCH_ERROR = "Rows could not be loaded: {error}"
RETRY_LABEL = "Retry"

EXPORT_HEADING = "Export"
EXPORT_CURRENT_PAGE = "Current page"
EXPORT_ALL_PAGES = "All pages"
EXPORT_READY = "Export ready: {filename} ({rows} rows)"
EXPORT_ERROR = "Export failed: {error}"
EXPORT_PROGRESS = "Fetching rows... {chunks} chunk(s) requested"
EXPORT_CANCEL_LABEL = "Stop export"
EXPORT_CANCELLED = "Export stopped before all rows were fetched."
DISMISS_LABEL = "Dismiss"

SELECTION_SUMMARY = "{count} selected"
CLEAR_SELECTION = "Clear selection"
PAGE_STATUS = "Page {page} of {total_pages} ({total} rows)"
