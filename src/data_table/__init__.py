# This package contains the generic data-table engine shared by every admin list view.
# It exists so one abstraction handles paging, filtering, sorting, URL state, selection and export.
# The modules are host-agnostic: Streamlit and HTTP concerns are injected from the outside.

__all__ = [
    "case_utils",
    "debounce",
    "export",
    "fetching",
    "models",
    "preferences",
    "selection",
    "table",
    "url_state",
]
