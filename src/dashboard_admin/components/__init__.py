# This package groups reusable Streamlit components for the admin dashboard.
# It exists so every table screen renders toolbar, body and pagination the same way.

__all__ = ["data_table_view"]
