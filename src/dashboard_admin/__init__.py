# This package contains the Streamlit admin dashboard for the contest platform's list tables.
# It exists so operators can page, search, filter and export records from one place.
# The modules separate configuration, the URL port and table rendering from the entrypoint.

__all__ = ["app"]
