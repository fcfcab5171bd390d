"""
Package marker for source code under `src`.
It holds the generic data table engine, the admin entity tables and the Streamlit host.
"""
