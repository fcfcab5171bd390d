# This package holds the admin list tables built on the generic data table engine.
# Each entity module declares columns, filters, export layout and its fetch source.

__all__ = ["api_client", "formatting", "participants", "payments", "queries", "ranks", "registry", "users", "votes"]
