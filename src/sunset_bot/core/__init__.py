"""Core domain - data model, tenant and task access, date windows."""
