"""Comment reconciliation, review comment and description tools."""
