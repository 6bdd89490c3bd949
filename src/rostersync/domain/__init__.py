"""Domain layer: records, events, ports and the reconciliation core."""
