"""Domain layer: model, ports, reconciliation and scheduling."""
