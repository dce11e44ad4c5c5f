"""Domain layer: work items, units, outcomes and service interfaces."""
