"""Clinical logic: patient categorization, scoring and the investigation workflow."""
