"""Investigation and lab request workflow: reference ranges, test catalog, record store and trends."""
