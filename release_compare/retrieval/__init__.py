"""GitHub REST retrieval: transport, pagination, and per-endpoint collectors."""
