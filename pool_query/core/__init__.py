"""Pools, routing, the query builder and the SQL renderer."""
