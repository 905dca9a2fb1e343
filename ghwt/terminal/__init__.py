"""Multiplexer session layouts and backends."""
