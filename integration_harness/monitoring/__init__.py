"""Prometheus metrics for harness runs."""
