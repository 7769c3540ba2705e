"""Reconciliation domain: model, ports, and services."""
