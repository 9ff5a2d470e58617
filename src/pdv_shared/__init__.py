"""Shared domain, persistence and infrastructure code for the PDV services."""
