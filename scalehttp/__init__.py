"""Routing, pending request counting, endpoints and dialing helpers for scaling HTTP workloads."""

__version__ = "0.1.0"