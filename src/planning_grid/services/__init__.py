"""Ports and services: catalog lookups, persistence protocol, grid sessions."""
