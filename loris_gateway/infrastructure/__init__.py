"""
Infrastructure package for the gateway.

Contains credential handling shared by the remote service adapters.
"""
