"""
Domain layer for the gateway.

Contains the request and result models exchanged between the HTTP layer,
the services and the remote service adapters.
"""
