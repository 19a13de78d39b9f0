"""HTTP and WebSocket server for ccbridge.

Hosts the endpoint computers connect to and the operator REST API.
"""
