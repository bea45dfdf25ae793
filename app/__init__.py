"""
HTTP and websocket layer.
"""
