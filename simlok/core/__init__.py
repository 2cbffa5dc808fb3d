"""
Application core: factory, extensions, request tracking and error handling.
"""
