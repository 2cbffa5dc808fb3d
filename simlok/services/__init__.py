"""
QR permit verification core.
"""
