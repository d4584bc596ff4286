"""
wmipc - client for the i3/sway window manager IPC protocol.
"""

__version__ = "0.1.0"
