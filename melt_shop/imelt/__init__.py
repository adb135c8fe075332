"""
I-MELT demo backend: EAF heat simulation, operator insights and the
HTTP/WebSocket delivery layer.
"""

__version__ = "0.1.0"
