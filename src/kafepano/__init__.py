"""
KafePano - digital signage for cafés.

An admin surface edits settings and content in a realtime content store;
a display surface renders them and follows every change live.
"""

__version__ = "1.0.0"
