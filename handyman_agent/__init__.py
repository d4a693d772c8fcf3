"""Handyman Agent - barcode-driven assembly guidance for voice-controlled displays."""

try:
    from handyman_agent._version import version as __version__
except ImportError:
    __version__ = "0.0.0.dev0"
