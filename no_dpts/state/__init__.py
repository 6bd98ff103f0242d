# AGPL-3.0 License

"""
Persistent state for no-dpts.

The only state kept between runs is the one-time bypass token.
"""

from no_dpts.state.bypass_gate import BypassGate

__all__ = [
    "BypassGate",
]
