"""Pixel Dr history-taking bot.

Simulated patient for practising the Abbreviated Mental Test Score.
"""

__version__ = "0.1.0"
