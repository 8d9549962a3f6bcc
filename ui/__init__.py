"""
UI Module

Presentation helpers shared by the picker's front ends.

Current Status:
- Absolute and relative timestamp formatting for rosters and pick history
- The command-line front end lives in picker_app.cli
"""

__version__ = "0.1.0"

from .formatting import format_time, relative

__all__ = ["format_time", "relative"]
