"""
Picker App Module

Configuration and command-line front end for the student picker.

This module provides:
- YAML-based configuration loading
- Store construction from configuration
- CLI for managing groups and students and picking
"""

__version__ = "0.1.0"
