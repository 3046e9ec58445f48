"""Utility modules for Colosseum."""

from .logger import attach_match_log, detach_match_log, setup_logger

__all__ = ["attach_match_log", "detach_match_log", "setup_logger"]
