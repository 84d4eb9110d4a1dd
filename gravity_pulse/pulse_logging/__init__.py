"""
Structured logging for GravityPulse.

JSON logs with timestamp, event_type and wallet_id. Use get_logger() in every module.
"""

from gravity_pulse.pulse_logging.logger import bind_wallet, get_logger

__all__ = ["get_logger", "bind_wallet"]
