"""G-code block parsing and checking, motion front end and controller peripherals for a CNC carving machine."""

__version__ = "0.1.0"
__all__ = [
    "coolant",
    "eeprom",
    "gcode_check",
    "gcode_words",
    "modes",
    "motion",
    "pwm",
    "tmc26x",
]