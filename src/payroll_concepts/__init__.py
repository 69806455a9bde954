"""Payroll concept engine: configurable earnings and deductions applied to a base salary."""

__version__ = "0.1.0"
