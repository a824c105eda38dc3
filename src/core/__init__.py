"""
Core numeric types and time primitives.

This module contains the foundational value types (Fixed, Decimal, Timestamp)
that are independent of any calendar, clock or I/O layer.
"""
