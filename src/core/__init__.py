"""
Core domain models, fixed-point math, errors and contracts.

This module contains the foundational building blocks that are independent
of external collaborators (price feeds, access control, audit storage).
"""
