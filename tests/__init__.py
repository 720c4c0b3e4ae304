"""
Test suite для PT discount oracle

Contains:
- tests/unit/          : Unit tests для модулей и сборки оракула
"""
