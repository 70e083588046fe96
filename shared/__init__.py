"""
Shared Kernel

This module contains base classes and utilities shared across the inventory
and booking contexts: value objects, aggregate and event base classes, the
unit of work and record-store helpers.
"""
