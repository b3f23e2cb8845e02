"""
Swarm Module

Assigns issues across the pool of polecats in one rig.
"""

from .schema import SwarmStatus
from .manager import SwarmManager, assignment_order

__all__ = [
    "SwarmStatus",
    "SwarmManager",
    "assignment_order",
]
