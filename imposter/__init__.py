"""
Imposter - Pass-and-play party word game engine.

One device goes around the table. Most players see a secret word;
one or more imposters do not, and the group has to find them.

The engine provides:
- Roster setup and validation
- Random role and word assignment
- The card-by-card reveal protocol
- End-of-round reveals
"""

__version__ = "0.1.0"
