"""
Skill Strike - Two-team card battle engine

A deterministic, rules-driven engine for live classroom card battles.
The engine provides:
- Typed game state with a JSON-friendly blob form
- Validated actions (effects, attacks, resolution, turn end)
- Per-game serialized session handling
- A FastAPI surface for polling clients
"""

__version__ = "0.1.0"
