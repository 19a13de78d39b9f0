"""ccbridge -- WebSocket bridge for ComputerCraft computers.

A single computer connects over a WebSocket and is driven by an operator
through a small command protocol: structured commands go out, a bare
confirmation token or JSON update pushes come back. Update pushes are
stored in a JSON key/value database keyed by the computer's identity.
"""

__version__ = "0.1.0"
