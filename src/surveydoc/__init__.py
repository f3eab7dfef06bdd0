"""
Survey Document Engine

Turns untrusted, machine-generated text into a validated survey document
tree (Survey -> Page -> Section -> Block -> Field), merges independently
produced trees without destroying user edits, and evaluates per-node
visibility rules against live field values.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - HTTP routing or transport
    - Persistence backends
    - Text-generation providers
    - Rendering

Every public operation is a pure function over in-memory trees.
Callers own the "current document" and thread it through explicitly.
"""

__version__ = "0.1.0"
