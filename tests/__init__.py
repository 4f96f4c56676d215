"""Test suite for gyrotone.

Test Structure:
- unit/: Unit tests mirroring packages/gyrotone/core
  - geometry/: shape building, intersections, assembly, copies, layers
  - timing/: tick conversions and grid quantization
  - triggers/: axis crossing, pending queue, trigger engine
  - notes/: frequency helpers and note-parameter resolution
  - config/, utils/, cli/: configuration, logging and command line
- conftest.py: Shared fixtures and recording collaborators
"""
