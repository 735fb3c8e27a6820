"""Core utilities and shared infrastructure.

- config: Engine configuration loading and validation
- constants: Named constants, CRS identifiers, coordinate bounds
- exceptions: Custom exception hierarchy
"""
