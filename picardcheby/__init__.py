"""Adaptive Picard-Chebyshev orbit propagation with variable-fidelity spherical harmonic gravity."""

__version__ = "0.1.0"