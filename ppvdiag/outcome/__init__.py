"""Fluid-responsiveness outcome derivation."""

from ppvdiag.outcome._responders import attach_outcome, derive_responders

__all__ = ["derive_responders", "attach_outcome"]
