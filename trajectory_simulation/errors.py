"""Errors raised by the flight simulation."""


class CalculationError(Exception):
    code = "calculation_error"

    def __init__(self, message, code=None, params=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.params = params

    def to_dict(self):
        return {"error": self.message, "code": self.code, "params": self.params}


class InvalidInputError(CalculationError, ValueError):
    """Input is non-finite or outside its physical range."""

    code = "invalid_input"


class DegenerateSpinAxisError(CalculationError, ArithmeticError):
    """A spin axis collapsed to zero length and cannot be normalised."""

    code = "degenerate_spin_axis"


class NonConvergenceError(CalculationError):
    """Adaptive stepping hit the minimum step without meeting tolerance."""

    code = "non_convergence"
