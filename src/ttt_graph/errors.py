"""Error types shared by the graph builder and propagator."""


class InvariantViolation(RuntimeError):
    """Raised when an internal invariant of the state graph is broken.

    These are programming errors, never bad user input: the graph is built
    only from positions the game rules generate.
    """
