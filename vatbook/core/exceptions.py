class VATBookError(Exception):
    """Base class for domain errors raised by the core."""


class InvalidAmount(VATBookError, ValueError):
    """Negative or non-finite numeric input to a calculation."""


class InvalidState(VATBookError):
    """Edit or status move not permitted by the invoice lifecycle."""


class DanglingReference(VATBookError):
    """A document points at a record that no longer exists."""

    def __init__(self, kind: str, ref_id):
        self.kind = kind
        self.ref_id = ref_id
        super().__init__(f"{kind} {ref_id} no longer exists")


class NotFound(VATBookError):
    """Record missing, or not owned by the current user."""

    def __init__(self, kind: str, ref_id):
        self.kind = kind
        self.ref_id = ref_id
        super().__init__(f"{kind} not found")
