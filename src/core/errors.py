class ValidationError(ValueError):
    """
    Raised client-side when input is rejected before any request is made,
    e.g. a negative stock quantity or a date range that ends before it starts.
    """

    def __init__(self, message: str, field: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.field = field
