class InvalidExpenseError(ValueError):
    """
    An expense snapshot the settlement engine refuses to balance:
    unknown payer/participant, empty participant set or negative amount.
    """

    def __init__(self, message: str, expense_id: str | None = None):
        self.expense_id = expense_id
        if expense_id is not None:
            message = f"Expense {expense_id}: {message}"
        super().__init__(message)
