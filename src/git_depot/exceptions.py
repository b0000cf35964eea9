class VCSOperationError(RuntimeError):
    """Raised when a git invocation ran but reported a failure.

    Attributes:
        operation (str): The step that failed ('clone', 'pull', 'add',
            'commit' or 'push').
        output (str): The combined stdout/stderr text of the invocation.
        returncode (int | None): The exit status, when known.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        output: str = "",
        returncode: int | None = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.output = output
        self.returncode = returncode
