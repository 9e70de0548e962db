"""Document store exceptions."""

from .base import SuvidhaError


class StoreError(SuvidhaError):
    """Base error for document store operations."""

    error_code = "SUV_STO_001"


class NotFoundError(StoreError):
    """Referenced scheme, criterion, bill or conversation does not exist."""

    error_code = "SUV_STO_002"


class PartialBatchInvalidError(StoreError):
    """A bulk payment referenced at least one ineligible bill.

    The whole batch is rejected; no bill changes state.
    """

    error_code = "SUV_STO_003"
