"""leaveledger — leave requests and balance reconciliation for the ERP HR module."""

__version__ = "1.0.0"
