"""Core HR module — organizations and employees."""

from leaveledger.core_hr.models import Employee, Organization

__all__ = ["Employee", "Organization"]
